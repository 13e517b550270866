from __future__ import annotations

import platform
import shutil
import subprocess
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from contracts import ProcessSpawnError

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


@dataclass(frozen=True, slots=True)
class BinaryCheck:
    name: str
    path: str
    ok: bool
    version: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def platform_dir() -> str:
    """
    Bundle directory name for this host, e.g. "darwin-arm64" or "win32-x64".
    """

    machine = platform.machine().lower()
    return f"{sys.platform}-{_ARCH_ALIASES.get(machine, machine)}"


def bundled_binary_path(name: str, *, bin_root: Path) -> Path:
    ext = ".exe" if sys.platform == "win32" else ""
    return bin_root / "bin" / platform_dir() / f"{name}{ext}"


def resolve_binary(name: str, *, bin_root: Path | None = None, explicit: Path | None = None) -> Path:
    """
    Locate an executable: explicit path, then the bundled copy under
    `bin_root`, then PATH. An explicit path is returned as-is so a wrong path
    surfaces as a spawn failure with that path in the error.
    """

    if explicit is not None:
        return explicit

    searched: list[str] = []
    if bin_root is not None:
        bundled = bundled_binary_path(name, bin_root=bin_root)
        searched.append(str(bundled))
        if bundled.is_file():
            return bundled

    on_path = shutil.which(name)
    if on_path is not None:
        return Path(on_path)

    searched.append("PATH")
    raise ProcessSpawnError(
        f"{name} binary not found",
        detail={"expected_command": name, "searched": searched},
    )


def verify_binary(name: str, path: Path, *, timeout_s: float = 10.0) -> BinaryCheck:
    """
    Run `<path> --version` and report the first output line.
    """

    try:
        proc = subprocess.run(
            [str(path), "--version"],
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        return BinaryCheck(name=name, path=str(path), ok=False, error=repr(e))

    if proc.returncode != 0:
        return BinaryCheck(
            name=name,
            path=str(path),
            ok=False,
            error=f"exit code {proc.returncode}: {proc.stderr.strip()[-500:]}",
        )
    lines = (proc.stdout or proc.stderr).strip().splitlines()
    return BinaryCheck(name=name, path=str(path), ok=True, version=lines[0].strip() if lines else None)


def check_binaries(
    names: tuple[str, ...] = ("potrace",), *, bin_root: Path | None = None
) -> list[BinaryCheck]:
    checks: list[BinaryCheck] = []
    for name in names:
        try:
            path = resolve_binary(name, bin_root=bin_root)
        except ProcessSpawnError as e:
            checks.append(BinaryCheck(name=name, path="", ok=False, error=e.message))
            continue
        checks.append(verify_binary(name, path))
    return checks
