from __future__ import annotations

import json
import os
import sys
from pathlib import Path

# Behaviors: "ok" writes an SVG, "fail" exits 3, "empty" exits 0 without
# output, "sleep" hangs, "garbage_version" fails --version.
_SCRIPT = '''#!{python}
import json
import sys
import time
from pathlib import Path

MODE = {mode!r}
LOG = {log!r}

args = sys.argv[1:]
with open(LOG, "a", encoding="utf-8") as f:
    f.write(json.dumps(args) + "\\n")

if "--version" in args:
    if MODE == "garbage_version":
        sys.stderr.write("unknown option --version\\n")
        sys.exit(1)
    print("potrace 1.16. Copyright (C) 2001-2019 Peter Selinger.")
    sys.exit(0)

if MODE == "fail":
    sys.stderr.write("potrace: " + args[-1] + ": file format not recognized\\n")
    sys.exit(3)
if MODE == "sleep":
    time.sleep(30)
if MODE == "empty":
    sys.exit(0)

out = Path(args[args.index("-o") + 1])
bitmap = Path(args[-1])
head = bitmap.read_bytes()[:32].split(b"\\n")
out.write_text(
    '<svg xmlns="http://www.w3.org/2000/svg" data-size="%s"><path d="M0 0h1v1z"/></svg>\\n'
    % head[1].decode("ascii"),
    encoding="utf-8",
)
'''


def write_fake_potrace(directory: Path, *, mode: str = "ok", name: str = "potrace") -> Path:
    """
    Executable stand-in for potrace. Every invocation appends its argv (JSON)
    to `<directory>/<name>.calls`.
    """

    directory.mkdir(parents=True, exist_ok=True)
    script = directory / name
    log = directory / f"{name}.calls"
    script.write_text(_SCRIPT.format(python=sys.executable, mode=mode, log=str(log)), encoding="utf-8")
    os.chmod(script, 0o755)
    return script


def read_calls(script: Path) -> list[list[str]]:
    log = script.parent / f"{script.name}.calls"
    if not log.exists():
        return []
    return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines() if line]


IS_WINDOWS = sys.platform == "win32"
