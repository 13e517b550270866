from __future__ import annotations

import json
import tempfile
import unittest
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from contracts import ProcessSpawnError
from fake_potrace import IS_WINDOWS, write_fake_potrace
from trace_bitmap import resolve_binary, verify_binary
from trace_bitmap.binaries import bundled_binary_path, platform_dir
from trace_bitmap.cli import main as trace_main


class TestResolveBinary(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def test_explicit_path_wins(self) -> None:
        explicit = self.root / "custom" / "potrace"
        self.assertEqual(resolve_binary("potrace", bin_root=self.root, explicit=explicit), explicit)

    def test_bundled_binary_before_path(self) -> None:
        bundled = bundled_binary_path("potrace", bin_root=self.root)
        self.assertEqual(bundled.parent.name, platform_dir())
        bundled.parent.mkdir(parents=True)
        bundled.write_text("")

        with patch("trace_bitmap.binaries.shutil.which", return_value="/usr/bin/potrace"):
            self.assertEqual(resolve_binary("potrace", bin_root=self.root), bundled)

    def test_falls_back_to_path(self) -> None:
        with patch("trace_bitmap.binaries.shutil.which", return_value="/usr/bin/potrace"):
            self.assertEqual(resolve_binary("potrace", bin_root=self.root), Path("/usr/bin/potrace"))

    def test_not_found(self) -> None:
        with patch("trace_bitmap.binaries.shutil.which", return_value=None):
            with self.assertRaises(ProcessSpawnError) as ctx:
                resolve_binary("potrace", bin_root=self.root)
        self.assertEqual(ctx.exception.detail["searched"][-1], "PATH")


@unittest.skipIf(IS_WINDOWS, "fake tracer is a shebang script")
class TestVerifyBinary(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def test_version_reported(self) -> None:
        check = verify_binary("potrace", write_fake_potrace(self.root))
        self.assertTrue(check.ok)
        self.assertTrue(check.version.startswith("potrace 1.16"))

    def test_failing_version_flag(self) -> None:
        check = verify_binary("potrace", write_fake_potrace(self.root, mode="garbage_version"))
        self.assertFalse(check.ok)
        self.assertIn("exit code 1", check.error)

    def test_missing_file(self) -> None:
        check = verify_binary("potrace", self.root / "potrace")
        self.assertFalse(check.ok)

    def test_cli_check_binaries_uses_bundle(self) -> None:
        bundled = bundled_binary_path("potrace", bin_root=self.root)
        write_fake_potrace(bundled.parent)

        buf = StringIO()
        with redirect_stdout(buf):
            rc = trace_main(["--check-binaries", "--bin-root", str(self.root)])

        self.assertEqual(rc, 0)
        (summary,) = json.loads(buf.getvalue())
        self.assertEqual(summary["path"], str(bundled))
        self.assertTrue(summary["ok"])


if __name__ == "__main__":
    unittest.main()
