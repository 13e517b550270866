from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import numpy as np

from contracts import EncodeError
from normalize_image.module import compute_scale, scaled_size
from normalize_image.pgm import encode_pgm, parse_pgm_header, read_pgm, write_pgm_atomic


class TestComputeScale(unittest.TestCase):
    def test_small_images_are_capped_at_max_upscale(self) -> None:
        self.assertEqual(compute_scale(100, 50), 8.0)
        self.assertEqual(compute_scale(1, 1), 8.0)

    def test_upscale_to_target_rounded_to_two_decimals(self) -> None:
        self.assertEqual(compute_scale(300, 200), 6.83)  # 2048 / 300 = 6.8266...
        self.assertEqual(compute_scale(1024, 10), 2.0)
        self.assertEqual(compute_scale(200, 1500), 1.37)  # 1.3653...

    def test_never_downscales(self) -> None:
        self.assertEqual(compute_scale(2048, 2048), 1.0)
        self.assertEqual(compute_scale(4000, 100), 1.0)

    def test_custom_target(self) -> None:
        self.assertEqual(compute_scale(16, 8, target_size=64, max_upscale=8.0), 4.0)
        self.assertEqual(compute_scale(16, 8, target_size=64, max_upscale=2.5), 2.5)

    def test_zero_dimensions_rejected(self) -> None:
        with self.assertRaises(ValueError):
            compute_scale(0, 0)

    def test_scaled_size_rounds_half_up(self) -> None:
        self.assertEqual(scaled_size(300, 200, 6.83), (2049, 1366))
        self.assertEqual(scaled_size(10, 5, 8.0), (80, 40))
        self.assertEqual(scaled_size(3, 1, 1.5), (5, 2))


class TestPgmCodec(unittest.TestCase):
    def test_header_and_length(self) -> None:
        gray = np.arange(12, dtype=np.uint8).reshape(3, 4)
        data = encode_pgm(gray)

        self.assertTrue(data.startswith(b"P5\n4 3\n255\n"))
        header = parse_pgm_header(data)
        self.assertEqual((header.width, header.height, header.maxval), (4, 3, 255))
        self.assertEqual(len(data), header.data_offset + 4 * 3)
        self.assertEqual(data[header.data_offset :], bytes(range(12)))

    def test_parse_header_with_comments(self) -> None:
        data = b"P5\n# created by a scanner\n2 1\n255\n\x00\xff"
        header = parse_pgm_header(data)
        self.assertEqual((header.width, header.height), (2, 1))
        self.assertEqual(data[header.data_offset :], b"\x00\xff")

    def test_parse_rejects_other_formats(self) -> None:
        with self.assertRaises(ValueError):
            parse_pgm_header(b"P6\n1 1\n255\n\x00\x00\x00")
        with self.assertRaises(ValueError):
            parse_pgm_header(b"P5\n1 1\n")

    def test_encode_rejects_non_gray(self) -> None:
        with self.assertRaises(ValueError):
            encode_pgm(np.zeros((2, 2, 3), dtype=np.uint8))


class TestAtomicWrite(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def test_write_and_read_back(self) -> None:
        gray = np.full((2, 3), 200, dtype=np.uint8)
        out = self.root / "nested" / "a.pgm"
        write_pgm_atomic(out, encode_pgm(gray))
        self.assertEqual(read_pgm(out).tolist(), gray.tolist())
        self.assertEqual(sorted(p.name for p in out.parent.iterdir()), ["a.pgm"])

    def test_failed_write_leaves_nothing_behind(self) -> None:
        out = self.root / "b.pgm"
        with patch("normalize_image.pgm.os.replace", side_effect=OSError(28, "No space left on device")):
            with self.assertRaises(EncodeError) as ctx:
                write_pgm_atomic(out, encode_pgm(np.zeros((1, 1), dtype=np.uint8)))

        self.assertEqual(ctx.exception.code, "NORMALIZE_ENCODE_FAILED")
        self.assertFalse(out.exists())
        self.assertEqual(list(self.root.iterdir()), [])

    def test_failed_write_keeps_previous_file(self) -> None:
        out = self.root / "c.pgm"
        previous = encode_pgm(np.full((1, 1), 7, dtype=np.uint8))
        out.write_bytes(previous)
        with patch("normalize_image.pgm.os.replace", side_effect=OSError("boom")):
            with self.assertRaises(EncodeError):
                write_pgm_atomic(out, encode_pgm(np.zeros((4, 4), dtype=np.uint8)))
        self.assertEqual(out.read_bytes(), previous)


if __name__ == "__main__":
    unittest.main()
