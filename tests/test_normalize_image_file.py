from __future__ import annotations

import asyncio
import json
import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from contracts import DecodeError
from normalize_image import NormalizeImageConfig, normalize_image, read_pgm, run_normalize_image_file
from normalize_image.cli import main as normalize_main


class TestNormalizeImageFile(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def _png(self, name: str, pixels: np.ndarray) -> Path:
        path = self.root / name
        Image.fromarray(pixels).save(path)
        return path

    def test_black_square_on_white_keeps_polarity(self) -> None:
        px = np.full((32, 32, 3), 255, dtype=np.uint8)
        px[8:24, 8:24] = 0
        src = self._png("square.png", px)

        cfg = NormalizeImageConfig(target_size=32)
        bm = run_normalize_image_file(config=cfg, source_file=src, out_file=self.root / "square.pgm")

        self.assertEqual(bm.scale, 1.0)
        self.assertEqual((bm.width, bm.height), (32, 32))
        self.assertFalse(bm.stats.has_transparency)
        self.assertFalse(bm.stats.is_light_content)
        gray = read_pgm(bm.path)
        self.assertEqual(int(gray[0, 0]), 255)
        self.assertEqual(int(gray[16, 16]), 0)

    def test_light_ink_on_transparent_is_inverted(self) -> None:
        px = np.zeros((20, 20, 4), dtype=np.uint8)
        px[5:15, 5:15] = (200, 200, 200, 255)
        src = self._png("ghost.png", px)

        cfg = NormalizeImageConfig(target_size=20)
        bm = run_normalize_image_file(config=cfg, source_file=src, out_file=self.root / "ghost.pgm")

        self.assertTrue(bm.stats.has_transparency)
        self.assertTrue(bm.stats.is_light_content)
        gray = read_pgm(bm.path)
        self.assertEqual(int(gray[0, 0]), 255)
        self.assertEqual(int(gray[10, 10]), 55)
        self.assertTrue((gray[5:15, 5:15] < 128).all())

    def test_small_image_is_upscaled_with_cap(self) -> None:
        px = np.full((5, 10, 3), 255, dtype=np.uint8)
        src = self._png("tiny.png", px)

        bm = run_normalize_image_file(
            config=NormalizeImageConfig(), source_file=src, out_file=self.root / "tiny.pgm"
        )

        self.assertEqual(bm.scale, 8.0)
        self.assertEqual((bm.source_width, bm.source_height), (10, 5))
        self.assertEqual((bm.width, bm.height), (80, 40))
        self.assertEqual(read_pgm(bm.path).shape, (40, 80))

    def test_palette_and_grayscale_sources_decode(self) -> None:
        gray_src = self.root / "gray.png"
        Image.new("L", (8, 8), color=0).save(gray_src)
        palette_src = self.root / "pal.gif"
        Image.new("P", (8, 8), color=0).save(palette_src)

        cfg = NormalizeImageConfig(target_size=8)
        for src in (gray_src, palette_src):
            bm = run_normalize_image_file(config=cfg, source_file=src, out_file=self.root / f"{src.stem}.pgm")
            self.assertEqual((bm.width, bm.height), (8, 8))

    def test_corrupt_and_missing_sources_raise_decode_error(self) -> None:
        bad = self.root / "bad.png"
        bad.write_bytes(b"\x89PNG not really")
        out = self.root / "bad.pgm"

        with self.assertRaises(DecodeError) as ctx:
            run_normalize_image_file(config=NormalizeImageConfig(), source_file=bad, out_file=out)
        self.assertEqual(ctx.exception.code, "NORMALIZE_DECODE_FAILED")
        self.assertFalse(out.exists())

        with self.assertRaises(DecodeError) as ctx:
            run_normalize_image_file(
                config=NormalizeImageConfig(), source_file=self.root / "missing.png", out_file=out
            )
        self.assertEqual(ctx.exception.message, "Input image not found")

    def test_async_entrypoint_matches_sync(self) -> None:
        px = np.full((16, 16, 3), 255, dtype=np.uint8)
        src = self._png("a.png", px)
        cfg = NormalizeImageConfig(target_size=16, compute_source_sha256=True)

        bm = asyncio.run(normalize_image(config=cfg, source_file=src, out_file=self.root / "a.pgm"))

        self.assertEqual(bm.path, self.root / "a.pgm")
        self.assertEqual(len(bm.source_sha256 or ""), 64)
        self.assertEqual(bm.decoder, "pillow")


class TestNormalizeCli(unittest.TestCase):
    def test_manifest_written_for_success_and_failure(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            root = Path(d)
            src = root / "in.png"
            Image.new("RGB", (4, 4), color=(255, 255, 255)).save(src)

            rc = normalize_main(
                ["--source", str(src), "--out", str(root / "in.pgm"), "--out-manifest", str(root / "ok.json")]
            )
            self.assertEqual(rc, 0)
            ok = json.loads((root / "ok.json").read_text(encoding="utf-8"))
            self.assertTrue(ok["ok"])
            self.assertEqual(ok["bitmap"]["scale"], 8.0)

            rc = normalize_main(
                [
                    "--source",
                    str(root / "nope.png"),
                    "--out",
                    str(root / "nope.pgm"),
                    "--out-manifest",
                    str(root / "fail.json"),
                ]
            )
            self.assertEqual(rc, 2)
            fail = json.loads((root / "fail.json").read_text(encoding="utf-8"))
            self.assertFalse(fail["ok"])
            self.assertEqual([e["code"] for e in fail["errors"]], ["NORMALIZE_DECODE_FAILED"])


if __name__ == "__main__":
    unittest.main()
