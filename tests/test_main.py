import json
import sys
from pathlib import Path

import cv2
import numpy as np

import main
from liptint.mask import EllipseMask
from liptint.types import BBox, FaceRecord, Point


class _BoxOnlyDetector:
    """Stands in for MediaPipe: every image yields a face filling the frame."""

    fail_on = None

    def __init__(self, cfg=None):
        self.cfg = cfg

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def detect(self, image_bgr):
        if self.fail_on is not None and image_bgr.shape[1] == self.fail_on:
            raise RuntimeError("detector crashed")
        h, w = image_bgr.shape[:2]
        return FaceRecord([], BBox(0, 0, w, h))


def _run_batch(monkeypatch, input_dir, output_dir):
    monkeypatch.setattr(main, "FaceMeshDetector", _BoxOnlyDetector)
    monkeypatch.setattr(
        sys,
        "argv",
        ["main.py", "--input-dir", str(input_dir), "--output-dir", str(output_dir), "--opacity", "1.0"],
    )
    main.main()
    return json.loads((output_dir / "results.json").read_text(encoding="utf-8"))


def test_batch_skips_unsupported_image(tmp_path, monkeypatch):
    src = tmp_path / "in"
    src.mkdir()
    cv2.imwrite(str(src / "a.png"), np.full((20, 20, 3), 255, dtype=np.uint8))
    cv2.imwrite(str(src / "b.tiff"), np.full((20, 20, 3), 0.5, dtype=np.float32))

    records = {Path(r["file"]).name: r for r in _run_batch(monkeypatch, src, tmp_path / "out")}

    assert records["a.png"]["applied"] is True
    assert (tmp_path / "out" / "a.png").exists()
    assert records["b.tiff"]["applied"] is False
    assert records["b.tiff"]["reason"] == "unsupported"
    assert (tmp_path / "out" / "summary.yaml").exists()


def test_batch_continues_after_failing_image(tmp_path, monkeypatch):
    src = tmp_path / "in"
    src.mkdir()
    cv2.imwrite(str(src / "a.png"), np.full((20, 20, 3), 255, dtype=np.uint8))
    cv2.imwrite(str(src / "b.png"), np.full((20, 30, 3), 255, dtype=np.uint8))
    monkeypatch.setattr(_BoxOnlyDetector, "fail_on", 30)

    records = _run_batch(monkeypatch, src, tmp_path / "out")

    assert len(records) == 1
    assert records[0]["file"].endswith("a.png")


def test_draw_debug_shades_mask(tmp_path):
    image = np.zeros((20, 20, 3), dtype=np.uint8)
    out = tmp_path / "debug.png"
    main.draw_debug(image, EllipseMask(Point(10, 14), 4, 2), str(out))

    vis = cv2.imread(str(out))
    assert tuple(vis[14, 10]) == (0, 127, 0)
    assert tuple(vis[2, 2]) == (0, 0, 0)
