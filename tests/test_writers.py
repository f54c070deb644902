import json

import yaml

from liptint.mask import EllipseMask, InvalidMask, PolygonMask
from liptint.types import FrameResult, ImageMeta, Point
from liptint.writers import ResultsWriter, build_record


def _meta(name):
    return ImageMeta(path=name, width=10, height=8)


def test_build_record_variants():
    poly = PolygonMask((Point(0, 0), Point(1, 0), Point(0, 1)), (Point(0, 0), Point(1, 0), Point(0, 1)))
    rec = build_record(_meta("a.png"), FrameResult(None, poly, "indexed", 12), "#ff0000", 0.7, output="out/a.png")
    assert rec["applied"] is True
    assert rec["mask"] == {"kind": "polygon", "upper_points": 3, "lower_points": 3}
    assert rec["strategy"] == "indexed"

    ell = EllipseMask(Point(5, 6), 2.0, 1.0)
    rec = build_record(_meta("b.png"), FrameResult(None, ell, "box", 3), "#ff0000", 0.7)
    assert rec["mask"]["center"] == [5, 6]

    rec = build_record(_meta("c.png"), FrameResult(None, InvalidMask("no_box"), "box", 0), "#ff0000", 0.7, reason="no_lips")
    assert rec["applied"] is False
    assert rec["mask"] == {"kind": "invalid", "reason": "no_box"}

    rec = build_record(_meta("d.png"), None, "#ff0000", 0.7, reason="unreadable")
    assert rec["mask"] is None and rec["tinted_pixels"] == 0


def test_finalize_writes_index_and_summary(tmp_path):
    writer = ResultsWriter(tmp_path / "out", {"lipstick": {"color": "#ff0000"}})
    writer.add({"file": "a", "applied": True, "strategy": "indexed", "reason": None})
    writer.add({"file": "b", "applied": False, "strategy": None, "reason": "no_face"})
    writer.add({"file": "c", "applied": False, "strategy": "box", "reason": "no_lips"})
    summary = writer.finalize()

    assert summary["counts"] == {"applied": 1, "skipped": 2, "total": 3}
    assert summary["reasons"] == {"no_face": 1, "no_lips": 1}
    assert summary["strategies"] == {"indexed": 1, "box": 1}

    records = json.loads((tmp_path / "out" / "results.json").read_text(encoding="utf-8"))
    assert [r["file"] for r in records] == ["a", "b", "c"]
    on_disk = yaml.safe_load((tmp_path / "out" / "summary.yaml").read_text(encoding="utf-8"))
    assert on_disk["counts"]["total"] == 3
    assert on_disk["lipstick"]["color"] == "#ff0000"
