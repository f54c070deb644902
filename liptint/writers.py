"""Batch output writers.

Collects one record per processed image and writes a JSON index plus a summary
YAML to the output directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .types import FrameResult, ImageMeta
from .utils import ensure_dir

logger = logging.getLogger(__name__)


def _mask_to_dict(mask) -> Optional[Dict[str, Any]]:
    if mask is None:
        return None
    info: Dict[str, Any] = {"kind": mask.kind}
    if mask.kind == "ellipse":
        info.update(
            center=[mask.center.x, mask.center.y],
            radius_x=mask.radius_x,
            radius_y=mask.radius_y,
        )
    elif mask.kind == "polygon":
        info.update(upper_points=len(mask.upper), lower_points=len(mask.lower))
    else:
        info["reason"] = mask.reason
    return info


def build_record(
    meta: ImageMeta,
    result: Optional[FrameResult],
    color: Optional[str],
    opacity: float,
    output: Optional[str] = None,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    tinted = result.tinted if result else 0
    rec: Dict[str, Any] = {
        "file": meta.path,
        "width": meta.width,
        "height": meta.height,
        "color": color,
        "opacity": opacity,
        "strategy": result.strategy if result else None,
        "mask": _mask_to_dict(result.mask) if result else None,
        "tinted_pixels": tinted,
        "applied": tinted > 0,
        "output": output,
        "reason": reason,
    }
    return rec


class ResultsWriter:
    def __init__(self, output_dir: str | Path, cfg: Optional[Dict[str, Any]] = None):
        self.output_dir = Path(output_dir)
        ensure_dir(self.output_dir)
        self.cfg = cfg or {}
        self.records: List[Dict[str, Any]] = []

    def add(self, record: Dict[str, Any]) -> None:
        self.records.append(record)

    def _write_json(self, path: Path, data: List[Dict[str, Any]]):
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def finalize(self) -> Dict[str, Any]:
        out_dir = ensure_dir(self.output_dir)

        self._write_json(out_dir / "results.json", self.records)

        applied = sum(1 for r in self.records if r.get("applied"))
        reasons: Dict[str, int] = {}
        strategies: Dict[str, int] = {}
        for r in self.records:
            if r.get("reason"):
                reasons[r["reason"]] = reasons.get(r["reason"], 0) + 1
            if r.get("strategy"):
                strategies[r["strategy"]] = strategies.get(r["strategy"], 0) + 1

        summary = {
            "counts": {
                "applied": applied,
                "skipped": len(self.records) - applied,
                "total": len(self.records),
            },
            "strategies": strategies,
            "reasons": reasons,
            "lipstick": (self.cfg or {}).get("lipstick", {}),
            "paths": (self.cfg or {}).get("paths", {}),
        }
        with (out_dir / "summary.yaml").open("w", encoding="utf-8") as f:
            yaml.safe_dump(summary, f, sort_keys=False, allow_unicode=True)
        logger.info("Wrote %d records to %s", len(self.records), out_dir)
        return summary


__all__ = [
    "build_record",
    "ResultsWriter",
]
