"""Lip landmark selection.

Turns a FaceRecord into two ordered point chains (upper lip, lower lip). The
keypoints are first resolved into sources, most reliable first:

  - IndexedSource: keypoints carry MediaPipe FaceMesh indices, so the fixed lip
    contours can be looked up directly.
  - NamedSource: keypoints carry region names; anything named like "lips" is
    split into upper/lower halves by the median y and ordered left to right.

When neither source yields three points per lip, empty lists are returned and
the mask falls back to the face box.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .types import FaceRecord, Point

logger = logging.getLogger(__name__)


# MediaPipe FaceMesh lip rings. Each runs along the outer lip edge from the left
# mouth corner (61) to the right one (291), then back along the inner edge
# (308 -> 78), so it closes into a simple polygon.
UPPER_LIP_CONTOUR: List[int] = [
    61, 185, 40, 39, 37, 0, 267, 269, 270, 409, 291,
    308, 415, 310, 311, 312, 13, 82, 81, 80, 191, 78,
]
LOWER_LIP_CONTOUR: List[int] = [
    61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291,
    308, 324, 318, 402, 317, 14, 87, 178, 88, 95, 78,
]

LIPS_NAME = "lips"
MIN_RING_POINTS = 3

LipPoints = Tuple[List[Point], List[Point]]


@dataclass
class IndexedSource:
    points: Dict[int, Point]


@dataclass
class NamedSource:
    points: List[Tuple[str, Point]]


KeypointSource = Union[IndexedSource, NamedSource]


def resolve_sources(face: Optional[FaceRecord], name_filter: str = LIPS_NAME) -> List[KeypointSource]:
    """Return the usable keypoint sources for `face`, most reliable first.

    An empty list means the record has no per-point lip data.
    """
    if face is None or not face.keypoints:
        return []

    indexed: Dict[int, Point] = {}
    named: List[Tuple[str, Point]] = []
    for kp in face.keypoints:
        if isinstance(kp.index, int) and not isinstance(kp.index, bool):
            indexed[kp.index] = kp.point
        if kp.name and name_filter in kp.name:
            named.append((kp.name, kp.point))

    sources: List[KeypointSource] = []
    if indexed:
        sources.append(IndexedSource(indexed))
    if named:
        sources.append(NamedSource(named))
    return sources


def lips_from_indices(
    source: IndexedSource,
    upper_indices: Sequence[int] = UPPER_LIP_CONTOUR,
    lower_indices: Sequence[int] = LOWER_LIP_CONTOUR,
) -> LipPoints:
    upper = [source.points[i] for i in upper_indices if i in source.points]
    lower = [source.points[i] for i in lower_indices if i in source.points]
    return upper, lower


def lips_from_names(source: NamedSource) -> LipPoints:
    pts = [p for _, p in source.points]
    if not pts:
        return [], []
    by_y = sorted(pts, key=lambda p: p.y)
    mid_y = by_y[len(by_y) // 2].y

    # Both halves keep points lying exactly on the median.
    upper = sorted((p for p in pts if p.y <= mid_y), key=lambda p: p.x)
    lower = sorted((p for p in pts if p.y >= mid_y), key=lambda p: p.x)
    return upper, lower


def _enough(lips: LipPoints) -> bool:
    upper, lower = lips
    return len(upper) >= MIN_RING_POINTS and len(lower) >= MIN_RING_POINTS


def select_lip_points_with_strategy(
    face: Optional[FaceRecord],
    upper_indices: Sequence[int] = UPPER_LIP_CONTOUR,
    lower_indices: Sequence[int] = LOWER_LIP_CONTOUR,
    name_filter: str = LIPS_NAME,
) -> Tuple[List[Point], List[Point], Optional[str]]:
    """Like `select_lip_points`, also naming the strategy that succeeded ("indexed"/"named")."""
    for source in resolve_sources(face, name_filter=name_filter):
        if isinstance(source, IndexedSource):
            lips, strategy = lips_from_indices(source, upper_indices, lower_indices), "indexed"
        else:
            lips, strategy = lips_from_names(source), "named"
        if _enough(lips):
            logger.debug("Lip points via %s: upper=%d lower=%d", strategy, len(lips[0]), len(lips[1]))
            return lips[0], lips[1], strategy
        logger.debug("Strategy %s yielded too few lip points (%d, %d)", strategy, len(lips[0]), len(lips[1]))
    return [], [], None


def select_lip_points(
    face: Optional[FaceRecord],
    upper_indices: Sequence[int] = UPPER_LIP_CONTOUR,
    lower_indices: Sequence[int] = LOWER_LIP_CONTOUR,
    name_filter: str = LIPS_NAME,
) -> LipPoints:
    """Return (upper, lower) lip chains, or two empty lists when nothing usable exists."""
    upper, lower, _ = select_lip_points_with_strategy(face, upper_indices, lower_indices, name_filter)
    return upper, lower


__all__ = [
    "LIPS_NAME",
    "LOWER_LIP_CONTOUR",
    "UPPER_LIP_CONTOUR",
    "IndexedSource",
    "NamedSource",
    "KeypointSource",
    "resolve_sources",
    "lips_from_indices",
    "lips_from_names",
    "select_lip_points",
    "select_lip_points_with_strategy",
]
