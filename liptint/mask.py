from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .keypoints import MIN_RING_POINTS
from .types import BBox, Point

logger = logging.getLogger(__name__)


# Fallback lip region as fractions of the face box
X_SPAN: Tuple[float, float] = (0.3, 0.7)
Y_SPAN: Tuple[float, float] = (0.6, 0.8)
FLATTEN = 0.7


def point_in_polygon(x: float, y: float, ring: Sequence[Point]) -> bool:
    """Even-odd ray casting; the ring is implicitly closed."""
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i].x, ring[i].y
        xj, yj = ring[j].x, ring[j].y
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


@dataclass(frozen=True)
class PolygonMask:
    upper: Tuple[Point, ...]
    lower: Tuple[Point, ...]

    kind = "polygon"
    valid = True

    def contains(self, x: float, y: float) -> bool:
        return point_in_polygon(x, y, self.upper) or point_in_polygon(x, y, self.lower)

    def bounds(self) -> Tuple[float, float, float, float]:
        pts = self.upper + self.lower
        xs = [p.x for p in pts]
        ys = [p.y for p in pts]
        return min(xs), min(ys), max(xs), max(ys)


@dataclass(frozen=True)
class EllipseMask:
    center: Point
    radius_x: float
    radius_y: float

    kind = "ellipse"
    valid = True

    def contains(self, x: float, y: float) -> bool:
        dx = (x - self.center.x) / self.radius_x
        dy = (y - self.center.y) / self.radius_y
        return dx * dx + dy * dy <= 1.0

    def bounds(self) -> Tuple[float, float, float, float]:
        cx, cy = self.center.x, self.center.y
        return cx - self.radius_x, cy - self.radius_y, cx + self.radius_x, cy + self.radius_y


@dataclass(frozen=True)
class InvalidMask:
    reason: str = "no_lips"

    kind = "invalid"
    valid = False

    def contains(self, x: float, y: float) -> bool:
        return False


Mask = Union[PolygonMask, EllipseMask, InvalidMask]


def ellipse_from_box(
    box: BBox,
    x_span: Sequence[float] = X_SPAN,
    y_span: Sequence[float] = Y_SPAN,
    flatten: float = FLATTEN,
) -> Mask:
    """Estimate the lips as an ellipse in the lower third of the face box."""
    x0 = box.x_min + box.width * x_span[0]
    x1 = box.x_min + box.width * x_span[1]
    y0 = box.y_min + box.height * y_span[0]
    y1 = box.y_min + box.height * y_span[1]
    rx = (x1 - x0) / 2.0
    ry = (y1 - y0) / 2.0 * flatten
    if rx <= 0 or ry <= 0:
        return InvalidMask("degenerate_box")
    return EllipseMask(Point((x0 + x1) / 2.0, (y0 + y1) / 2.0), rx, ry)


def build_mask(
    upper: Sequence[Point],
    lower: Sequence[Point],
    box: Optional[BBox] = None,
    x_span: Sequence[float] = X_SPAN,
    y_span: Sequence[float] = Y_SPAN,
    flatten: float = FLATTEN,
) -> Mask:
    """Polygon mask from both lip chains, else an ellipse from the box, else invalid."""
    if len(upper) >= MIN_RING_POINTS and len(lower) >= MIN_RING_POINTS:
        return PolygonMask(tuple(upper), tuple(lower))
    if box is None:
        logger.debug("No lip points and no face box; mask is invalid")
        return InvalidMask("no_box")
    mask = ellipse_from_box(box, x_span, y_span, flatten)
    logger.debug("Using %s mask from face box %s", mask.kind, box)
    return mask


def pixel_window(mask: Mask, width: int, height: int) -> Tuple[range, range]:
    """Integer pixel rows and columns that can fall inside `mask`, clipped to the image.

    Nothing outside the mask's bounding box tests as inside.
    """
    x0, y0, x1, y1 = mask.bounds()
    xs = range(max(0, math.ceil(x0)), min(width, math.floor(x1) + 1))
    ys = range(max(0, math.ceil(y0)), min(height, math.floor(y1) + 1))
    return ys, xs


def mask_to_array(mask: Optional[Mask], width: int, height: int) -> np.ndarray:
    """Rasterize `mask` at integer pixel coordinates into an (H, W) bool array."""
    out = np.zeros((height, width), dtype=bool)
    if mask is None or not mask.valid:
        return out
    ys, xs = pixel_window(mask, width, height)
    for y in ys:
        for x in xs:
            if mask.contains(x, y):
                out[y, x] = True
    return out


__all__ = [
    "EllipseMask",
    "InvalidMask",
    "Mask",
    "PolygonMask",
    "build_mask",
    "ellipse_from_box",
    "mask_to_array",
    "pixel_window",
    "point_in_polygon",
]
