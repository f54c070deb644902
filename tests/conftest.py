from __future__ import annotations

import math

import pytest

from liptint.keypoints import LOWER_LIP_CONTOUR, UPPER_LIP_CONTOUR
from liptint.types import BBox, FaceRecord, Keypoint, PixelBuffer


def _arc(indices, x0, x1, y_base, depth):
    """Place `indices` evenly from x0 to x1, bulging by `depth` at the middle."""
    n = len(indices) - 1
    pts = {}
    for k, idx in enumerate(indices):
        x = x0 + (x1 - x0) * k / n
        y = y_base + depth * math.sin(math.pi * k / n)
        pts[idx] = (x, y)
    return pts


def synthetic_lip_positions():
    """Lips centered at (50, 50), mouth corners at x=20 and x=80.

    Upper lip spans y 40..48 at x=50, mouth opening 48..52, lower lip 52..60.
    """
    pos = {}
    pos.update(_arc(UPPER_LIP_CONTOUR[:11], 20, 80, 50, -10))
    pos.update(_arc(UPPER_LIP_CONTOUR[11:], 80, 20, 50, -2))
    pos.update(_arc(LOWER_LIP_CONTOUR[:11], 20, 80, 50, 10))
    pos.update(_arc(LOWER_LIP_CONTOUR[11:], 80, 20, 50, 2))
    return pos


@pytest.fixture
def lip_positions():
    return synthetic_lip_positions()


@pytest.fixture
def indexed_face(lip_positions) -> FaceRecord:
    pos = lip_positions
    kps = [Keypoint(x=10.0, y=10.0, index=1), Keypoint(x=50.0, y=20.0, index=4)]
    kps += [Keypoint(x=x, y=y, index=i) for i, (x, y) in pos.items()]
    return FaceRecord(keypoints=kps, box=BBox(10, 10, 80, 80))


@pytest.fixture
def named_face() -> FaceRecord:
    kps = [
        Keypoint(10, 10, name="lipsUpperOuter"),
        Keypoint(20, 8, name="lipsUpperOuter"),
        Keypoint(30, 10, name="lipsUpperOuter"),
        Keypoint(10, 20, name="lipsLowerOuter"),
        Keypoint(20, 22, name="lipsLowerOuter"),
        Keypoint(30, 20, name="lipsLowerOuter"),
        Keypoint(5, 5, name="leftEye"),
    ]
    return FaceRecord(keypoints=kps, box=BBox(0, 0, 40, 40))


@pytest.fixture
def white_buffer():
    def make(width: int = 4, height: int = 4, alpha: int = 255) -> PixelBuffer:
        return PixelBuffer.filled(width, height, (255, 255, 255, alpha))

    return make
