from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Keypoint:
    x: float
    y: float
    name: Optional[str] = None
    index: Optional[int] = None

    @property
    def point(self) -> Point:
        return Point(float(self.x), float(self.y))


@dataclass
class BBox:
    x_min: float
    y_min: float
    width: float
    height: float


@dataclass
class FaceRecord:
    keypoints: List[Keypoint]
    box: Optional[BBox] = None


@dataclass
class ImageMeta:
    path: str
    width: int
    height: int
    channels: Optional[int] = None
    ext: Optional[str] = None


@dataclass
class PixelBuffer:
    """RGBA pixels, row-major from the top-left corner.

    `data` is a flat uint8 array of length width * height * 4.
    """

    width: int
    height: int
    data: np.ndarray = field(repr=False)

    def __post_init__(self):
        expected = int(self.width) * int(self.height) * 4
        if self.data.ndim != 1 or self.data.size != expected:
            raise ValueError(
                f"PixelBuffer data must be flat with {expected} values, got shape {self.data.shape}"
            )

    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> "PixelBuffer":
        """Wrap an (H, W, 4) array; the buffer shares memory when it is contiguous uint8."""
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError("Expected an (H, W, 4) RGBA array")
        h, w = rgba.shape[:2]
        arr = np.ascontiguousarray(rgba, dtype=np.uint8)
        return cls(width=w, height=h, data=arr.reshape(-1))

    @classmethod
    def filled(cls, width: int, height: int, rgba: Tuple[int, int, int, int]) -> "PixelBuffer":
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[:, :] = rgba
        return cls.from_rgba(arr)

    def as_array(self) -> np.ndarray:
        """(H, W, 4) view onto the same memory."""
        return self.data.reshape(self.height, self.width, 4)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())


@dataclass
class FrameResult:
    buffer: Optional[PixelBuffer]
    mask: Optional[object] = None
    strategy: Optional[str] = None
    tinted: int = 0
