"""Image IO.

- Recursive image enumeration with extension whitelist and optional `max_files`.
- Unicode-safe reading and writing via OpenCV (imdecode/imencode).
- Conversion between OpenCV BGR(A) arrays and RGBA PixelBuffers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator, Iterable, Optional, Tuple

import cv2
import numpy as np

from .types import ImageMeta, PixelBuffer
from .utils import IMAGE_EXTS, ensure_dir, is_image_file

logger = logging.getLogger(__name__)


def bgr_to_buffer(image: np.ndarray) -> PixelBuffer:
    """Copy an OpenCV image (gray, BGR or BGRA) into a new RGBA PixelBuffer."""
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise ValueError(f"Unsupported image dtype: {image.dtype}")
    if image.ndim == 2:
        rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    elif image.shape[2] == 4:
        rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    elif image.shape[2] == 3:
        rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    else:
        raise ValueError(f"Unsupported channel count: {image.shape[2]}")
    return PixelBuffer.from_rgba(rgba)


def buffer_to_bgr(buffer: PixelBuffer, keep_alpha: bool = False) -> np.ndarray:
    rgba = buffer.as_array()
    if keep_alpha:
        return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)


def write_image(path: str | Path, image: np.ndarray) -> bool:
    p = Path(path)
    ensure_dir(p.parent)
    ok, encoded = cv2.imencode(p.suffix or ".png", image)
    if not ok:
        logger.warning("Failed to encode image: %s", p)
        return False
    encoded.tofile(str(p))
    return True


class ImageLoader:
    def __init__(
        self,
        input_dir: str | Path,
        exts: Optional[Iterable[str]] = None,
        max_files: Optional[int] = None,
    ):
        self.input_dir = Path(input_dir)
        self.exts = set(e.lower() for e in (exts or IMAGE_EXTS))
        self.max_files = max_files

    def enumerate(self) -> Generator[Path, None, None]:
        count = 0
        if not self.input_dir.exists():
            logger.warning("Input directory does not exist: %s", self.input_dir)
            return
        for p in sorted(self.input_dir.rglob("*")):
            if p.is_file() and is_image_file(p, self.exts):
                yield p
                count += 1
                if self.max_files is not None and count >= self.max_files:
                    return

    @staticmethod
    def _channels_of(img: np.ndarray) -> int:
        if img.ndim == 2:
            return 1
        if img.ndim == 3:
            return img.shape[2]
        return 0

    @staticmethod
    def _imread_unicode(path: Path) -> Optional[np.ndarray]:
        try:
            data = np.fromfile(str(path), dtype=np.uint8)
        except OSError as e:
            logger.debug("Cannot read %s: %s", path, e)
            return None
        if data.size == 0:
            return None
        img = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
        if img is None:
            # Fallback to standard imread
            img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        return img

    def read_image(self, path: str | Path) -> Tuple[Optional[np.ndarray], Optional[ImageMeta], Optional[str]]:
        p = Path(path)
        img = self._imread_unicode(p)
        if img is None:
            return None, None, "unreadable"
        h, w = img.shape[:2]
        ch = self._channels_of(img)
        meta = ImageMeta(path=str(p), width=w, height=h, channels=ch, ext=p.suffix.lower())
        return img, meta, None

    def iter_images(self) -> Generator[Tuple[Path, np.ndarray, ImageMeta], None, None]:
        for p in self.enumerate():
            img, meta, err = self.read_image(p)
            if err is not None or img is None or meta is None:
                logger.warning("Failed to read image: %s (%s)", p, err)
                continue
            yield p, img, meta


__all__ = ["ImageLoader", "bgr_to_buffer", "buffer_to_bgr", "write_image"]
