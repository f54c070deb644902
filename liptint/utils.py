from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

IMAGE_EXTS = frozenset({".jpg", ".jpeg", ".png", ".bmp", ".webp", ".tiff"})


def setup_logging(level: str | int = "INFO") -> None:
    """Configure root logging with a simple, consistent format.

    Accepts either a logging level name (str) or numeric level. MediaPipe's
    absl logger is capped at WARNING unless DEBUG is requested.
    """
    if isinstance(level, str):
        lvl = logging.getLevelName(level.upper())
        if not isinstance(lvl, int):
            lvl = logging.INFO
    else:
        lvl = int(level)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    if lvl > logging.DEBUG:
        logging.getLogger("absl").setLevel(logging.WARNING)


def ensure_dir(path: str | os.PathLike, exist_ok: bool = True) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=exist_ok)
    return p


def is_image_file(path: str | os.PathLike, exts: Iterable[str] | None = None) -> bool:
    allowed = IMAGE_EXTS if exts is None else {e.lower() for e in exts}
    return Path(path).suffix.lower() in allowed


def mirror_path(src: str | os.PathLike, base_dir: Optional[str | os.PathLike], out_dir: str | os.PathLike) -> Path:
    """Place `src` under `out_dir`, keeping its path relative to `base_dir`.

    Files outside `base_dir` (or with no base) land directly in `out_dir`.
    """
    src = Path(src)
    if base_dir:
        try:
            return Path(out_dir) / src.resolve().relative_to(Path(base_dir).resolve())
        except ValueError:
            pass
    return Path(out_dir) / src.name
