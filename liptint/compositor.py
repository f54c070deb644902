"""Per-frame lipstick compositing.

`apply_lipstick` is the single entry point for a frame: it selects lip points,
builds the mask and runs one compositing pass over the caller's buffer. The
buffer is mutated in place and handed back; missing inputs or an unusable mask
leave it untouched.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .color import DEFAULT_LIGHTNESS_SCALE, DEFAULT_OPACITY, Color, ColorError, blend_hsl
from .keypoints import LIPS_NAME, LOWER_LIP_CONTOUR, UPPER_LIP_CONTOUR, select_lip_points_with_strategy
from .mask import FLATTEN, X_SPAN, Y_SPAN, Mask, build_mask, pixel_window
from .types import FaceRecord, FrameResult, PixelBuffer

logger = logging.getLogger(__name__)


def _composite(
    buffer: PixelBuffer,
    mask: Mask,
    color: Color,
    opacity: float,
    lightness_scale: float,
) -> int:
    data = buffer.data
    width = buffer.width
    # Blending is pure, so repeated source colors within a pass share a result
    cache: Dict[Tuple[int, int, int], Tuple[int, int, int]] = {}
    tinted = 0
    ys, xs = pixel_window(mask, width, buffer.height)
    for y in ys:
        row = y * width * 4
        for x in xs:
            if not mask.contains(x, y):
                continue
            i = row + x * 4
            original = (int(data[i]), int(data[i + 1]), int(data[i + 2]))
            new = cache.get(original)
            if new is None:
                new = blend_hsl(original, color.hsl, opacity, lightness_scale)
                cache[original] = new
            data[i], data[i + 1], data[i + 2] = new
            tinted += 1
    return tinted


def composite(
    buffer: PixelBuffer,
    mask: Optional[Mask],
    color: Optional[Color],
    opacity: float = DEFAULT_OPACITY,
    lightness_scale: float = DEFAULT_LIGHTNESS_SCALE,
) -> PixelBuffer:
    """Recolor every pixel of `buffer` inside `mask`; alpha is left alone.

    Returns the same buffer object. An invalid or missing mask, or a missing
    color, is a no-op.
    """
    if buffer is None or mask is None or not mask.valid or color is None:
        return buffer
    _composite(buffer, mask, color, opacity, lightness_scale)
    return buffer


def _coerce_color(color: Union[Color, str, None]) -> Optional[Color]:
    if color is None or isinstance(color, Color):
        return color
    try:
        return Color.from_hex(color)
    except ColorError as e:
        logger.warning("Ignoring lipstick color: %s", e)
        return None


def _clamp_opacity(opacity: Any) -> Optional[float]:
    try:
        value = float(opacity)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric opacity %r", opacity)
        return None
    if math.isnan(value):
        logger.warning("Ignoring NaN opacity")
        return None
    clamped = min(1.0, max(0.0, value))
    if clamped != value:
        logger.warning("Opacity %s out of range; clamped to %s", opacity, clamped)
    return clamped


def apply_lipstick(
    buffer: Optional[PixelBuffer],
    face: Optional[FaceRecord],
    color: Union[Color, str, None],
    opacity: float = DEFAULT_OPACITY,
    cfg: Optional[Mapping[str, Any]] = None,
) -> FrameResult:
    """Run one compositing pass for a single frame.

    `cfg` is a merged config (see `liptint.config`); only the `lipstick`,
    `landmarks` and `fallback` sections are read.
    """
    if buffer is None or face is None:
        return FrameResult(buffer)
    target = _coerce_color(color)
    if target is None:
        return FrameResult(buffer)
    alpha = _clamp_opacity(opacity)
    if alpha is None:
        return FrameResult(buffer)

    cfg = cfg or {}
    lm = cfg.get("landmarks", {})
    fb = cfg.get("fallback", {})
    lightness_scale = float(cfg.get("lipstick", {}).get("lightness_scale", DEFAULT_LIGHTNESS_SCALE))

    upper, lower, strategy = select_lip_points_with_strategy(
        face,
        upper_indices=lm.get("upper_lip", UPPER_LIP_CONTOUR),
        lower_indices=lm.get("lower_lip", LOWER_LIP_CONTOUR),
        name_filter=lm.get("name_filter", LIPS_NAME),
    )
    mask = build_mask(
        upper,
        lower,
        face.box,
        x_span=fb.get("x_span", X_SPAN),
        y_span=fb.get("y_span", Y_SPAN),
        flatten=float(fb.get("flatten", FLATTEN)),
    )
    if not mask.valid:
        logger.debug("No lips found (%s); frame left unchanged", getattr(mask, "reason", None))
        return FrameResult(buffer, mask, None, 0)

    tinted = _composite(buffer, mask, target, alpha, lightness_scale)
    logger.debug("Tinted %d pixels with %s using %s mask", tinted, target.hex, mask.kind)
    return FrameResult(buffer, mask, strategy or "box", tinted)


__all__ = ["apply_lipstick", "composite"]
