"""Color conversion and the lipstick blend.

The blend keeps the source pixel's lightness (slightly darkened) and takes hue
and saturation from the lipstick shade, so lip shading and texture survive the
recolor.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Sequence, Tuple

RGB = Tuple[int, int, int]
HSL = Tuple[float, float, float]

DEFAULT_OPACITY = 0.7
DEFAULT_LIGHTNESS_SCALE = 0.9

_HEX_RE = re.compile(r"^[0-9a-fA-F]{6}$")


class ColorError(ValueError):
    pass


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_channel(value: int) -> int:
    return max(0, min(255, value))


def rgb_to_hsl(r: float, g: float, b: float) -> HSL:
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    l = (mx + mn) / 2.0
    if mx == mn:
        return 0.0, 0.0, l

    d = mx - mn
    s = d / (2.0 - mx - mn) if l > 0.5 else d / (mx + mn)
    if mx == r:
        h = (g - b) / d + (6.0 if g < b else 0.0)
    elif mx == g:
        h = (b - r) / d + 2.0
    else:
        h = (r - g) / d + 4.0
    return h / 6.0, s, l


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_channel(p, q, h + 1 / 3)
        g = _hue_to_channel(p, q, h)
        b = _hue_to_channel(p, q, h - 1 / 3)
    return (
        _clamp_channel(_round_half_up(r * 255)),
        _clamp_channel(_round_half_up(g * 255)),
        _clamp_channel(_round_half_up(b * 255)),
    )


def hex_to_rgb(text: str) -> RGB:
    """Parse `#RRGGBB` (hash optional, any case) into an RGB triple.

    Raises ColorError for anything that is not exactly six hex digits.
    """
    if not isinstance(text, str):
        raise ColorError(f"Color must be a string, got {type(text).__name__}")
    digits = text.strip()
    if digits.startswith("#"):
        digits = digits[1:]
    if not _HEX_RE.match(digits):
        raise ColorError(f"Malformed hex color: {text!r}")
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def rgb_to_hex(rgb: Sequence[int]) -> str:
    r, g, b = (int(c) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class Color:
    rgb: RGB
    hsl: HSL

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> "Color":
        for c in (r, g, b):
            if not 0 <= int(c) <= 255:
                raise ColorError(f"RGB channel out of range: {c}")
        rgb = (int(r), int(g), int(b))
        return cls(rgb=rgb, hsl=rgb_to_hsl(*rgb))

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        return cls.from_rgb(*hex_to_rgb(text))

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)


def blend_hsl(
    original: Sequence[int],
    target_hsl: HSL,
    opacity: float = DEFAULT_OPACITY,
    lightness_scale: float = DEFAULT_LIGHTNESS_SCALE,
) -> RGB:
    """Blend with a pre-converted target; used by the compositor's inner loop."""
    _, _, l = rgb_to_hsl(*original)
    th, ts, _ = target_hsl
    blended = hsl_to_rgb(th, ts, l * lightness_scale)
    inv = 1.0 - opacity
    return tuple(
        _clamp_channel(_round_half_up(o * inv + n * opacity))
        for o, n in zip(original, blended)
    )  # type: ignore[return-value]


def blend_pixel(
    original: Sequence[int],
    target: Sequence[int],
    opacity: float = DEFAULT_OPACITY,
    lightness_scale: float = DEFAULT_LIGHTNESS_SCALE,
) -> RGB:
    """Recolor one pixel toward `target`.

    Hue and saturation come from the target, lightness is the original's scaled
    by `lightness_scale`. The result is mixed with the original by `opacity`:
    0 returns the original unchanged, 1 returns the fully recolored value.
    """
    return blend_hsl(original, rgb_to_hsl(*target), opacity, lightness_scale)


__all__ = [
    "Color",
    "ColorError",
    "DEFAULT_LIGHTNESS_SCALE",
    "DEFAULT_OPACITY",
    "blend_hsl",
    "blend_pixel",
    "hex_to_rgb",
    "hsl_to_rgb",
    "rgb_to_hex",
    "rgb_to_hsl",
]
