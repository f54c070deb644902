"""Virtual lipstick compositing.

Selects lip landmarks from a detected face, builds a lip mask and recolors the
masked pixels with a hue/saturation transfer that keeps the original shading.
"""

from . import color as color
from . import compositor as compositor
from . import config as config
from . import keypoints as keypoints
from . import mask as mask
from . import types as types
from . import utils as utils
from .color import Color, blend_pixel, hex_to_rgb, hsl_to_rgb, rgb_to_hsl
from .compositor import apply_lipstick, composite
from .keypoints import select_lip_points
from .mask import build_mask

__all__ = [
    "color",
    "compositor",
    "config",
    "keypoints",
    "mask",
    "types",
    "utils",
    "Color",
    "apply_lipstick",
    "blend_pixel",
    "build_mask",
    "composite",
    "hex_to_rgb",
    "hsl_to_rgb",
    "rgb_to_hsl",
    "select_lip_points",
]
