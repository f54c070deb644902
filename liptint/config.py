from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

import yaml

from .color import ColorError, hex_to_rgb
from .keypoints import LIPS_NAME, LOWER_LIP_CONTOUR, UPPER_LIP_CONTOUR

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "paths": {
        "input_dir": "images",
        "output_dir": "outputs",
    },
    "lipstick": {
        "color": "#ff0a35",
        "opacity": 0.7,
        # Applied to the source pixel's HSL lightness before recoloring
        "lightness_scale": 0.9,
    },
    "landmarks": {
        # MediaPipe FaceMesh indices, ordered as closed rings
        "upper_lip": list(UPPER_LIP_CONTOUR),
        "lower_lip": list(LOWER_LIP_CONTOUR),
        # Substring matched against keypoint names when indices are unavailable
        "name_filter": LIPS_NAME,
    },
    "fallback": {
        # Lip region as fractions of the face box, used without lip keypoints
        "x_span": [0.3, 0.7],
        "y_span": [0.6, 0.8],
        # Vertical radius factor; lips are flatter than the box band
        "flatten": 0.7,
    },
    "mediapipe": {
        "static_image_mode": True,
        "refine_landmarks": True,
        "max_faces": 1,
    },
    "runtime": {
        "workers": 0,  # 0 => single-thread; >0 => process pool size
        "max_files": None,
        "log_level": "INFO",
    },
    "shades": {
        "red": "#ff0a35",
        "pink": "#ff6e9c",
        "dark_red": "#b71c1c",
        "bright_pink": "#ff4081",
        "nude": "#a76140",
    },
}


def _deep_merge(base: MutableMapping[str, Any], override: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for k, v in override.items():
        if k in base and isinstance(base[k], MutableMapping) and isinstance(v, Mapping):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_yaml(path: str | Path | None) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        logger.warning("YAML config not found: %s", p)
        return {}
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level of YAML must be a mapping/dict")
    return data


def validate_config(cfg: Mapping[str, Any]) -> None:
    lip = cfg.get("lipstick", {})
    opacity = lip.get("opacity")
    if not isinstance(opacity, (int, float)) or not 0.0 <= float(opacity) <= 1.0:
        raise ValueError(f"lipstick.opacity must be a number in [0, 1], got {opacity!r}")
    try:
        hex_to_rgb(lip.get("color"))
    except ColorError as e:
        raise ValueError(f"lipstick.color: {e}") from e
    for name, value in (cfg.get("shades") or {}).items():
        try:
            hex_to_rgb(value)
        except ColorError as e:
            raise ValueError(f"shades.{name}: {e}") from e


def merge_config(yaml_cfg: Mapping[str, Any] | None = None, cli_overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    _deep_merge(cfg, copy.deepcopy(DEFAULTS))
    if yaml_cfg:
        _deep_merge(cfg, dict(yaml_cfg))
    if cli_overrides:
        _deep_merge(cfg, dict(cli_overrides))
    validate_config(cfg)
    return cfg


def load_and_merge(yaml_path: str | Path | None, cli_overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    yaml_cfg = load_yaml(yaml_path)
    return merge_config(yaml_cfg, cli_overrides)


def resolve_color(cfg: Mapping[str, Any], shade: Optional[str] = None) -> str:
    """Hex color for a named shade, or the configured lipstick color."""
    if shade:
        shades = cfg.get("shades") or {}
        if shade not in shades:
            raise KeyError(f"Unknown shade {shade!r}; available: {', '.join(sorted(shades))}")
        return shades[shade]
    return cfg.get("lipstick", {}).get("color", DEFAULTS["lipstick"]["color"])
