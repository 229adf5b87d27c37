"""Viewer configuration loaded from YAML.

The YAML file is split into sections; every key is optional and falls back to
the defaults below:

    assets:
      dir: assets          # relative paths resolve against the YAML file
      base_name: test
      extension: jpg
      depth_suffix: _depth
    mask:
      slope: 4.0
      width: 0.1
    filters:
      blur_sigma: 8.0
    render:
      backend: direct      # or "oriented"
      depth_colormap: null # any matplotlib colormap name, e.g. plasma
    viewer:
      initial_focus: 0.5
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from depthmaps.depth_images.filters import DEFAULT_BLUR_SIGMA
from depthmaps.depth_images.mask import DEFAULT_SLOPE, DEFAULT_WIDTH
from depthmaps.depth_images.render import BACKENDS

logger = logging.getLogger(__name__)

# (section, key) in YAML -> ViewerConfig field
_YAML_KEYS: dict[tuple[str, str], str] = {
    ("assets", "dir"): "asset_dir",
    ("assets", "base_name"): "base_name",
    ("assets", "extension"): "extension",
    ("assets", "depth_suffix"): "depth_suffix",
    ("mask", "slope"): "mask_slope",
    ("mask", "width"): "mask_width",
    ("filters", "blur_sigma"): "blur_sigma",
    ("render", "backend"): "render_backend",
    ("render", "depth_colormap"): "depth_colormap",
    ("viewer", "initial_focus"): "initial_focus",
}


@dataclass(frozen=True)
class ViewerConfig:
    asset_dir: Path = Path("assets")
    base_name: str = "test"
    extension: str = "jpg"
    depth_suffix: str = "_depth"
    mask_slope: float = DEFAULT_SLOPE
    mask_width: float = DEFAULT_WIDTH
    blur_sigma: float = DEFAULT_BLUR_SIGMA
    render_backend: str = "direct"
    depth_colormap: Optional[str] = None
    initial_focus: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "asset_dir", Path(self.asset_dir))
        if not math.isfinite(self.mask_slope) or self.mask_slope <= 0:
            raise ValueError(f"`mask.slope` must be finite and > 0, got {self.mask_slope}.")
        if not math.isfinite(self.mask_width) or self.mask_width < 0:
            raise ValueError(f"`mask.width` must be finite and >= 0, got {self.mask_width}.")
        if not math.isfinite(self.blur_sigma) or self.blur_sigma <= 0:
            raise ValueError(f"`filters.blur_sigma` must be finite and > 0, got {self.blur_sigma}.")
        # NaN fails this comparison too.
        if not (0.0 <= self.initial_focus <= 1.0):
            raise ValueError(f"`viewer.initial_focus` must be in [0, 1], got {self.initial_focus}.")
        if self.render_backend not in BACKENDS:
            raise ValueError(f"`render.backend` must be one of {sorted(BACKENDS)}, got {self.render_backend!r}.")


def parse_configs(config: Path | str) -> dict:
    """Load a YAML config file as a dict.

    A file that is not valid YAML (or not a mapping) is logged and treated as
    empty so the defaults apply.
    """
    with open(config, "r", encoding="utf-8") as stream:
        try:
            configs = yaml.safe_load(stream)
        except yaml.YAMLError as exc:
            logger.error("Error parsing YAML configuration %s: %s", config, exc)
            return {}

    if configs is None:
        return {}
    if not isinstance(configs, dict):
        logger.error("Configuration %s must be a mapping, got %s", config, type(configs).__name__)
        return {}
    return configs


def _flatten(raw: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for section, body in raw.items():
        if not isinstance(body, dict):
            logger.warning("Ignoring configuration section %r (not a mapping)", section)
            continue
        for key, value in body.items():
            field_name = _YAML_KEYS.get((section, key))
            if field_name is None:
                logger.warning("Ignoring unknown configuration key %s.%s", section, key)
                continue
            values[field_name] = value
    return values


def load_config(config_path: Optional[Path | str] = None) -> ViewerConfig:
    """Build a ViewerConfig from defaults plus an optional YAML file.

    Raises:
        FileNotFoundError: If `config_path` is given but does not exist.
        ValueError: If a configured value is out of range.
    """
    if config_path is None:
        return ViewerConfig()

    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    values = _flatten(parse_configs(config_path))
    if "asset_dir" in values:
        asset_dir = Path(values["asset_dir"])
        if not asset_dir.is_absolute():
            asset_dir = config_path.parent / asset_dir
        values["asset_dir"] = asset_dir

    config = ViewerConfig(**values)
    logger.info("Configuration loaded from %s", config_path)
    return config


def update_config(config: ViewerConfig, overrides: dict[str, Any]) -> ViewerConfig:
    """Return a copy of `config` with the non-None `overrides` applied."""
    known = {f.name for f in fields(ViewerConfig)}
    changes = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key not in known:
            raise KeyError(f"Unknown configuration field: {key}")
        changes[key] = value
    return replace(config, **changes) if changes else config
