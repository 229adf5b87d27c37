"""Render backends: turn images and gray data into displayable RGB frames.

Two presentation paths exist for the same views:

- `OrientedRenderBackend` materializes every frame and applies the source
  photo's EXIF orientation to it, including depth and mask frames whose
  grids carry no orientation of their own.
- `DirectRenderBackend` orients color photos but hands gray data through as
  stored (the data is assumed to be in display orientation already).

Callers pick one once via `make_backend` and share all code above it.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from matplotlib import colormaps

from depthmaps.depth_images.assets import ColorImage

logger = logging.getLogger(__name__)


def apply_orientation(x: np.ndarray, orientation: int) -> np.ndarray:
    """Rotate/flip an HxW(xC) array from EXIF `orientation` to upright."""
    if orientation == 2:
        out = x[:, ::-1]
    elif orientation == 3:
        out = x[::-1, ::-1]
    elif orientation == 4:
        out = x[::-1]
    elif orientation == 5:
        out = np.swapaxes(x, 0, 1)
    elif orientation == 6:
        out = np.rot90(x, k=-1)
    elif orientation == 7:
        out = np.swapaxes(x[::-1, ::-1], 0, 1)
    elif orientation == 8:
        out = np.rot90(x, k=1)
    else:
        out = x
    return np.ascontiguousarray(out)


class RenderBackend:
    """Base class; subclasses decide how gray data is oriented."""

    name = "base"

    def __init__(self, depth_colormap: Optional[str] = None) -> None:
        if depth_colormap is not None and depth_colormap not in colormaps:
            raise ValueError(f"Unknown colormap: {depth_colormap}")
        self.depth_colormap = depth_colormap

    def present_image(self, image: ColorImage) -> np.ndarray:
        """HxWx3 uint8 RGB frame of a photo, upright."""
        return apply_orientation(image.pixels, image.orientation)

    def present_gray(self, data: np.ndarray, orientation: int = 1) -> np.ndarray:
        """HxWx3 uint8 RGB frame of a [0, 1] gray grid (depth or mask)."""
        return self._orient_gray(self._gray_to_rgb(data), orientation)

    def _gray_to_rgb(self, data: np.ndarray) -> np.ndarray:
        x = np.clip(np.asarray(data, dtype=np.float32), 0.0, 1.0)
        if x.ndim == 3:
            x = x[..., 0]
        if self.depth_colormap is None:
            gray_u8 = np.rint(x * 255.0).astype(np.uint8)
            return np.repeat(gray_u8[..., None], 3, axis=2)
        rgba = colormaps[self.depth_colormap](x)
        return np.rint(rgba[..., :3] * 255.0).astype(np.uint8)

    def _orient_gray(self, rgb: np.ndarray, orientation: int) -> np.ndarray:
        raise NotImplementedError


class OrientedRenderBackend(RenderBackend):
    name = "oriented"

    def _orient_gray(self, rgb: np.ndarray, orientation: int) -> np.ndarray:
        return apply_orientation(rgb, orientation)


class DirectRenderBackend(RenderBackend):
    name = "direct"

    def _orient_gray(self, rgb: np.ndarray, orientation: int) -> np.ndarray:
        return rgb


BACKENDS: dict[str, type[RenderBackend]] = {
    OrientedRenderBackend.name: OrientedRenderBackend,
    DirectRenderBackend.name: DirectRenderBackend,
}


def make_backend(name: str, depth_colormap: Optional[str] = None) -> RenderBackend:
    """Create the render backend registered under `name`."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown render backend {name!r}; expected one of {sorted(BACKENDS)}.") from None
    logger.debug("Using %s render backend (colormap=%s)", name, depth_colormap)
    return backend_cls(depth_colormap=depth_colormap)
