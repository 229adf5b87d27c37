"""Depth normalization utilities.

Depth maps are usually captured at a lower resolution (and sometimes a
different aspect) than the color photo they belong to. This module provides
the uniform scale factor relating the two coordinate spaces, plus the small
array helpers used to bring raw disparity into [0, 1] and resample grids.
"""

from __future__ import annotations

import math
from typing import Optional

import cv2
import numpy as np

Extent = tuple[Optional[float], Optional[float]]


def _max_dimension(extent: Optional[Extent]) -> Optional[float]:
    if extent is None:
        return None
    width, height = extent
    if width is None or height is None:
        return None
    width, height = float(width), float(height)
    if not (math.isfinite(width) and math.isfinite(height)):
        return None
    largest = max(width, height)
    if largest <= 0.0:
        return None
    return largest


def compute_scale(image_extent: Optional[Extent], depth_extent: Optional[Extent]) -> float:
    """Scale factor mapping depth-map pixels onto image pixels.

    Args:
        image_extent: (width, height) of the color image, or None if unknown.
        depth_extent: (width, height) of the depth map, or None if unknown.

    Returns:
        max(image_extent) / max(depth_extent). Falls back to the neutral scale
        1.0 when either side is missing or degenerate; never raises.
    """
    max_to = _max_dimension(image_extent)
    max_from = _max_dimension(depth_extent)
    if max_to is None or max_from is None:
        return 1.0

    scale = max_to / max_from
    if not math.isfinite(scale) or scale <= 0.0:
        return 1.0
    return scale


def normalize_disparity(raw: np.ndarray) -> np.ndarray:
    """Min/max normalize a disparity (or depth) grid to float32 in [0, 1].

    The range is taken over finite samples only; NaN/inf holes (common in
    sensor depth) map to 0. A constant map, or one with no finite samples,
    carries no depth information and normalizes to zeros.
    """
    x = np.asarray(raw, dtype=np.float32)
    finite = np.isfinite(x)
    if not finite.any():
        return np.zeros_like(x, dtype=np.float32)
    mn = float(np.min(x[finite]))
    mx = float(np.max(x[finite]))
    if mx - mn < 1e-8:
        return np.zeros_like(x, dtype=np.float32)
    return np.where(finite, (x - mn) / (mx - mn), 0.0).astype(np.float32)


def resize_to(
    x: np.ndarray,
    extent: tuple[int, int],
    *,
    interpolation: int = cv2.INTER_LINEAR,
) -> np.ndarray:
    """Resize an HxW (or HxWxC) array to `extent` = (width, height).

    Note:
        Use `cv2.INTER_LINEAR` for masks/disparity (smooth falloff) and
        `cv2.INTER_AREA` when shrinking color previews.
    """
    w, h = int(extent[0]), int(extent[1])
    if x.shape[1] == w and x.shape[0] == h:
        return x
    resized = cv2.resize(x, (w, h), interpolation=interpolation)
    # cv2 drops a trailing singleton channel.
    if x.ndim == 3 and resized.ndim == 2:
        resized = resized[..., None]
    return resized
