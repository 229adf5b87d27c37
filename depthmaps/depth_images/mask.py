"""Focus mask generation from a depth map.

The mask answers "how in-focus is this pixel" for a chosen focal plane. Each
disparity sample gets a weight from a symmetric trapezoid centred on the
focus distance: flat at 1.0 within `width / 2`, then falling off linearly
with gradient `slope` until it reaches 0. The weights are then resampled by
the depth-to-image scale factor so the mask lines up with the color photo.
"""

from __future__ import annotations

import math
from typing import Optional, Union

import cv2
import numpy as np

from depthmaps.depth_images.assets import DepthMap
from depthmaps.depth_images.errors import InvalidInput

DEFAULT_SLOPE = 4.0
DEFAULT_WIDTH = 0.1

FOCUS_MIN = 0.0
FOCUS_MAX = 1.0


def focus_weights(
    disparity: np.ndarray,
    focus: float,
    *,
    slope: float = DEFAULT_SLOPE,
    width: float = DEFAULT_WIDTH,
) -> np.ndarray:
    """Per-sample in-focus weight in [0, 1], at the depth map's own resolution.

    Non-finite disparity samples (holes) get weight 0.
    """
    d = disparity.astype(np.float32)
    valid = np.isfinite(d)
    d = np.where(valid, d, 0.0)
    filter_width = 2.0 / slope + width

    # Rising edge below the focal plane, falling edge above it.
    rising = np.clip(slope * d - slope * (focus - filter_width / 2.0), 0.0, 1.0)
    falling = np.clip(-slope * d + slope * (focus + filter_width / 2.0), 0.0, 1.0)

    return np.where(valid, np.minimum(rising, falling), 0.0).astype(np.float32)


def create_mask(
    depth: Union[DepthMap, np.ndarray, None],
    focus: float,
    scale: Optional[float],
    *,
    slope: float = DEFAULT_SLOPE,
    width: float = DEFAULT_WIDTH,
) -> np.ndarray:
    """Build a focus mask aligned with the color image.

    Args:
        depth: Normalized disparity (DepthMap or HxW array in [0, 1]).
        focus: Focal plane in normalized disparity space [0, 1].
        scale: Depth-to-image scale factor (see `normalize.compute_scale`).
        slope: Falloff gradient of the trapezoid edges.
        width: Width of the fully in-focus band around `focus`.

    Returns:
        HxW float32 mask in [0, 1]. If `scale` is unusable the mask is all
        zeros at the depth map's resolution.

    Raises:
        InvalidInput: If the depth map is empty or `focus` is out of range.
    """
    data = depth.data if isinstance(depth, DepthMap) else depth
    if data is None or np.size(data) == 0:
        raise InvalidInput("Depth map is empty.")
    data = np.asarray(data)
    if data.ndim == 3 and data.shape[2] == 1:
        data = data[..., 0]
    if data.ndim != 2:
        raise InvalidInput(f"Depth map must be HxW, got shape {data.shape}.")

    try:
        focus = float(focus)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Focus distance must be a number, got {focus!r}.") from exc
    if not (FOCUS_MIN <= focus <= FOCUS_MAX):
        # NaN fails this comparison too.
        raise InvalidInput(f"Focus distance must be in [{FOCUS_MIN}, {FOCUS_MAX}], got {focus}.")

    if scale is None or not math.isfinite(scale) or scale <= 0.0:
        return np.zeros(data.shape, dtype=np.float32)

    weights = focus_weights(data, focus, slope=slope, width=width)

    h, w = weights.shape
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    if (new_w, new_h) != (w, h):
        weights = cv2.resize(weights, (new_w, new_h), interpolation=cv2.INTER_LINEAR)

    return np.clip(weights, 0.0, 1.0).astype(np.float32)
