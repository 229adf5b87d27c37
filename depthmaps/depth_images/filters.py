"""Depth-masked compositing filters.

Each filter blends the original photo with a modified variant of itself
through the focus mask: in-focus pixels (mask ~ 1) keep the original, and
out-of-focus pixels (mask ~ 0) take the variant.

- spotlight: variant is black, so everything outside the focal plane fades out
- color: variant is the grayscale photo, so only the focal plane keeps color
- blur: variant is a Gaussian-blurred photo (a cheap depth-of-field effect)
"""

from __future__ import annotations

import logging
from enum import IntEnum

import cv2
import numpy as np

from depthmaps.depth_images.assets import ColorImage
from depthmaps.depth_images.normalize import resize_to

logger = logging.getLogger(__name__)

DEFAULT_BLUR_SIGMA = 8.0


class FilterType(IntEnum):
    SPOTLIGHT = 0
    COLOR = 1
    BLUR = 2

    @classmethod
    def from_index(cls, index: int) -> "FilterType":
        """Map a selector index to a filter, defaulting to spotlight."""
        try:
            return cls(index)
        except ValueError:
            return cls.SPOTLIGHT


def _grayscale(rgb: np.ndarray) -> np.ndarray:
    gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)


def _blurred(rgb: np.ndarray, sigma: float) -> np.ndarray:
    return cv2.GaussianBlur(rgb, (0, 0), sigmaX=sigma, sigmaY=sigma)


def blend(original: np.ndarray, variant: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Per-pixel `mask * original + (1 - mask) * variant`, as uint8."""
    m = np.clip(mask.astype(np.float32), 0.0, 1.0)
    if m.ndim == 2:
        m = m[..., None]
    out = m * original.astype(np.float32) + (1.0 - m) * variant.astype(np.float32)
    return np.clip(np.rint(out), 0.0, 255.0).astype(np.uint8)


def apply_filter(
    image: ColorImage,
    mask: np.ndarray,
    filter_type: FilterType,
    *,
    blur_sigma: float = DEFAULT_BLUR_SIGMA,
) -> ColorImage:
    """Composite `image` with a filtered copy of itself through `mask`.

    Args:
        image: Source photo (not modified).
        mask: HxW focus weights in [0, 1]; resized to the image if needed.
        filter_type: Which variant to blend in out-of-focus regions.
        blur_sigma: Gaussian sigma for `FilterType.BLUR`.

    Returns:
        A new ColorImage with the same orientation.
    """
    rgb = image.pixels
    mask = resize_to(mask.astype(np.float32), image.extent, interpolation=cv2.INTER_LINEAR)

    if filter_type == FilterType.SPOTLIGHT:
        variant = np.zeros_like(rgb)
    elif filter_type == FilterType.COLOR:
        variant = _grayscale(rgb)
    elif filter_type == FilterType.BLUR:
        if blur_sigma <= 0:
            raise ValueError(f"`blur_sigma` must be > 0, got {blur_sigma}.")
        variant = _blurred(rgb, float(blur_sigma))
    else:
        raise ValueError(f"Unknown filter type: {filter_type!r}")

    logger.debug("Applying %s filter to %s image", FilterType(filter_type).name.lower(), image.extent)
    return ColorImage(pixels=blend(rgb, variant, mask), orientation=image.orientation)
