"""Display modes and the controller that drives them.

Four mutually exclusive modes are selectable at any time:

- ORIGINAL: the photo
- DEPTH: the normalized disparity map
- MASK: the focus mask for the current focus distance
- FILTERED: the photo composited through the mask with the selected filter

Every update re-derives what to show from the current photo, depth map,
focus distance and filter; nothing is cached between updates. Missing data
never raises: the affected mode simply leaves the display as it was.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence, Union

import numpy as np

from depthmaps.depth_images.assets import AssetLoader, ColorImage, DepthMap, get_available_images
from depthmaps.depth_images.config import ViewerConfig
from depthmaps.depth_images.errors import MissingAsset
from depthmaps.depth_images.filters import DEFAULT_BLUR_SIGMA, FilterType, apply_filter
from depthmaps.depth_images.mask import DEFAULT_SLOPE, DEFAULT_WIDTH, create_mask
from depthmaps.depth_images.normalize import compute_scale
from depthmaps.depth_images.render import RenderBackend, make_backend

logger = logging.getLogger(__name__)


class ImageMode(IntEnum):
    ORIGINAL = 0
    DEPTH = 1
    MASK = 2
    FILTERED = 3

    @classmethod
    def from_index(cls, index: int) -> "ImageMode":
        """Map a selector index to a mode, defaulting to ORIGINAL."""
        try:
            return cls(index)
        except ValueError:
            return cls.ORIGINAL


@dataclass(frozen=True)
class OriginalView:
    image: ColorImage


@dataclass(frozen=True)
class DepthView:
    depth: DepthMap
    orientation: int = 1


@dataclass(frozen=True)
class MaskView:
    mask: np.ndarray
    orientation: int = 1


@dataclass(frozen=True)
class FilteredView:
    image: ColorImage
    mask: np.ndarray
    filter_type: FilterType


View = Union[OriginalView, DepthView, MaskView, FilteredView]


@dataclass(frozen=True)
class ControlVisibility:
    focus_slider: bool = False
    filter_selector: bool = False


@dataclass(frozen=True)
class DisplayUpdate:
    """Result of one display update.

    `frame` is what the display shows after the update; `changed` is False
    when the update was a no-op and `frame` is the previously shown one.
    """

    frame: Optional[np.ndarray]
    controls: ControlVisibility
    changed: bool


def controls_for(mode: ImageMode) -> ControlVisibility:
    """Which auxiliary controls a mode shows."""
    if mode == ImageMode.MASK:
        return ControlVisibility(focus_slider=True)
    if mode == ImageMode.FILTERED:
        return ControlVisibility(focus_slider=True, filter_selector=True)
    return ControlVisibility()


def _mask_for(
    image: Optional[ColorImage],
    depth: DepthMap,
    focus: float,
    slope: float,
    width: float,
) -> np.ndarray:
    scale = compute_scale(image.extent if image is not None else None, depth.extent)
    return create_mask(depth, focus, scale, slope=slope, width=width)


def build_view(
    mode: ImageMode,
    image: Optional[ColorImage],
    depth: Optional[DepthMap],
    *,
    focus: float,
    filter_type: FilterType = FilterType.SPOTLIGHT,
    slope: float = DEFAULT_SLOPE,
    width: float = DEFAULT_WIDTH,
) -> Optional[View]:
    """Derive the view for `mode` from the current state.

    Returns:
        The view to render, or None if the data the mode needs is missing.
    """
    orientation = image.orientation if image is not None else 1

    if mode == ImageMode.ORIGINAL:
        if image is None:
            return None
        return OriginalView(image=image)

    if mode == ImageMode.DEPTH:
        if depth is None:
            return None
        return DepthView(depth=depth, orientation=orientation)

    if mode == ImageMode.MASK:
        if depth is None:
            return None
        return MaskView(mask=_mask_for(image, depth, focus, slope, width), orientation=orientation)

    if mode == ImageMode.FILTERED:
        if depth is None or image is None:
            return None
        mask = _mask_for(image, depth, focus, slope, width)
        return FilteredView(image=image, mask=mask, filter_type=filter_type)

    raise ValueError(f"Unknown image mode: {mode!r}")


def render_view(view: View, backend: RenderBackend, *, blur_sigma: float = DEFAULT_BLUR_SIGMA) -> np.ndarray:
    """Render a view to an HxWx3 uint8 RGB frame."""
    if isinstance(view, OriginalView):
        return backend.present_image(view.image)
    if isinstance(view, DepthView):
        return backend.present_gray(view.depth.data, view.orientation)
    if isinstance(view, MaskView):
        return backend.present_gray(view.mask, view.orientation)
    if isinstance(view, FilteredView):
        return backend.present_image(apply_filter(view.image, view.mask, view.filter_type, blur_sigma=blur_sigma))
    raise TypeError(f"Unknown view: {type(view).__name__}")


class DepthImageController:
    """Owns the current asset and display state; host UIs bind to its methods."""

    def __init__(
        self,
        loader: AssetLoader,
        asset_names: Sequence[str],
        *,
        backend: RenderBackend,
        config: Optional[ViewerConfig] = None,
    ) -> None:
        self.loader = loader
        self.asset_names: list[str] = list(asset_names)
        self.backend = backend
        self.config = config or ViewerConfig()

        self.current: int = 0
        self.image: Optional[ColorImage] = None
        self.depth: Optional[DepthMap] = None

        self.mode: ImageMode = ImageMode.ORIGINAL
        self.focus: float = float(self.config.initial_focus)
        self.filter_type: FilterType = FilterType.SPOTLIGHT

        self.frame: Optional[np.ndarray] = None
        self.controls: ControlVisibility = controls_for(self.mode)

    @classmethod
    def from_config(cls, config: ViewerConfig) -> "DepthImageController":
        """Discover bundled assets and build a controller for them."""
        loader = AssetLoader(config.asset_dir, extension=config.extension, depth_suffix=config.depth_suffix)
        names = get_available_images(config.asset_dir, base=config.base_name, extension=config.extension)
        backend = make_backend(config.render_backend, depth_colormap=config.depth_colormap)
        return cls(loader, names, backend=backend, config=config)

    @property
    def current_name(self) -> Optional[str]:
        if not self.asset_names:
            return None
        return self.asset_names[self.current]

    def load_current(self) -> DisplayUpdate:
        """Load the current asset and show it in ORIGINAL mode."""
        name = self.current_name
        if name is None:
            logger.warning("No bundled images to load")
            return DisplayUpdate(frame=self.frame, controls=self.controls, changed=False)

        try:
            image, depth = self.loader.load(name)
        except MissingAsset as exc:
            logger.warning("Skipping %s: %s", name, exc)
            self.image = None
            self.depth = None
            return DisplayUpdate(frame=self.frame, controls=self.controls, changed=False)

        self.image = image
        self.depth = depth
        self.mode = ImageMode.ORIGINAL
        logger.info("Loaded %s", name)
        return self.update_view()

    def next_image(self) -> DisplayUpdate:
        """Advance to the next asset (wrapping around) and load it."""
        if not self.asset_names:
            return DisplayUpdate(frame=self.frame, controls=self.controls, changed=False)
        self.current = (self.current + 1) % len(self.asset_names)
        return self.load_current()

    def select_mode(self, mode: Union[ImageMode, int]) -> DisplayUpdate:
        self.mode = ImageMode.from_index(int(mode))
        return self.update_view()

    def select_filter(self, filter_type: Union[FilterType, int]) -> DisplayUpdate:
        self.filter_type = FilterType.from_index(int(filter_type))
        return self.update_view()

    def set_focus(self, value: float) -> DisplayUpdate:
        """Set the focus distance, clamped to [0, 1] like a slider."""
        value = float(value)
        if not math.isfinite(value):
            logger.warning("Ignoring non-finite focus value %r", value)
            return DisplayUpdate(frame=self.frame, controls=self.controls, changed=False)
        self.focus = min(1.0, max(0.0, value))
        return self.update_view()

    def update_view(self) -> DisplayUpdate:
        """Re-derive and render the view for the current mode."""
        self.controls = controls_for(self.mode)

        view = build_view(
            self.mode,
            self.image,
            self.depth,
            focus=self.focus,
            filter_type=self.filter_type,
            slope=self.config.mask_slope,
            width=self.config.mask_width,
        )
        if view is None:
            logger.debug("Nothing to show for %s mode; display unchanged", self.mode.name.lower())
            return DisplayUpdate(frame=self.frame, controls=self.controls, changed=False)

        self.frame = render_view(view, self.backend, blur_sigma=self.config.blur_sigma)
        return DisplayUpdate(frame=self.frame, controls=self.controls, changed=True)
