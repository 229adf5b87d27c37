"""Bundled asset discovery and loading.

An asset is a color photo `<name>.<ext>` plus an optional disparity map stored
next to it as `<name><depth_suffix>.npz` (key `data`) or
`<name><depth_suffix>.png` (8/16-bit gray). Asset names follow a fixed
pattern, `test00`, `test01`, ..., and enumeration stops at the first gap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from depthmaps.depth_images.errors import MissingAsset
from depthmaps.depth_images.normalize import normalize_disparity

logger = logging.getLogger(__name__)

# EXIF "Orientation" tag id.
EXIF_ORIENTATION = 0x0112


@dataclass(frozen=True)
class ColorImage:
    """A color photo as stored on disk (not rotated for display)."""

    pixels: np.ndarray  # H x W x 3 uint8 RGB
    orientation: int = 1  # EXIF orientation, 1 = upright

    @property
    def extent(self) -> tuple[int, int]:
        """(width, height) of the stored pixels."""
        h, w = self.pixels.shape[:2]
        return w, h


@dataclass(frozen=True)
class DepthMap:
    """Normalized disparity for a photo, at its own resolution."""

    data: np.ndarray  # H x W float32 in [0, 1], 1 = nearest

    @property
    def extent(self) -> tuple[int, int]:
        h, w = self.data.shape[:2]
        return w, h


def _readonly(x: np.ndarray) -> np.ndarray:
    x = np.ascontiguousarray(x)
    x.setflags(write=False)
    return x


def asset_name(base: str, index: int) -> str:
    """Asset name for a zero-padded two digit index, e.g. `test07`."""
    return f"{base}{index:02d}"


def get_available_images(asset_dir: Path | str, base: str = "test", extension: str = "jpg") -> list[str]:
    """List the bundled asset names in order.

    Probes `<base>00.<extension>`, `<base>01.<extension>`, ... and stops at the
    first index with no file, so a gap truncates the list.
    """
    asset_dir = Path(asset_dir)
    available_images: list[str] = []

    num = 0
    name = asset_name(base, num)
    while (asset_dir / f"{name}.{extension}").is_file():
        available_images.append(name)
        num += 1
        name = asset_name(base, num)

    logger.debug("Found %d bundled image(s) in %s", len(available_images), asset_dir)
    return available_images


def read_color_image(path: Path) -> ColorImage:
    """Read a photo with Pillow, keeping the EXIF orientation as a tag."""
    try:
        with PILImage.open(path) as im:
            orientation = int(im.getexif().get(EXIF_ORIENTATION, 1))
            rgb = np.asarray(im.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as exc:
        raise MissingAsset(f"Failed to read image: {path}") from exc

    if orientation not in range(1, 9):
        logger.warning("Ignoring invalid EXIF orientation %d in %s", orientation, path)
        orientation = 1
    return ColorImage(pixels=_readonly(rgb), orientation=orientation)


def read_disp_npz(path: Path) -> np.ndarray:
    """Read disparity from an .npz containing key `data` and return HxW float32."""
    try:
        with np.load(str(path)) as data:
            disp = data["data"] if "data" in data else None
    except (OSError, ValueError) as exc:
        raise MissingAsset(f"Failed to read depth: {path}") from exc
    if disp is None:
        raise MissingAsset(f'Depth npz must contain key "data": {path}')
    disp = np.squeeze(disp)
    if disp.ndim != 2:
        raise MissingAsset(f"Depth must be HxW, got shape {disp.shape} in {path}.")
    return disp.astype(np.float32)


def read_disp_png(path: Path) -> np.ndarray:
    """Read an 8/16-bit grayscale disparity PNG and return HxW float32."""
    disp = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if disp is None:
        raise MissingAsset(f"Failed to read depth: {path}")
    if disp.ndim == 3:
        # Gray maps saved through color writers: all channels are equal.
        disp = disp[..., 0]
    return disp.astype(np.float32)


class AssetLoader:
    """Loads (ColorImage, DepthMap) pairs from an asset directory."""

    def __init__(self, asset_dir: Path | str, extension: str = "jpg", depth_suffix: str = "_depth") -> None:
        self.asset_dir = Path(asset_dir)
        self.extension = extension
        self.depth_suffix = depth_suffix

    def image_path(self, name: str) -> Path:
        return self.asset_dir / f"{name}.{self.extension}"

    def depth_path(self, name: str) -> Optional[Path]:
        """Path of the depth file for `name`, or None if there is none."""
        for suffix in (".npz", ".png"):
            candidate = self.asset_dir / f"{name}{self.depth_suffix}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def load_depth(self, name: str) -> Optional[DepthMap]:
        path = self.depth_path(name)
        if path is None:
            logger.info("No depth data for %s", name)
            return None

        raw = read_disp_npz(path) if path.suffix == ".npz" else read_disp_png(path)
        if raw.size == 0:
            raise MissingAsset(f"Depth map is empty: {path}")
        if not np.isfinite(raw).any():
            raise MissingAsset(f"Depth map has no finite samples: {path}")
        return DepthMap(data=_readonly(normalize_disparity(raw)))

    def load(self, name: str) -> tuple[ColorImage, Optional[DepthMap]]:
        """Load the photo and its depth map.

        Raises:
            MissingAsset: If the photo is missing/unreadable or the depth file
                exists but is malformed.
        """
        image = read_color_image(self.image_path(name))
        depth = self.load_depth(name)
        logger.debug(
            "Loaded %s: image %s, depth %s",
            name,
            image.extent,
            depth.extent if depth is not None else None,
        )
        return image, depth
