"""Shared fixtures: tiny on-disk assets written into `tmp_path`."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import numpy as np
import pytest
from PIL import Image as PILImage


def gradient_disparity(h: int, w: int) -> np.ndarray:
    """Disparity ramping 0 -> 1 from left to right."""
    row = np.linspace(0.0, 1.0, w, dtype=np.float32)
    return np.tile(row, (h, 1))


def _write_photo(path: Path, w: int, h: int, orientation: int, color: tuple[int, int, int]) -> None:
    rgb = np.zeros((h, w, 3), dtype=np.uint8)
    rgb[...] = color
    im = PILImage.fromarray(rgb)
    if orientation != 1:
        exif = PILImage.Exif()
        exif[0x0112] = orientation
        im.save(path, exif=exif)
    else:
        im.save(path)


@pytest.fixture
def asset_dir(tmp_path: Path) -> Path:
    d = tmp_path / "assets"
    d.mkdir()
    return d


@pytest.fixture
def write_asset(asset_dir: Path) -> Callable[..., Path]:
    """Write `<name>.<ext>` and optionally `<name>_depth.npz` into `asset_dir`."""

    def _write(
        name: str,
        *,
        size: tuple[int, int] = (64, 48),
        depth_size: Optional[tuple[int, int]] = (32, 24),
        depth: Optional[np.ndarray] = None,
        extension: str = "jpg",
        orientation: int = 1,
        color: tuple[int, int, int] = (200, 120, 40),
    ) -> Path:
        w, h = size
        path = asset_dir / f"{name}.{extension}"
        _write_photo(path, w, h, orientation, color)
        if depth is None and depth_size is not None:
            dw, dh = depth_size
            depth = gradient_disparity(dh, dw)
        if depth is not None:
            np.savez(asset_dir / f"{name}_depth.npz", data=depth)
        return path

    return _write
