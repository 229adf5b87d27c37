"""Exceptions raised by the depth image pipeline."""

from __future__ import annotations


class DepthImageError(Exception):
    """Base class for depth image errors."""


class MissingAsset(DepthImageError, FileNotFoundError):
    """No usable image/depth pair exists for an asset name."""


class InvalidInput(DepthImageError, ValueError):
    """Empty depth data or a focus distance outside [0, 1]."""
