"""Depth image viewer: bundled photos shown next to their depth maps.

The viewing logic lives in `depthmaps.depth_images`.
"""
