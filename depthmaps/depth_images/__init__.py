"""Depth-map viewing core.

Loads a color photo plus its co-registered disparity map, turns the disparity
into a focus mask for a chosen focal plane, and composites filtered variants
of the photo through that mask. `display.DepthImageController` ties it
together behind four display modes (original / depth / mask / filtered).
"""
