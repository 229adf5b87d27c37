import numpy as np
import pytest

from depthmaps.depth_images.assets import ColorImage
from depthmaps.depth_images.filters import FilterType, apply_filter, blend


def _image(h: int = 20, w: int = 30, orientation: int = 1) -> ColorImage:
    rng = np.random.default_rng(1)
    return ColorImage(pixels=rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8), orientation=orientation)


class TestFilterType:
    def test_from_index(self):
        assert FilterType.from_index(2) is FilterType.BLUR

    def test_unknown_index_defaults_to_spotlight(self):
        assert FilterType.from_index(9) is FilterType.SPOTLIGHT


class TestBlend:
    def test_endpoints(self):
        a = np.full((2, 2, 3), 200, dtype=np.uint8)
        b = np.zeros((2, 2, 3), dtype=np.uint8)
        np.testing.assert_array_equal(blend(a, b, np.ones((2, 2))), a)
        np.testing.assert_array_equal(blend(a, b, np.zeros((2, 2))), b)

    def test_half_mask_averages(self):
        a = np.full((1, 1, 3), 200, dtype=np.uint8)
        b = np.full((1, 1, 3), 100, dtype=np.uint8)
        np.testing.assert_array_equal(blend(a, b, np.full((1, 1), 0.5)), np.full((1, 1, 3), 150))


class TestApplyFilter:
    @pytest.mark.parametrize("filter_type", list(FilterType))
    def test_fully_in_focus_keeps_original(self, filter_type):
        image = _image()
        out = apply_filter(image, np.ones((20, 30), dtype=np.float32), filter_type)
        np.testing.assert_array_equal(out.pixels, image.pixels)

    def test_spotlight_with_empty_mask_is_black(self):
        out = apply_filter(_image(), np.zeros((20, 30), dtype=np.float32), FilterType.SPOTLIGHT)
        assert not out.pixels.any()

    def test_color_out_of_focus_is_gray(self):
        out = apply_filter(_image(), np.zeros((20, 30), dtype=np.float32), FilterType.COLOR)
        px = out.pixels.astype(int)
        np.testing.assert_array_equal(px[..., 0], px[..., 1])
        np.testing.assert_array_equal(px[..., 1], px[..., 2])

    def test_blur_out_of_focus_smooths(self):
        image = _image()
        out = apply_filter(image, np.zeros((20, 30), dtype=np.float32), FilterType.BLUR, blur_sigma=3.0)
        assert out.pixels.astype(float).std() < image.pixels.astype(float).std()

    def test_blur_sigma_must_be_positive(self):
        with pytest.raises(ValueError):
            apply_filter(_image(), np.zeros((20, 30)), FilterType.BLUR, blur_sigma=0.0)

    def test_mask_is_resized_to_image(self):
        out = apply_filter(_image(), np.ones((10, 15), dtype=np.float32), FilterType.SPOTLIGHT)
        assert out.pixels.shape == (20, 30, 3)

    def test_keeps_orientation_and_does_not_modify_input(self):
        image = _image(orientation=8)
        before = image.pixels.copy()
        out = apply_filter(image, np.zeros((20, 30), dtype=np.float32), FilterType.SPOTLIGHT)
        assert out.orientation == 8
        assert out is not image
        np.testing.assert_array_equal(image.pixels, before)
