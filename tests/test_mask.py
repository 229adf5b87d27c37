import numpy as np
import pytest

from depthmaps.depth_images.assets import DepthMap
from depthmaps.depth_images.errors import InvalidInput
from depthmaps.depth_images.mask import create_mask, focus_weights

from conftest import gradient_disparity


def _ramp(n: int = 1001) -> np.ndarray:
    return np.linspace(0.0, 1.0, n, dtype=np.float32)[None, :]


class TestFocusWeights:
    def test_weight_is_one_at_focus(self):
        d = np.array([[0.3, 0.5, 0.7]], dtype=np.float32)
        w = focus_weights(d, 0.5)
        assert w[0, 1] == 1.0

    def test_flat_top_within_half_width(self):
        d = np.array([[0.46, 0.5, 0.54]], dtype=np.float32)
        np.testing.assert_array_equal(focus_weights(d, 0.5, slope=4.0, width=0.1), [[1.0, 1.0, 1.0]])

    def test_zero_beyond_falloff(self):
        # Zero once |d - f| >= width / 2 + 1 / slope = 0.3
        d = np.array([[0.1, 0.9]], dtype=np.float32)
        np.testing.assert_array_equal(focus_weights(d, 0.5, slope=4.0, width=0.1), [[0.0, 0.0]])

    def test_linear_falloff(self):
        d = np.array([[0.675]], dtype=np.float32)
        # Halfway down the falling edge (0.55 .. 0.8).
        assert focus_weights(d, 0.5, slope=4.0, width=0.1)[0, 0] == pytest.approx(0.5, abs=1e-5)

    @pytest.mark.parametrize("focus", [0.0, 0.25, 0.5, 0.8, 1.0])
    def test_non_increasing_away_from_focus(self, focus):
        d = _ramp()[0]
        w = focus_weights(d[None, :], focus)[0]
        above = w[d >= focus]
        below = w[d <= focus][::-1]
        assert np.all(np.diff(above) <= 0)
        assert np.all(np.diff(below) <= 0)


class TestCreateMask:
    def test_values_in_unit_range(self):
        depth = DepthMap(data=gradient_disparity(24, 32))
        for focus in (0.0, 0.33, 1.0):
            mask = create_mask(depth, focus, 2.0)
            assert mask.dtype == np.float32
            assert mask.min() >= 0.0
            assert mask.max() <= 1.0

    def test_scaled_to_image_extent(self):
        depth = DepthMap(data=gradient_disparity(24, 32))
        mask = create_mask(depth, 0.5, 2.0)
        assert mask.shape == (48, 64)

    def test_scale_one_keeps_depth_resolution(self):
        data = gradient_disparity(24, 32)
        np.testing.assert_array_equal(create_mask(data, 0.5, 1.0), focus_weights(data, 0.5))

    def test_accepts_plain_arrays_with_channel(self):
        data = gradient_disparity(4, 5)[..., None]
        assert create_mask(data, 0.5, 1.0).shape == (4, 5)

    def test_max_weight_where_depth_equals_focus(self):
        data = np.full((5, 5), 0.42, dtype=np.float32)
        np.testing.assert_array_equal(create_mask(data, 0.42, 1.0), np.ones((5, 5), dtype=np.float32))

    @pytest.mark.parametrize("hole", [np.nan, np.inf, -np.inf])
    def test_non_finite_depth_gets_zero_weight(self, hole):
        data = np.full((4, 4), 0.5, dtype=np.float32)
        data[2, 1] = hole
        mask = create_mask(data, 0.5, 1.0)
        assert np.isfinite(mask).all()
        assert mask[2, 1] == 0.0
        assert mask[0, 0] == 1.0

    def test_non_finite_depth_stays_in_range_when_scaled(self):
        data = gradient_disparity(8, 8)
        data[3, 3] = np.nan
        mask = create_mask(data, 0.5, 2.5)
        assert np.isfinite(mask).all()
        assert mask.min() >= 0.0
        assert mask.max() <= 1.0

    def test_idempotent(self):
        depth = DepthMap(data=gradient_disparity(24, 32))
        first = create_mask(depth, 0.6, 1.7)
        second = create_mask(depth, 0.6, 1.7)
        np.testing.assert_array_equal(first, second)

    def test_does_not_modify_depth(self):
        data = gradient_disparity(8, 8)
        before = data.copy()
        create_mask(data, 0.5, 3.0)
        np.testing.assert_array_equal(data, before)

    @pytest.mark.parametrize("scale", [None, 0.0, -1.0, float("nan"), float("inf")])
    def test_unusable_scale_gives_all_zero_mask(self, scale):
        data = gradient_disparity(6, 8)
        mask = create_mask(data, 0.5, scale)
        assert mask.shape == (6, 8)
        assert not mask.any()

    @pytest.mark.parametrize("depth", [None, np.zeros((0, 0), dtype=np.float32), DepthMap(data=np.zeros((0, 4)))])
    def test_empty_depth_is_invalid(self, depth):
        with pytest.raises(InvalidInput):
            create_mask(depth, 0.5, 1.0)

    @pytest.mark.parametrize("focus", [-0.01, 1.01, float("nan"), "near"])
    def test_focus_out_of_range_is_invalid(self, focus):
        with pytest.raises(InvalidInput):
            create_mask(gradient_disparity(4, 4), focus, 1.0)

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            create_mask(gradient_disparity(4, 4), 2.0, 1.0)
