"""Tests for the spiky smoothing kernel."""

import math

import numpy as np
import pytest

from particle_sim.core.kernel_vectorized import (SpikyKernel2D, kernel_derivative,
                                                 kernel_slope, smoothing_kernel)


class TestSmoothingKernel:

    def test_zero_at_and_beyond_radius(self):
        assert smoothing_kernel(5.0, 5.0) == 0.0
        assert smoothing_kernel(5.0, 7.5) == 0.0
        assert kernel_slope(5.0, 5.0) == 0.0
        assert kernel_slope(5.0, 100.0) == 0.0

    def test_peak_at_origin(self):
        h = 4.0
        expected = h * h / (math.pi * h**4 / 6.0)
        assert smoothing_kernel(h, 0.0) == pytest.approx(expected)
        assert smoothing_kernel(h, 0.0) > smoothing_kernel(h, 1.0) > smoothing_kernel(h, 3.9)

    def test_slope_matches_finite_difference(self):
        h, d, eps = 3.0, 1.2, 1e-6
        numeric = (smoothing_kernel(h, d + eps) - smoothing_kernel(h, d - eps)) / (2 * eps)
        assert kernel_derivative(h, d) == pytest.approx(numeric, rel=1e-5)
        assert kernel_slope(h, d) == pytest.approx(-numeric, rel=1e-5)

    def test_derivative_non_positive(self):
        for d in np.linspace(0.0, 2.0, 11):
            assert kernel_derivative(2.0, d) <= 0.0


class TestSpikyKernel2D:

    @pytest.mark.parametrize("radius", [0.5, 1.0, 12.0, 40.0])
    def test_normalization(self, radius):
        assert SpikyKernel2D(radius).validate()

    def test_vectorized_matches_scalar(self):
        kernel = SpikyKernel2D(2.5)
        r = np.linspace(0.0, 3.0, 31)
        expected_w = [smoothing_kernel(2.5, d) for d in r]
        expected_s = [kernel_slope(2.5, d) for d in r]
        np.testing.assert_allclose(kernel.W_vectorized(r), expected_w)
        np.testing.assert_allclose(kernel.slope_vectorized(r), expected_s)
        np.testing.assert_allclose(kernel.derivative_vectorized(r), -np.array(expected_s))

    def test_w_self_is_maximum(self):
        kernel = SpikyKernel2D(6.0)
        r = np.linspace(0.0, 6.0, 50)
        assert kernel.W_self() == pytest.approx(kernel.W_vectorized(np.array([0.0]))[0])
        assert np.all(kernel.W_vectorized(r) <= kernel.W_self())

    def test_preserves_shape(self):
        kernel = SpikyKernel2D(1.0)
        r = np.random.default_rng(0).uniform(0.0, 2.0, (4, 7))
        assert kernel.W_vectorized(r).shape == (4, 7)
        assert kernel.slope_vectorized(r).shape == (4, 7)

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_rejects_non_positive_radius(self, radius):
        with pytest.raises(ValueError):
            SpikyKernel2D(radius)
