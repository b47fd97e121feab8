"""
Unit Tests for Fit Bound Estimation

Tests verify:
1. Gaussian a1/b1 threshold-crossing brackets
2. Gamma-like fixed bounds and per-life-stage floor bound
3. Failures when the curve shape doesn't suit the family
4. FitBounds validation and start clipping
"""

from pathlib import Path
import sys

import numpy as np
import pytest

# Add src to path
src_path = Path(__file__).parent.parent.parent / 'src'
sys.path.insert(0, str(src_path))

from fitting import (
    BoundEstimationError,
    FitBounds,
    estimate_gamma_bounds,
    estimate_gaussian_bounds,
    gamma_fit_data,
)
from suitability import EmpiricalCurve


def make_curve(scores, step=1.0, name="test_curve"):
    scores = np.asarray(scores, dtype=float)
    return EmpiricalCurve(
        name=name,
        grid=np.arange(len(scores)) * step,
        raw_scores=scores.copy(),
        normalized_scores=scores
    )


@pytest.fixture
def bell_curve():
    """Depth-like curve: low tails, plateau above 0.95 at x = 3..5"""
    return make_curve([0.1, 0.15, 0.5, 0.96, 1.0, 0.97, 0.5, 0.18, 0.05, 0.0, 0.0])


@pytest.fixture
def decay_curve():
    """Velocity-like curve decaying from 1; six points >= 0.4"""
    return make_curve([1.0, 1.0, 0.9, 0.7, 0.5, 0.45, 0.3, 0.1])


class TestGaussianBounds:
    """Test Gaussian bound heuristics."""

    def test_a1_bracketed_by_low_score_values(self, bell_curve):
        """a1 lower bound is the mean of the first and last low *scores*."""
        bounds = estimate_gaussian_bounds(bell_curve)

        # first score < 0.2 is 0.1, last is 0.0
        assert bounds.lower[0] == pytest.approx(0.05)
        assert bounds.upper[0] == 1.0
        assert bounds.start[0] == pytest.approx(0.05)

    def test_b1_bracketed_by_high_score_positions(self, bell_curve):
        bounds = estimate_gaussian_bounds(bell_curve)

        assert bounds.lower[1] == 3.0
        assert bounds.upper[1] == 5.0
        assert bounds.start[1] == 1.0

    def test_c1_unconstrained(self, bell_curve):
        bounds = estimate_gaussian_bounds(bell_curve)

        assert bounds.lower[2] == -np.inf
        assert bounds.upper[2] == np.inf
        assert bounds.start[2] == 1.0

    def test_start_clipped_into_bounds(self, bell_curve):
        """b1 start of 1 lies below [3, 5] and is moved onto the bound."""
        bounds = estimate_gaussian_bounds(bell_curve)
        np.testing.assert_allclose(bounds.clipped_start(), [0.05, 3.0, 1.0])

    def test_no_score_above_high_threshold(self):
        """A curve never exceeding 0.95 cannot bracket b1."""
        curve = make_curve([0.0, 0.3, 0.9, 0.8, 0.1])
        with pytest.raises(BoundEstimationError, match="0.95"):
            estimate_gaussian_bounds(curve)

    def test_high_threshold_above_curve_maximum(self, bell_curve):
        with pytest.raises(BoundEstimationError):
            estimate_gaussian_bounds(bell_curve, high_score=1.0)

    def test_no_score_below_low_threshold(self):
        curve = make_curve([0.5, 0.8, 1.0, 0.7, 0.3])
        with pytest.raises(BoundEstimationError, match="a1"):
            estimate_gaussian_bounds(curve)

    def test_custom_thresholds(self, bell_curve):
        bounds = estimate_gaussian_bounds(bell_curve, low_score=0.16, high_score=0.965)

        # scores < 0.16: 0.1, 0.15, 0.05, 0.0, 0.0 -> (0.1 + 0.0) / 2
        assert bounds.lower[0] == pytest.approx(0.05)
        # scores > 0.965: x = 4, 5
        assert bounds.lower[1] == 4.0
        assert bounds.upper[1] == 5.0


class TestGammaBounds:
    """Test Gamma-like bound heuristics."""

    def test_fixed_bounds(self, decay_curve):
        bounds = estimate_gamma_bounds(decay_curve)

        assert bounds.lower == [1.0, 0.0, 0.0, 0.0]
        assert bounds.upper == [np.inf, np.inf, 0.2, 50.0]
        assert bounds.start == [1.0, 1.0, 0.1, 10.0]

    def test_floor_upper_bound_per_life_stage(self, decay_curve):
        bounds = estimate_gamma_bounds(decay_curve, d_upper=0.1)
        assert bounds.upper[2] == 0.1
        # start d = 0.1 sits exactly on the bound
        np.testing.assert_allclose(bounds.clipped_start(), [1.0, 1.0, 0.1, 10.0])

    def test_fit_data_restricted_to_min_score(self, decay_curve):
        x, y = gamma_fit_data(decay_curve)

        np.testing.assert_array_equal(x, [0.0, 1.0, 2.0, 3.0, 4.0, 5.0])
        np.testing.assert_array_equal(y, [1.0, 1.0, 0.9, 0.7, 0.5, 0.45])

    def test_too_few_points(self):
        """Three points >= 0.4 cannot determine four parameters."""
        curve = make_curve([1.0, 0.8, 0.4, 0.39, 0.1])
        with pytest.raises(BoundEstimationError, match="need at least 4"):
            estimate_gamma_bounds(curve)

    def test_exactly_enough_points(self):
        curve = make_curve([1.0, 0.8, 0.6, 0.4, 0.1])
        bounds = estimate_gamma_bounds(curve)
        assert len(bounds) == 4


class TestFitBounds:
    """Test the FitBounds container."""

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            FitBounds(lower=[0, 0], upper=[1], start=[0, 0])

    def test_start_length_mismatch(self):
        with pytest.raises(ValueError):
            FitBounds(lower=[0, 0], upper=[1, 1], start=[0])

    def test_lower_above_upper(self):
        with pytest.raises(ValueError, match="exceeds"):
            FitBounds(lower=[0, 2], upper=[1, 1], start=[0, 1])

    def test_equal_bounds_allowed(self):
        bounds = FitBounds(lower=[0, 1], upper=[1, 1], start=[0.5, 3])
        np.testing.assert_allclose(bounds.clipped_start(), [0.5, 1.0])
