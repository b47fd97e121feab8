"""
Fit Bound Estimation

Derives parameter bounds and start points for each model family directly
from the shape of an empirical HSI curve, using threshold crossings.

Gaussian (depth), parameters [a1, b1, c1]:
- a1 is bracketed by the *score values* (not positions) of the first and
  last grid points scoring below the low threshold (0.2): their mean is the
  lower bound and the start point, 1 is the upper bound.
- b1 is bracketed by the first and last x scoring above the high threshold
  (0.95).
- c1 is unconstrained, start 1.

Gamma-like (velocity), parameters [a, b, d, e]:
- Fixed bounds a in [1, inf), b in [0, inf), d in [0, d_upper], e in [0, 50],
  start [1, 1, 0.1, 10]. d_upper is tuned per life stage.
- Only points scoring >= min_score (0.4) are fitted; fewer points than
  parameters is an under-determined fit.
"""

import logging
from typing import List, Tuple

import numpy as np
from pydantic import BaseModel, Field, validator

from suitability import EmpiricalCurve

logger = logging.getLogger(__name__)

GAUSSIAN_LOW_SCORE = 0.2
GAUSSIAN_HIGH_SCORE = 0.95
GAMMA_MIN_SCORE = 0.4
GAMMA_SHIFT_MAX = 50.0


class BoundEstimationError(Exception):
    """Raised when the empirical curve's shape does not match the model family"""
    pass


class FitBounds(BaseModel):
    """Lower bounds, upper bounds and start point, in model parameter order."""

    lower: List[float] = Field(..., description="Lower bound per parameter")
    upper: List[float] = Field(..., description="Upper bound per parameter")
    start: List[float] = Field(..., description="Start point per parameter")

    @validator('upper')
    def upper_matches_lower(cls, v, values):
        lower = values.get('lower')
        if lower is not None:
            if len(v) != len(lower):
                raise ValueError(f"lower has {len(lower)} entries, upper has {len(v)}")
            bad = [i for i, (lo, hi) in enumerate(zip(lower, v)) if lo > hi]
            if bad:
                raise ValueError(f"lower bound exceeds upper bound for parameters {bad}")
        return v

    @validator('start')
    def start_matches_lower(cls, v, values):
        lower = values.get('lower')
        if lower is not None and len(v) != len(lower):
            raise ValueError(f"lower has {len(lower)} entries, start has {len(v)}")
        return v

    def __len__(self) -> int:
        return len(self.lower)

    def clipped_start(self) -> np.ndarray:
        """Start point moved onto the nearest bound where it lies outside."""
        return np.clip(np.asarray(self.start, dtype=float), self.lower, self.upper)


def estimate_gaussian_bounds(
    curve: EmpiricalCurve,
    low_score: float = GAUSSIAN_LOW_SCORE,
    high_score: float = GAUSSIAN_HIGH_SCORE
) -> FitBounds:
    """
    Bounds and start point for the Gaussian family [a1, b1, c1].

    Args:
        curve: Empirical HSI curve
        low_score: Scores strictly below this bracket a1
        high_score: Scores strictly above this bracket b1

    Returns:
        FitBounds for [a1, b1, c1]

    Raises:
        BoundEstimationError: If no score is below low_score or none above high_score

    Examples:
        >>> bounds = estimate_gaussian_bounds(curve)
        >>> bounds.upper
        [1.0, 7.0, inf]
    """
    scores = curve.normalized_scores

    low_scores = scores[scores < low_score]
    if len(low_scores) == 0:
        raise BoundEstimationError(
            f"{curve.name}: no HSI value below {low_score}; cannot bracket a1"
        )

    high_x = curve.grid[scores > high_score]
    if len(high_x) == 0:
        raise BoundEstimationError(
            f"{curve.name}: no HSI value above {high_score}; cannot bracket b1"
        )

    a1_low = (float(low_scores[0]) + float(low_scores[-1])) / 2
    b1_min, b1_max = float(high_x[0]), float(high_x[-1])

    logger.debug(f"{curve.name}: a1 in [{a1_low:.3f}, 1], b1 in [{b1_min}, {b1_max}]")

    return FitBounds(
        lower=[a1_low, b1_min, -np.inf],
        upper=[1.0, b1_max, np.inf],
        start=[a1_low, 1.0, 1.0]
    )


def gamma_fit_data(
    curve: EmpiricalCurve,
    min_score: float = GAMMA_MIN_SCORE
) -> Tuple[np.ndarray, np.ndarray]:
    """Points of the curve fitted by the Gamma-like family (score >= min_score)."""
    return curve.restrict(min_score)


def estimate_gamma_bounds(
    curve: EmpiricalCurve,
    d_upper: float = 0.2,
    min_score: float = GAMMA_MIN_SCORE,
    n_parameters: int = 4
) -> FitBounds:
    """
    Bounds and start point for the Gamma-like family [a, b, d, e].

    Args:
        curve: Empirical HSI curve
        d_upper: Upper bound on the floor d (0.2 adult, 0.1 juvenile)
        min_score: Only points scoring >= min_score are fitted
        n_parameters: Free parameters of the family

    Returns:
        FitBounds for [a, b, d, e]

    Raises:
        BoundEstimationError: If fewer than n_parameters points score >= min_score
    """
    x, _ = gamma_fit_data(curve, min_score)
    if len(x) < n_parameters:
        raise BoundEstimationError(
            f"{curve.name}: only {len(x)} points with HSI >= {min_score}, "
            f"need at least {n_parameters} to fit"
        )

    return FitBounds(
        lower=[1.0, 0.0, 0.0, 0.0],
        upper=[np.inf, np.inf, d_upper, GAMMA_SHIFT_MAX],
        start=[1.0, 1.0, 0.1, 10.0]
    )
