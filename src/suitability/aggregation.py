"""
Suitability Aggregation

Turns a table of per-reference preference ranges into an empirical habitat
suitability index (HSI) curve over a regular grid of the variable.

Scoring rule, per grid point and per reference row:
- inside the optimal range: weight_opt (even if outside the acceptable range)
- inside the acceptable range only: weight
- otherwise: 0

Scores from all references are summed (elicitations are additive, not
averaged) and the sum is divided by its maximum, so the best-supported
value scores exactly 1.0.

Design Principles:
- Weights are explicit configuration, not module state
- Deterministic, no side effects
- Grid points are exact decimal multiples of the step, so range bounds such
  as 3.0 are matched exactly
"""

import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field

from preferences import RangeTable

logger = logging.getLogger(__name__)

DEFAULT_GRID_STEP = 0.1
GRID_DECIMALS = 10


class DataError(Exception):
    """Raised when a preference table gives no support anywhere on the grid"""
    pass


class SuitabilityWeights(BaseModel):
    """Contribution of one reference to a grid point's raw score."""
    weight: float = Field(0.5, ge=0.0, description="Score for acceptable-only membership")
    weight_opt: float = Field(1.0, ge=0.0, description="Score for optimal membership")


class EmpiricalCurve(BaseModel):
    """
    Empirical HSI curve.

    normalized_scores = raw_scores / max(raw_scores), so its maximum is 1.0.
    """
    name: str = Field("", description="Run name (life stage and variable)")
    grid: np.ndarray = Field(..., description="Variable values, 0 to table maximum")
    raw_scores: np.ndarray = Field(..., description="Summed reference weights per grid point")
    normalized_scores: np.ndarray = Field(..., description="Raw scores divided by their maximum")

    class Config:
        """Pydantic config"""
        arbitrary_types_allowed = True
        frozen = True

    def __len__(self) -> int:
        return len(self.grid)

    def restrict(self, min_score: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Grid points and scores whose normalized score is >= min_score.

        Pairing between x and score is preserved.
        """
        mask = self.normalized_scores >= min_score
        return self.grid[mask], self.normalized_scores[mask]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'x': self.grid,
            'raw_score': self.raw_scores,
            'hsi': self.normalized_scores
        })


def build_grid(max_value: float, step: float = DEFAULT_GRID_STEP) -> np.ndarray:
    """
    Regular grid 0, step, 2*step, ... up to max_value inclusive.

    Args:
        max_value: Largest bound in the preference table
        step: Grid spacing

    Returns:
        Strictly increasing array; empty if max_value < 0

    Examples:
        >>> build_grid(0.35)
        array([0. , 0.1, 0.2, 0.3])
    """
    if step <= 0:
        raise ValueError(f"Grid step must be positive, got {step}")
    if max_value < 0:
        return np.array([], dtype=float)

    # Tolerance absorbs float noise in max_value / step (e.g. 0.3 / 0.1)
    n_steps = int(np.floor(max_value / step + 1e-9))
    return np.round(np.arange(n_steps + 1) * step, GRID_DECIMALS)


def compute_raw_scores(
    table: RangeTable,
    grid: np.ndarray,
    weights: SuitabilityWeights
) -> np.ndarray:
    """
    Sum each reference's contribution at every grid point.

    Missing (NaN) bounds never match, so a row with a missing optimal range
    contributes only through its acceptable range.
    """
    raw = np.zeros(len(grid), dtype=float)

    for row in table.rows:
        in_acceptable = (grid >= row.acceptable_min) & (grid <= row.acceptable_max)
        in_optimal = (grid >= row.optimal_min) & (grid <= row.optimal_max)

        raw += np.where(in_optimal, weights.weight_opt, np.where(in_acceptable, weights.weight, 0.0))

    return raw


def aggregate(
    table: RangeTable,
    weights: Optional[SuitabilityWeights] = None,
    step: float = DEFAULT_GRID_STEP
) -> EmpiricalCurve:
    """
    Aggregate a preference table into a normalized empirical HSI curve.

    Args:
        table: Preference rows for one life stage and variable
        weights: Acceptable/optimal weights (default 0.5 / 1.0)
        step: Grid spacing (default 0.1)

    Returns:
        EmpiricalCurve with grid, raw and normalized scores

    Raises:
        DataError: If no grid point is covered by any row (cannot normalize)

    Examples:
        >>> table = RangeTable(life_stage='adult', variable='depth', rows=[
        ...     PreferenceRow(reference_id='A', acceptable_min=0, acceptable_max=10,
        ...                   optimal_min=3, optimal_max=7)])
        >>> curve = aggregate(table)
        >>> curve.normalized_scores.max()
        1.0
    """
    if weights is None:
        weights = SuitabilityWeights()

    if len(table) == 0:
        raise DataError(f"{table.name}: preference table is empty")

    grid = build_grid(table.max_bound(), step)
    raw = compute_raw_scores(table, grid, weights)

    peak = raw.max() if len(raw) else 0.0
    if peak <= 0:
        raise DataError(
            f"{table.name}: no grid point lies in any acceptable or optimal range "
            f"(grid 0..{grid[-1] if len(grid) else 'empty'}), cannot normalize"
        )

    logger.info(
        f"{table.name}: aggregated {len(table)} references over {len(grid)} grid points "
        f"(peak raw score {peak:g})"
    )

    normalized = raw / peak
    for arr in (grid, raw, normalized):
        arr.flags.writeable = False

    return EmpiricalCurve(
        name=table.name,
        grid=grid,
        raw_scores=raw,
        normalized_scores=normalized
    )
