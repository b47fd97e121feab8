"""
Suitability Curve Pipeline

RangeTable -> aggregate -> bound heuristics -> bounded fit -> FittedModel

Each run is stateless and independent. A run without data support
(DataError) or whose curve doesn't suit its model family
(BoundEstimationError) is recorded as failed; the other runs proceed.
Solver non-convergence never fails a run, it lowers the fit confidence.
"""

import logging
from pathlib import Path
from typing import Dict, Literal, Mapping, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field

from fitting import (
    BoundEstimationError,
    FitBounds,
    FittedModel,
    estimate_gamma_bounds,
    estimate_gaussian_bounds,
    fit,
    gamma_fit_data,
    get_model,
)
from preferences import RangeTable, load_range_table
from suitability import DataError, EmpiricalCurve, aggregate

from .config import RunConfig

logger = logging.getLogger(__name__)

# Type aliases
RunStatus = Literal["ok", "no_data", "shape_mismatch"]


class RunResult(BaseModel):
    """Outcome of one pipeline run."""

    name: str = Field(..., description="Run name")
    life_stage: str = Field(..., description="Life stage")
    variable: str = Field(..., description="Variable")
    status: RunStatus = Field(..., description="ok, no_data or shape_mismatch")
    curve: Optional[EmpiricalCurve] = Field(None, description="Empirical curve, if aggregation succeeded")
    model: Optional[FittedModel] = Field(None, description="Fitted model, if fitting ran")
    error: Optional[str] = Field(None, description="Reason the run failed")

    class Config:
        """Pydantic config"""
        arbitrary_types_allowed = True

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def fit_inputs(curve: EmpiricalCurve, config: RunConfig) -> Tuple[FitBounds, np.ndarray, np.ndarray]:
    """
    Bounds and data to fit for a curve, by model family.

    The Gaussian family fits the whole curve; the Gamma-like family fits
    only points scoring >= min_score.

    Raises:
        BoundEstimationError: If the curve's shape doesn't suit the family
    """
    settings = config.bounds

    if config.family == "gaussian":
        bounds = estimate_gaussian_bounds(curve, settings.low_score, settings.high_score)
        return bounds, curve.grid, curve.normalized_scores

    if config.family == "gamma":
        bounds = estimate_gamma_bounds(
            curve,
            d_upper=settings.d_upper,
            min_score=settings.min_score,
            n_parameters=get_model("gamma").n_parameters
        )
        x, y = gamma_fit_data(curve, settings.min_score)
        return bounds, x, y

    raise ValueError(f"Unknown model family: {config.family}")


def fit_curve(curve: EmpiricalCurve, config: RunConfig) -> FittedModel:
    """
    Fit the configured model family to an empirical curve.

    Raises:
        BoundEstimationError: If the curve's shape doesn't suit the family
    """
    bounds, x, y = fit_inputs(curve, config)
    result = fit(get_model(config.family), x, y, bounds, config.solver)
    model = result.to_fitted_model()

    logger.info(
        f"{config.name}: {config.family} fit R^2={model.r_squared:.3f} "
        f"({model.confidence} confidence, {model.n_points} points)"
    )
    return model


def _check_table(table: RangeTable, config: RunConfig):
    if (table.life_stage, table.variable) != (config.life_stage, config.variable):
        raise ValueError(
            f"Run {config.name} expects a {config.life_stage} {config.variable} table, "
            f"got {table.name}"
        )


def _fit_run(curve: EmpiricalCurve, config: RunConfig) -> RunResult:
    """Fit an aggregated curve and wrap it as a successful run."""
    model = fit_curve(curve, config)
    return RunResult(
        name=config.name,
        life_stage=config.life_stage,
        variable=config.variable,
        status="ok",
        curve=curve,
        model=model
    )


def run_pipeline(table: RangeTable, config: RunConfig) -> RunResult:
    """
    Run one (life stage, variable) combination end to end.

    Raises:
        DataError: If no grid point is supported by the table
        BoundEstimationError: If the curve's shape doesn't suit the family
    """
    _check_table(table, config)

    curve = aggregate(table, config.weights, config.grid_step)
    return _fit_run(curve, config)


def run_all(
    tables: Mapping[str, RangeTable],
    configs: Mapping[str, RunConfig]
) -> Dict[str, RunResult]:
    """
    Run every configured combination, isolating failures per run.

    A run whose curve doesn't suit its model family keeps the curve in its
    result so it can still be reported.

    Args:
        tables: Range tables keyed by run name
        configs: Run configurations keyed by run name

    Returns:
        RunResult per run name, in config order

    Raises:
        KeyError: If a configured run has no table
    """
    results = {}

    for name, config in configs.items():
        if name not in tables:
            raise KeyError(f"No range table supplied for run {name}")
        table = tables[name]
        _check_table(table, config)

        try:
            curve = aggregate(table, config.weights, config.grid_step)
        except DataError as e:
            logger.error(f"{name}: skipped, no data support ({e})")
            results[name] = RunResult(
                name=name,
                life_stage=config.life_stage,
                variable=config.variable,
                status="no_data",
                error=str(e)
            )
            continue

        try:
            results[name] = _fit_run(curve, config)
        except BoundEstimationError as e:
            logger.error(f"{name}: skipped, curve does not suit {config.family} model ({e})")
            results[name] = RunResult(
                name=name,
                life_stage=config.life_stage,
                variable=config.variable,
                status="shape_mismatch",
                curve=curve,
                error=str(e)
            )

    succeeded = sum(1 for result in results.values() if result.ok)
    logger.info(f"Completed {succeeded}/{len(results)} suitability runs")
    return results


def load_tables(
    configs: Mapping[str, RunConfig],
    data_dir: Union[str, Path]
) -> Dict[str, RangeTable]:
    """
    Load the range table of every run from the data directory.

    Raises:
        ValueError: If a run has no configured source
        FileNotFoundError: If a source file is missing
    """
    data_dir = Path(data_dir)
    tables = {}

    for name, config in configs.items():
        if not config.source:
            raise ValueError(f"Run {name} has no table source configured")

        tables[name] = load_range_table(
            data_dir / config.source,
            life_stage=config.life_stage,
            variable=config.variable,
            sheet=config.sheet,
            skip_first_row=config.skip_first_row
        )

    return tables
