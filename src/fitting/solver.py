"""
Bounded Nonlinear Least Squares

Fits a model family to (x, y) data subject to box constraints
lower <= p <= upper, minimizing sum((model(x; p) - y)^2).

Uses scipy's trust-region reflective solver (`least_squares(method='trf')`),
which keeps every iterate strictly inside the box, so reported parameters
are the model's own values with no re-parameterization. The Jacobian is a
forward difference whose perturbation is clamped to
[diff_min_change, diff_max_change] and taken backwards near an upper bound,
so the model is never evaluated outside the box.

Stopping:
- converged when the relative reduction of the sum of squares falls below
  function_tolerance (or the step falls below step_tolerance)
- otherwise when the iteration / evaluation budget is spent; the best
  parameters found are still returned with converged=False

R^2 = 1 - SS_res / SS_tot is reported as computed. For a nonlinear model it
can be negative and is not clamped; it is NaN when y is constant.
"""

import logging
from typing import Dict, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field
from scipy import optimize

from .bounds import FitBounds
from .models import FittedModel, ModelFamily, ConfidenceLevel

logger = logging.getLogger(__name__)

EPS_SQRT = float(np.sqrt(np.finfo(float).eps))


class FitNonConvergence(Exception):
    """Raised in strict mode when the solver budget runs out before convergence"""
    pass


class SolverConfig(BaseModel):
    """Convergence and finite-difference settings for one fit."""

    max_iterations: int = Field(100000, gt=0, description="Iteration cap")
    max_function_evaluations: int = Field(10000, gt=0, description="Model evaluation cap (incl. Jacobian)")
    function_tolerance: float = Field(1e-8, gt=0, description="Relative sum-of-squares reduction tolerance")
    step_tolerance: float = Field(1e-6, gt=0, description="Relative parameter step tolerance")
    diff_max_change: float = Field(0.1, gt=0, description="Largest finite-difference perturbation")
    diff_min_change: float = Field(1e-8, gt=0, description="Smallest finite-difference perturbation")


class FitResult(BaseModel):
    """Solver output for one fit."""

    family: str = Field(..., description="Model family name")
    parameters: Dict[str, float] = Field(..., description="Fitted values by parameter name")
    r_squared: float = Field(..., description="Coefficient of determination, not clamped")
    converged: bool = Field(..., description="Tolerance met before the budget ran out")
    n_points: int = Field(..., description="Number of finite (x, y) pairs fitted")
    function_evaluations: int = Field(..., description="Model evaluations spent")
    message: str = Field("", description="Solver termination message")

    def to_fitted_model(self) -> FittedModel:
        return FittedModel(
            family=self.family,
            parameters=self.parameters,
            r_squared=self.r_squared,
            converged=self.converged,
            confidence=classify_fit_confidence(self.converged, self.r_squared),
            n_points=self.n_points,
            function_evaluations=self.function_evaluations,
            message=self.message
        )


def classify_fit_confidence(converged: bool, r_squared: float) -> ConfidenceLevel:
    """
    Confidence label for a fit.

    Non-converged fits and undefined R^2 are always low confidence.

    Examples:
        >>> classify_fit_confidence(True, 0.97)
        'high'
        >>> classify_fit_confidence(False, 0.99)
        'low'
    """
    if not converged or np.isnan(r_squared):
        return "low"
    if r_squared >= 0.9:
        return "high"
    if r_squared >= 0.7:
        return "medium"
    return "low"


def prepare_curve_data(x: Sequence[float], y: Sequence[float]):
    """
    Pair x and y as float arrays and drop non-finite pairs.

    Raises:
        ValueError: If x and y differ in length
    """
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    if x.shape != y.shape:
        raise ValueError(f"x and y must be paired, got {len(x)} and {len(y)} values")

    mask = np.isfinite(x) & np.isfinite(y)
    if not mask.all():
        logger.debug(f"Dropping {int((~mask).sum())} non-finite data pairs")
    return x[mask], y[mask]


def compute_r_squared(y: np.ndarray, y_fit: np.ndarray) -> float:
    """1 - SS_res / SS_tot; NaN when y has no variance."""
    y = np.asarray(y, dtype=float)
    ss_res = float(np.sum((np.asarray(y_fit, dtype=float) - y) ** 2))
    ss_tot = float(np.sum((y - np.mean(y)) ** 2))
    if ss_tot == 0:
        return float('nan')
    return 1.0 - ss_res / ss_tot


class _Objective:
    """Residuals and bounded finite-difference Jacobian over the free parameters."""

    def __init__(
        self,
        family: ModelFamily,
        x: np.ndarray,
        y: np.ndarray,
        template: np.ndarray,
        free: np.ndarray,
        lower: np.ndarray,
        upper: np.ndarray,
        config: SolverConfig
    ):
        self.family = family
        self.x = x
        self.y = y
        self.template = template
        self.free = free
        self.lower = lower[free]
        self.upper = upper[free]
        self.config = config
        self.evaluations = 0
        self._last_point = None
        self._last_residuals = None

    def full(self, p_free: np.ndarray) -> np.ndarray:
        p = self.template.copy()
        p[self.free] = p_free
        return p

    def residuals(self, p_free: np.ndarray) -> np.ndarray:
        self.evaluations += 1
        r = self.family.evaluate(self.x, self.full(p_free)) - self.y
        self._last_point = np.array(p_free, dtype=float)
        self._last_residuals = r
        return r

    def _step(self, j: int, value: float) -> float:
        h = min(max(EPS_SQRT * max(abs(value), 1.0), self.config.diff_min_change),
                self.config.diff_max_change)
        room_up = self.upper[j] - value
        room_down = value - self.lower[j]
        if room_up >= h:
            return h
        if room_down >= h:
            return -h
        return room_up if room_up >= room_down else -room_down

    def jacobian(self, p_free: np.ndarray) -> np.ndarray:
        p_free = np.asarray(p_free, dtype=float)
        if self._last_point is not None and np.array_equal(p_free, self._last_point):
            f0 = self._last_residuals
        else:
            f0 = self.residuals(p_free)

        J = np.zeros((len(f0), len(p_free)))
        for j in range(len(p_free)):
            h = self._step(j, p_free[j])
            if h == 0:
                continue
            shifted = p_free.copy()
            shifted[j] += h
            self.evaluations += 1
            f1 = self.family.evaluate(self.x, self.full(shifted)) - self.y
            column = (f1 - f0) / h
            J[:, j] = np.where(np.isfinite(column), column, 0.0)
        return J


def fit(
    family: ModelFamily,
    x: Sequence[float],
    y: Sequence[float],
    bounds: FitBounds,
    config: Optional[SolverConfig] = None,
    strict: bool = False
) -> FitResult:
    """
    Fit a model family to data within box bounds.

    Start values outside their bounds are moved onto the nearest bound.
    Parameters whose lower and upper bounds coincide are held fixed.

    Args:
        family: Model family to fit
        x: Independent variable values
        y: Observed HSI values, paired with x
        bounds: Lower/upper bounds and start point in family parameter order
        config: Solver configuration (defaults: 1e5 iterations, 1e4 evaluations, tol 1e-8)
        strict: Raise FitNonConvergence instead of returning an unconverged fit

    Returns:
        FitResult with parameters, R^2 and convergence diagnostics

    Raises:
        ValueError: If bounds don't match the family or there are fewer points
            than free parameters
        FitNonConvergence: If strict and the budget ran out

    Examples:
        >>> result = fit(GAUSSIAN, curve.grid, curve.normalized_scores,
        ...              estimate_gaussian_bounds(curve))
        >>> result.converged
        True
    """
    if config is None:
        config = SolverConfig()

    x, y = prepare_curve_data(x, y)
    if len(bounds) != family.n_parameters:
        raise ValueError(
            f"{family.name} has {family.n_parameters} parameters, bounds give {len(bounds)}"
        )

    lower = np.asarray(bounds.lower, dtype=float)
    upper = np.asarray(bounds.upper, dtype=float)
    start = bounds.clipped_start()
    free = lower < upper
    n_free = int(free.sum())

    if len(x) < max(n_free, 1):
        raise ValueError(
            f"{family.name}: {len(x)} data points for {n_free} free parameters"
        )

    objective = _Objective(family, x, y, start, free, lower, upper, config)

    if n_free == 0:
        params = start
        converged = True
        message = "All parameters fixed by their bounds"
        objective.evaluations += 1
    else:
        # Each iteration costs one residual evaluation plus one per free parameter
        max_nfev = max(1, min(config.max_iterations, config.max_function_evaluations // (n_free + 1)))

        result = optimize.least_squares(
            objective.residuals,
            start[free],
            jac=objective.jacobian,
            bounds=(lower[free], upper[free]),
            method='trf',
            ftol=config.function_tolerance,
            xtol=config.step_tolerance,
            max_nfev=max_nfev
        )
        params = objective.full(result.x)
        converged = bool(result.status > 0)
        message = str(result.message)

    y_fit = family.evaluate(x, params)
    r_squared = compute_r_squared(y, y_fit)
    parameters = family.to_mapping(params)

    if not converged:
        logger.warning(
            f"{family.name} fit did not converge after {objective.evaluations} evaluations "
            f"({message}); returning best parameters, R^2={r_squared:.4f}"
        )
        if strict:
            raise FitNonConvergence(f"{family.name} fit did not converge: {message}")
    elif np.isnan(r_squared):
        logger.warning(f"{family.name} fit: data has no variance, R^2 undefined")

    logger.debug(f"{family.name} fit: {parameters}, R^2={r_squared:.4f}")

    return FitResult(
        family=family.name,
        parameters=parameters,
        r_squared=r_squared,
        converged=converged,
        n_points=len(x),
        function_evaluations=objective.evaluations,
        message=message
    )
