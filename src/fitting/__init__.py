"""
Suitability curve fitting.

Model families (Gaussian for depth, Gamma-like for velocity), bound and
start-point heuristics, and the bounded least-squares solver.
"""

from .models import (
    ModelFamily,
    FittedModel,
    GAUSSIAN,
    GAMMA,
    MODELS,
    get_model,
    make_evaluator,
    format_formula,
)
from .bounds import (
    BoundEstimationError,
    FitBounds,
    estimate_gaussian_bounds,
    estimate_gamma_bounds,
    gamma_fit_data,
)
from .solver import (
    FitNonConvergence,
    FitResult,
    SolverConfig,
    classify_fit_confidence,
    compute_r_squared,
    fit,
    prepare_curve_data,
)

__all__ = [
    # Models
    'ModelFamily',
    'FittedModel',
    'GAUSSIAN',
    'GAMMA',
    'MODELS',
    'get_model',
    'make_evaluator',
    'format_formula',
    # Bounds
    'BoundEstimationError',
    'FitBounds',
    'estimate_gaussian_bounds',
    'estimate_gamma_bounds',
    'gamma_fit_data',
    # Solver
    'FitNonConvergence',
    'FitResult',
    'SolverConfig',
    'classify_fit_confidence',
    'compute_r_squared',
    'fit',
    'prepare_curve_data',
]
