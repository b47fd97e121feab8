"""Empirical habitat suitability curves built from preference tables."""

from .aggregation import (
    DataError,
    EmpiricalCurve,
    SuitabilityWeights,
    aggregate,
    build_grid,
    compute_raw_scores,
)

__all__ = [
    'DataError',
    'EmpiricalCurve',
    'SuitabilityWeights',
    'aggregate',
    'build_grid',
    'compute_raw_scores',
]
