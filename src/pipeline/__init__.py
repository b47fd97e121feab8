"""
Suitability curve pipeline.

Parameterized run configuration and the aggregation-to-fit orchestration
for the adult/juvenile x depth/velocity combinations.
"""

from .config import (
    BoundSettings,
    RunConfig,
    load_run_configs,
)
from .runner import (
    RunResult,
    fit_curve,
    fit_inputs,
    load_tables,
    run_all,
    run_pipeline,
)

__all__ = [
    'BoundSettings',
    'RunConfig',
    'load_run_configs',
    'RunResult',
    'fit_curve',
    'fit_inputs',
    'load_tables',
    'run_all',
    'run_pipeline',
]
