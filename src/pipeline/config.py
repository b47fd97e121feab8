"""
Run Configuration

One RunConfig per (life stage, variable) pair. The four runs share the same
pipeline and differ only in their table, model family and numeric settings,
all of which come from config/runs.yaml.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

from fitting import SolverConfig
from fitting.models import FamilyName
from preferences import LifeStage, Variable
from suitability import SuitabilityWeights

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "runs.yaml"


class BoundSettings(BaseModel):
    """Threshold settings for the bound heuristics."""

    low_score: float = Field(0.2, ge=0.0, le=1.0, description="Gaussian: scores below bracket a1")
    high_score: float = Field(0.95, ge=0.0, le=1.0, description="Gaussian: scores above bracket b1")
    min_score: float = Field(0.4, ge=0.0, le=1.0, description="Gamma: minimum score of fitted points")
    d_upper: float = Field(0.2, ge=0.0, le=1.0, description="Gamma: upper bound on the floor d")


class RunConfig(BaseModel):
    """Settings for one pipeline run."""

    name: str = Field(..., description="Run name, e.g. 'adult_depth'")
    life_stage: LifeStage = Field(..., description="Life stage of the preference table")
    variable: Variable = Field(..., description="Variable of the preference table")
    family: FamilyName = Field(..., description="Model family to fit")
    grid_step: float = Field(0.1, gt=0.0, description="Grid spacing")
    weights: SuitabilityWeights = Field(default_factory=SuitabilityWeights)
    bounds: BoundSettings = Field(default_factory=BoundSettings)
    solver: SolverConfig = Field(default_factory=SolverConfig)
    source: Optional[str] = Field(None, description="Table file, relative to the data directory")
    sheet: Optional[str] = Field(None, description="Workbook sheet name")
    skip_first_row: bool = Field(False, description="Drop the first data row of the table")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive dict merge; override wins."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_run_configs(config_path: Optional[Path] = None) -> Dict[str, RunConfig]:
    """
    Load all run configurations from YAML.

    Args:
        config_path: YAML file (default: config/runs.yaml)

    Returns:
        Mapping of run name to RunConfig, in file order

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config has no runs or a run is invalid

    Examples:
        >>> configs = load_run_configs()
        >>> configs['juvenile_velocity'].bounds.d_upper
        0.1
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Run config not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    runs = config.get('runs')
    if not runs:
        raise ValueError(f"Invalid run config {config_path}: no 'runs' section")

    defaults = dict(config.get('defaults') or {})
    sources = defaults.pop('sources', {}) or {}
    sheets = defaults.pop('sheets', {}) or {}

    configs = {}
    for name, overrides in runs.items():
        params = _merge(defaults, overrides or {})
        params['name'] = name

        missing = [field for field in ('life_stage', 'variable', 'family') if field not in params]
        if missing:
            raise ValueError(f"Invalid config for run {name}: missing fields {missing}")

        params.setdefault('source', sources.get(params['variable']))
        params.setdefault('sheet', sheets.get(params['life_stage']))

        try:
            configs[name] = RunConfig(**params)
        except ValueError as e:
            raise ValueError(f"Invalid config for run {name}: {e}") from e

    logger.debug(f"Loaded {len(configs)} run configs from {config_path}")
    return configs
