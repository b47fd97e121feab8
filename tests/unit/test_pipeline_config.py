"""
Unit Tests for Run Configuration

Tests verify:
1. The shipped config reproduces each run's constants
2. Defaults are merged under each run
3. Invalid configs fail loudly
"""

from pathlib import Path
import sys

import pytest

# Add src to path
src_path = Path(__file__).parent.parent.parent / 'src'
sys.path.insert(0, str(src_path))

from pipeline import RunConfig, load_run_configs


class TestShippedConfig:
    """Test config/runs.yaml."""

    def setup_method(self):
        """Load config for tests."""
        self.configs = load_run_configs()

    def test_four_runs(self):
        assert list(self.configs) == [
            'adult_depth', 'adult_velocity', 'juvenile_depth', 'juvenile_velocity'
        ]

    def test_shared_defaults(self):
        for config in self.configs.values():
            assert config.grid_step == 0.1
            assert config.weights.weight == 0.5
            assert config.weights.weight_opt == 1.0
            assert config.skip_first_row is False

    def test_depth_runs(self):
        for name in ('adult_depth', 'juvenile_depth'):
            config = self.configs[name]
            assert config.family == "gaussian"
            assert config.variable == "depth"
            assert config.bounds.low_score == 0.2
            assert config.bounds.high_score == 0.95
            assert config.solver.max_iterations == 100000
            assert config.solver.max_function_evaluations == 10000
            assert config.solver.function_tolerance == 1e-8
            assert config.source == "Water depth_adult_juvenile.xlsx"

    def test_adult_velocity(self):
        config = self.configs['adult_velocity']

        assert config.family == "gamma"
        assert config.bounds.min_score == 0.4
        assert config.bounds.d_upper == 0.2
        assert config.solver.max_iterations == 100000
        assert config.solver.max_function_evaluations == 10000
        assert config.solver.diff_max_change == 1e-4
        assert config.sheet == "Adult"

    def test_juvenile_velocity(self):
        config = self.configs['juvenile_velocity']

        assert config.family == "gamma"
        assert config.bounds.d_upper == 0.1
        assert config.solver.max_iterations == 4000
        assert config.solver.max_function_evaluations == 6000
        assert config.solver.function_tolerance == 1e-8
        assert config.solver.diff_max_change == 1e-4
        assert config.source == "Water velocity_adult_juvenile.xlsx"
        assert config.sheet == "Juvenile"


class TestLoadRunConfigs:
    """Test loading custom config files."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_run_configs(tmp_path / "missing.yaml")

    def test_no_runs(self, tmp_path):
        path = tmp_path / "runs.yaml"
        path.write_text("defaults:\n  grid_step: 0.1\n")
        with pytest.raises(ValueError, match="no 'runs' section"):
            load_run_configs(path)

    def test_missing_required_field(self, tmp_path):
        path = tmp_path / "runs.yaml"
        path.write_text("runs:\n  adult_depth:\n    life_stage: adult\n    variable: depth\n")
        with pytest.raises(ValueError, match="family"):
            load_run_configs(path)

    def test_unknown_family(self, tmp_path):
        path = tmp_path / "runs.yaml"
        path.write_text(
            "runs:\n  adult_depth:\n    life_stage: adult\n    variable: depth\n    family: weibull\n"
        )
        with pytest.raises(ValueError, match="adult_depth"):
            load_run_configs(path)

    def test_nested_defaults_merged(self, tmp_path):
        """Run overrides replace single keys of nested default sections."""
        path = tmp_path / "runs.yaml"
        path.write_text(
            "defaults:\n"
            "  weights:\n"
            "    weight: 0.3\n"
            "    weight_opt: 1.0\n"
            "  solver:\n"
            "    max_iterations: 50\n"
            "runs:\n"
            "  juvenile_velocity:\n"
            "    life_stage: juvenile\n"
            "    variable: velocity\n"
            "    family: gamma\n"
            "    weights:\n"
            "      weight_opt: 2.0\n"
            "    solver:\n"
            "      diff_max_change: 1.0e-4\n"
        )

        config = load_run_configs(path)['juvenile_velocity']

        assert config.weights.weight == 0.3
        assert config.weights.weight_opt == 2.0
        assert config.solver.max_iterations == 50
        assert config.solver.diff_max_change == 1e-4
        assert config.source is None

    def test_run_config_defaults(self):
        config = RunConfig(name="x", life_stage="adult", variable="depth", family="gaussian")

        assert config.grid_step == 0.1
        assert config.solver.max_iterations == 100000
        assert config.solver.diff_max_change == 0.1
        assert config.bounds.d_upper == 0.2
