#!/usr/bin/env python3
"""
Habitat Suitability Curve Fitting

Aggregates the literature preference tables for adult and juvenile fish
into empirical suitability curves and fits a Gaussian (water depth) or
Gamma-like (flow velocity) curve to each.

Usage:
    python scripts/fit_suitability_curves.py [--data-dir DIR] [--config FILE]
                                             [--figure FILE] [--summary FILE]

Options:
    --data-dir DIR    Directory holding the preference workbooks
                      (default: $HSC_DATA_DIR or ./data)
    --config FILE     Run configuration YAML (default: config/runs.yaml)
    --runs NAMES      Comma-separated subset of runs (e.g. adult_depth,adult_velocity)
    --figure FILE     Write the two-panel figure to FILE (PNG)
    --summary FILE    Write the fit summary table to FILE (CSV)
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import matplotlib
from dotenv import load_dotenv

matplotlib.use("Agg")
import matplotlib.pyplot as plt

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

from pipeline import load_run_configs, load_tables, run_all
from reporting import explain_fit, plot_suitability_curves, results_to_frame

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment
load_dotenv()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Fit habitat suitability curves to literature preference tables"
    )
    parser.add_argument(
        '--data-dir',
        type=Path,
        default=Path(os.getenv('HSC_DATA_DIR', project_root / 'data')),
        help="Directory holding the preference workbooks"
    )
    parser.add_argument('--config', type=Path, default=None, help="Run configuration YAML")
    parser.add_argument('--runs', type=str, default=None, help="Comma-separated subset of runs")
    parser.add_argument('--figure', type=Path, default=None, help="Output PNG for the figure")
    parser.add_argument('--summary', type=Path, default=None, help="Output CSV for the summary")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    configs = load_run_configs(args.config)
    if args.runs:
        selected = [name.strip() for name in args.runs.split(',') if name.strip()]
        unknown = [name for name in selected if name not in configs]
        if unknown:
            logger.error(f"Unknown runs: {unknown}. Available: {list(configs)}")
            return 2
        configs = {name: configs[name] for name in selected}

    logger.info(f"Loading preference tables from {args.data_dir}")
    tables = load_tables(configs, args.data_dir)

    results = run_all(tables, configs)

    print()
    print("=" * 70)
    print("HABITAT SUITABILITY CURVE FITS")
    print("=" * 70)
    for result in results.values():
        print(explain_fit(result))
    print()

    if args.summary is not None:
        args.summary.parent.mkdir(parents=True, exist_ok=True)
        results_to_frame(results).to_csv(args.summary, index=False)
        logger.info(f"Saved summary to {args.summary}")

    if args.figure is not None:
        fig = plot_suitability_curves(results, output_path=args.figure)
        plt.close(fig)

    if not any(result.ok for result in results.values()):
        logger.error("Every run failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
