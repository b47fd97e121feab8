"""
Fit Summaries

Tabular and human-readable summaries of pipeline runs.
"""

from typing import Mapping

import numpy as np
import pandas as pd

from pipeline import RunResult

SUMMARY_COLUMNS = [
    'run', 'life_stage', 'variable', 'status', 'family', 'r_squared',
    'converged', 'confidence', 'n_points', 'function_evaluations', 'formula', 'error'
]


def results_to_frame(results: Mapping[str, RunResult]) -> pd.DataFrame:
    """
    One row per run, with fitted parameters as extra columns.

    Args:
        results: Output of run_all()

    Returns:
        DataFrame with SUMMARY_COLUMNS followed by one column per parameter
    """
    rows = []
    for name, result in results.items():
        row = {
            'run': name,
            'life_stage': result.life_stage,
            'variable': result.variable,
            'status': result.status,
            'family': None,
            'r_squared': np.nan,
            'converged': None,
            'confidence': None,
            'n_points': None,
            'function_evaluations': None,
            'formula': None,
            'error': result.error
        }
        if result.model is not None:
            model = result.model
            row.update({
                'family': model.family,
                'r_squared': model.r_squared,
                'converged': model.converged,
                'confidence': model.confidence,
                'n_points': model.n_points,
                'function_evaluations': model.function_evaluations,
                'formula': model.formula
            })
            row.update(model.parameters)
        rows.append(row)

    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    parameter_columns = [c for c in df.columns if c not in SUMMARY_COLUMNS]
    return df[SUMMARY_COLUMNS + parameter_columns]


def explain_fit(result: RunResult) -> str:
    """
    Generate a human-readable explanation of a run.

    Args:
        result: One run's RunResult

    Returns:
        Explanation string

    Examples:
        >>> explain_fit(results['adult_depth'])
        'adult depth: gaussian fit, R^2 = 0.962 (high confidence). ...'
    """
    label = f"{result.life_stage} {result.variable}"

    if result.status == "no_data":
        return f"{label}: no grid value is supported by any reference; no curve fitted. ({result.error})"

    if result.status == "shape_mismatch":
        return (
            f"{label}: empirical curve does not have the shape assumed by the model family; "
            f"no curve fitted. ({result.error})"
        )

    model = result.model
    parts = [
        f"{label}: {model.family} fit, R^2 = {model.r_squared:.3f} ({model.confidence} confidence)."
    ]
    parts.append(f" y = {model.formula}.")

    if not model.converged:
        parts.append(
            f" Solver stopped on its budget after {model.function_evaluations} evaluations "
            f"without meeting the tolerance; treat parameters with caution."
        )

    if model.family == "gaussian":
        parts.append(f" Peak suitability at {model.parameters['b1']:.2f}.")
    elif model.family == "gamma":
        peak = model.parameters['a'] * model.parameters['b'] - model.parameters['e']
        parts.append(
            f" Peak suitability at {max(peak, 0.0):.2f}, decaying to a floor of "
            f"{model.parameters['d']:.2f}."
        )

    return "".join(parts)
