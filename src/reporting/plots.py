"""
Suitability Curve Figures

Two panels, water depth and flow velocity. Each shows the adult and
juvenile empirical HSI curves (dotted) and their fitted curves (solid),
labelled with the fit R^2.
"""

import logging
from pathlib import Path
from typing import Mapping, Optional, Union

import matplotlib.pyplot as plt
import numpy as np

from pipeline import RunResult

logger = logging.getLogger(__name__)

VARIABLE_LABELS = {
    "depth": ("H [cm]", "HSI$_H$ [-]"),
    "velocity": ("U [cm/s]", "HSI$_U$ [-]"),
}
LIFE_STAGE_COLORS = {
    "adult": "tab:red",
    "juvenile": "tab:blue",
}
LEGEND_LOCATIONS = {
    "depth": "upper right",
    "velocity": "lower left",
}
PANEL_LETTERS = ["a)", "b)"]


def plot_run(ax, result: RunResult, n_points: int = 500):
    """Draw one run's empirical curve and fitted model on an axis."""
    if result.curve is None:
        return

    color = LIFE_STAGE_COLORS.get(result.life_stage, "black")
    curve = result.curve
    stage = result.life_stage.capitalize()
    symbol = "H" if result.variable == "depth" else "U"

    ax.plot(curve.grid, curve.normalized_scores, ':', color=color, linewidth=1.5,
            label=f"{symbol} {stage}s")

    if result.model is not None:
        x = np.linspace(0, curve.grid[-1], n_points)
        ax.plot(x, result.model.evaluate(x), '-', color=color, linewidth=2,
                label=f"Fit $R^2$ = {result.model.r_squared:4.3f}")


def plot_suitability_curves(
    results: Mapping[str, RunResult],
    output_path: Optional[Union[str, Path]] = None,
    title: str = "Habitat Suitability Curves for Adult and Juvenile Trout"
):
    """
    Plot empirical and fitted HSI curves, one panel per variable.

    Args:
        results: Output of run_all()
        output_path: If given, the figure is saved there (PNG, 300 dpi)
        title: Figure title

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(1, 2, figsize=(16, 6))
    fig.suptitle(title, fontsize=18)

    for ax, letter, variable in zip(axes, PANEL_LETTERS, VARIABLE_LABELS):
        runs = [r for r in results.values() if r.variable == variable]
        for result in runs:
            plot_run(ax, result)

        xmax = max((r.curve.grid[-1] for r in runs if r.curve is not None), default=1.0)
        ax.set_xlim(0, xmax if xmax > 0 else 1.0)
        ax.set_ylim(0, 1.05)

        xlabel, ylabel = VARIABLE_LABELS[variable]
        ax.set_xlabel(xlabel, fontsize=14)
        ax.set_ylabel(ylabel, fontsize=14)
        ax.text(-0.08, 1.04, letter, transform=ax.transAxes, fontsize=16)
        if ax.get_legend_handles_labels()[0]:
            ax.legend(loc=LEGEND_LOCATIONS[variable], fontsize=12)

    if output_path is not None:
        save_figure(fig, Path(output_path))

    return fig


def save_figure(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=300, bbox_inches="tight")
    logger.info(f"Saved figure to {path}")
