"""Reporting of fitted suitability curves: summaries and figures."""

from .summary import (
    results_to_frame,
    explain_fit,
)
from .plots import (
    plot_run,
    plot_suitability_curves,
    save_figure,
)

__all__ = [
    'results_to_frame',
    'explain_fit',
    'plot_run',
    'plot_suitability_curves',
    'save_figure',
]
