"""
Species preference tables.

Literature acceptable/optimal ranges per life stage and variable, and the
loader that reads them from spreadsheets.
"""

from .schemas import (
    PreferenceRow,
    RangeTable,
    LifeStage,
    Variable,
)
from .loader import (
    load_range_table,
    read_preference_frame,
)

__all__ = [
    'PreferenceRow',
    'RangeTable',
    'LifeStage',
    'Variable',
    'load_range_table',
    'read_preference_frame',
]
