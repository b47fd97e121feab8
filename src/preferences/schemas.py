"""
Preference Range Schemas

Pydantic models for the literature preference tables that feed the
suitability aggregation.

Each row records, for one reference, the range of a physical variable
(water depth or flow velocity) judged acceptable by the species and the
narrower range judged optimal.
"""

import logging
import math
from typing import List, Literal

import pandas as pd
from pydantic import BaseModel, Field, validator

logger = logging.getLogger(__name__)

# Type aliases
LifeStage = Literal["adult", "juvenile"]
Variable = Literal["depth", "velocity"]

COLUMNS = ['reference_id', 'acceptable_min', 'acceptable_max', 'optimal_min', 'optimal_max']


class PreferenceRow(BaseModel):
    """
    One reference's acceptable and optimal range for a variable.

    Misordered intervals are kept as supplied (and logged); the aggregation
    rule is defined for them.
    """
    reference_id: str = Field(..., description="Reference identifier (author, year)")
    acceptable_min: float = Field(..., description="Lower end of the acceptable range")
    acceptable_max: float = Field(..., description="Upper end of the acceptable range")
    optimal_min: float = Field(..., description="Lower end of the optimal range")
    optimal_max: float = Field(..., description="Upper end of the optimal range")

    @validator('acceptable_max')
    def acceptable_range_ordered(cls, v, values):
        """Warn when the acceptable interval is reversed"""
        low = values.get('acceptable_min')
        if low is not None and low > v:
            logger.warning(
                f"Reference {values.get('reference_id')}: acceptable range "
                f"[{low}, {v}] is reversed"
            )
        return v

    @validator('optimal_max')
    def optimal_range_ordered(cls, v, values):
        """Warn when the optimal interval is reversed"""
        low = values.get('optimal_min')
        if low is not None and low > v:
            logger.warning(
                f"Reference {values.get('reference_id')}: optimal range "
                f"[{low}, {v}] is reversed"
            )
        return v

    @property
    def upper_bound(self) -> float:
        """Largest value appearing in the row (missing values ignored, -inf if all missing)."""
        values = [self.acceptable_min, self.acceptable_max, self.optimal_min, self.optimal_max]
        return max((v for v in values if not math.isnan(v)), default=-math.inf)

    class Config:
        """Pydantic config"""
        frozen = True


class RangeTable(BaseModel):
    """
    Ordered preference rows for one (life stage, variable) pair.

    Duplicate rows are valid; each one contributes to the aggregated score.
    """
    life_stage: LifeStage = Field(..., description="Life stage the table describes")
    variable: Variable = Field(..., description="Physical variable of the ranges")
    rows: List[PreferenceRow] = Field(default_factory=list, description="Preference rows in table order")

    class Config:
        """Pydantic config"""
        frozen = True

    @property
    def name(self) -> str:
        return f"{self.life_stage}_{self.variable}"

    def __len__(self) -> int:
        return len(self.rows)

    def max_bound(self) -> float:
        """
        Maximum over every acceptable and optimal bound in the table.

        Raises:
            ValueError: If the table has no rows
        """
        if not self.rows:
            raise ValueError(f"Range table {self.name} has no rows")
        return max(row.upper_bound for row in self.rows)

    def to_frame(self) -> pd.DataFrame:
        """Return the rows as a DataFrame in the fixed column order."""
        return pd.DataFrame(
            [[getattr(row, column) for column in COLUMNS] for row in self.rows],
            columns=COLUMNS
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, life_stage: LifeStage, variable: Variable) -> 'RangeTable':
        """
        Build a table from a DataFrame whose first five columns follow the
        fixed order: reference, acceptable min/max, optimal min/max.
        """
        if df.shape[1] < len(COLUMNS):
            raise ValueError(
                f"Expected at least {len(COLUMNS)} columns, got {df.shape[1]}"
            )

        rows = []
        for record in df.iloc[:, :len(COLUMNS)].itertuples(index=False):
            reference_id, acc_min, acc_max, opt_min, opt_max = record
            rows.append(PreferenceRow(
                reference_id=str(reference_id),
                acceptable_min=float(acc_min),
                acceptable_max=float(acc_max),
                optimal_min=float(opt_min),
                optimal_max=float(opt_max)
            ))

        return cls(life_stage=life_stage, variable=variable, rows=rows)
