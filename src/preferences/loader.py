"""
Preference Table Loader

Reads literature preference tables (one sheet per life stage) from Excel
workbooks or CSV files into RangeTable objects.

Columns are read by position, not by header text, because the source
workbooks use free-form column titles:
    reference | acceptable min | acceptable max | optimal min | optimal max
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .schemas import COLUMNS, LifeStage, RangeTable, Variable

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {'.xlsx', '.xlsm', '.xls'}


def read_preference_frame(path: Union[str, Path], sheet: Optional[str] = None) -> pd.DataFrame:
    """
    Read the raw preference table and clean it.

    Header and metadata rows (rows without any numeric range value) are
    dropped. Numeric columns are coerced to float; unparseable cells become
    NaN and never match any grid point.

    Args:
        path: Excel workbook or CSV file
        sheet: Sheet name for Excel workbooks (e.g., 'Adult')

    Returns:
        DataFrame with the five canonical columns

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the table has fewer than five columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Preference table not found: {path}")

    if path.suffix.lower() in EXCEL_SUFFIXES:
        df = pd.read_excel(path, sheet_name=sheet if sheet is not None else 0)
    else:
        df = pd.read_csv(path)

    if df.shape[1] < len(COLUMNS):
        raise ValueError(
            f"{path.name}: expected at least {len(COLUMNS)} columns, got {df.shape[1]}"
        )

    df = df.iloc[:, :len(COLUMNS)].copy()
    df.columns = COLUMNS

    numeric = COLUMNS[1:]
    for column in numeric:
        df[column] = pd.to_numeric(df[column], errors='coerce')

    before = len(df)
    df = df.dropna(subset=numeric, how='all').reset_index(drop=True)
    dropped = before - len(df)
    if dropped:
        logger.debug(f"{path.name}: dropped {dropped} non-data rows")

    df['reference_id'] = df['reference_id'].fillna('').astype(str)
    return df


def load_range_table(
    path: Union[str, Path],
    life_stage: LifeStage,
    variable: Variable,
    sheet: Optional[str] = None,
    skip_first_row: bool = False
) -> RangeTable:
    """
    Load a preference table for one life stage and variable.

    Args:
        path: Excel workbook or CSV file
        life_stage: 'adult' or 'juvenile'
        variable: 'depth' or 'velocity'
        sheet: Sheet name for Excel workbooks
        skip_first_row: Drop the first data row before aggregation. The
            legacy analysis always skipped it; whether that row is a
            template or real data is for the table's author to confirm.

    Returns:
        RangeTable with rows in file order

    Examples:
        >>> table = load_range_table('data/depth.xlsx', 'adult', 'depth', sheet='Adult')
        >>> table.name
        'adult_depth'
    """
    df = read_preference_frame(path, sheet)

    if skip_first_row and len(df) > 0:
        logger.info(
            f"{Path(path).name}[{sheet}]: skipping first data row "
            f"(reference '{df.loc[0, 'reference_id']}')"
        )
        df = df.iloc[1:].reset_index(drop=True)

    table = RangeTable.from_frame(df, life_stage=life_stage, variable=variable)
    logger.info(f"Loaded {len(table)} preference rows for {table.name} from {Path(path).name}")
    return table
