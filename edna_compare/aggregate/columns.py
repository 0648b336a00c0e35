"""Column names and checks shared by the aggregation functions"""

import pandas as pd

from edna_compare.errors import DataShapeError


SPECIES_RANK = 'species'
PIVOT_RANKS = ['species', 'genus']
UNIDENTIFIED_LABEL = 'unidentified'


def require_columns(table: pd.DataFrame, columns, what="occurrence table"):
    missing = [col for col in columns if col not in table.columns]
    if missing:
        raise DataShapeError(f"The {what} is missing column(s): {', '.join(missing)}", missing_columns=missing)


def reads_with_nulls_as_zero(table: pd.DataFrame) -> pd.Series:
    return table['organismQuantity'].fillna(0)


def species_rows(table: pd.DataFrame) -> pd.DataFrame:
    return table[table['taxonRank'] == SPECIES_RANK]
