"""
Occurrence Loader for edna_compare
Reads the per-run occurrence tables, tags each row with its marker and
reference database, and concatenates everything into one unified table.
"""

import logging
import os
from typing import Iterable

import pandas as pd

from edna_compare.config import RunFile
from edna_compare.errors import DataShapeError, LoadError


REQUIRED_COLUMNS = [
    'scientificName',
    'taxonRank',
    'phylum',
    'eventID',
    'organismQuantity',
]

TAG_COLUMNS = ['marker', 'otu_db']

# Only these tokens mean "missing"; pandas' default list (NA, null, ...) is disabled
NA_TOKENS = ['', 'nan']


def load_occurrence_table(path, marker, otu_db) -> pd.DataFrame:
    """Read one tab-separated occurrence table and tag every row with marker and otu_db."""
    if not os.path.exists(path):
        raise LoadError(f"Occurrence file not found: {path}")

    try:
        df = pd.read_table(
            path,
            sep='\t',
            dtype=str,
            keep_default_na=False,
            na_values=NA_TOKENS,
            low_memory=False,
        )
    except pd.errors.EmptyDataError as e:
        raise LoadError(f"Occurrence file is empty: {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise LoadError(f"Could not parse occurrence file {path}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DataShapeError(
            f"Occurrence file {path} is missing required column(s): {', '.join(missing)}",
            missing_columns=missing,
        )

    quantity = pd.to_numeric(df['organismQuantity'], errors='coerce')
    bad_values = df['organismQuantity'].notna() & quantity.isna()
    if bad_values.any():
        examples = df.loc[bad_values, 'organismQuantity'].unique()[:5].tolist()
        raise LoadError(f"Non-numeric organismQuantity in {path}: {examples}")
    if (quantity < 0).any():
        raise LoadError(f"Negative organismQuantity in {path} ({int((quantity < 0).sum())} rows)")
    df['organismQuantity'] = quantity

    overwritten = []
    for col, value in zip(TAG_COLUMNS, (marker, otu_db)):
        if col in df.columns:
            logging.warning(f"{path} already has a '{col}' column; overwriting it with '{value}'")
            overwritten.append(col)
        df[col] = value
    # read back by the caller to surface the overwrite in the report
    df.attrs['overwritten_columns'] = overwritten

    logging.info(f"Loaded {len(df):,} occurrence rows from {path} (marker={marker}, otu_db={otu_db})")
    return df


def combine_occurrences(tables) -> pd.DataFrame:
    """Concatenate per-run tables in the order given, without deduplication"""
    tables = list(tables)
    if not tables:
        raise LoadError("No occurrence files were configured")

    combined = pd.concat(tables, ignore_index=True, sort=False)
    combined.attrs = {}
    logging.info(f"Combined occurrence table: {len(combined):,} rows from {len(tables)} file(s)")
    return combined


def load_occurrences(run_files: Iterable[RunFile]) -> pd.DataFrame:
    """
    Load every run file, in the order given, and return the union of all rows.
    Rows are never deduplicated across files: each file is a distinct run.
    Any failure is raised immediately, so a partial table is never returned.
    """
    return combine_occurrences(load_occurrence_table(rf.path, rf.marker, rf.otu_db) for rf in run_files)


def markers_with_multiple_databases(table: pd.DataFrame) -> list:
    """Markers that were loaded against more than one reference database"""
    db_counts = table.groupby('marker', sort=False)['otu_db'].nunique()
    return db_counts[db_counts > 1].index.tolist()


def label_markers_by_database(table: pd.DataFrame) -> pd.DataFrame:
    """
    Return a new table where each marker loaded against several reference databases
    is relabelled '<marker> (<otu_db>)', so those runs stay separate partitions
    instead of being summed together downstream.
    """
    shared = markers_with_multiple_databases(table)
    if not shared:
        return table.copy()

    relabelled = table.copy()
    mask = relabelled['marker'].isin(shared)
    relabelled.loc[mask, 'marker'] = (
        relabelled.loc[mask, 'marker'] + ' (' + relabelled.loc[mask, 'otu_db'] + ')'
    )
    return relabelled


def marker_order(table: pd.DataFrame) -> list:
    """Marker labels in load order"""
    return pd.unique(table['marker']).tolist()
