"""
Taxon summaries for edna_compare
Counts reads, ASVs and species per taxonomic group, PCR event and marker,
and splits reads into human / unidentified / other per event and marker.
"""

import numpy as np
import pandas as pd

from edna_compare.aggregate.columns import (
    UNIDENTIFIED_LABEL,
    reads_with_nulls_as_zero,
    require_columns,
    species_rows,
)


READ_CLASSES = ['human', 'unidentified', 'other']


def taxon_event_marker_summary(table: pd.DataFrame, rank='phylum') -> pd.DataFrame:
    """
    Group the occurrence table by (rank, eventID, marker).

    Returns one row per group with:
      reads          sum of organismQuantity (missing counts as 0)
      asv_count      number of rows in the group
      species_count  distinct scientificName among species-rank rows
      identified     False for the bucket of rows whose rank value is missing

    Rows with a missing rank value are kept and reported under the label
    'unidentified' instead of being dropped by the group-by.
    """
    require_columns(table, [rank, 'eventID', 'marker', 'scientificName', 'taxonRank', 'organismQuantity'])

    keys = [rank, 'eventID', 'marker', 'identified']
    work = table[[rank, 'eventID', 'marker', 'scientificName', 'taxonRank']].copy()
    work['identified'] = table[rank].notna()
    work[rank] = work[rank].fillna(UNIDENTIFIED_LABEL)
    work['reads'] = reads_with_nulls_as_zero(table)

    summary = (
        work.groupby(keys, dropna=False)
        .agg(reads=('reads', 'sum'), asv_count=('reads', 'size'))
        .reset_index()
    )

    species_counts = (
        species_rows(work)
        .groupby(keys, dropna=False)['scientificName']
        .nunique()
        .rename('species_count')
        .reset_index()
    )

    summary = summary.merge(species_counts, on=keys, how='left')
    summary['species_count'] = summary['species_count'].fillna(0).astype(int)
    summary['asv_count'] = summary['asv_count'].astype(int)

    return summary[[rank, 'eventID', 'marker', 'identified', 'reads', 'asv_count', 'species_count']]


def classify_reads(table: pd.DataFrame, human_name='Homo sapiens', placeholder_name='Biota') -> pd.Series:
    """Label each record human, unidentified or other. Every record gets exactly one class."""
    names = table['scientificName']
    classes = np.select(
        [names == human_name, names == placeholder_name],
        ['human', 'unidentified'],
        default='other',
    )
    return pd.Series(pd.Categorical(classes, categories=READ_CLASSES), index=table.index, name='read_class')


def quality_breakdown(table: pd.DataFrame, human_name='Homo sapiens', placeholder_name='Biota') -> pd.DataFrame:
    """Sum reads per (eventID, marker, read_class)"""
    require_columns(table, ['scientificName', 'eventID', 'marker', 'organismQuantity'])

    work = table[['eventID', 'marker']].copy()
    work['read_class'] = classify_reads(table, human_name, placeholder_name)
    work['reads'] = reads_with_nulls_as_zero(table)

    breakdown = (
        work.groupby(['eventID', 'marker', 'read_class'], dropna=False, observed=True)['reads']
        .sum()
        .reset_index()
    )
    breakdown['read_class'] = breakdown['read_class'].astype(str)
    return breakdown


def event_summary(table: pd.DataFrame, rank='phylum') -> pd.DataFrame:
    """Totals per (eventID, marker): reads, ASVs, species and the share of ASVs with a value at `rank`"""
    require_columns(table, ['eventID', 'marker', 'scientificName', 'taxonRank', rank, 'organismQuantity'])

    keys = ['eventID', 'marker']
    work = table[keys + ['scientificName', 'taxonRank']].copy()
    work['reads'] = reads_with_nulls_as_zero(table)
    work['has_rank'] = table[rank].notna()

    summary = (
        work.groupby(keys, dropna=False)
        .agg(
            reads=('reads', 'sum'),
            asv_count=('reads', 'size'),
            identified_asv_fraction=('has_rank', 'mean'),
        )
        .reset_index()
    )

    species_counts = (
        species_rows(work)
        .groupby(keys, dropna=False)['scientificName']
        .nunique()
        .rename('species_count')
        .reset_index()
    )
    summary = summary.merge(species_counts, on=keys, how='left')
    summary['species_count'] = summary['species_count'].fillna(0).astype(int)

    return summary[keys + ['reads', 'asv_count', 'species_count', 'identified_asv_fraction']]
