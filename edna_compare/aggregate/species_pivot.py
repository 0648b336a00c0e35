"""
Species by marker pivot for edna_compare
Wide table with one row per species/genus name and one reads column per
marker, plus singleplex and multiplex totals.
"""

from typing import Optional, Sequence

import pandas as pd

from edna_compare.aggregate.columns import PIVOT_RANKS, require_columns


def _event_reads(rows: pd.DataFrame, event_id) -> pd.Series:
    in_event = rows[rows['eventID'] == event_id]
    return in_event.groupby('scientificName')['organismQuantity'].sum(min_count=1)


def species_marker_pivot(table: pd.DataFrame, markers: Optional[Sequence[str]] = None,
                         single_event='W-8-singleplex', multi_event='W-8-multi-tot') -> pd.DataFrame:
    """
    Reads per species/genus name and marker, reshaped wide.

    Columns: scientificName, phylum, one column per marker, single, multi.
    A marker column is null where the name was never recorded by that marker,
    and 'single'/'multi' are null where the name was not seen in that event,
    so a null always means "no reads recorded" and never "zero reads".
    `markers` fixes which marker columns appear and in what order; by default
    every marker in the table, in load order.
    """
    require_columns(table, ['scientificName', 'phylum', 'taxonRank', 'marker', 'eventID', 'organismQuantity'])

    if markers is None:
        markers = pd.unique(table['marker']).tolist()
    markers = list(markers)
    columns = ['scientificName', 'phylum'] + markers + ['single', 'multi']

    rows = table[table['taxonRank'].isin(PIVOT_RANKS) & table['scientificName'].notna()]
    if rows.empty:
        return pd.DataFrame(columns=columns)

    by_marker = (
        rows.groupby(['scientificName', 'marker'])['organismQuantity']
        .sum(min_count=1)
        .unstack('marker')
        .reindex(columns=markers)
    )

    # first() skips nulls, so a name gets its phylum from whichever run classified it
    phylum = rows.groupby('scientificName')['phylum'].first()

    pivot = by_marker.copy()
    pivot.insert(0, 'phylum', phylum.reindex(pivot.index))
    pivot['single'] = _event_reads(rows, single_event).reindex(pivot.index)
    pivot['multi'] = _event_reads(rows, multi_event).reindex(pivot.index)

    pivot = pivot.sort_index().reset_index()
    pivot.columns.name = None
    return pivot[columns]
