"""Most abundant species across all runs"""

import pandas as pd

from edna_compare.aggregate.columns import reads_with_nulls_as_zero, require_columns, species_rows


def top_species(table: pd.DataFrame, n=30) -> pd.DataFrame:
    """
    Top n species by summed reads, grouped by (phylum, scientificName).

    Selection and display order are two separate sorts: rows are ranked by
    reads (descending, ties by name) to pick the top n, then only the selected
    rows are re-sorted by phylum with a stable sort, so species stay in read
    order inside each phylum. 'read_rank' keeps the position from the first sort.
    """
    require_columns(table, ['phylum', 'scientificName', 'taxonRank', 'organismQuantity'])

    species = species_rows(table)[['phylum', 'scientificName']].copy()
    species['reads'] = reads_with_nulls_as_zero(species_rows(table))

    grouped = (
        species.groupby(['phylum', 'scientificName'], dropna=False, sort=False)
        .agg(reads=('reads', 'sum'), asvs=('reads', 'size'))
        .reset_index()
    )

    ranked = grouped.sort_values(['reads', 'scientificName'], ascending=[False, True], kind='mergesort')
    selected = ranked.head(n).copy()
    selected['read_rank'] = range(1, len(selected) + 1)

    by_phylum = selected.sort_values('phylum', kind='mergesort', na_position='last')
    return by_phylum.reset_index(drop=True)[['phylum', 'scientificName', 'reads', 'asvs', 'read_rank']]
