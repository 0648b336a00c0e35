"""
Species sets and overlaps for edna_compare
Builds the set of detected species per PCR event or per marker (group),
and counts how those sets overlap.
"""

import re
from itertools import combinations, product
from typing import Dict, FrozenSet, Mapping, Optional, Sequence

import pandas as pd

from edna_compare.aggregate.columns import require_columns, species_rows
from edna_compare.config import DEFAULT_MARKER_GROUPS


MAX_OVERLAP_SETS = 4

# "<marker> (<otu_db>)" labels for markers loaded against several databases
DATABASE_LABEL = re.compile(r"^(.+) \(([^()]+)\)$")

SpeciesSets = Dict[str, FrozenSet[str]]


def normalize_marker(marker, marker_groups: Optional[Mapping[str, str]] = None):
    """
    Map a marker to its overlap group, e.g. MiFish and MiMammal both become 'MiFish/MiMammal'.
    A database-labelled marker keeps its suffix: 'MiFish (NCBI)' becomes 'MiFish/MiMammal (NCBI)'.
    """
    groups = DEFAULT_MARKER_GROUPS if marker_groups is None else marker_groups
    if marker in groups:
        return groups[marker]
    match = DATABASE_LABEL.match(str(marker))
    if match and match.group(1) in groups:
        return f"{groups[match.group(1)]} ({match.group(2)})"
    return marker


def with_marker_groups(table: pd.DataFrame, marker_groups: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    """Return a copy of the table with a 'marker_group' column"""
    require_columns(table, ['marker'])
    grouped = table.copy()
    grouped['marker_group'] = grouped['marker'].map(lambda m: normalize_marker(m, marker_groups))
    return grouped


def species_sets(table: pd.DataFrame, by='eventID', groups: Optional[Sequence[str]] = None,
                 marker_groups: Optional[Mapping[str, str]] = None) -> SpeciesSets:
    """
    Distinct species-rank scientificName values per value of `by`.

    by='marker_group' derives the merged marker label first. When `groups` is
    given, only those labels are returned, in that order; a label with no
    species maps to an empty set.
    """
    if by == 'marker_group' and 'marker_group' not in table.columns:
        table = with_marker_groups(table, marker_groups)
    require_columns(table, [by, 'scientificName', 'taxonRank'])

    species = species_rows(table)
    species = species[species['scientificName'].notna()]
    found = {
        label: frozenset(names)
        for label, names in species.groupby(by, sort=False)['scientificName']
    }

    if groups is None:
        groups = [label for label in pd.unique(table[by]) if pd.notna(label)]
    return {label: found.get(label, frozenset()) for label in groups}


def overlap_regions(sets: Mapping[str, FrozenSet[str]]) -> pd.DataFrame:
    """
    Exclusive Venn regions for up to four sets.

    One row per non-empty membership combination: a boolean column per set,
    'species_count' (names in exactly that combination) and 'species'
    (those names, sorted, separated by '; ').
    """
    labels = list(sets)
    if len(labels) > MAX_OVERLAP_SETS:
        raise ValueError(f"Overlaps are limited to {MAX_OVERLAP_SETS} sets, got {len(labels)}: {labels}")

    rows = []
    for membership in product([True, False], repeat=len(labels)):
        if not any(membership):
            continue
        inside = [sets[label] for label, member in zip(labels, membership) if member]
        outside = [sets[label] for label, member in zip(labels, membership) if not member]

        region = frozenset.intersection(*inside)
        for other in outside:
            region = region - other

        row = dict(zip(labels, membership))
        row['species_count'] = len(region)
        row['species'] = '; '.join(sorted(region))
        rows.append(row)

    return pd.DataFrame(rows, columns=labels + ['species_count', 'species'])


def pairwise_overlaps(sets: Mapping[str, FrozenSet[str]]) -> pd.DataFrame:
    """Square table of |A ∩ B|; the diagonal holds each set's size"""
    labels = list(sets)
    matrix = pd.DataFrame(0, index=labels, columns=labels, dtype=int)
    for label in labels:
        matrix.loc[label, label] = len(sets[label])
    for a, b in combinations(labels, 2):
        shared = len(sets[a] & sets[b])
        matrix.loc[a, b] = shared
        matrix.loc[b, a] = shared
    return matrix
