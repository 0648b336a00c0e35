"""Shared fixtures: small synthetic occurrence tables, in memory and on disk."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


HEADER = ['scientificName', 'taxonRank', 'phylum', 'eventID', 'organismQuantity']


def _make_occurrences(rows, otu_db='MIDORI'):
    """rows: (scientificName, taxonRank, phylum, eventID, organismQuantity, marker)"""
    df = pd.DataFrame(rows, columns=HEADER + ['marker'])
    df['organismQuantity'] = pd.to_numeric(df['organismQuantity'])
    df['phylum'] = df['phylum'].where(df['phylum'].notna(), np.nan)
    df['otu_db'] = otu_db
    return df


@pytest.fixture
def make_occurrences():
    return _make_occurrences


@pytest.fixture
def write_run_file(tmp_path):
    """Write a tab-separated occurrence file; rows are lists of raw cell strings."""
    def _write(name, rows, header=None):
        path = tmp_path / name
        lines = ['\t'.join(header or HEADER)]
        lines += ['\t'.join(str(cell) for cell in row) for row in rows]
        path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
        return path
    return _write


@pytest.fixture
def w8_table(make_occurrences):
    """A small two-event, four-marker sample resembling the W8 runs."""
    return make_occurrences([
        ('Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', 100, 'COI'),
        ('Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', 40, 'COI'),
        ('Calanus finmarchicus', 'species', 'Arthropoda', 'W-8-singleplex', 30, 'COI'),
        ('Biota', 'kingdom', None, 'W-8-singleplex', 500, 'COI'),
        ('Gadus morhua', 'species', 'Chordata', 'W-8-multi-tot', 50, '16S'),
        ('Clupea harengus', 'species', 'Chordata', 'W-8-multi-tot', 20, '16S'),
        ('Homo sapiens', 'species', 'Chordata', 'W-8-multi-tot', 7, '16S'),
        ('Scomber scombrus', 'species', 'Chordata', 'W-8-singleplex', 300, 'MiFish'),
        ('Phocoena phocoena', 'species', 'Chordata', 'W-8-multi-tot', 9, 'MiMammal'),
        ('Mytilus', 'genus', 'Mollusca', 'W-8-multi-tot', 12, 'COI'),
        ('Gadus', 'genus', 'Chordata', 'W-8-singleplex', None, 'Teleo'),
    ])
