"""
tests/test_occurrence_loader.py
Loading, tagging and validating the per-run occurrence tables.

Run with:  pytest tests/test_occurrence_loader.py -v
"""

import pandas as pd
import pytest

from edna_compare.config import RunFile
from edna_compare.errors import DataShapeError, LoadError
from edna_compare.load_occurrences.occurrence_loader import (
    combine_occurrences,
    label_markers_by_database,
    load_occurrence_table,
    load_occurrences,
    marker_order,
    markers_with_multiple_databases,
)


COI_ROWS = [
    ['Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', '100'],
    ['Biota', 'kingdom', '', 'W-8-singleplex', '25'],
]
S16_ROWS = [
    ['Gadus morhua', 'species', 'Chordata', 'W-8-multi-tot', '50'],
]


class TestLoadOccurrenceTable:

    def test_tags_every_row(self, write_run_file):
        path = write_run_file('coi.tsv', COI_ROWS)
        df = load_occurrence_table(path, 'COI', 'MIDORI')
        assert len(df) == 2
        assert (df['marker'] == 'COI').all()
        assert (df['otu_db'] == 'MIDORI').all()

    def test_quantity_is_numeric(self, write_run_file):
        path = write_run_file('coi.tsv', COI_ROWS)
        df = load_occurrence_table(path, 'COI', 'MIDORI')
        assert pd.api.types.is_numeric_dtype(df['organismQuantity'])
        assert df['organismQuantity'].tolist() == [100, 25]

    def test_empty_string_and_nan_token_are_missing(self, write_run_file):
        path = write_run_file('coi.tsv', [
            ['Biota', 'kingdom', '', 'W-8-singleplex', '1'],
            ['Biota', 'kingdom', 'nan', 'W-8-singleplex', 'nan'],
        ])
        df = load_occurrence_table(path, 'COI', 'MIDORI')
        assert df['phylum'].isna().all()
        assert pd.isna(df.loc[1, 'organismQuantity'])

    def test_other_na_like_tokens_are_kept(self, write_run_file):
        path = write_run_file('coi.tsv', [['NA', 'species', 'NULL', 'W-8-singleplex', '1']])
        df = load_occurrence_table(path, 'COI', 'MIDORI')
        assert df.loc[0, 'scientificName'] == 'NA'
        assert df.loc[0, 'phylum'] == 'NULL'

    def test_extra_columns_are_carried_through(self, write_run_file):
        path = write_run_file(
            'coi.tsv',
            [['Gadus morhua', 'species', 'Chordata', 'Actinopteri', 'W-8-singleplex', '3']],
            header=['scientificName', 'taxonRank', 'phylum', 'class', 'eventID', 'organismQuantity'],
        )
        df = load_occurrence_table(path, 'COI', 'MIDORI')
        assert df.loc[0, 'class'] == 'Actinopteri'

    def test_existing_marker_column_is_overwritten(self, write_run_file):
        path = write_run_file(
            'coi.tsv',
            [['Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', '3', '12S']],
            header=['scientificName', 'taxonRank', 'phylum', 'eventID', 'organismQuantity', 'marker'],
        )
        df = load_occurrence_table(path, 'COI', 'MIDORI')
        assert df.loc[0, 'marker'] == 'COI'
        assert df.attrs['overwritten_columns'] == ['marker']

    def test_clean_file_records_no_overwrite(self, write_run_file):
        df = load_occurrence_table(write_run_file('coi.tsv', COI_ROWS), 'COI', 'MIDORI')
        assert df.attrs['overwritten_columns'] == []

    def test_missing_file_raises_load_error(self, tmp_path):
        with pytest.raises(LoadError):
            load_occurrence_table(tmp_path / 'missing.tsv', 'COI', 'MIDORI')

    def test_empty_file_raises_load_error(self, tmp_path):
        path = tmp_path / 'empty.tsv'
        path.write_text('', encoding='utf-8')
        with pytest.raises(LoadError):
            load_occurrence_table(path, 'COI', 'MIDORI')

    def test_ragged_rows_raise_load_error(self, tmp_path):
        path = tmp_path / 'ragged.tsv'
        path.write_text(
            'scientificName\ttaxonRank\tphylum\teventID\torganismQuantity\n'
            'Gadus morhua\tspecies\tChordata\tW-8-singleplex\t1\n'
            'Gadus morhua\tspecies\tChordata\tW-8-singleplex\t1\textra\n',
            encoding='utf-8',
        )
        with pytest.raises(LoadError):
            load_occurrence_table(path, 'COI', 'MIDORI')

    def test_missing_column_raises_data_shape_error(self, write_run_file):
        path = write_run_file('coi.tsv', [['Gadus morhua', 'species', 'W-8-singleplex', '1']],
                              header=['scientificName', 'taxonRank', 'eventID', 'organismQuantity'])
        with pytest.raises(DataShapeError) as excinfo:
            load_occurrence_table(path, 'COI', 'MIDORI')
        assert excinfo.value.missing_columns == ['phylum']

    def test_non_numeric_quantity_raises_load_error(self, write_run_file):
        path = write_run_file('coi.tsv', [['Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', 'many']])
        with pytest.raises(LoadError):
            load_occurrence_table(path, 'COI', 'MIDORI')

    def test_negative_quantity_raises_load_error(self, write_run_file):
        path = write_run_file('coi.tsv', [['Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', '-4']])
        with pytest.raises(LoadError):
            load_occurrence_table(path, 'COI', 'MIDORI')


class TestLoadOccurrences:

    def test_concatenates_in_given_order(self, write_run_file):
        coi = write_run_file('coi.tsv', COI_ROWS)
        s16 = write_run_file('16s.tsv', S16_ROWS)
        df = load_occurrences([RunFile(str(coi), 'COI', 'MIDORI'), RunFile(str(s16), '16S', 'MIDORI')])
        assert df['marker'].tolist() == ['COI', 'COI', '16S']
        assert list(df.index) == [0, 1, 2]

    def test_tagging_is_total(self, write_run_file):
        coi = write_run_file('coi.tsv', COI_ROWS)
        s16 = write_run_file('16s.tsv', S16_ROWS)
        df = load_occurrences([RunFile(str(coi), 'COI', 'MIDORI'), RunFile(str(s16), '16S', 'MIDORI')])
        assert df['marker'].notna().all()
        assert df['otu_db'].notna().all()
        assert (df['organismQuantity'].dropna() >= 0).all()

    def test_identical_rows_in_two_files_are_both_kept(self, write_run_file):
        a = write_run_file('a.tsv', S16_ROWS)
        b = write_run_file('b.tsv', S16_ROWS)
        df = load_occurrences([RunFile(str(a), '16S', 'MIDORI'), RunFile(str(b), '16S', 'MIDORI')])
        assert len(df) == 2
        assert df['organismQuantity'].sum() == 100

    def test_one_bad_file_fails_the_whole_load(self, write_run_file, tmp_path):
        coi = write_run_file('coi.tsv', COI_ROWS)
        with pytest.raises(LoadError):
            load_occurrences([RunFile(str(coi), 'COI', 'MIDORI'),
                              RunFile(str(tmp_path / 'gone.tsv'), '16S', 'MIDORI')])

    def test_no_files_raises_load_error(self):
        with pytest.raises(LoadError):
            load_occurrences([])

    def test_combine_keeps_per_run_tables_intact(self, write_run_file):
        a = load_occurrence_table(write_run_file('a.tsv', COI_ROWS), 'COI', 'MIDORI')
        b = load_occurrence_table(write_run_file('b.tsv', S16_ROWS), 'COI', 'MIDORI')
        combined = combine_occurrences([a, b])
        assert [len(a), len(b)] == [2, 1]
        assert len(combined) == 3
        assert 'overwritten_columns' not in combined.attrs


class TestReferenceDatabasePartitions:

    def test_marker_with_two_databases_is_relabelled(self, make_occurrences):
        midori = make_occurrences([('Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', 10, 'COI')], otu_db='MIDORI')
        ncbi = make_occurrences([('Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', 12, 'COI')], otu_db='NCBI')
        teleo = make_occurrences([('Gadus morhua', 'species', 'Chordata', 'W-8-singleplex', 5, 'Teleo')])
        table = pd.concat([midori, ncbi, teleo], ignore_index=True)

        assert markers_with_multiple_databases(table) == ['COI']
        relabelled = label_markers_by_database(table)
        assert relabelled['marker'].tolist() == ['COI (MIDORI)', 'COI (NCBI)', 'Teleo']
        assert table['marker'].tolist() == ['COI', 'COI', 'Teleo']

    def test_single_database_markers_are_unchanged(self, w8_table):
        assert markers_with_multiple_databases(w8_table) == []
        assert label_markers_by_database(w8_table)['marker'].tolist() == w8_table['marker'].tolist()

    def test_marker_order_follows_load_order(self, w8_table):
        assert marker_order(w8_table) == ['COI', '16S', 'MiFish', 'MiMammal', 'Teleo']
