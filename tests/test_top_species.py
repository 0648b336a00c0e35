"""
tests/test_top_species.py
Two-stage ordering of the most abundant species: pick by reads, display by phylum.
"""

from edna_compare.aggregate.top_species import top_species


def _table(make_occurrences):
    return make_occurrences([
        ('Alpha alpha', 'species', 'Chordata', 'E1', 100, 'COI'),
        ('Beta beta', 'species', 'Arthropoda', 'E1', 90, 'COI'),
        ('Gamma gamma', 'species', 'Chordata', 'E1', 50, 'COI'),
        ('Gamma gamma', 'species', 'Chordata', 'E2', 30, '16S'),
        ('Delta delta', 'species', 'Mollusca', 'E1', 10, 'COI'),
        ('Epsilon', 'genus', 'Annelida', 'E1', 5000, 'COI'),
        ('Biota', 'kingdom', None, 'E1', 9000, 'COI'),
    ])


class TestTopSpecies:

    def test_selects_by_reads_then_orders_by_phylum(self, make_occurrences):
        top = top_species(_table(make_occurrences), n=3)
        assert top['scientificName'].tolist() == ['Beta beta', 'Alpha alpha', 'Gamma gamma']
        assert top['phylum'].tolist() == ['Arthropoda', 'Chordata', 'Chordata']

    def test_phylum_resort_applies_to_selected_rows_only(self, make_occurrences):
        top = top_species(_table(make_occurrences), n=3)
        # Mollusca sorts after Chordata but was never selected
        assert 'Delta delta' not in top['scientificName'].tolist()

    def test_read_rank_keeps_first_sort(self, make_occurrences):
        top = top_species(_table(make_occurrences), n=3).set_index('scientificName')
        assert top.loc['Alpha alpha', 'read_rank'] == 1
        assert top.loc['Beta beta', 'read_rank'] == 2
        assert top.loc['Gamma gamma', 'read_rank'] == 3

    def test_reads_and_asvs_summed_across_runs(self, make_occurrences):
        top = top_species(_table(make_occurrences)).set_index('scientificName')
        assert top.loc['Gamma gamma', 'reads'] == 80
        assert top.loc['Gamma gamma', 'asvs'] == 2

    def test_only_species_rank(self, make_occurrences):
        names = top_species(_table(make_occurrences))['scientificName'].tolist()
        assert 'Epsilon' not in names
        assert 'Biota' not in names

    def test_at_most_n_distinct_names(self, make_occurrences):
        rows = [(f'Species {i:02d}', 'species', 'Chordata', 'E1', i + 1, 'COI') for i in range(45)]
        top = top_species(make_occurrences(rows), n=30)
        assert len(top) == 30
        assert top['scientificName'].nunique() == 30
        assert top['reads'].min() == 16

    def test_within_phylum_reads_descend(self, w8_table):
        top = top_species(w8_table)
        for _, group in top.groupby('phylum', sort=False):
            assert group['reads'].is_monotonic_decreasing

    def test_ties_broken_by_name(self, make_occurrences):
        table = make_occurrences([
            ('Zeta', 'species', 'Chordata', 'E1', 10, 'COI'),
            ('Eta', 'species', 'Chordata', 'E1', 10, 'COI'),
        ])
        assert top_species(table, n=1)['scientificName'].tolist() == ['Eta']
