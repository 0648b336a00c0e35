"""
Species grid for edna_compare
Colorized HTML table of the species-by-marker pivot. Null cells render blank
so "no reads recorded" stays distinguishable from a recorded 0.
"""

import pandas as pd

KEY_COLUMNS = ['scientificName', 'phylum']
GRID_TABLE_ID = 'species-grid'


def numeric_columns(pivot: pd.DataFrame):
    return [col for col in pivot.columns if col not in KEY_COLUMNS]


def style_species_grid(pivot: pd.DataFrame, cmap='YlGnBu'):
    """pandas Styler with a per-column color gradient on every reads column"""
    numbers = numeric_columns(pivot)
    with_values = [col for col in numbers if pivot[col].notna().any()]

    styler = pivot.style.hide(axis='index')
    if with_values:
        styler = styler.background_gradient(cmap=cmap, subset=with_values, axis=0)
    if numbers:
        styler = styler.highlight_null(color='#ffffff', subset=numbers)
        styler = styler.format(precision=0, thousands=',', na_rep='', subset=numbers)
    styler = styler.set_table_attributes(f'id="{GRID_TABLE_ID}" class="table sortable"')
    return styler


def species_grid_html(pivot: pd.DataFrame, cmap='YlGnBu') -> str:
    return style_species_grid(pivot, cmap=cmap).to_html()
