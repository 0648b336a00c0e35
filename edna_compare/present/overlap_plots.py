"""Overlap diagrams (UpSet) for up to four species sets"""

import logging

import matplotlib.pyplot as plt
from upsetplot import UpSet, from_contents

from edna_compare.aggregate.species_sets import MAX_OVERLAP_SETS


def plot_overlap(sets, title=None):
    """
    UpSet diagram of the species shared between the given sets.
    Empty sets are left out of the diagram. Returns None when fewer than two
    sets have species, since there is nothing to intersect.
    """
    if len(sets) > MAX_OVERLAP_SETS:
        raise ValueError(f"Overlap diagrams are limited to {MAX_OVERLAP_SETS} sets, got {len(sets)}")

    contents = {label: sorted(names) for label, names in sets.items() if names}
    if len(contents) < 2:
        logging.warning(f"Skipping overlap diagram '{title}': {len(contents)} of {len(sets)} set(s) have species")
        return None

    dropped = [label for label in sets if label not in contents]
    if dropped:
        logging.warning(f"Overlap diagram '{title}': no species for {', '.join(map(str, dropped))}")

    data = from_contents(contents)
    fig = plt.figure(figsize=(max(6.0, 2.0 + 1.2 * len(contents)), 4.5))
    UpSet(data, subset_size='count', show_counts=True).plot(fig=fig)
    if title:
        fig.suptitle(title)
    return fig
