"""
Bar charts for edna_compare
Each function takes one aggregate table and returns a matplotlib Figure.
Read counts span several orders of magnitude, so count axes are log10.
"""

import os

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.patches import Patch

from edna_compare.aggregate.taxon_summary import READ_CLASSES


QUALITY_COLORS = {
    'human': '#d62728',
    'unidentified': '#7f7f7f',
    'other': '#2ca02c',
}


def save_figure(fig, path, dpi=200):
    """Write the figure as PNG and close it"""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return path


def _empty_figure(message):
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.text(0.5, 0.5, message, ha='center', va='center')
    ax.set_axis_off()
    return fig


def plot_taxon_summary(summary: pd.DataFrame, value='reads', rank='phylum'):
    """One panel per marker: horizontal bars per taxon, one bar per eventID, log10 axis"""
    plot_data = summary[summary[value] > 0]
    if plot_data.empty:
        return _empty_figure(f"No {value} to plot")

    markers = pd.unique(plot_data['marker'])
    taxa = sorted(pd.unique(plot_data[rank]))
    events = sorted(pd.unique(plot_data['eventID'].dropna()))
    palette = dict(zip(events, sns.color_palette('Set2', n_colors=len(events))))

    fig, axes = plt.subplots(
        1, len(markers),
        figsize=(3.5 * len(markers) + 1.5, max(3.0, 0.35 * len(taxa) + 1.0)),
        sharey=True, squeeze=False,
    )

    for ax, marker in zip(axes[0], markers):
        sns.barplot(
            data=plot_data[plot_data['marker'] == marker],
            x=value, y=rank, hue='eventID',
            order=taxa, hue_order=events, palette=palette,
            orient='h', errorbar=None, ax=ax,
        )
        ax.set_xscale('log')
        ax.set_title(marker)
        ax.set_xlabel(f"{value} (log10)")
        ax.set_ylabel('')
        if ax.get_legend() is not None:
            ax.get_legend().remove()

    handles = [Patch(facecolor=palette[e], label=e) for e in events]
    fig.legend(handles=handles, title='eventID', loc='upper center',
               ncol=max(1, len(events)), bbox_to_anchor=(0.5, 1.02), frameon=False)
    fig.tight_layout(rect=(0, 0, 1, 0.95))
    return fig


def plot_quality_breakdown(breakdown: pd.DataFrame):
    """Stacked share of human / unidentified / other reads per event, one panel per marker"""
    if breakdown.empty or breakdown['reads'].sum() <= 0:
        return _empty_figure("No reads to classify")

    markers = pd.unique(breakdown['marker'])
    fig, axes = plt.subplots(
        1, len(markers), figsize=(3.5 * len(markers) + 1.5, 3.5), sharey=True, squeeze=False,
    )

    for ax, marker in zip(axes[0], markers):
        shares = (
            breakdown[breakdown['marker'] == marker]
            .pivot_table(index='eventID', columns='read_class', values='reads', aggfunc='sum', fill_value=0)
            .reindex(columns=READ_CLASSES, fill_value=0)
        )
        totals = shares.sum(axis=1)
        shares = shares.div(totals.where(totals > 0), axis=0).fillna(0)
        shares.plot(
            kind='barh', stacked=True, ax=ax, legend=False, width=0.7,
            color=[QUALITY_COLORS[c] for c in READ_CLASSES],
        )
        ax.set_xlim(0, 1)
        ax.set_title(marker)
        ax.set_xlabel('share of reads')
        ax.set_ylabel('')

    handles = [Patch(facecolor=QUALITY_COLORS[c], label=c) for c in READ_CLASSES]
    fig.legend(handles=handles, loc='upper center', ncol=len(READ_CLASSES),
               bbox_to_anchor=(0.5, 1.04), frameon=False)
    fig.tight_layout(rect=(0, 0, 1, 0.93))
    return fig


def plot_top_species(top: pd.DataFrame):
    """Horizontal bars in the row order of the top-species table, colored by phylum, log10 axis"""
    if top.empty:
        return _empty_figure("No species-level detections")

    phyla = top['phylum'].fillna('unidentified')
    phylum_names = list(pd.unique(phyla))
    palette = dict(zip(phylum_names, sns.color_palette('tab20', n_colors=len(phylum_names))))

    fig, ax = plt.subplots(figsize=(8, max(3.0, 0.28 * len(top) + 1.0)))
    positions = range(len(top))
    ax.barh(list(positions), top['reads'].clip(lower=1), color=[palette[p] for p in phyla])
    ax.set_yticks(list(positions))
    ax.set_yticklabels(top['scientificName'], fontstyle='italic')
    ax.invert_yaxis()
    ax.set_xscale('log')
    ax.set_xlabel('reads (log10)')

    handles = [Patch(facecolor=palette[p], label=p) for p in phylum_names]
    ax.legend(handles=handles, title='phylum', loc='lower right', fontsize='small')
    fig.tight_layout()
    return fig


def plot_event_summary(summary: pd.DataFrame, value='reads'):
    """Reads (or another total) per eventID, one bar per marker, log10 axis"""
    plot_data = summary[summary[value] > 0]
    if plot_data.empty:
        return _empty_figure(f"No {value} to plot")

    fig, ax = plt.subplots(figsize=(max(5.0, 1.6 * plot_data['eventID'].nunique() + 2), 4))
    sns.barplot(
        data=plot_data, x='eventID', y=value, hue='marker',
        hue_order=list(pd.unique(plot_data['marker'])),
        palette='Set2', errorbar=None, ax=ax,
    )
    ax.set_yscale('log')
    ax.set_ylabel(f"{value} (log10)")
    ax.set_xlabel('')
    ax.tick_params(axis='x', rotation=20)
    fig.tight_layout()
    return fig
