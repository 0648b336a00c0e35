#!/usr/bin/env python3
"""
edna_compare Main Script
Compares the W8 eDNA sample across PCR approaches (singleplex vs multiplex)
and markers (COI, 16S, MiFish, MiMammal, Teleo) and writes an HTML report
"""

import argparse
import logging
import os
import traceback

import matplotlib
matplotlib.use("Agg")

import pandas as pd

from edna_compare.aggregate.species_pivot import species_marker_pivot
from edna_compare.aggregate.species_sets import (
    MAX_OVERLAP_SETS,
    overlap_regions,
    pairwise_overlaps,
    species_sets,
)
from edna_compare.aggregate.taxon_summary import event_summary, quality_breakdown, taxon_event_marker_summary
from edna_compare.aggregate.top_species import top_species
from edna_compare.cli_output.cli_ui import console, print_file_summary, print_header, print_usage, silence_output
from edna_compare.config import load_config, run_files_from_params
from edna_compare.errors import EdnaCompareError, LoadError
from edna_compare.html_reporter import HTMLReporter
from edna_compare.load_occurrences.occurrence_loader import (
    combine_occurrences,
    label_markers_by_database,
    load_occurrence_table,
    marker_order,
    markers_with_multiple_databases,
)
from edna_compare.present.bar_charts import (
    plot_event_summary,
    plot_quality_breakdown,
    plot_taxon_summary,
    plot_top_species,
    save_figure,
)
from edna_compare.present.overlap_plots import plot_overlap
from edna_compare.present.species_grid import species_grid_html


def setup_pandas_display():
    """Set pandas display options"""
    pd.set_option('display.max_colwidth', 150)
    pd.set_option('display.max_columns', 50)


def load_data(params, reporter):
    """Load every configured occurrence file into one tagged table"""
    reporter.add_section("Loading Occurrence Data", level=2)

    try:
        run_files = run_files_from_params(params)
        run_tables = [load_occurrence_table(rf.path, rf.marker, rf.otu_db) for rf in run_files]
        table = combine_occurrences(run_tables)
    except EdnaCompareError as e:
        reporter.add_error(f"Failed to load occurrence data: {e}")
        raise

    file_rows = []
    for rf, run_table in zip(run_files, run_tables):
        path = os.path.relpath(rf.path, params['config_dir'])
        file_rows.append((path, rf.marker, rf.otu_db, len(run_table)))
        for col in run_table.attrs.get('overwritten_columns', []):
            reporter.add_warning(f"{path} already had a '{col}' column; overwriting it from the config")
    print_file_summary(file_rows)
    reporter.add_list(
        [f"{path}: marker <strong>{marker}</strong>, database {otu_db}, {rows:,} rows"
         for path, marker, otu_db, rows in file_rows],
        "Occurrence files (in load order):",
    )

    shared = markers_with_multiple_databases(table)
    if shared:
        msg = (f"Marker(s) {', '.join(shared)} were loaded against more than one reference database. "
               f"They are reported as separate '&lt;marker&gt; (&lt;otu_db&gt;)' partitions and never summed.")
        logging.warning(msg)
        reporter.add_warning(msg)
        table = label_markers_by_database(table)

    reporter.add_success(f"Loaded {len(table):,} occurrence rows from {len(run_files)} file(s)")
    reporter.add_dataframe(table, "Combined occurrence table (first 5 rows)", max_rows=5)
    return table


def compute_aggregates(table, params, reporter):
    """Build every comparison table from the combined occurrence table"""
    reporter.add_section("Computing Comparison Tables", level=2)

    try:
        markers = marker_order(table)
        results = {
            'markers': markers,
            'taxon_event_marker': taxon_event_marker_summary(table, rank=params['summary_rank']),
            'event_summary': event_summary(table, rank=params['summary_rank']),
            'quality_breakdown': quality_breakdown(table, params['human_name'], params['placeholder_name']),
            'top_species': top_species(table, n=params['top_n']),
            'species_by_marker': species_marker_pivot(
                table, markers=markers,
                single_event=params['single_event'], multi_event=params['multi_event'],
            ),
            'event_sets': species_sets(table, by='eventID', groups=params['overlap_events']),
            'marker_group_sets': species_sets(table, by='marker_group', marker_groups=params['marker_groups']),
            'marker_sets': species_sets(table, by='marker'),
        }
    except EdnaCompareError as e:
        reporter.add_error(f"Failed to compute comparison tables: {e}")
        raise

    results['event_overlaps'] = overlap_regions(results['event_sets'])
    if len(results['marker_group_sets']) <= MAX_OVERLAP_SETS:
        results['marker_group_overlaps'] = overlap_regions(results['marker_group_sets'])
    else:
        results['marker_group_overlaps'] = None
        msg = (f"{len(results['marker_group_sets'])} marker groups found; overlap regions are only computed "
               f"for up to {MAX_OVERLAP_SETS}. See the pairwise table instead.")
        logging.warning(msg)
        reporter.add_warning(msg)
    results['marker_group_pairwise'] = pairwise_overlaps(results['marker_group_sets'])
    results['marker_pairwise'] = pairwise_overlaps(results['marker_sets'])

    unidentified = results['taxon_event_marker'][~results['taxon_event_marker']['identified']]
    reporter.add_list([
        f"Markers: {', '.join(markers)}",
        f"Events: {', '.join(map(str, pd.unique(table['eventID'].dropna())))}",
        f"Unclassified ({params['summary_rank']} missing) ASVs: {int(unidentified['asv_count'].sum()):,}",
        f"Species/genus names in pivot: {len(results['species_by_marker']):,}",
    ], "Summary:")
    reporter.add_success("Comparison tables computed")
    return results


def export_tables(results, output_dir, reporter):
    """Write each aggregate to CSV in output_dir"""
    os.makedirs(output_dir, exist_ok=True)
    exports = {
        'taxon_event_marker.csv': (results['taxon_event_marker'], False),
        'event_summary.csv': (results['event_summary'], False),
        'quality_breakdown.csv': (results['quality_breakdown'], False),
        'top_species.csv': (results['top_species'], False),
        'species_by_marker.csv': (results['species_by_marker'], False),
        'overlap_events.csv': (results['event_overlaps'], False),
        'overlap_marker_groups_pairwise.csv': (results['marker_group_pairwise'], True),
        'overlap_markers_pairwise.csv': (results['marker_pairwise'], True),
    }
    if results.get('marker_group_overlaps') is not None:
        exports['overlap_marker_groups.csv'] = (results['marker_group_overlaps'], False)

    written = []
    for filename, (df, keep_index) in exports.items():
        path = os.path.join(output_dir, filename)
        df.to_csv(path, index=keep_index, na_rep='')
        written.append(path)

    reporter.add_list([os.path.basename(p) for p in written], "CSV exports:")
    return written


def render_outputs(results, params, reporter):
    """Render charts, overlap diagrams and the species grid into the report and output_dir"""
    output_dir = params['output_dir']
    rank = params['summary_rank']

    reporter.add_section("Reads and ASVs per Event", level=2)
    with silence_output():
        fig = plot_event_summary(results['event_summary'])
    save_figure_to_report(fig, os.path.join(output_dir, 'event_reads.png'), "Reads per event and marker", reporter)
    reporter.add_dataframe(results['event_summary'], "Event summary", max_rows=50)

    reporter.add_section(f"Reads, ASVs and Species by {rank.capitalize()}", level=2)
    for value in ('reads', 'asv_count', 'species_count'):
        with silence_output():
            fig = plot_taxon_summary(results['taxon_event_marker'], value=value, rank=rank)
        save_figure_to_report(fig, os.path.join(output_dir, f'{rank}_{value}.png'),
                              f"{value} per {rank}, event and marker", reporter)

    reporter.add_section("Read Quality: Human and Unidentified Reads", level=2)
    with silence_output():
        fig = plot_quality_breakdown(results['quality_breakdown'])
    save_figure_to_report(fig, os.path.join(output_dir, 'quality_breakdown.png'), "Share of reads per class", reporter)
    reporter.add_dataframe(results['quality_breakdown'], "Reads per class", max_rows=60)

    reporter.add_section(f"Top {params['top_n']} Species", level=2)
    with silence_output():
        fig = plot_top_species(results['top_species'])
    save_figure_to_report(fig, os.path.join(output_dir, 'top_species.png'), "Most abundant species", reporter)

    reporter.add_section("Species Overlap", level=2)
    overlaps = [
        ('overlap_events.png', "Species shared between PCR approaches", results['event_sets']),
        ('overlap_marker_groups.png', "Species shared between markers (MiFish and MiMammal merged)",
         results['marker_group_sets']),
    ]
    for filename, title, sets in overlaps:
        if len(sets) > MAX_OVERLAP_SETS:
            continue
        with silence_output():
            fig = plot_overlap(sets, title=title)
        if fig is None:
            reporter.add_warning(f"Overlap diagram '{title}' skipped: "
                                 f"fewer than two sets have species-level detections")
            continue
        save_figure_to_report(fig, os.path.join(output_dir, filename), title, reporter)
    reporter.add_dataframe(results['marker_group_pairwise'], "Shared species between marker groups",
                           max_rows=20, index=True)

    reporter.add_section("Species by Marker", level=2)
    reporter.add_html_table(
        species_grid_html(results['species_by_marker']),
        title="Reads per species/genus and marker",
        note="Click a column header to sort. Blank cells: no reads recorded.",
    )


def save_figure_to_report(fig, path, title, reporter):
    reporter.add_figure(fig, title, close=False)
    save_figure(fig, path)


def run_pipeline(params, reporter):
    """Load, aggregate, export and render. Returns the results dict."""
    setup_pandas_display()

    console.print("Loading occurrence data...")
    table = load_data(params, reporter)

    console.print("Computing comparison tables...")
    results = compute_aggregates(table, params, reporter)
    results['table'] = table

    console.print("Writing CSV exports...")
    reporter.add_section("Exports", level=2)
    export_tables(results, params['output_dir'], reporter)

    console.print("Rendering charts...")
    render_outputs(results, params, reporter)
    return results


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Compare eDNA occurrence tables across PCR approaches and markers and write an HTML report."
    )
    parser.add_argument('-c', '--config', default='config.yaml',
                        help="Path to the YAML config (default: config.yaml)")
    parser.add_argument('-o', '--output-dir', default=None,
                        help="Override output_dir from the config")
    parser.add_argument('--open', action='store_true',
                        help="Open the finished report in the default browser")
    parser.add_argument('--usage', action='store_true',
                        help="Show a short usage table and exit")
    return parser.parse_args(argv)


def main(argv=None):
    """Main execution function"""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    args = parse_args(argv)

    print_header()
    if args.usage:
        print_usage()
        return None

    try:
        params = load_config(args.config)
    except LoadError as e:
        console.print(f"CRITICAL ERROR: Could not load configuration file. {e}", style="bold red")
        # No params, so no report either
        raise

    if args.output_dir:
        params['output_dir'] = args.output_dir
    if args.open:
        params['open_report'] = True

    os.makedirs(params['output_dir'], exist_ok=True)
    reporter = HTMLReporter(os.path.join(params['output_dir'], params['report_filename']))

    try:
        reporter.add_section("W8 PCR Approach and Marker Comparison", level=1)
        reporter.add_list([
            f"Config: {os.path.abspath(args.config)}",
            f"Occurrence files: {len(params['datafiles'])}",
            f"Singleplex event: {params['single_event']}",
            f"Multiplex total event: {params['multi_event']}",
            f"Output directory: {params['output_dir']}",
        ], "Configuration Summary:")

        results = run_pipeline(params, reporter)

        if reporter.warnings:
            reporter.set_warning()
        else:
            reporter.set_success()
        reporter.add_section("Process Completion")
        reporter.add_success("All steps completed successfully!")
        console.print("Process completed!", style="bold green")
        return results

    except Exception as e:
        console.print(f"Error during processing: {e}", style="bold red")
        reporter.add_text("Full traceback:")
        reporter.add_text(f"<pre>{traceback.format_exc()}</pre>")
        reporter.set_status("FAILED", f"Pipeline failed: {e}")
        raise

    finally:
        reporter.save()
        console.print(f"HTML report saved: {reporter.filename}")
        if params.get('open_report'):
            reporter.save_and_open()


if __name__ == "__main__":
    main()
