"""
Configuration loading for edna_compare
Reads config.yaml and converts it to the params dict used by every pipeline stage
"""

import os
from typing import List, NamedTuple

import yaml

from edna_compare.errors import LoadError


DEFAULT_MARKER_GROUPS = {
    'MiFish': 'MiFish/MiMammal',
    'MiMammal': 'MiFish/MiMammal',
}


class RunFile(NamedTuple):
    """One sequencing run: where its occurrence table lives and how to tag its rows"""
    path: str
    marker: str
    otu_db: str


def load_config(config_path="config.yaml"):
    """Load configuration from YAML file and convert to params dict structure"""
    if not os.path.exists(config_path):
        raise LoadError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise LoadError(f"Error loading config {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise LoadError(f"Config {config_path} must be a mapping, got {type(config).__name__}")
    if not config.get('datafiles'):
        raise LoadError(f"Config {config_path} has no 'datafiles' entries")

    params = {}
    params['config_dir'] = os.path.dirname(os.path.abspath(config_path))
    params['datafiles'] = config['datafiles']

    # Optional parameters with defaults
    params['output_dir'] = config.get('output_dir', "processed/")
    params['report_filename'] = config.get('report_filename', "w8_comparison_report.html")

    events = config.get('events') or {}
    params['single_event'] = events.get('single', 'W-8-singleplex')
    params['multi_event'] = events.get('multi', 'W-8-multi-tot')
    params['overlap_events'] = config.get('overlap_events') or [params['single_event'], params['multi_event']]
    if len(params['overlap_events']) > 4:
        raise LoadError(f"overlap_events lists {len(params['overlap_events'])} events; at most 4 can be compared")

    params['marker_groups'] = config.get('marker_groups', DEFAULT_MARKER_GROUPS)
    params['top_n'] = int(config.get('top_n', 30))
    params['summary_rank'] = config.get('summary_rank', 'phylum')
    params['human_name'] = config.get('human_name', 'Homo sapiens')
    params['placeholder_name'] = config.get('placeholder_name', 'Biota')
    params['open_report'] = bool(config.get('open_report', False))

    return params


def run_files_from_params(params) -> List[RunFile]:
    """
    Build the ordered list of run files from params['datafiles'].
    Relative paths are resolved against the directory holding the config file.
    """
    base_dir = params.get('config_dir', os.getcwd())
    run_files = []

    for i, entry in enumerate(params['datafiles']):
        if not isinstance(entry, dict):
            raise LoadError(f"datafiles entry {i} must be a mapping with path, marker and otu_db")
        missing = [key for key in ('path', 'marker', 'otu_db') if not entry.get(key)]
        if missing:
            raise LoadError(f"datafiles entry {i} is missing: {', '.join(missing)}")

        path = str(entry['path'])
        if not os.path.isabs(path):
            path = os.path.join(base_dir, path)
        run_files.append(RunFile(path, str(entry['marker']), str(entry['otu_db'])))

    return run_files
