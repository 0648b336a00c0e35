from rich.console import Console
from rich.table import Table
from rich import box
import pyfiglet
import io
import logging
from contextlib import contextmanager, redirect_stderr

# Exported, shared console for the app
console = Console()


def print_separator(title: str | None = None) -> None:
    """Print a simple, consistent separator using hyphens."""
    line = "-" * 100
    if title and title.strip():
        console.print(line, style="dim")
        console.print(title.strip(), style="bold white")
        console.print(line, style="dim")
    else:
        console.print(line, style="dim")


def print_header() -> None:
    """Render the application header using pyfiglet and Rich (single color, readable)."""
    title = pyfiglet.figlet_format("edna_compare", font="standard")
    console.print(title, style="dark_green")
    console.print("W8 eDNA comparison: singleplex vs multiplex PCR across markers", style="bold dark_green")
    print_separator()


def print_usage() -> None:
    """Show the ways to run the report in a clean, scannable table."""
    table = Table(title="Usage", box=box.SIMPLE, show_lines=False, header_style="bold")
    table.add_column("Mode", style="dark_green", no_wrap=True)
    table.add_column("Command", style="white")
    table.add_column("Description", style="dim")

    table.add_row(
        "Report",
        "python main.py",
        "Load the occurrence tables listed in config.yaml, compute the comparison tables, "
        "write charts, CSVs and the HTML report",
    )
    table.add_row(
        "Custom config",
        "python main.py -c other_config.yaml --output-dir out/",
        "Same pipeline with a different config file and output directory",
    )
    table.add_row(
        "Installed",
        "edna-compare --open",
        "Console script; opens the finished report in the browser",
    )

    console.print(table)
    console.print("Run `python main.py --help` for all flags.", style="dim")


def print_file_summary(rows) -> None:
    """Table of (file, marker, otu_db, rows) for the loaded occurrence files."""
    table = Table(title="Loaded occurrence files", box=box.SIMPLE, header_style="bold")
    table.add_column("File", style="white")
    table.add_column("Marker", style="dark_green")
    table.add_column("otu_db", style="dim")
    table.add_column("Rows", justify="right")
    for path, marker, otu_db, n_rows in rows:
        table.add_row(str(path), str(marker), str(otu_db), f"{n_rows:,}")
    console.print(table)


@contextmanager
def silence_output(min_log_level: int = logging.WARNING):
    """
    Suppress stderr (logging, warnings) and temporarily raise logging level.
    Leaves stdout untouched so normal console output remains visible.
    """
    fake_err = io.StringIO()
    root_logger = logging.getLogger()
    old_level = root_logger.level
    try:
        root_logger.setLevel(min_log_level)
        with redirect_stderr(fake_err):
            yield
    finally:
        root_logger.setLevel(old_level)
