#!/usr/bin/env python3
"""
Command-line interface for the combat log parser.
"""

import json
import logging
from contextlib import nullcontext
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from .config.loader import ConfigLoader
from .config.settings import FramingPolicy, get_settings
from .parser.errors import FramingError
from .parser.parser import CombatLogParser, LineResult, LineStatus, find_log_files


# Set up rich console for pretty output
console = Console()
# Progress goes to stderr so json output on stdout stays clean
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    LineStatus.DECODED: "green",
    LineStatus.UNSUPPORTED: "dim",
    LineStatus.TRAILING_DATA: "yellow",
    LineStatus.FAILED: "red",
}


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "config_path", type=click.Path(), help="YAML configuration file")
@click.pass_context
def cli(ctx, verbose, config_path):
    """Combat Log Parser - decode combat log lines into typed events"""
    # Work on a copy so command options never leak into the global settings
    settings = replace(get_settings())
    config = ConfigLoader.load_config(config_path)
    if config:
        ConfigLoader.apply_config(config, settings)
    settings.validate()
    configure_logging("debug" if verbose else settings.log_level)
    settings.log_configuration()
    ctx.obj = settings


@cli.command()
@click.argument("log_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output file for json results")
@click.option("--format", type=click.Choice(["summary", "json"]), default="summary")
@click.option(
    "--framing-policy",
    type=click.Choice([policy.value for policy in FramingPolicy]),
    default=None,
    help="What to do with lines that have no valid timestamp",
)
@click.option("--show-errors", default=10, show_default=True, help="Number of errors to list")
@click.pass_obj
def parse(settings, log_file, output, format, framing_policy, show_errors):
    """Parse a combat log file and report decoded events."""
    if framing_policy:
        settings.framing_policy = FramingPolicy(framing_policy)

    log_path = Path(log_file)
    parser = CombatLogParser(settings)
    written = 0

    err_console.print(f"[bold green]Parsing combat log:[/bold green] {log_path.name}")

    # Records are written as they are decoded, "-" is stdout
    sink = click.open_file(output or "-", "w") if format == "json" else nullcontext()

    with sink as out, Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeRemainingColumn(),
        console=err_console,
    ) as progress:
        task = progress.add_task("[cyan]Processing...", total=log_path.stat().st_size)

        def on_progress(fraction, bytes_read, file_size):
            progress.update(task, completed=bytes_read)

        try:
            for result in parser.parse_file(log_path, progress_callback=on_progress):
                if out is not None:
                    write_json_record(out, result)
                    written += 1
        except FramingError as e:
            err_console.print(f"[red]{e}[/red]")
            raise SystemExit(1)

    if format == "json":
        if output:
            console.print(f"[green]Wrote {written} results to {output}[/green]")
    else:
        display_summary(parser, show_errors)


@cli.command(name="list")
@click.argument("directory", required=False, type=click.Path())
@click.option("--pattern", default=None, help="Glob pattern for log files")
@click.pass_obj
def list_logs(settings, directory, pattern):
    """List combat log files in the log directory."""
    directory = Path(directory or settings.log_dir)
    try:
        files = find_log_files(directory, pattern or settings.log_pattern)
    except NotADirectoryError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    if not files:
        console.print(f"[yellow]No combat logs found in {directory}[/yellow]")
        return

    table = Table(title=f"Combat logs in {directory}")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")

    for path in files:
        table.add_row(path.name, f"{path.stat().st_size / 1024 / 1024:.1f} MB")

    console.print(table)


@cli.command()
@click.argument("text")
@click.pass_obj
def line(settings, text):
    """Decode a single combat log line."""
    parser = CombatLogParser(settings)
    result = parser.decode_line(text)

    style = STATUS_STYLES[result.status]
    console.print(f"[{style}]{result.status.value}[/{style}]")
    if result.cause:
        console.print(f"[{style}]{result.cause}[/{style}]")
    console.print_json(json.dumps(result_to_dict(result), default=str))

    if result.status == LineStatus.FAILED:
        raise SystemExit(1)


def result_to_dict(result: LineResult):
    """Convert a line result to plain data for export."""
    data = {
        "line_number": result.line_number,
        "status": result.status.value,
        "event_type": result.event_type,
        "timestamp": result.timestamp.to_dict() if result.timestamp else None,
        "event": result.event.to_dict() if result.event is not None else None,
    }
    if result.cause:
        data["error"] = result.cause
    return data


def write_json_record(out, result: LineResult):
    """Write one line result as a JSON line."""
    out.write(json.dumps(result_to_dict(result)) + "\n")


def display_summary(parser: CombatLogParser, show_errors: int):
    """Display parsing statistics, event type counts and errors."""
    stats = parser.get_stats()

    console.print("\n[bold cyan]═══ Parsing Complete ═══[/bold cyan]")

    stats_table = Table(title="Parsing Statistics", show_header=False)
    stats_table.add_column("Metric", style="cyan")
    stats_table.add_column("Value", style="white")

    stats_table.add_row("Lines", f"{stats['lines_processed']:,}")
    stats_table.add_row("Decoded", f"{stats['decoded']:,}")
    stats_table.add_row("Unsupported", f"{stats['unsupported']:,}")
    stats_table.add_row("Trailing Data", f"{stats['trailing_data']:,}")
    stats_table.add_row("Failed", f"{stats['failed']:,}")
    stats_table.add_row("Processing Time", f"{stats['elapsed']:.2f}s")
    stats_table.add_row(
        "Lines/Second", f"{stats['lines_processed'] / max(stats['elapsed'], 0.01):,.0f}"
    )

    console.print(stats_table)

    supported = parser.dispatcher.supported_event_types()
    if stats["event_types"]:
        type_table = Table(title="\n[bold]Event Types[/bold]")
        type_table.add_column("Event Type", style="green")
        type_table.add_column("Count", justify="right")
        type_table.add_column("Decoder")

        for event_type, count in sorted(
            stats["event_types"].items(), key=lambda x: x[1], reverse=True
        )[:20]:
            decoder = "yes" if event_type in supported else "[dim]-[/dim]"
            type_table.add_row(event_type, f"{count:,}", decoder)

        console.print(type_table)

    if parser.parse_errors and show_errors > 0:
        error_table = Table(title=f"\n[bold red]Errors ({stats['failed']})[/bold red]")
        error_table.add_column("Line", style="dim", justify="right")
        error_table.add_column("Error", style="red")
        error_table.add_column("Text", overflow="fold")

        for error in parser.parse_errors[:show_errors]:
            error_table.add_row(str(error["line_number"]), error["error"], error["line"])

        console.print(error_table)


def main():
    """Entry point for the combatlog command."""
    cli()


if __name__ == "__main__":
    main()
