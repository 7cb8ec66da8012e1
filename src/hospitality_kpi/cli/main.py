#!/usr/bin/env python3
"""
hospitality-kpi CLI - Main Entry Point

Command-line interface for ingesting hotel operations reports and
calculating department KPIs.

Usage:
    hospitality-kpi [OPTIONS] COMMAND [ARGS]...

Examples:
    hospitality-kpi init-db
    hospitality-kpi ingest daily_report.pdf --department "Front Office"
    hospitality-kpi calculate -d "Front Office" --start 2024-01-01 --end 2024-01-31 -p weekly
    hospitality-kpi kpis -d Finance --limit 20
    hospitality-kpi resolve "Average Daily Rate" -d "Front Office"
"""

import sys

import click

from hospitality_kpi import __version__
from hospitality_kpi.config import get_settings

from .commands import calculate, ingest, init_db, kpis, resolve
from .utils import setup_logging

CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"],
    max_content_width=120,
)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config", "-c",
    default="config.yaml",
    envvar="HOSPITALITY_KPI_CONFIG",
    help="Configuration file path"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    envvar="HOSPITALITY_KPI_LOG_LEVEL",
    help="Logging level"
)
@click.option(
    "--log-file",
    type=click.Path(),
    envvar="HOSPITALITY_KPI_LOG_FILE",
    help="Log file path"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (same as --log-level DEBUG)"
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress non-essential output"
)
@click.version_option(
    version=__version__,
    prog_name="hospitality-kpi"
)
@click.pass_context
def cli(ctx, config, log_level, log_file, verbose, quiet):
    """hospitality-kpi - Hotel Operations KPI Pipeline

    Extracts department metrics from PDF, CSV and XLSX reports, resolves
    them to a canonical KPI catalog, deduplicates them against the store
    and calculates derived KPIs over calendar periods.

    \b
    COMMANDS:
      ingest     Extract and store KPIs from a report
      calculate  Calculate derived KPIs for a date range
      kpis       List recent stored KPI items
      resolve    Show the canonical name of a raw label
      init-db    Create the store tables

    Run 'hospitality-kpi COMMAND --help' for more information on a command.
    """
    effective_level = "DEBUG" if verbose else log_level
    if quiet:
        effective_level = "ERROR"

    setup_logging(effective_level, log_file)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = get_settings(config)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


cli.add_command(ingest)
cli.add_command(calculate)
cli.add_command(kpis)
cli.add_command(resolve)
cli.add_command(init_db)


def main():
    """Main entry point for the CLI"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(130)
    except Exception as e:
        if "--verbose" in sys.argv or "-v" in sys.argv:
            raise
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
