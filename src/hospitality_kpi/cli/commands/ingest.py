"""
Document ingestion command
"""

import json
from pathlib import Path

import click
from sqlalchemy.engine import make_url

from hospitality_kpi.application import IngestionService
from hospitality_kpi.cli.utils import (
    build_catalog,
    build_processor,
    build_resolver,
    build_store,
    error_exit,
    print_table,
    validate_department,
)
from hospitality_kpi.domain.exceptions import KpiPipelineError
from hospitality_kpi.domain.services.dedup_gate import DeduplicationGate
from hospitality_kpi.infrastructure.database import InMemoryKpiItemStore
from hospitality_kpi.infrastructure.ingest import load_document


@click.command("ingest")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--department",
    "-d",
    callback=validate_department,
    help="Default department for points without a section (default from config)",
)
@click.option("--dry-run", is_flag=True, help="Extract and deduplicate without writing")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def ingest(ctx, file, department, dry_run, as_json):
    """Extract KPIs from a PDF, CSV, XLSX or text report and store them

    Examples:
        hospitality-kpi ingest daily_report.pdf --department "Front Office"
        hospitality-kpi ingest export.csv --dry-run
    """
    settings = ctx.obj["settings"]
    department = department or settings.extraction.default_department
    catalog = build_catalog(settings)
    resolver = build_resolver(settings)

    try:
        if dry_run and not _database_exists(settings):
            store = InMemoryKpiItemStore(catalog)
        else:
            store = build_store(settings, create_tables=not dry_run)

        document = load_document(file, extract_tables=settings.extraction.enable_table_extraction)
        service = IngestionService(
            processor=build_processor(settings, resolver, catalog),
            store=store,
            gate=DeduplicationGate(store, resolver, settings.dedup.tolerance),
            resolver=resolver,
        )
        report = service.ingest(document, department, Path(file).name, dry_run=dry_run)
    except KpiPipelineError as e:
        error_exit(str(e))
        return

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
        return

    summary = report.summary
    click.echo(
        f"Extracted: {summary['total_extracted']} points "
        f"({summary['metric_points']} labeled, {summary['table_points']} table)"
    )
    if summary["per_department"]:
        print_table(["Department", "Points"], sorted(summary["per_department"].items()))
    if report.invalid_rows:
        click.echo(f"Invalid rows: {report.invalid_rows}")
    if dry_run:
        click.echo(f"Dry run: {report.new_points} new, {report.skipped_duplicates} duplicates")
    else:
        click.echo(f"Stored: {report.stored}")
        click.echo(f"Skipped duplicates: {report.skipped_duplicates}")


def _database_exists(settings) -> bool:
    url = make_url(settings.database.url)
    if url.get_backend_name() != "sqlite":
        return True
    return bool(url.database) and url.database != ":memory:" and Path(url.database).exists()
