"""
KPI calculation and listing commands
"""

import json

import click

from hospitality_kpi.application import KpiReportingService
from hospitality_kpi.cli.utils import (
    build_catalog,
    build_engine,
    build_resolver,
    build_store,
    error_exit,
    format_value,
    print_table,
    validate_date,
    validate_department,
)
from hospitality_kpi.domain.exceptions import KpiPipelineError
from hospitality_kpi.domain.models import Period


@click.command("calculate")
@click.option("--department", "-d", required=True, callback=validate_department, help="Department to calculate")
@click.option("--start", "start_date", required=True, callback=validate_date, help="Start date (YYYY-MM-DD)")
@click.option("--end", "end_date", required=True, callback=validate_date, help="End date (YYYY-MM-DD), inclusive")
@click.option(
    "--period",
    "-p",
    type=click.Choice([p.value for p in Period]),
    default=Period.DAILY.value,
    show_default=True,
    help="Time bucket granularity",
)
@click.option("--store", "store_results", is_flag=True, help="Persist results as calculated KPI items")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def calculate(ctx, department, start_date, end_date, period, store_results, as_json):
    """Calculate derived KPIs from stored raw items

    Examples:
        hospitality-kpi calculate -d "Front Office" --start 2024-01-01 --end 2024-01-31 -p weekly
    """
    settings = ctx.obj["settings"]
    try:
        catalog = build_catalog(settings)
        store = build_store(settings)
        service = KpiReportingService(store, build_engine(settings, catalog), build_resolver(settings))
        results = service.calculate(department, start_date, end_date, period)
        stored = service.store_calculated(results, department) if store_results else 0
    except KpiPipelineError as e:
        error_exit(str(e))
        return

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2, default=str))
        return

    if not results:
        click.echo(f"No KPI values for {department.value} between {start_date} and {end_date}")
        return

    print_table(
        ["Period", "KPI", "Value", "Confidence", "Points"],
        [
            [
                r.metadata.get("period_label", r.date.isoformat()),
                r.kpi_name,
                format_value(r.value, r.unit),
                f"{r.confidence:.2f}",
                r.metadata.get("data_points_used", 0),
            ]
            for r in results
        ],
    )
    if store_results:
        click.echo(f"Stored: {stored}")


@click.command("kpis")
@click.option("--department", "-d", required=True, callback=validate_department, help="Department to list")
@click.option("--limit", "-n", default=10, show_default=True, type=click.IntRange(min=1), help="Items to show")
@click.option("--calculated", is_flag=True, help="Only show calculated KPI values")
@click.pass_context
def kpis(ctx, department, limit, calculated):
    """List the most recent stored KPI items for a department"""
    settings = ctx.obj["settings"]
    try:
        store = build_store(settings)
        if calculated:
            items = sorted(store.kpi_values(department), key=lambda i: i.date, reverse=True)[:limit]
        else:
            items = store.recent_items(department, limit)
    except KpiPipelineError as e:
        error_exit(str(e))
        return

    if not items:
        click.echo(f"No KPI items stored for {department.value}")
        return

    print_table(
        ["Date", "KPI", "Value", "Category", "Source"],
        [[i.date.isoformat(), i.kpi_name, format_value(i.value, i.unit), i.category, i.source] for i in items],
    )
