"""
Catalog and database maintenance commands
"""

import click

from hospitality_kpi.cli.utils import build_catalog, build_resolver, error_exit, validate_department
from hospitality_kpi.infrastructure.database import DatabaseManager


@click.command("resolve")
@click.argument("label")
@click.option("--department", "-d", required=True, callback=validate_department, help="Department of the label")
@click.pass_context
def resolve(ctx, label, department):
    """Print the canonical KPI name for a raw metric label

    Examples:
        hospitality-kpi resolve "Average Daily Rate" -d "Front Office"
    """
    settings = ctx.obj["settings"]
    resolver = build_resolver(settings)
    name = resolver.resolve(label, department)
    click.echo(name)
    if not ctx.obj.get("quiet"):
        catalog = build_catalog(settings)
        matched = "catalog" if name in catalog else "passthrough"
        if resolver.is_known_label(label, department) and name not in catalog:
            matched = "mapped"
        click.echo(f"  ({matched}, category: {catalog.category_for(name)}, unit: {catalog.unit_for(name)})", err=True)


@click.command("init-db")
@click.pass_context
def init_db(ctx):
    """Create the KPI store tables"""
    settings = ctx.obj["settings"]
    db = DatabaseManager(settings.database)
    if not db.test_connection():
        error_exit(f"Cannot connect to {settings.database.url}")
        return
    db.create_tables()
    click.echo(f"Database ready: {settings.database.url}")
