"""
Shared CLI utilities for the hospitality-kpi command line
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional

import click

from hospitality_kpi.config import KpiPipelineConfig
from hospitality_kpi.domain.catalog import KpiCatalog
from hospitality_kpi.domain.models import Department
from hospitality_kpi.domain.services.kpi_engine import KpiCalculationEngine
from hospitality_kpi.domain.services.name_resolver import KpiNameResolver
from hospitality_kpi.infrastructure.database import DatabaseManager, SqlAlchemyKpiItemStore
from hospitality_kpi.infrastructure.extraction import DateExtractor, DocumentProcessor, load_rule_table

LOG_PROFILE_ENV_VAR = "HOSPITALITY_KPI_LOG_PROFILE"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure application logging with production-friendly defaults.

    Use HOSPITALITY_KPI_LOG_PROFILE=debug for verbose extraction tracing.
    """
    profile = os.getenv(LOG_PROFILE_ENV_VAR, "prod").strip().lower()
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True,
    )

    # Quiet noisy third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("pdfminer").setLevel(logging.WARNING)

    # Per-match extraction tracing stays at WARNING unless profiling
    if profile != "debug":
        noisy_loggers = [
            "hospitality_kpi.infrastructure.extraction.dates",
            "hospitality_kpi.infrastructure.extraction.sections",
            "hospitality_kpi.infrastructure.extraction.metrics",
            "hospitality_kpi.infrastructure.extraction.tables",
            "hospitality_kpi.domain.services.name_resolver",
        ]
        for name in noisy_loggers:
            logging.getLogger(name).setLevel(logging.WARNING)


def validate_date(ctx, param, value):
    """Validate date format YYYY-MM-DD"""
    if not value:
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date format: {value}. Use YYYY-MM-DD")


def validate_department(ctx, param, value):
    """Normalize a department option to a Department member"""
    if value is None:
        return value
    try:
        return Department.parse(value)
    except ValueError:
        raise click.BadParameter(f"Unknown department: {value}. Use one of: {', '.join(Department.names())}")


def print_table(headers: list, rows: list, widths: Optional[list] = None):
    """Print a formatted table to stdout"""
    if not widths:
        widths = [max(len(str(h)), max(len(str(r[i])) for r in rows) if rows else 0) + 2 for i, h in enumerate(headers)]

    header_line = "".join(str(h).ljust(w) for h, w in zip(headers, widths))
    click.echo(header_line)
    click.echo("-" * len(header_line))

    for row in rows:
        click.echo("".join(str(c).ljust(w) for c, w in zip(row, widths)))


def format_value(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "N/A"
    return f"{value:,.2f} {unit}".strip()


def error_exit(message: str, code: int = 1):
    """Print error message and exit"""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(code)


# ============================================================================
# Component factories
# ============================================================================


def build_store(settings: KpiPipelineConfig, create_tables: bool = True) -> SqlAlchemyKpiItemStore:
    db = DatabaseManager(settings.database)
    if create_tables:
        db.create_tables()
    return SqlAlchemyKpiItemStore(db, catalog=build_catalog(settings))


def build_catalog(settings: KpiPipelineConfig) -> KpiCatalog:
    return KpiCatalog(settings.extraction.catalog_path)


def build_resolver(settings: KpiPipelineConfig) -> KpiNameResolver:
    return KpiNameResolver(settings.extraction.mappings_path)


def build_processor(settings: KpiPipelineConfig, resolver: KpiNameResolver, catalog: KpiCatalog) -> DocumentProcessor:
    extraction = settings.extraction
    return DocumentProcessor(
        rule_table=load_rule_table(extraction.rules_path),
        resolver=resolver,
        catalog=catalog,
        date_extractor=DateExtractor(extraction.min_year, extraction.max_year),
        enable_table_extraction=extraction.enable_table_extraction,
    )


def build_engine(settings: KpiPipelineConfig, catalog: KpiCatalog) -> KpiCalculationEngine:
    return KpiCalculationEngine(
        catalog=catalog,
        precision=settings.engine.precision,
        confidence_sample_size=settings.engine.confidence_sample_size,
    )
