"""Test configuration helpers and fixtures."""

import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

for candidate in (SRC, ROOT):
    candidate_str = str(candidate)
    if candidate.exists() and candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)


REPORT_DATE = date(2024, 1, 15)

SAMPLE_REPORT = """Daily Operations Report
Date: 01/15/2024

Front Office Metrics:
Occupancy Rate: 82.5%
Guest Count: 145
Average Daily Rate: GHS 1,250.00
Occupied Rooms: 75
Available Rooms: 100
Room Revenue: GHS 8,000

Food & Beverage Metrics:
Covers: 210
Average Check: GHS 95.50
Food Revenue: GHS 20,055

Housekeeping Metrics:
Rooms Cleaned: 68
Housekeeping Shifts: 4
"""


@pytest.fixture
def sample_report_text() -> str:
    return SAMPLE_REPORT


@pytest.fixture
def report_date() -> date:
    return REPORT_DATE


@pytest.fixture
def catalog():
    from hospitality_kpi.domain.catalog import KpiCatalog

    return KpiCatalog()


@pytest.fixture
def resolver():
    from hospitality_kpi.domain.services.name_resolver import KpiNameResolver

    return KpiNameResolver()


@pytest.fixture
def rule_table():
    from hospitality_kpi.infrastructure.extraction.rules import load_rule_table

    return load_rule_table()


@pytest.fixture
def processor(rule_table, resolver, catalog):
    from hospitality_kpi.infrastructure.extraction.processor import DocumentProcessor

    return DocumentProcessor(rule_table=rule_table, resolver=resolver, catalog=catalog)


@pytest.fixture
def memory_store(catalog):
    from hospitality_kpi.infrastructure.database.kpi_store import InMemoryKpiItemStore

    return InMemoryKpiItemStore(catalog)


@pytest.fixture
def db_manager(tmp_path: Path):
    from hospitality_kpi.config import DatabaseSettings
    from hospitality_kpi.infrastructure.database.db import DatabaseManager

    manager = DatabaseManager(DatabaseSettings(url=f"sqlite:///{tmp_path / 'kpi.db'}"))
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def sqlite_store(db_manager, catalog):
    from hospitality_kpi.infrastructure.database.kpi_store import SqlAlchemyKpiItemStore

    return SqlAlchemyKpiItemStore(db_manager, catalog)


@pytest.fixture
def make_point():
    """Factory for RawDataPoints with sensible defaults."""
    from hospitality_kpi.domain.models import DataSource, Department, RawDataPoint

    def _make(data_type, value, day=REPORT_DATE, department=Department.FRONT_OFFICE, **kwargs):
        kwargs.setdefault("source", DataSource.PDF.value)
        kwargs.setdefault("source_file", "report.pdf")
        return RawDataPoint(department=department, data_type=data_type, value=value, date=day, **kwargs)

    return _make
