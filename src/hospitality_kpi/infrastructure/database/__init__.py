"""
Database Layer

SQLAlchemy models, session management and the KPI item store.
"""

from hospitality_kpi.infrastructure.database.db import Base, DatabaseManager, Report, ReportItem
from hospitality_kpi.infrastructure.database.kpi_store import (
    InMemoryKpiItemStore,
    KpiItemStore,
    SqlAlchemyKpiItemStore,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "InMemoryKpiItemStore",
    "KpiItemStore",
    "Report",
    "ReportItem",
    "SqlAlchemyKpiItemStore",
]
