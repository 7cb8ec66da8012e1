"""
Application Layer

Ingestion and KPI reporting services.
"""

from hospitality_kpi.application.ingestion_service import IngestionReport, IngestionService
from hospitality_kpi.application.reporting_service import KpiReportingService

__all__ = [
    "IngestionReport",
    "IngestionService",
    "KpiReportingService",
]
