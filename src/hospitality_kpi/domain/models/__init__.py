"""
Domain models for the KPI pipeline
"""

from hospitality_kpi.domain.models.kpi import (
    TABLE_METRIC,
    CalculationType,
    DataSource,
    Department,
    KpiCalculationResult,
    KpiCategory,
    PartitionResult,
    Period,
    RawDataPoint,
    StoredItem,
    TimeBucket,
)

__all__ = [
    "TABLE_METRIC",
    "CalculationType",
    "DataSource",
    "Department",
    "KpiCalculationResult",
    "KpiCategory",
    "PartitionResult",
    "Period",
    "RawDataPoint",
    "StoredItem",
    "TimeBucket",
]
