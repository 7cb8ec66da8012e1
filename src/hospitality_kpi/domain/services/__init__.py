"""
Domain Services

Name resolution, KPI calculation and deduplication.
"""

from hospitality_kpi.domain.services.dedup_gate import DeduplicationGate
from hospitality_kpi.domain.services.kpi_engine import KpiCalculationEngine, calculate_confidence
from hospitality_kpi.domain.services.name_resolver import KpiNameResolver, get_name_resolver
from hospitality_kpi.domain.services.time_buckets import build_time_buckets

__all__ = [
    "DeduplicationGate",
    "KpiCalculationEngine",
    "KpiNameResolver",
    "build_time_buckets",
    "calculate_confidence",
    "get_name_resolver",
]
