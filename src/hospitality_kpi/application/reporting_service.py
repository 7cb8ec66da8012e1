"""
KPI Reporting Service

Calculates KPIs for a department and date range from stored raw items (or
caller-supplied points) and optionally persists the results as
``calculated`` items. Persisted results carry the resolved KPI name (the
catalog display name when no mapping exists); the engine id stays in
``metadata["kpi_id"]``.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Union

from hospitality_kpi.domain.models import DataSource, Department, KpiCalculationResult, Period, RawDataPoint, StoredItem
from hospitality_kpi.domain.services.kpi_engine import KpiCalculationEngine
from hospitality_kpi.domain.services.name_resolver import KpiNameResolver, get_name_resolver

logger = logging.getLogger(__name__)


def stored_item_to_point(item: StoredItem) -> RawDataPoint:
    """Rebuild a raw point, restoring the pre-resolution tag formulas read."""
    return RawDataPoint(
        department=item.department,
        data_type=item.metadata.get("original_data_type", item.kpi_name),
        value=item.value,
        date=item.date,
        source=item.source,
        source_file=item.source_file,
        text_value=item.text_value,
        metadata=dict(item.metadata),
    )


class KpiReportingService:
    def __init__(
        self,
        store,
        engine: Optional[KpiCalculationEngine] = None,
        resolver: Optional[KpiNameResolver] = None,
    ):
        self.store = store
        self.engine = engine or KpiCalculationEngine()
        self.resolver = resolver or get_name_resolver()

    def load_points(self, department: Department, start_date: date, end_date: date) -> List[RawDataPoint]:
        """Raw (non-calculated, numeric) points stored for the range."""
        items = self.store.query_items(department, date_from=start_date, date_to=end_date)
        return [
            stored_item_to_point(item)
            for item in items
            if item.value is not None and item.source != DataSource.CALCULATED.value
        ]

    def calculate(
        self,
        department: Union[Department, str],
        start_date: date,
        end_date: date,
        period: Union[Period, str] = Period.DAILY,
        data_points: Optional[Sequence[RawDataPoint]] = None,
    ) -> List[KpiCalculationResult]:
        dept = Department.parse(department)
        if data_points is None:
            data_points = self.load_points(dept, start_date, end_date)
        results = self.engine.calculate(data_points, dept, start_date, end_date, period)
        logger.info(f"Calculated {len(results)} KPI values for {dept.value} from {len(data_points)} points")
        return results

    def store_calculated(self, results: Sequence[KpiCalculationResult], department: Union[Department, str]) -> int:
        """Persist results with source 'calculated'; returns the number written."""
        dept = Department.parse(department)
        points = [
            RawDataPoint(
                department=dept,
                data_type=self.stored_name(result, dept),
                value=result.value,
                date=result.date,
                source=DataSource.CALCULATED.value,
                source_file=f"{DataSource.CALCULATED.value}:{result.period}",
                metadata={
                    **result.metadata,
                    "kpi_id": result.kpi_name,
                    "period": result.period,
                    "confidence": result.confidence,
                    "kpi_unit": result.unit,
                },
            )
            for result in results
        ]
        return self.store.insert_items(points)

    def stored_name(self, result: KpiCalculationResult, department: Department) -> str:
        """Canonical name a calculated result is persisted under."""
        if self.resolver.is_known_label(result.kpi_name, department):
            return self.resolver.resolve(result.kpi_name, department)
        return result.metadata.get("display_name") or result.kpi_name
