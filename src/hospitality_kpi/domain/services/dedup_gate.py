"""
Deduplication Gate - Drop Points the Store Already Holds

A point is a duplicate when the store has an item for the same department
with the same canonical KPI name, the same day and a value within the
tolerance (default 0.01 absolute). Calculated items share canonical names
with extracted ones but never count as stored readings.

The store is read once per department, scoped to the [min, max] date range
of that department's points. A failing read fails open: every point is
treated as new and the error is logged.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple

from hospitality_kpi.domain.models import DataSource, Department, PartitionResult, RawDataPoint, StoredItem
from hospitality_kpi.domain.services.name_resolver import KpiNameResolver, get_name_resolver
from hospitality_kpi.domain.services.time_buckets import as_date

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01


class DeduplicationGate:
    """
    Partitions incoming points into new and duplicate.

    Example Usage:
        gate = DeduplicationGate(store)
        result = gate.partition(points)
        store.insert_items(result.new_data)
    """

    def __init__(self, store, resolver: Optional[KpiNameResolver] = None, tolerance: float = DEFAULT_TOLERANCE):
        self.store = store
        self.resolver = resolver or get_name_resolver()
        self.tolerance = tolerance

    def partition(self, new_points: Sequence[RawDataPoint]) -> PartitionResult:
        result = PartitionResult()
        if not new_points:
            return result

        index = self._load_existing(new_points, result)

        for point in new_points:
            if self._is_duplicate(point, index):
                result.duplicates.append(point)
            else:
                result.new_data.append(point)

        if result.duplicates:
            logger.info(f"Skipping {len(result.duplicates)} duplicate points, {len(result.new_data)} new")
        return result

    def _load_existing(
        self, new_points: Sequence[RawDataPoint], result: PartitionResult
    ) -> Dict[Tuple[Department, str, object], List[float]]:
        """Read stored items per department; empty index when a read fails."""
        by_department: "OrderedDict[Department, List[RawDataPoint]]" = OrderedDict()
        for point in new_points:
            by_department.setdefault(point.department, []).append(point)

        index: Dict[Tuple[Department, str, object], List[float]] = {}
        for department, points in by_department.items():
            days = [as_date(p.date) for p in points]
            date_from, date_to = min(days), max(days)
            try:
                existing = self.store.query_items(department, date_from=date_from, date_to=date_to)
            except Exception as e:
                logger.error(f"✗ Dedup read failed for {department.value}, treating all points as new: {e}")
                return {}

            result.existing.extend(existing)
            for item in existing:
                self._index_item(index, department, item)

        return index

    @staticmethod
    def _index_item(index, department: Department, item: StoredItem) -> None:
        if item.value is None or item.source == DataSource.CALCULATED.value:
            return
        key = (department, item.kpi_name, as_date(item.date))
        index.setdefault(key, []).append(item.value)

    def _is_duplicate(self, point: RawDataPoint, index) -> bool:
        if not index or point.value is None:
            return False
        name = self.resolver.resolve(point.data_type, point.department)
        stored_values = index.get((point.department, name, as_date(point.date)), [])
        return any(abs(stored - point.value) < self.tolerance for stored in stored_values)
