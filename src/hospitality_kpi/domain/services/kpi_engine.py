"""
KPI Calculation Engine - Derived Hospitality Metrics per Time Bucket

Given raw data points for a department and a date range, evaluates every
formula the catalog registers for that department, once per time bucket.

Formula selection:
1. Named formulas (occupancy_rate, average_daily_rate, revpar, ...) read the
   specific raw tags they need. Missing inputs or a zero denominator yield 0.
2. Otherwise a generic formula keyed by calculation type:
   simple = mean, aggregated = sum, ratio/derived = 0 (not implemented).

Every result carries a heuristic confidence:
    max(min(n / 10, 1.0) * {derived: 0.9, ratio: 0.85}, 0.1)

Failure semantics:
- Invalid dates/period/department -> InvalidInputError (whole call aborts)
- A point missing department/data_type/date/value -> DataStructureError
- A single formula raising is logged and only that KPI/bucket is dropped

Usage:
    engine = KpiCalculationEngine()
    results = engine.calculate(points, "Front Office", date(2024, 1, 1), date(2024, 1, 31), "weekly")
"""

import logging
import math
from collections import Counter
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Optional, Sequence, Union

from hospitality_kpi.domain.catalog import KpiCatalog, KpiDefinition, get_kpi_catalog
from hospitality_kpi.domain.exceptions import DataStructureError, InvalidInputError
from hospitality_kpi.domain.models import (
    CalculationType,
    Department,
    KpiCalculationResult,
    Period,
    RawDataPoint,
    TimeBucket,
)
from hospitality_kpi.domain.services.time_buckets import ONE_DAY, as_date, build_time_buckets, coerce_period

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 2
DEFAULT_SAMPLE_SIZE = 10
MIN_CONFIDENCE = 0.1

CONFIDENCE_MULTIPLIERS = {
    CalculationType.DERIVED: 0.9,
    CalculationType.RATIO: 0.85,
}

FormulaFn = Callable[[Sequence[RawDataPoint], KpiDefinition], float]


def calculate_confidence(
    point_count: int, calculation_type: CalculationType, sample_size: int = DEFAULT_SAMPLE_SIZE
) -> float:
    """Confidence in (0, 1] for a result built from point_count points; 0 for no points."""
    if point_count <= 0:
        return 0.0
    confidence = min(point_count / sample_size, 1.0)
    confidence *= CONFIDENCE_MULTIPLIERS.get(calculation_type, 1.0)
    return max(confidence, MIN_CONFIDENCE)


def round_half_up(value: float, precision: int = DEFAULT_PRECISION) -> float:
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _values(points: Sequence[RawDataPoint], *data_types: str) -> List[float]:
    wanted = set(data_types)
    return [p.value or 0.0 for p in points if p.data_type in wanted]


def _ratio_of_sums(points: Sequence[RawDataPoint], numerator: str, denominator: str, scale: float = 1.0) -> float:
    numerators = _values(points, numerator)
    denominators = _values(points, denominator)
    if not numerators or not denominators:
        return 0.0
    total = sum(denominators)
    if total == 0:
        return 0.0
    return sum(numerators) / total * scale


# =============================================================================
# Named formulas
# =============================================================================


def occupancy_rate(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "occupied_rooms", "available_rooms", 100.0)


def average_daily_rate(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "revenue", "occupied_rooms")


def revpar(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "revenue", "available_rooms")


def average_check(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    tags = definition.required_inputs or ["food_beverage_metric"]
    values = _values(points, *tags)
    if not values:
        return 0.0
    return sum(values) / len(values)


def food_cost_percentage(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "food_cost_amount", "food_revenue", 100.0)


def rooms_cleaned_per_shift(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "rooms_cleaned", "housekeeping_shifts")


def gop_margin(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "gross_operating_profit", "total_revenue", 100.0)


def goppar(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "gross_operating_profit", "available_rooms")


def trevpar(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "total_revenue", "available_rooms")


def staff_to_room_ratio(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    return _ratio_of_sums(points, "staff_count", "available_rooms")


NAMED_FORMULAS: Dict[str, FormulaFn] = {
    "occupancy_rate": occupancy_rate,
    "average_daily_rate": average_daily_rate,
    "revpar": revpar,
    "average_check": average_check,
    "food_cost_percentage": food_cost_percentage,
    "rooms_cleaned_per_shift": rooms_cleaned_per_shift,
    "gop_margin": gop_margin,
    "goppar": goppar,
    "trevpar": trevpar,
    "staff_to_room_ratio": staff_to_room_ratio,
}


def generic_formula(points: Sequence[RawDataPoint], definition: KpiDefinition) -> float:
    """Fallback keyed by calculation type for definitions without a named formula."""
    if definition.required_inputs:
        values = _values(points, *definition.required_inputs)
    else:
        values = [p.value or 0.0 for p in points]

    if definition.calculation_type == CalculationType.SIMPLE:
        return sum(values) / len(values) if values else 0.0
    if definition.calculation_type == CalculationType.AGGREGATED:
        return sum(values)
    # ratio / derived without a named formula
    return 0.0


class KpiCalculationEngine:
    """Evaluates catalog formulas over time buckets of raw data points."""

    def __init__(
        self,
        catalog: Optional[KpiCatalog] = None,
        precision: int = DEFAULT_PRECISION,
        confidence_sample_size: int = DEFAULT_SAMPLE_SIZE,
        formulas: Optional[Dict[str, FormulaFn]] = None,
    ):
        self.catalog = catalog or get_kpi_catalog()
        self.precision = precision
        self.confidence_sample_size = confidence_sample_size
        self.formulas = dict(NAMED_FORMULAS)
        if formulas:
            self.formulas.update(formulas)

    def calculate(
        self,
        data_points: Sequence[RawDataPoint],
        department: Union[Department, str],
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        period: Union[Period, str] = Period.DAILY,
    ) -> List[KpiCalculationResult]:
        """
        Calculate KPIs for a department over [start_date, end_date].

        Returns:
            One result per (formula x bucket) that produced a finite value.
            An empty input returns an empty list.

        Raises:
            InvalidInputError: Bad dates, period or department
            DataStructureError: A point is missing a required field
        """
        start, end = self._validate_range(start_date, end_date)
        period = coerce_period(period)
        try:
            dept = Department.parse(department)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

        if not data_points:
            return []

        self._validate_points(data_points)

        definitions = self.catalog.definitions_for(dept)
        if not definitions:
            logger.info(f"No KPI formulas registered for {dept.value}")
            return []

        results: List[KpiCalculationResult] = []
        for bucket in build_time_buckets(start, end, period):
            bucket_points = [p for p in data_points if bucket.contains(as_date(p.date))]
            if not bucket_points:
                continue

            for definition in definitions:
                try:
                    result = self._calculate_single(definition, bucket_points, bucket, dept, period)
                except Exception as e:
                    logger.warning(f"✗ Failed to calculate {definition.name} for {bucket.label}: {e}")
                    continue
                if result is not None:
                    results.append(result)

        logger.debug(f"Calculated {len(results)} KPI values for {dept.value} ({period.value})")
        return results

    @staticmethod
    def _validate_range(start_date, end_date):
        for name, value in (("start_date", start_date), ("end_date", end_date)):
            if not isinstance(value, date):
                raise InvalidInputError(f"Invalid {name}: {value!r}")
        start, end = as_date(start_date), as_date(end_date)
        if start > end:
            raise InvalidInputError(f"start_date {start} is after end_date {end}")
        return start, end

    @staticmethod
    def _validate_points(data_points: Sequence[RawDataPoint]) -> None:
        for index, point in enumerate(data_points):
            missing = [
                attr
                for attr in ("department", "data_type", "date", "value")
                if getattr(point, attr, None) is None or getattr(point, attr, None) == ""
            ]
            if missing:
                raise DataStructureError(f"Invalid data point at index {index}: missing {', '.join(missing)}", index)
            if not isinstance(point.date, date):
                raise DataStructureError(f"Invalid data point at index {index}: date is not a date", index)
            if isinstance(point.value, bool) or not isinstance(point.value, (int, float)):
                raise DataStructureError(f"Invalid data point at index {index}: value is not numeric", index)

    def _calculate_single(
        self,
        definition: KpiDefinition,
        points: Sequence[RawDataPoint],
        bucket: TimeBucket,
        department: Department,
        period: Period,
    ) -> Optional[KpiCalculationResult]:
        formula = self.formulas.get(definition.name, generic_formula)
        value = formula(points, definition)

        if value is None or not math.isfinite(value):
            logger.debug(f"Discarding non-finite {definition.name} for {bucket.label}")
            return None

        return KpiCalculationResult(
            kpi_name=definition.name,
            value=round_half_up(value, self.precision),
            unit=definition.unit,
            date=bucket.start,
            period=period.value,
            confidence=calculate_confidence(len(points), definition.calculation_type, self.confidence_sample_size),
            metadata={
                "data_points_used": len(points),
                "calculation_method": definition.calculation_type.value,
                "time_range": f"{bucket.start.isoformat()} - {(bucket.end - ONE_DAY).isoformat()}",
                "period_label": bucket.label,
                "department": department.value,
                "display_name": definition.display_name,
                "source": self._primary_source(points),
            },
        )

    @staticmethod
    def _primary_source(points: Sequence[RawDataPoint]) -> str:
        if not points:
            return "unknown"
        return Counter(p.source for p in points).most_common(1)[0][0]
