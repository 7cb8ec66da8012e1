"""
Labeled metric extraction over department sections.

Every non-overlapping match of every rule yields one point per document
date (values are broadcast across all dates the report mentions). Output
order is rule order, then match order, then date order.

Each match carries a ``source_ref`` of ``<data_type>#<n>`` (n counts the
rule's matches from 1), so a label repeated with another value is kept as
a separate observation.
"""

import logging
import math
from datetime import date
from typing import List, Optional, Sequence

from hospitality_kpi.domain.models import DataSource, Department, RawDataPoint
from hospitality_kpi.infrastructure.extraction.rules import ExtractionRule

logger = logging.getLogger(__name__)


def parse_number(raw: str) -> Optional[float]:
    """Parse a captured number, stripping thousands separators; None if unparseable."""
    try:
        value = float(raw.replace(",", ""))
    except (AttributeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return value


class MetricExtractor:
    """
    Applies a department's rule table to its section text.

    Example Usage:
        extractor = MetricExtractor()
        points = extractor.extract(section_text, Department.FRONT_OFFICE, rules, dates, "report.pdf")
    """

    def __init__(self, source: str = DataSource.PDF.value):
        self.source = source

    def extract(
        self,
        text: str,
        department: Department,
        rules: Sequence[ExtractionRule],
        dates: Sequence[date],
        source_file: str = "",
        source: Optional[str] = None,
    ) -> List[RawDataPoint]:
        points: List[RawDataPoint] = []
        source = source or self.source

        for rule in rules:
            for ordinal, match in enumerate(rule.pattern.finditer(text or ""), start=1):
                value = parse_number(match.group(1))
                if value is None:
                    continue
                logger.debug(f"✓ {department.value} {rule.data_type}: '{match.group(0)}'")
                for day in dates:
                    points.append(
                        RawDataPoint(
                            department=department,
                            data_type=rule.data_type,
                            value=value,
                            date=day,
                            source=source,
                            source_file=source_file,
                            metadata={"extracted_from": match.group(0), "unit": rule.unit},
                            source_ref=f"{rule.data_type}#{ordinal}",
                        )
                    )

        return points
