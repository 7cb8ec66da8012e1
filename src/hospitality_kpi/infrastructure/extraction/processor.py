"""
Document Processor - Text and Tables to Raw Data Points

Runs the extraction stages over one document:
1. Date extraction (report dates, fallback today)
2. Section segmentation (department-scoped slices; a text without any
   department header is read as one section of the default department)
3. Labeled metric extraction per section
4. Table row extraction (generic table_metric points, default department)

Tabular exports (CSV/XLSX) skip stages 2-4: every valid row is already a
labeled metric and becomes one point.

Example Usage:
    processor = DocumentProcessor()
    result = processor.process(text, tables, Department.FRONT_OFFICE, "daily.pdf")
    result.summary["total_extracted"]
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from dateutil import parser as date_parser

from hospitality_kpi.domain.catalog import KpiCatalog, get_kpi_catalog
from hospitality_kpi.domain.models import DataSource, Department, RawDataPoint
from hospitality_kpi.domain.services.name_resolver import KpiNameResolver, get_name_resolver
from hospitality_kpi.infrastructure.extraction.dates import DateExtractor
from hospitality_kpi.infrastructure.extraction.metrics import MetricExtractor, parse_number
from hospitality_kpi.infrastructure.extraction.rules import RuleTable, load_rule_table
from hospitality_kpi.infrastructure.extraction.sections import SectionSegmenter
from hospitality_kpi.infrastructure.extraction.tables import TableRowExtractor

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Outcome of processing one document"""

    success: bool
    data_points: List[RawDataPoint] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    dates: List[date] = field(default_factory=list)
    invalid_rows: int = 0

    @classmethod
    def failed(cls, message: str) -> "ProcessingResult":
        return cls(success=False, errors=[message], summary=empty_summary())


def empty_summary() -> Dict[str, Any]:
    return {
        "total_extracted": 0,
        "per_category": {},
        "metric_points": 0,
        "table_points": 0,
        "per_department": {},
    }


class DocumentProcessor:
    """Orchestrates the extraction stages for a single document."""

    def __init__(
        self,
        rule_table: Optional[RuleTable] = None,
        resolver: Optional[KpiNameResolver] = None,
        catalog: Optional[KpiCatalog] = None,
        date_extractor: Optional[DateExtractor] = None,
        enable_table_extraction: bool = True,
    ):
        self.rule_table = rule_table or load_rule_table()
        self.resolver = resolver or get_name_resolver()
        self.catalog = catalog or get_kpi_catalog()
        self.date_extractor = date_extractor or DateExtractor()
        self.enable_table_extraction = enable_table_extraction
        self.segmenter = SectionSegmenter(self.rule_table.headers())
        self.table_extractor = TableRowExtractor(self.rule_table.table_patterns)

    def process(
        self,
        text: str,
        tables: Optional[Sequence[Sequence[Sequence[str]]]],
        default_department: Union[Department, str],
        source_file: str = "",
        source: str = DataSource.PDF.value,
        today: Optional[date] = None,
    ) -> ProcessingResult:
        """Extract raw data points from free text and tables."""
        try:
            department = Department.parse(default_department)
            dates = self.date_extractor.extract(text, today=today)
            logger.debug(f"Processing {source_file or 'document'}: {len(text or '')} chars, {len(dates)} dates")

            metric_extractor = MetricExtractor(source=source)
            metric_points: List[RawDataPoint] = []
            sections = {dept: section.text for dept, section in self.segmenter.segment(text).items()}
            if not sections:
                logger.debug(f"No department header found, reading text as {department.value}")
                sections = {department: text or ""}
            for section_dept, section_text in sections.items():
                metric_points.extend(
                    metric_extractor.extract(
                        section_text, section_dept, self.rule_table.rules_for(section_dept), dates, source_file
                    )
                )

            table_points: List[RawDataPoint] = []
            if self.enable_table_extraction and tables:
                table_points = self.table_extractor.extract(tables, department, dates, source_file)

            points = metric_points + table_points
            summary = self.summarize(points, metric_points=len(metric_points), table_points=len(table_points))
            logger.info(
                f"✓ Extracted {summary['total_extracted']} points from {source_file or 'document'} "
                f"({len(metric_points)} labeled, {len(table_points)} table)"
            )
            return ProcessingResult(success=True, data_points=points, summary=summary, dates=dates)

        except Exception as e:
            logger.error(f"✗ Error processing {source_file or 'document'}: {e}")
            return ProcessingResult.failed(f"Processing error: {e}")

    def process_rows(
        self,
        rows: Sequence[Mapping[str, Any]],
        default_department: Union[Department, str],
        source_file: str = "",
        source: str = DataSource.CSV.value,
        today: Optional[date] = None,
    ) -> ProcessingResult:
        """
        Convert tabular rows (Department, Metric, Value, Unit, Date) to points.

        Rows missing Department, Metric or Value, or carrying an unreadable
        Date, are skipped and counted as invalid. The row department wins;
        an unknown one falls back to the default department.
        """
        try:
            fallback = Department.parse(default_department)
        except ValueError as e:
            return ProcessingResult.failed(f"Processing error: {e}")

        today = today or date.today()
        points: List[RawDataPoint] = []
        errors: List[str] = []
        invalid = 0

        for index, row in enumerate(rows, start=1):
            dept_raw = _cell(row, "Department")
            metric = _cell(row, "Metric")
            value_raw = _cell(row, "Value")
            if not dept_raw or not metric or not value_raw:
                invalid += 1
                errors.append(f"Row {index}: missing Department, Metric or Value")
                continue

            try:
                department = Department.parse(dept_raw)
            except ValueError:
                logger.debug(f"Row {index}: unknown department '{dept_raw}', using {fallback.value}")
                department = fallback

            date_raw = _cell(row, "Date")
            try:
                row_date = date_parser.parse(date_raw).date() if date_raw else today
            except (ValueError, OverflowError):
                invalid += 1
                errors.append(f"Row {index}: invalid date '{date_raw}'")
                continue

            unit = _cell(row, "Unit") or "unknown"
            points.append(
                RawDataPoint(
                    department=department,
                    data_type=metric,
                    value=parse_number(value_raw),
                    date=row_date,
                    source=source,
                    source_file=source_file,
                    text_value=value_raw,
                    metadata={"extracted_from": f"{metric}: {value_raw} {_cell(row, 'Unit')}".strip(), "unit": unit},
                    source_ref=f"row{index}",
                )
            )

        summary = self.summarize(points, metric_points=len(points), table_points=0)
        if invalid:
            logger.warning(f"Skipped {invalid} invalid rows in {source_file or 'document'}")
        logger.info(f"✓ Extracted {len(points)} points from {len(rows)} rows of {source_file or 'document'}")
        return ProcessingResult(
            success=True,
            data_points=points,
            errors=errors,
            summary=summary,
            dates=sorted({p.date for p in points}),
            invalid_rows=invalid,
        )

    def process_document(self, document, default_department: Union[Department, str], source_file: str = ""):
        """Dispatch a SourceDocument to the text or row path."""
        if document.rows is not None:
            return self.process_rows(document.rows, default_department, source_file, source=document.source_type)
        return self.process(document.text, document.tables, default_department, source_file, source=document.source_type)

    def summarize(self, points: Sequence[RawDataPoint], metric_points: int, table_points: int) -> Dict[str, Any]:
        per_category: Counter = Counter()
        per_department: Counter = Counter()
        for point in points:
            name = self.resolver.resolve(point.data_type, point.department)
            per_category[self.catalog.category_for(name)] += 1
            per_department[point.department.value] += 1

        return {
            "total_extracted": len(points),
            "per_category": dict(per_category),
            "metric_points": metric_points,
            "table_points": table_points,
            "per_department": dict(per_department),
        }


def _cell(row: Mapping[str, Any], key: str) -> str:
    """Stripped string value of a row cell; empty for missing/NaN cells."""
    value = row.get(key)
    if value is None:
        return ""
    text = str(value).strip()
    if text.lower() == "nan":
        return ""
    return text
