"""
Extraction Layer

Date, section, labeled-metric and table-row extraction over document text.
"""

from hospitality_kpi.infrastructure.extraction.dates import DateExtractor, extract_dates
from hospitality_kpi.infrastructure.extraction.metrics import MetricExtractor
from hospitality_kpi.infrastructure.extraction.processor import DocumentProcessor, ProcessingResult
from hospitality_kpi.infrastructure.extraction.rules import RuleTable, load_rule_table
from hospitality_kpi.infrastructure.extraction.sections import Section, SectionSegmenter, segment
from hospitality_kpi.infrastructure.extraction.tables import TableRowExtractor

__all__ = [
    "DateExtractor",
    "DocumentProcessor",
    "MetricExtractor",
    "ProcessingResult",
    "RuleTable",
    "Section",
    "SectionSegmenter",
    "TableRowExtractor",
    "extract_dates",
    "load_rule_table",
    "segment",
]
