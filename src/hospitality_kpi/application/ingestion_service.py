"""
Ingestion Service

Runs one document through the pipeline:
1. Extract raw points (DocumentProcessor)
2. Resolve every label to its canonical KPI name, once
3. Partition against the store (DeduplicationGate, fails open)
4. Insert the new points as one atomic batch

A failed final write is fatal: StoreError propagates and nothing is
partially persisted.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from hospitality_kpi.domain.exceptions import DocumentError
from hospitality_kpi.domain.models import Department, RawDataPoint
from hospitality_kpi.domain.services.dedup_gate import DeduplicationGate
from hospitality_kpi.domain.services.name_resolver import KpiNameResolver, get_name_resolver
from hospitality_kpi.infrastructure.extraction.processor import DocumentProcessor
from hospitality_kpi.infrastructure.ingest.document import SourceDocument

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Counts reported back to the caller of an ingestion"""

    stored: int
    skipped_duplicates: int
    summary: Dict[str, Any]
    duplicates: List[RawDataPoint] = field(default_factory=list)
    new_points: int = 0
    invalid_rows: int = 0
    errors: List[str] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stored": self.stored,
            "skipped_duplicates": self.skipped_duplicates,
            "new_points": self.new_points,
            "invalid_rows": self.invalid_rows,
            "summary": self.summary,
            "errors": list(self.errors),
            "dry_run": self.dry_run,
        }


class IngestionService:
    """
    Extract, resolve, deduplicate and store one document.

    Example Usage:
        service = IngestionService(DocumentProcessor(), store)
        report = service.ingest(load_document("daily.pdf"), Department.FRONT_OFFICE, "daily.pdf")
        print(report.stored, report.skipped_duplicates)
    """

    def __init__(
        self,
        processor: DocumentProcessor,
        store,
        gate: Optional[DeduplicationGate] = None,
        resolver: Optional[KpiNameResolver] = None,
    ):
        self.processor = processor
        self.store = store
        self.resolver = resolver or get_name_resolver()
        self.gate = gate or DeduplicationGate(store, self.resolver)

    def resolve_points(self, points: List[RawDataPoint]) -> List[RawDataPoint]:
        return [p.with_data_type(self.resolver.resolve(p.data_type, p.department)) for p in points]

    def ingest(
        self,
        document: SourceDocument,
        default_department: Union[Department, str],
        source_file: str = "",
        dry_run: bool = False,
    ) -> IngestionReport:
        """
        Raises:
            DocumentError: If extraction failed
            StoreError: If the final batch write failed
        """
        result = self.processor.process_document(document, default_department, source_file)
        if not result.success:
            raise DocumentError("; ".join(result.errors) or f"Failed to process {source_file}")

        resolved = self.resolve_points(result.data_points)
        partition = self.gate.partition(resolved)

        stored = 0
        if not dry_run and partition.new_data:
            stored = self.store.insert_items(partition.new_data)

        logger.info(
            f"✓ Ingested {source_file or 'document'}: {stored} stored, "
            f"{len(partition.duplicates)} duplicates skipped"
            + (" (dry run)" if dry_run else "")
        )
        return IngestionReport(
            stored=stored,
            skipped_duplicates=len(partition.duplicates),
            summary=result.summary,
            duplicates=partition.duplicates,
            new_points=len(partition.new_data),
            invalid_rows=result.invalid_rows,
            errors=result.errors,
            dry_run=dry_run,
        )
