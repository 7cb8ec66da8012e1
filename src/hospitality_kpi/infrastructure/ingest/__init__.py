"""
Document Adapters

File readers that turn PDF, CSV, XLSX and text uploads into SourceDocuments.
"""

from pathlib import Path
from typing import Union

from hospitality_kpi.domain.exceptions import DocumentError
from hospitality_kpi.infrastructure.ingest.document import SourceDocument
from hospitality_kpi.infrastructure.ingest.pdf import is_valid_pdf, load_pdf, text_document
from hospitality_kpi.infrastructure.ingest.tabular import load_csv, load_xlsx, parse_csv_text

SUPPORTED_EXTENSIONS = (".pdf", ".csv", ".xlsx", ".txt")


def load_document(path: Union[str, Path], extract_tables: bool = True) -> SourceDocument:
    """
    Pick the adapter from the file extension.

    Raises:
        DocumentError: Unsupported extension or unreadable file
    """
    path = Path(path)
    if not path.exists():
        raise DocumentError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return load_pdf(path, extract_tables=extract_tables)
    if suffix == ".csv":
        return load_csv(path)
    if suffix == ".xlsx":
        return load_xlsx(path)
    if suffix == ".txt":
        return text_document(path.read_text(encoding="utf-8"), extract_tables=extract_tables)
    raise DocumentError(f"Unsupported file type '{suffix}', expected one of {', '.join(SUPPORTED_EXTENSIONS)}")


__all__ = [
    "SUPPORTED_EXTENSIONS",
    "SourceDocument",
    "is_valid_pdf",
    "load_csv",
    "load_document",
    "load_pdf",
    "load_xlsx",
    "parse_csv_text",
    "text_document",
]
