"""
PDF adapter (pdfplumber).

Text is concatenated page by page. Tables come from pdfplumber; when it
finds none, column-aligned text (cells separated by 2+ spaces or tabs) is
grouped into tables instead.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

import pdfplumber

from hospitality_kpi.domain.exceptions import DocumentError
from hospitality_kpi.domain.models import DataSource
from hospitality_kpi.infrastructure.ingest.document import SourceDocument

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
COLUMN_SPLIT = re.compile(r"\s{2,}|\t+")


def is_valid_pdf(data: bytes) -> bool:
    """Check the %PDF magic number."""
    return len(data) >= 4 and data[:4] == PDF_MAGIC


def extract_tables_from_text(text: str, min_rows: int = 2) -> List[List[List[str]]]:
    """Group consecutive lines with 2+ columns into tables."""
    tables: List[List[List[str]]] = []
    current: List[List[str]] = []

    for line in (text or "").split("\n"):
        if not line.strip():
            continue
        columns = [col.strip() for col in COLUMN_SPLIT.split(line.strip()) if col.strip()]
        if len(columns) >= 2:
            current.append(columns)
            continue
        if len(current) >= min_rows:
            tables.append(current)
        current = []

    if len(current) >= min_rows:
        tables.append(current)
    return tables


def _clean_table(table) -> List[List[str]]:
    return [["" if cell is None else str(cell).strip() for cell in row] for row in table if row]


def load_pdf(path: Union[str, Path], max_pages: Optional[int] = None, extract_tables: bool = True) -> SourceDocument:
    """
    Read a PDF into a SourceDocument.

    Raises:
        DocumentError: If the file is not a PDF or cannot be parsed
    """
    path = Path(path)
    with open(path, "rb") as f:
        header = f.read(4)
    if not is_valid_pdf(header):
        raise DocumentError(f"Not a PDF file: {path.name}")

    pages_text: List[str] = []
    tables: List[List[List[str]]] = []
    try:
        with pdfplumber.open(path) as pdf:
            pages = pdf.pages[:max_pages] if max_pages else pdf.pages
            for page in pages:
                pages_text.append(page.extract_text() or "")
                if extract_tables:
                    tables.extend(_clean_table(t) for t in page.extract_tables() or [])
            page_count = len(pdf.pages)
    except Exception as e:
        logger.error(f"✗ Failed to parse PDF {path.name}: {e}")
        raise DocumentError(f"Failed to parse PDF {path.name}: {e}") from e

    text = "\n".join(pages_text)
    if extract_tables and not tables:
        tables = extract_tables_from_text(text)

    logger.debug(f"Parsed {path.name}: {page_count} pages, {len(text)} chars, {len(tables)} tables")
    return SourceDocument(
        text=text,
        tables=tables,
        source_type=DataSource.PDF.value,
        metadata={"page_count": page_count},
    )


def text_document(text: str, extract_tables: bool = True) -> SourceDocument:
    """Wrap plain text (e.g. a .txt report) as a SourceDocument."""
    return SourceDocument(
        text=text,
        tables=extract_tables_from_text(text) if extract_tables else [],
        source_type=DataSource.TEXT.value,
    )
