"""
CSV and XLSX adapters (pandas).

Both produce rows with the Department, Metric, Value, Unit and Date
columns. Markdown code fences and a leading BOM are stripped from CSV text
before parsing. XLSX reads the first sheet only.
"""

import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from hospitality_kpi.domain.exceptions import DocumentError
from hospitality_kpi.domain.models import DataSource
from hospitality_kpi.infrastructure.ingest.document import SourceDocument

logger = logging.getLogger(__name__)

ROW_COLUMNS = ["Department", "Metric", "Value", "Unit", "Date"]

_FENCE_OPEN = re.compile(r"```csv\s*", re.IGNORECASE)
_FENCE = re.compile(r"```\s*")


def sanitize_csv_text(text: str) -> str:
    """Remove markdown code fences and the BOM."""
    text = _FENCE.sub("", _FENCE_OPEN.sub("", text))
    return text.lstrip("\ufeff").strip()


def _frame_to_rows(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    frame = frame.rename(columns=lambda c: str(c).strip())
    missing = [c for c in ("Department", "Metric", "Value") if c not in frame.columns]
    if missing:
        raise DocumentError(f"Missing required columns: {', '.join(missing)}")
    for column in ROW_COLUMNS:
        if column not in frame.columns:
            frame[column] = ""
    frame = frame[ROW_COLUMNS].fillna("")
    return [{k: ("" if v is None else str(v).strip()) for k, v in row.items()} for row in frame.to_dict("records")]


def parse_csv_text(text: str) -> SourceDocument:
    """Parse CSV text into a tabular SourceDocument."""
    cleaned = sanitize_csv_text(text)
    if not cleaned:
        return SourceDocument(rows=[], source_type=DataSource.CSV.value)
    try:
        frame = pd.read_csv(io.StringIO(cleaned), dtype=str, skip_blank_lines=True, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DocumentError(f"Invalid CSV: {e}") from e
    rows = _frame_to_rows(frame)
    logger.debug(f"Parsed CSV with {len(rows)} rows")
    return SourceDocument(rows=rows, source_type=DataSource.CSV.value)


def load_csv(path: Union[str, Path]) -> SourceDocument:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise DocumentError(f"Invalid CSV {path.name}: not UTF-8 text ({e.reason})") from e
    return parse_csv_text(text)


def load_xlsx(path: Union[str, Path]) -> SourceDocument:
    """Read the first worksheet of an XLSX workbook."""
    path = Path(path)
    try:
        frame = pd.read_excel(path, sheet_name=0, dtype=str, engine="openpyxl")
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise DocumentError(f"Invalid workbook {path.name}: {e}") from e
    rows = _frame_to_rows(frame)
    logger.debug(f"Parsed {path.name} with {len(rows)} rows")
    return SourceDocument(rows=rows, source_type=DataSource.XLSX.value, metadata={"sheet": 0})
