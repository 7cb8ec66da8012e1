"""
Low-confidence numeric extraction from table rows.

Row 0 of every table is treated as the header and skipped. Each remaining
row is joined, lower-cased and scanned with the secondary patterns; every
match becomes a generic ``table_metric`` point per document date. These
points are additive and never replace labeled metrics.

A point's ``source_ref`` is ``table<t>/row<r>/<p>.<n>``: table and row
index, pattern index and match ordinal within the row.
"""

import logging
from datetime import date
from typing import List, Sequence

from hospitality_kpi.domain.models import TABLE_METRIC, DataSource, Department, RawDataPoint
from hospitality_kpi.infrastructure.extraction.metrics import parse_number
from hospitality_kpi.infrastructure.extraction.rules import TablePattern

logger = logging.getLogger(__name__)

Table = Sequence[Sequence[str]]


class TableRowExtractor:
    def __init__(self, patterns: Sequence[TablePattern]):
        self.patterns = list(patterns)

    def extract(
        self,
        tables: Sequence[Table],
        department: Department,
        dates: Sequence[date],
        source_file: str = "",
    ) -> List[RawDataPoint]:
        points: List[RawDataPoint] = []

        for table_index, table in enumerate(tables or []):
            for row_index, row in enumerate(table):
                if row_index == 0:
                    continue

                full_row = " ".join("" if cell is None else str(cell) for cell in row)
                row_text = full_row.lower()

                for pattern_index, table_pattern in enumerate(self.patterns):
                    for ordinal, match in enumerate(table_pattern.pattern.finditer(row_text), start=1):
                        value = parse_number(match.group(1))
                        if value is None:
                            continue
                        for day in dates:
                            points.append(
                                RawDataPoint(
                                    department=department,
                                    data_type=TABLE_METRIC,
                                    value=value,
                                    date=day,
                                    source=DataSource.PDF_TABLE.value,
                                    source_file=source_file,
                                    text_value=full_row,
                                    metadata={
                                        "table_index": table_index,
                                        "row_index": row_index,
                                        "extracted_from": match.group(0).strip(),
                                        "full_row": full_row,
                                        "unit": table_pattern.unit,
                                    },
                                    source_ref=f"table{table_index}/row{row_index}/{pattern_index}.{ordinal}",
                                )
                            )

            logger.debug(f"Processed table {table_index + 1} with {len(table)} rows")

        return points
