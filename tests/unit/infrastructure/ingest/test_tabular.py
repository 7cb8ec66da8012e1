"""Tests for the CSV and XLSX adapters."""

import pandas as pd
import pytest

from hospitality_kpi.domain.exceptions import DocumentError
from hospitality_kpi.infrastructure.ingest.tabular import load_csv, load_xlsx, parse_csv_text, sanitize_csv_text

CSV_TEXT = """Department,Metric,Value,Unit,Date
Front Office,Occupancy Rate,82.5,%,2024-01-15
Finance,Cash Flow,"1,000",GHS,2024-01-15
"""


class TestSanitizeCsvText:
    def test_strips_code_fences(self):
        fenced = "```csv\nDepartment,Metric,Value\nHR,Staff Count,45\n```"
        assert sanitize_csv_text(fenced) == "Department,Metric,Value\nHR,Staff Count,45"

    def test_strips_bom(self):
        assert sanitize_csv_text("\ufeffDepartment,Metric,Value") == "Department,Metric,Value"


class TestParseCsvText:
    def test_rows(self):
        document = parse_csv_text(CSV_TEXT)

        assert document.is_tabular
        assert document.source_type == "csv"
        assert document.rows[1] == {
            "Department": "Finance",
            "Metric": "Cash Flow",
            "Value": "1,000",
            "Unit": "GHS",
            "Date": "2024-01-15",
        }

    def test_optional_columns_default_to_empty(self):
        document = parse_csv_text("Department,Metric,Value\nHR,Staff Count,45\n")
        assert document.rows == [{"Department": "HR", "Metric": "Staff Count", "Value": "45", "Unit": "", "Date": ""}]

    def test_missing_required_column(self):
        with pytest.raises(DocumentError, match="Value"):
            parse_csv_text("Department,Metric\nHR,Staff Count\n")

    def test_empty_text(self):
        assert parse_csv_text("```csv\n```").rows == []


class TestFileAdapters:
    def test_load_csv_with_bom(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("\ufeff" + CSV_TEXT, encoding="utf-8")

        document = load_csv(path)

        assert [row["Metric"] for row in document.rows] == ["Occupancy Rate", "Cash Flow"]

    def test_load_csv_invalid_encoding(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes(b"Department,Metric,Value\nFront Office,Caf\xe9 Covers,12\n")
        with pytest.raises(DocumentError, match="not UTF-8"):
            load_csv(path)

    def test_load_xlsx_first_sheet(self, tmp_path):
        path = tmp_path / "export.xlsx"
        frame = pd.DataFrame(
            [{"Department": "Housekeeping", "Metric": "Rooms Cleaned", "Value": 68, "Unit": "rooms", "Date": "2024-01-15"}]
        )
        frame.to_excel(path, index=False, engine="openpyxl")

        document = load_xlsx(path)

        assert document.source_type == "xlsx"
        assert document.rows[0]["Metric"] == "Rooms Cleaned"
        assert document.rows[0]["Value"] == "68"

    def test_load_xlsx_invalid_file(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a workbook")
        with pytest.raises(DocumentError):
            load_xlsx(path)
