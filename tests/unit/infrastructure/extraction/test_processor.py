"""Tests for the document processor."""

from datetime import date

import pytest

from hospitality_kpi.domain.models import DataSource, Department
from hospitality_kpi.infrastructure.extraction.processor import DocumentProcessor
from hospitality_kpi.infrastructure.ingest.document import SourceDocument

TODAY = date(2026, 3, 1)


class TestProcessText:
    def test_sample_report(self, processor, sample_report_text, report_date):
        result = processor.process(sample_report_text, [], Department.FRONT_OFFICE, "daily.txt", source="text")

        assert result.success
        assert result.dates == [report_date]
        assert result.summary["total_extracted"] == 11
        assert result.summary["metric_points"] == 11
        assert result.summary["table_points"] == 0
        assert result.summary["per_department"] == {"Front Office": 6, "Food & Beverage": 3, "Housekeeping": 2}
        assert result.summary["per_category"] == {"occupancy": 1, "guest": 1, "revenue": 3, "operational": 6}
        assert {p.source for p in result.data_points} == {"text"}

    def test_points_keep_raw_labels(self, processor, sample_report_text):
        """Resolution happens later; extraction emits rule tags."""
        result = processor.process(sample_report_text, [], Department.FRONT_OFFICE)
        front_office = [p.data_type for p in result.data_points if p.department == Department.FRONT_OFFICE]
        assert front_office == [
            "occupancy_rate",
            "guest_count",
            "average_daily_rate",
            "occupied_rooms",
            "available_rooms",
            "revenue",
        ]

    def test_tables_use_default_department(self, processor, sample_report_text):
        tables = [[["Metric", "Value"], ["Staff", "45"]]]

        result = processor.process(sample_report_text, tables, "HR", "daily.pdf")

        table_points = [p for p in result.data_points if p.source == DataSource.PDF_TABLE.value]
        assert len(table_points) == 1
        assert table_points[0].department == Department.HR
        assert result.summary["table_points"] == 1
        assert result.summary["total_extracted"] == 12

    def test_table_extraction_can_be_disabled(self, rule_table, resolver, catalog):
        processor = DocumentProcessor(rule_table, resolver, catalog, enable_table_extraction=False)
        result = processor.process("HR:\nStaff Count: 45", [[["h"], ["1"]]], Department.HR)
        assert result.summary["table_points"] == 0
        assert result.summary["total_extracted"] == 1

    def test_undated_text_uses_today(self, processor):
        result = processor.process("Housekeeping:\nRooms Cleaned: 68", None, Department.HOUSEKEEPING, today=TODAY)
        assert result.dates == [TODAY]
        assert result.data_points[0].date == TODAY

    def test_headerless_text_uses_default_department(self, processor):
        """A report without any department header is read with the default department's rules."""
        text = "Date: 01/15/2024\nOccupancy Rate: 80%\nGuest Count: 12\n"

        result = processor.process(text, [], Department.FRONT_OFFICE, "x.txt")

        assert [(p.department, p.data_type, p.value) for p in result.data_points] == [
            (Department.FRONT_OFFICE, "occupancy_rate", 80.0),
            (Department.FRONT_OFFICE, "guest_count", 12.0),
        ]
        assert {p.date for p in result.data_points} == {date(2024, 1, 15)}
        assert result.summary["per_department"] == {"Front Office": 2}

    def test_headerless_prose_has_no_points(self, processor):
        result = processor.process("Nothing but prose 01/15/2024", None, Department.FINANCE)
        assert result.success
        assert result.data_points == []
        assert result.summary["total_extracted"] == 0

    def test_unknown_default_department_fails(self, processor):
        result = processor.process("Housekeeping:\nRooms Cleaned: 68", None, "Spa")
        assert not result.success
        assert result.errors and "Spa" in result.errors[0]
        assert result.summary["total_extracted"] == 0


class TestProcessRows:
    def _row(self, **overrides):
        row = {"Department": "Front Office", "Metric": "Guest Count", "Value": "145", "Unit": "count", "Date": "2024-01-15"}
        row.update(overrides)
        return row

    def test_valid_rows(self, processor):
        rows = [self._row(), self._row(Department="Finance", Metric="Cash Flow", Value="1,000", Unit="GHS")]

        result = processor.process_rows(rows, Department.FRONT_OFFICE, "export.csv")

        assert result.success
        assert [(p.department, p.data_type, p.value) for p in result.data_points] == [
            (Department.FRONT_OFFICE, "Guest Count", 145.0),
            (Department.FINANCE, "Cash Flow", 1000.0),
        ]
        assert result.data_points[0].source == DataSource.CSV.value
        assert result.data_points[1].unit == "GHS"
        assert result.dates == [date(2024, 1, 15)]

    @pytest.mark.parametrize("missing", ["Department", "Metric", "Value"])
    def test_missing_required_cell(self, processor, missing):
        rows = [self._row(**{missing: ""}), self._row()]

        result = processor.process_rows(rows, Department.FRONT_OFFICE)

        assert result.invalid_rows == 1
        assert len(result.data_points) == 1
        assert result.errors[0].startswith("Row 1")

    def test_nan_cells_count_as_missing(self, processor):
        result = processor.process_rows([self._row(Value="nan")], Department.FRONT_OFFICE)
        assert result.invalid_rows == 1

    def test_invalid_date(self, processor):
        result = processor.process_rows([self._row(Date="not a date")], Department.FRONT_OFFICE)
        assert result.invalid_rows == 1
        assert result.data_points == []

    def test_missing_date_uses_today(self, processor):
        result = processor.process_rows([self._row(Date="")], Department.FRONT_OFFICE, today=TODAY)
        assert result.data_points[0].date == TODAY

    def test_unknown_department_falls_back(self, processor):
        result = processor.process_rows([self._row(Department="Spa")], Department.HOUSEKEEPING)
        assert result.data_points[0].department == Department.HOUSEKEEPING

    def test_text_value_kept_for_non_numeric(self, processor):
        result = processor.process_rows([self._row(Value="Excellent")], Department.FRONT_OFFICE)
        point = result.data_points[0]
        assert point.value is None
        assert point.text_value == "Excellent"

    def test_missing_unit(self, processor):
        result = processor.process_rows([self._row(Unit="")], Department.FRONT_OFFICE)
        assert result.data_points[0].unit == "unknown"

    def test_rows_get_distinct_source_refs(self, processor):
        """Two rows with the same metric and date stay separate observations."""
        rows = [self._row(), self._row(Value="150")]

        result = processor.process_rows(rows, Department.FRONT_OFFICE, "export.csv")

        assert [p.source_ref for p in result.data_points] == ["row1", "row2"]


class TestProcessDocument:
    def test_dispatches_tabular_documents(self, processor):
        document = SourceDocument(
            rows=[{"Department": "HR", "Metric": "Staff Count", "Value": "45", "Date": "2024-01-15"}],
            source_type=DataSource.XLSX.value,
        )

        result = processor.process_document(document, Department.FRONT_OFFICE, "hr.xlsx")

        assert result.data_points[0].source == "xlsx"
        assert result.data_points[0].department == Department.HR

    def test_dispatches_text_documents(self, processor, sample_report_text):
        document = SourceDocument(text=sample_report_text, source_type=DataSource.TEXT.value)
        result = processor.process_document(document, Department.FRONT_OFFICE, "daily.txt")
        assert result.summary["total_extracted"] == 11
