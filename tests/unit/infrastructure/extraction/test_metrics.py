"""Tests for labeled metric extraction."""

from datetime import date

import pytest

from hospitality_kpi.domain.models import Department
from hospitality_kpi.infrastructure.extraction.metrics import MetricExtractor, parse_number

DAY_1 = date(2024, 1, 15)
DAY_2 = date(2024, 1, 16)


class TestParseNumber:
    @pytest.mark.parametrize(
        "raw, expected",
        [("82.5", 82.5), ("1,250.00", 1250.0), ("20,055", 20055.0), ("0", 0.0)],
    )
    def test_valid(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", None, "nan"])
    def test_invalid(self, raw):
        assert parse_number(raw) is None


class TestMetricExtractor:
    @pytest.fixture
    def front_office_rules(self, rule_table):
        return rule_table.rules_for(Department.FRONT_OFFICE)

    def test_extracts_labeled_values(self, front_office_rules):
        text = "Front Office:\nOccupancy Rate: 82.5%\nAverage Daily Rate: GHS 1,250.00\n"

        points = MetricExtractor().extract(text, Department.FRONT_OFFICE, front_office_rules, [DAY_1], "daily.pdf")

        assert [(p.data_type, p.value) for p in points] == [("occupancy_rate", 82.5), ("average_daily_rate", 1250.0)]
        first = points[0]
        assert first.department == Department.FRONT_OFFICE
        assert first.source == "pdf"
        assert first.source_file == "daily.pdf"
        assert first.metadata == {"extracted_from": "Occupancy Rate: 82.5%", "unit": "%"}

    def test_values_broadcast_to_every_date(self, front_office_rules):
        """One match yields one point per document date, in date order."""
        points = MetricExtractor().extract("Guest Count: 145", Department.FRONT_OFFICE, front_office_rules, [DAY_1, DAY_2])
        assert [(p.date, p.value) for p in points] == [(DAY_1, 145.0), (DAY_2, 145.0)]

    def test_every_match_counts(self, front_office_rules):
        text = "Guest Count: 140 (AM)\nGuest Count: 150 (PM)"
        points = MetricExtractor().extract(text, Department.FRONT_OFFICE, front_office_rules, [DAY_1])
        assert [p.value for p in points] == [140.0, 150.0]
        assert [p.source_ref for p in points] == ["guest_count#1", "guest_count#2"]

    def test_case_insensitive(self, front_office_rules):
        points = MetricExtractor().extract("OCCUPIED ROOMS: 75", Department.FRONT_OFFICE, front_office_rules, [DAY_1])
        assert [(p.data_type, p.value) for p in points] == [("occupied_rooms", 75.0)]

    def test_no_match_is_not_an_error(self, front_office_rules):
        assert MetricExtractor().extract("nothing to see", Department.FRONT_OFFICE, front_office_rules, [DAY_1]) == []

    def test_source_override(self, rule_table):
        rules = rule_table.rules_for(Department.HOUSEKEEPING)
        points = MetricExtractor(source="csv").extract(
            "Rooms Cleaned: 68", Department.HOUSEKEEPING, rules, [DAY_1], source="text"
        )
        assert points[0].source == "text"
        assert points[0].unit == "rooms"
