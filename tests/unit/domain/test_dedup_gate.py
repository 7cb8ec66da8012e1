"""Tests for the deduplication gate."""

import logging
from datetime import date

import pytest

from hospitality_kpi.domain.exceptions import StoreError
from hospitality_kpi.domain.models import Department
from hospitality_kpi.domain.services.dedup_gate import DeduplicationGate


class RecordingStore:
    """Store double that records reads and can fail them."""

    def __init__(self, items=None, fail=False):
        self.items = items or []
        self.fail = fail
        self.queries = []

    def query_items(self, department, date_from=None, date_to=None):
        self.queries.append((department, date_from, date_to))
        if self.fail:
            raise StoreError("connection refused")
        return [i for i in self.items if i.department == department]


@pytest.fixture
def gate(memory_store, resolver):
    return DeduplicationGate(memory_store, resolver)


class TestPartition:
    def test_empty_input(self, resolver):
        """No points means no store read and an empty partition."""
        store = RecordingStore()
        result = DeduplicationGate(store, resolver).partition([])

        assert result.new_data == []
        assert result.duplicates == []
        assert store.queries == []

    def test_everything_new_against_empty_store(self, gate, make_point):
        points = [make_point("Occupancy Rate", 82.5), make_point("Guest Count", 145)]
        result = gate.partition(points)
        assert result.new_data == points
        assert result.duplicates == []

    def test_matching_item_is_duplicate(self, gate, memory_store, make_point):
        memory_store.insert_items([make_point("Occupancy Rate", 82.5)])

        result = gate.partition([make_point("Occupancy Rate", 82.5), make_point("Guest Count", 145)])

        assert [p.data_type for p in result.duplicates] == ["Occupancy Rate"]
        assert [p.data_type for p in result.new_data] == ["Guest Count"]
        assert result.total == 2

    def test_raw_label_resolved_before_comparison(self, gate, memory_store, make_point):
        """A raw tag matches the stored canonical name."""
        memory_store.insert_items([make_point("Occupancy Rate", 82.5)])
        result = gate.partition([make_point("occupancy_rate", 82.5)])
        assert len(result.duplicates) == 1

    @pytest.mark.parametrize("value, is_duplicate", [(82.5, True), (82.509, True), (82.48, False), (82.52, False)])
    def test_tolerance(self, gate, memory_store, make_point, value, is_duplicate):
        """Values within 0.01 of the stored value are duplicates."""
        memory_store.insert_items([make_point("Occupancy Rate", 82.5)])
        result = gate.partition([make_point("Occupancy Rate", value)])
        assert bool(result.duplicates) is is_duplicate

    def test_different_day_is_new(self, gate, memory_store, make_point):
        memory_store.insert_items([make_point("Occupancy Rate", 82.5, date(2024, 1, 15))])
        result = gate.partition([make_point("Occupancy Rate", 82.5, date(2024, 1, 16))])
        assert len(result.new_data) == 1

    def test_calculated_items_are_not_readings(self, gate, memory_store, make_point):
        """A stored calculated KPI never hides an extracted value of the same name."""
        memory_store.insert_items(
            [make_point("Occupancy Rate", 75.0, source="calculated", source_file="calculated:daily")]
        )
        result = gate.partition([make_point("Occupancy Rate", 75.0)])
        assert len(result.new_data) == 1

    def test_different_department_is_new(self, gate, memory_store, make_point):
        memory_store.insert_items([make_point("Covers", 210, department=Department.FOOD_BEVERAGE)])
        result = gate.partition([make_point("Covers", 210, department=Department.FRONT_OFFICE)])
        assert len(result.new_data) == 1

    def test_points_without_value_are_new(self, gate, memory_store, make_point):
        memory_store.insert_items([make_point("Occupancy Rate", 82.5)])
        result = gate.partition([make_point("Occupancy Rate", None)])
        assert len(result.new_data) == 1

    def test_custom_tolerance(self, memory_store, resolver, make_point):
        memory_store.insert_items([make_point("Guest Count", 145)])
        gate = DeduplicationGate(memory_store, resolver, tolerance=1.0)
        assert len(gate.partition([make_point("Guest Count", 145.5)]).duplicates) == 1

    def test_stable_order(self, gate, memory_store, make_point):
        memory_store.insert_items([make_point("Guest Count", 145)])
        points = [make_point("Occupancy Rate", 82.5), make_point("Guest Count", 145), make_point("Covers", 210)]

        result = gate.partition(points)

        assert [p.data_type for p in result.new_data] == ["Occupancy Rate", "Covers"]


class TestReadScope:
    def test_reads_batch_date_range_per_department(self, resolver, make_point):
        """Backdated batches read their own [min, max] range, once per department."""
        store = RecordingStore()
        gate = DeduplicationGate(store, resolver)

        gate.partition(
            [
                make_point("Guest Count", 1, date(2023, 6, 3)),
                make_point("Guest Count", 2, date(2023, 6, 1)),
                make_point("Covers", 3, date(2023, 7, 1), department=Department.FOOD_BEVERAGE),
            ]
        )

        assert store.queries == [
            (Department.FRONT_OFFICE, date(2023, 6, 1), date(2023, 6, 3)),
            (Department.FOOD_BEVERAGE, date(2023, 7, 1), date(2023, 7, 1)),
        ]

    def test_read_failure_fails_open(self, resolver, make_point, caplog):
        """A failing store read treats every point as new and logs an error."""
        gate = DeduplicationGate(RecordingStore(fail=True), resolver)
        points = [make_point("Occupancy Rate", 82.5), make_point("Guest Count", 145)]

        with caplog.at_level(logging.ERROR, logger="hospitality_kpi.domain.services.dedup_gate"):
            result = gate.partition(points)

        assert result.new_data == points
        assert result.duplicates == []
        assert "treating all points as new" in caplog.text
