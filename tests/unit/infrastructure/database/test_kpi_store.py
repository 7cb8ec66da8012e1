"""Tests for the KPI item store implementations."""

from datetime import date

import pytest
from sqlalchemy import func, select

from hospitality_kpi.config import DatabaseSettings
from hospitality_kpi.domain.exceptions import StoreError
from hospitality_kpi.domain.models import DataSource, Department
from hospitality_kpi.infrastructure.database import (
    DatabaseManager,
    InMemoryKpiItemStore,
    KpiItemStore,
    Report,
    ReportItem,
    SqlAlchemyKpiItemStore,
)

JAN_15 = date(2024, 1, 15)
JAN_16 = date(2024, 1, 16)
JAN_17 = date(2024, 1, 17)


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Both implementations must honor the same contract."""
    return request.getfixturevalue(f"{request.param}_store")


class TestStoreContract:
    def test_implements_port(self, store):
        assert isinstance(store, KpiItemStore)

    def test_insert_and_query(self, store, make_point):
        inserted = store.insert_items(
            [
                make_point("Occupancy Rate", 82.5, JAN_16),
                make_point("Guest Count", 145, JAN_15),
                make_point("Covers", 210, JAN_15, department=Department.FOOD_BEVERAGE),
            ]
        )

        items = store.query_items(Department.FRONT_OFFICE)

        assert inserted == 3
        assert [(i.kpi_name, i.date, i.value) for i in items] == [
            ("Guest Count", JAN_15, 145.0),
            ("Occupancy Rate", JAN_16, 82.5),
        ]

    def test_catalog_unit_and_category(self, store, make_point):
        store.insert_items([make_point("Occupancy Rate", 82.5), make_point("occupied_rooms", 75, metadata={"unit": "rooms"})])

        items = {i.kpi_name: i for i in store.query_items(Department.FRONT_OFFICE)}

        assert items["Occupancy Rate"].unit == "%"
        assert items["Occupancy Rate"].category == "occupancy"
        # names outside the catalog keep the extracted unit
        assert items["occupied_rooms"].unit == "rooms"
        assert items["occupied_rooms"].category == "operational"

    def test_reinsert_is_idempotent(self, store, make_point):
        """Rows whose (department, date, kpi_name, source_file, source_ref) exists are skipped."""
        points = [make_point("Occupancy Rate", 82.5), make_point("Guest Count", 145)]
        store.insert_items(points)

        assert store.insert_items(points) == 0
        assert len(store.query_items(Department.FRONT_OFFICE)) == 2

    def test_same_kpi_from_another_file_is_kept(self, store, make_point):
        store.insert_items([make_point("Guest Count", 145, source_file="a.pdf")])
        assert store.insert_items([make_point("Guest Count", 145, source_file="b.pdf")]) == 1

    def test_in_batch_repeats_collapse(self, store, make_point):
        batch = [make_point("table_metric", 1.0), make_point("table_metric", 2.0)]
        assert store.insert_items(batch) == 1

    def test_distinct_source_refs_are_kept(self, store, make_point):
        """Table rows of one file and day are separate observations."""
        batch = [
            make_point("table_metric", 210.0, source_ref="table0/row1/0.1"),
            make_point("table_metric", 4.5, source_ref="table0/row2/0.1"),
            make_point("table_metric", 300.0, source_ref="table0/row3/1.1"),
        ]

        assert store.insert_items(batch) == 3
        assert store.insert_items(batch) == 0
        assert sorted(i.source_ref for i in store.query_items(Department.FRONT_OFFICE)) == [
            "table0/row1/0.1",
            "table0/row2/0.1",
            "table0/row3/1.1",
        ]

    def test_conflicting_reread_keeps_stored_value(self, store, make_point, caplog):
        store.insert_items([make_point("Guest Count", 145, source_ref="guest_count#1")])

        with caplog.at_level("WARNING"):
            assert store.insert_items([make_point("Guest Count", 150, source_ref="guest_count#1")]) == 0

        assert [i.value for i in store.query_items(Department.FRONT_OFFICE)] == [145.0]
        assert "Keeping stored value 145" in caplog.text

    def test_empty_batch(self, store):
        assert store.insert_items([]) == 0

    def test_date_filters(self, store, make_point):
        store.insert_items([make_point("Guest Count", v, day) for v, day in ((1, JAN_15), (2, JAN_16), (3, JAN_17))])

        assert [i.value for i in store.query_items(Department.FRONT_OFFICE, date_from=JAN_16)] == [2.0, 3.0]
        assert [i.value for i in store.query_items(Department.FRONT_OFFICE, date_to=JAN_16)] == [1.0, 2.0]
        assert [i.value for i in store.query_items("Front Office", JAN_16, JAN_16)] == [2.0]

    def test_recent_items(self, store, make_point):
        store.insert_items([make_point("Guest Count", v, day) for v, day in ((1, JAN_15), (2, JAN_16), (3, JAN_17))])
        assert [i.date for i in store.recent_items(Department.FRONT_OFFICE, limit=2)] == [JAN_17, JAN_16]

    def test_kpi_values_only_calculated(self, store, make_point):
        store.insert_items(
            [
                make_point("Guest Count", 145),
                make_point(
                    "occupancy_rate",
                    75.0,
                    source=DataSource.CALCULATED.value,
                    source_file="calculated:daily",
                    metadata={"period": "daily", "confidence": 0.17, "kpi_unit": "%"},
                ),
            ]
        )

        values = store.kpi_values(Department.FRONT_OFFICE)

        assert [(v.kpi_name, v.unit, v.period, v.confidence) for v in values] == [("occupancy_rate", "%", "daily", 0.17)]
        assert store.kpi_values(Department.FINANCE) == []
        assert len(store.kpi_values()) == 1

    def test_metadata_round_trip(self, store, make_point):
        point = make_point("Occupancy Rate", 82.5, metadata={"unit": "%", "original_data_type": "occupancy_rate"})
        store.insert_items([point])
        assert store.query_items(Department.FRONT_OFFICE)[0].metadata["original_data_type"] == "occupancy_rate"

    def test_unknown_department(self, store):
        with pytest.raises(StoreError):
            store.query_items("Spa")


class TestSqlAlchemyKpiItemStore:
    def test_report_header_per_department(self, sqlite_store, db_manager, make_point):
        sqlite_store.insert_items(
            [
                make_point("Guest Count", 145, JAN_15),
                make_point("Occupancy Rate", 82.5, JAN_17),
                make_point("Covers", 210, JAN_16, department=Department.FOOD_BEVERAGE),
            ]
        )

        with db_manager.get_session() as session:
            reports = {r.department: r for r in session.execute(select(Report)).scalars()}
            front_office = reports["Front Office"]
            assert front_office.item_count == 2
            assert (front_office.start_date, front_office.end_date) == (JAN_15, JAN_17)
            assert reports["Food & Beverage"].item_count == 1

    def test_unique_constraint_rejects_racing_insert(self, sqlite_store, db_manager, make_point, monkeypatch):
        """A write that loses the dedup race fails as a whole."""
        sqlite_store.insert_items([make_point("Guest Count", 145)])
        monkeypatch.setattr(sqlite_store, "_existing_keys", lambda session, items: {})

        with pytest.raises(StoreError):
            sqlite_store.insert_items([make_point("Occupancy Rate", 82.5), make_point("Guest Count", 145)])

        with db_manager.get_session() as session:
            assert session.execute(select(func.count()).select_from(ReportItem)).scalar() == 1

    def test_missing_tables_raise_store_error(self, tmp_path, make_point):
        db = DatabaseManager(DatabaseSettings(url=f"sqlite:///{tmp_path / 'empty.db'}"))
        store = SqlAlchemyKpiItemStore(db)

        with pytest.raises(StoreError):
            store.insert_items([make_point("Guest Count", 145)])
        with pytest.raises(StoreError):
            store.query_items(Department.FRONT_OFFICE)
        db.dispose()


class TestInMemoryKpiItemStore:
    def test_instances_do_not_share_state(self, catalog, make_point):
        first = InMemoryKpiItemStore(catalog)
        first.insert_items([make_point("Guest Count", 145)])
        assert InMemoryKpiItemStore(catalog).query_items(Department.FRONT_OFFICE) == []

    def test_created_at_stamped(self, memory_store, make_point):
        memory_store.insert_items([make_point("Guest Count", 145)])
        assert memory_store.items[0].created_at is not None


class TestDatabaseManager:
    def test_connection_and_sqlite_directory(self, tmp_path):
        db = DatabaseManager(DatabaseSettings(url=f"sqlite:///{tmp_path / 'nested' / 'kpi.db'}"))
        assert (tmp_path / "nested").is_dir()
        assert db.test_connection()
        db.dispose()

    def test_session_rolls_back_on_error(self, db_manager):
        with pytest.raises(RuntimeError):
            with db_manager.get_session() as session:
                session.add(Report(department="HR", source_file="x", source_type="csv"))
                session.flush()
                raise RuntimeError("abort")

        with db_manager.get_session() as session:
            assert session.execute(select(func.count()).select_from(Report)).scalar() == 0
