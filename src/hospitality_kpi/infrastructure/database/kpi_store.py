"""
KPI Item Store - persistence port and implementations

The pipeline only talks to the ``KpiItemStore`` protocol:
- insert_items(items) -> int        one atomic batch, fails as a whole
- query_items(department, date_from, date_to) -> List[StoredItem]
- recent_items(department, limit) -> List[StoredItem]
- kpi_values(department) -> List[StoredItem]   calculated KPIs only

Both implementations enforce the idempotency key
(department, date, kpi_name, source_file, source_ref): rows whose key is
already stored, or repeated within the batch, are skipped. ``source_ref``
locates the observation inside its file, so only a re-read of the same
observation collides; one carrying a different value is logged as a
conflict and the stored value is kept.

Example Usage:
    store = SqlAlchemyKpiItemStore(DatabaseManager(settings.database))
    store.insert_items(points)
    store.query_items(Department.FRONT_OFFICE, date(2024, 1, 1), date(2024, 1, 31))
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Sequence, Set, Tuple, Union, runtime_checkable

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError

from hospitality_kpi.domain.catalog import KpiCatalog, get_kpi_catalog
from hospitality_kpi.domain.exceptions import StoreError
from hospitality_kpi.domain.models import DataSource, Department, Period, RawDataPoint, StoredItem
from hospitality_kpi.infrastructure.database.db import DatabaseManager, Report, ReportItem

logger = logging.getLogger(__name__)

IdempotencyKey = Tuple[str, date, str, str, str]


# ============================================================================
# Port
# ============================================================================


@runtime_checkable
class KpiItemStore(Protocol):
    """Persistence port for KPI items."""

    def insert_items(self, items: Sequence[RawDataPoint]) -> int:
        """Persist items as one atomic batch; returns the number written."""
        ...

    def query_items(
        self,
        department: Department,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[StoredItem]:
        """Items for a department with from <= date <= to (both optional)."""
        ...

    def recent_items(self, department: Department, limit: int = 10) -> List[StoredItem]:
        """Most recent items by date for a department."""
        ...

    def kpi_values(self, department: Optional[Department] = None) -> List[StoredItem]:
        """Calculated KPI items, optionally for one department."""
        ...


def _department(value: Union[Department, str]) -> Department:
    try:
        return Department.parse(value)
    except ValueError as e:
        raise StoreError(str(e)) from e


def _key(point: RawDataPoint) -> IdempotencyKey:
    return (point.department.value, point.date, point.data_type, point.source_file or "", point.source_ref or "")


def _to_stored_item(point: RawDataPoint, catalog: KpiCatalog, created_at: Optional[datetime] = None) -> StoredItem:
    """Map a resolved point to the stored representation."""
    metadata = dict(point.metadata)
    return StoredItem(
        kpi_name=point.data_type,
        date=point.date,
        value=point.value,
        unit=metadata.get("kpi_unit") or catalog.unit_for(point.data_type, point.unit),
        department=point.department,
        category=catalog.category_for(point.data_type),
        source=point.source,
        source_file=point.source_file or "",
        text_value=point.text_value,
        period=metadata.get("period", Period.DAILY.value),
        confidence=metadata.get("confidence"),
        metadata=metadata,
        created_at=created_at,
        source_ref=point.source_ref or "",
    )


def _log_conflict(key: IdempotencyKey, stored: Optional[float], incoming: Optional[float]) -> None:
    if stored != incoming:
        logger.warning(f"Keeping stored value {stored} for {key}, ignoring re-read value {incoming}")


# ============================================================================
# SQLAlchemy implementation
# ============================================================================


class SqlAlchemyKpiItemStore:
    """KPI item store over the reports/report_items tables."""

    def __init__(self, db_manager: DatabaseManager, catalog: Optional[KpiCatalog] = None):
        self.db = db_manager
        self.catalog = catalog or get_kpi_catalog()

    def insert_items(self, items: Sequence[RawDataPoint]) -> int:
        if not items:
            return 0

        try:
            with self.db.get_session() as session:
                existing = self._existing_keys(session, items)
                reports: Dict[Department, Report] = {}
                inserted = 0

                for point in items:
                    key = _key(point)
                    if key in existing:
                        logger.debug(f"Skipping existing item {key}")
                        _log_conflict(key, existing[key], point.value)
                        continue
                    existing[key] = point.value

                    report = reports.get(point.department)
                    if report is None:
                        report = Report(
                            department=point.department.value,
                            source_file=point.source_file or "",
                            source_type=point.source,
                        )
                        session.add(report)
                        reports[point.department] = report

                    item = _to_stored_item(point, self.catalog)
                    report.items.append(
                        ReportItem(
                            department=point.department.value,
                            kpi_name=item.kpi_name,
                            kpi_category=item.category,
                            value=item.value,
                            text_value=item.text_value,
                            unit=item.unit,
                            date=item.date,
                            period=item.period,
                            source=item.source,
                            source_file=item.source_file,
                            source_ref=item.source_ref,
                            confidence=item.confidence,
                            item_metadata=item.metadata,
                        )
                    )
                    inserted += 1

                for report in reports.values():
                    dates = [i.date for i in report.items]
                    report.item_count = len(report.items)
                    report.start_date = min(dates)
                    report.end_date = max(dates)

            logger.info(f"✓ Stored {inserted} KPI items ({len(items) - inserted} already present)")
            return inserted

        except SQLAlchemyError as e:
            logger.error(f"✗ Failed to store {len(items)} KPI items: {e}")
            raise StoreError(f"Failed to store KPI items: {e}") from e

    def _existing_keys(self, session, items: Sequence[RawDataPoint]) -> Dict[IdempotencyKey, Optional[float]]:
        """Stored values by idempotency key for the batch's departments and dates."""
        departments = {p.department.value for p in items}
        dates = [p.date for p in items]
        rows = session.execute(
            select(
                ReportItem.department,
                ReportItem.date,
                ReportItem.kpi_name,
                ReportItem.source_file,
                ReportItem.source_ref,
                ReportItem.value,
            ).where(
                ReportItem.department.in_(departments),
                ReportItem.date >= min(dates),
                ReportItem.date <= max(dates),
            )
        ).all()
        return {(row[0], row[1], row[2], row[3] or "", row[4] or ""): row[5] for row in rows}

    def query_items(
        self,
        department: Department,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[StoredItem]:
        dept = _department(department)
        statement = select(ReportItem).where(ReportItem.department == dept.value)
        if date_from is not None:
            statement = statement.where(ReportItem.date >= date_from)
        if date_to is not None:
            statement = statement.where(ReportItem.date <= date_to)
        statement = statement.order_by(ReportItem.date, ReportItem.id)
        return self._fetch(statement)

    def recent_items(self, department: Department, limit: int = 10) -> List[StoredItem]:
        dept = _department(department)
        statement = (
            select(ReportItem)
            .where(ReportItem.department == dept.value)
            .order_by(desc(ReportItem.date), desc(ReportItem.id))
            .limit(limit)
        )
        return self._fetch(statement)

    def kpi_values(self, department: Optional[Department] = None) -> List[StoredItem]:
        statement = select(ReportItem).where(ReportItem.source == DataSource.CALCULATED.value)
        if department is not None:
            statement = statement.where(ReportItem.department == _department(department).value)
        statement = statement.order_by(ReportItem.date, ReportItem.id)
        return self._fetch(statement)

    def _fetch(self, statement) -> List[StoredItem]:
        try:
            with self.db.get_session() as session:
                return [self._row_to_item(row) for row in session.execute(statement).scalars()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read KPI items: {e}") from e

    @staticmethod
    def _row_to_item(row: ReportItem) -> StoredItem:
        return StoredItem(
            kpi_name=row.kpi_name,
            date=row.date,
            value=row.value,
            unit=row.unit,
            department=Department.parse(row.department),
            category=row.kpi_category,
            source=row.source,
            source_file=row.source_file or "",
            text_value=row.text_value,
            period=row.period,
            confidence=row.confidence,
            metadata=dict(row.item_metadata or {}),
            created_at=row.created_at,
            source_ref=row.source_ref or "",
        )


# ============================================================================
# In-memory implementation
# ============================================================================


class InMemoryKpiItemStore:
    """Instance-local store for tests and dry runs."""

    def __init__(self, catalog: Optional[KpiCatalog] = None):
        self.catalog = catalog or get_kpi_catalog()
        self.items: List[StoredItem] = []
        self._values: Dict[IdempotencyKey, Optional[float]] = {}

    def insert_items(self, items: Sequence[RawDataPoint]) -> int:
        staged: List[StoredItem] = []
        staged_keys: Set[IdempotencyKey] = set()
        now = datetime.utcnow()
        for point in items:
            key = _key(point)
            if key in self._values:
                _log_conflict(key, self._values[key], point.value)
                continue
            if key in staged_keys:
                continue
            staged_keys.add(key)
            staged.append(_to_stored_item(point, self.catalog, created_at=now))

        self.items.extend(staged)
        self._values.update((item.idempotency_key, item.value) for item in staged)
        return len(staged)

    def query_items(
        self,
        department: Department,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[StoredItem]:
        dept = _department(department)
        return sorted(
            (
                item
                for item in self.items
                if item.department == dept
                and (date_from is None or item.date >= date_from)
                and (date_to is None or item.date <= date_to)
            ),
            key=lambda item: item.date,
        )

    def recent_items(self, department: Department, limit: int = 10) -> List[StoredItem]:
        dept = _department(department)
        items = [item for item in self.items if item.department == dept]
        return sorted(items, key=lambda item: item.date, reverse=True)[:limit]

    def kpi_values(self, department: Optional[Department] = None) -> List[StoredItem]:
        dept = _department(department) if department is not None else None
        return [
            item
            for item in self.items
            if item.source == DataSource.CALCULATED.value and (dept is None or item.department == dept)
        ]
