"""
Database Utilities Module

Handles KPI item persistence using SQLAlchemy (SQLite or PostgreSQL).

Tables:
- reports: one header row per department and ingestion batch
- report_items: individual KPI values, unique per
  (department, date, kpi_name, source_file, source_ref)
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from hospitality_kpi.config import DatabaseSettings

logger = logging.getLogger(__name__)

# SQLAlchemy Base
Base = declarative_base()


class Report(Base):
    """Ingestion batch header"""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    department = Column(String(64), nullable=False)
    source_file = Column(String(512), nullable=False, default="")
    source_type = Column(String(32), nullable=False, default="pdf")
    start_date = Column(Date)
    end_date = Column(Date)
    item_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship("ReportItem", back_populates="report", cascade="all, delete-orphan")


class ReportItem(Base):
    """One persisted KPI value"""

    __tablename__ = "report_items"
    __table_args__ = (
        UniqueConstraint(
            "department", "date", "kpi_name", "source_file", "source_ref", name="uq_report_items_idempotency"
        ),
        Index("ix_report_items_department_date", "department", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False)
    department = Column(String(64), nullable=False)
    kpi_name = Column(String(255), nullable=False)
    kpi_category = Column(String(32), nullable=False, default="operational")
    value = Column(Float)
    text_value = Column(Text)
    unit = Column(String(64), nullable=False, default="count")
    date = Column(Date, nullable=False)
    period = Column(String(16), nullable=False, default="daily")
    source = Column(String(32), nullable=False)
    source_file = Column(String(512), nullable=False, default="")
    source_ref = Column(String(128), nullable=False, default="")
    confidence = Column(Float)
    item_metadata = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    report = relationship("Report", back_populates="items")


class DatabaseManager:
    """Database manager class"""

    def __init__(self, settings: DatabaseSettings = None):
        self.settings = settings or DatabaseSettings()
        self.engine = None
        self.SessionLocal = None
        self._initialize_engine()

    def _initialize_engine(self):
        """Initialize database engine and session factory"""
        try:
            url = make_url(self.settings.url)
            kwargs = {"echo": self.settings.echo, "pool_pre_ping": True}
            if url.get_backend_name() == "sqlite":
                self._ensure_sqlite_dir(url.database)
            else:
                kwargs["pool_size"] = self.settings.pool_size
                kwargs["max_overflow"] = self.settings.max_overflow

            self.engine = create_engine(url, **kwargs)
            self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        except Exception as e:
            logger.error(f"Failed to initialize database engine: {e}")
            raise

    @staticmethod
    def _ensure_sqlite_dir(database):
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_session(self):
        """Get database session context manager"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create all database tables"""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created successfully")
        except SQLAlchemyError as e:
            logger.error(f"Failed to create tables: {e}")
            raise

    def test_connection(self) -> bool:
        """Test database connection"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    def dispose(self):
        if self.engine is not None:
            self.engine.dispose()
