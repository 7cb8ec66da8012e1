"""
Domain models for extracted data points, stored items and calculated KPIs
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Department(Enum):
    """Operational areas a hotel reports on"""

    FRONT_OFFICE = "Front Office"
    FOOD_BEVERAGE = "Food & Beverage"
    HOUSEKEEPING = "Housekeeping"
    MAINTENANCE = "Maintenance/Engineering"
    SALES_MARKETING = "Sales & Marketing"
    FINANCE = "Finance"
    HR = "HR"

    @classmethod
    def parse(cls, value: "str | Department") -> "Department":
        """Look up a department by display name or member name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text == member.value or text.upper() == member.name:
                return member
        lowered = text.lower()
        for member in cls:
            if lowered == member.value.lower():
                return member
        raise ValueError(f"Unknown department: {value!r}")

    @classmethod
    def names(cls) -> List[str]:
        return [member.value for member in cls]


class Period(Enum):
    """Time bucket granularity"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class CalculationType(Enum):
    """How a KPI is derived from raw points"""

    SIMPLE = "simple"  # mean
    AGGREGATED = "aggregated"  # sum
    DERIVED = "derived"
    RATIO = "ratio"


class KpiCategory(Enum):
    """Reporting category of a catalog KPI"""

    OCCUPANCY = "occupancy"
    REVENUE = "revenue"
    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    HR = "hr"
    SALES = "sales"
    GUEST = "guest"


class DataSource(str, Enum):
    """Provenance tags"""

    PDF = "pdf"
    PDF_TABLE = "pdf_table"
    CSV = "csv"
    XLSX = "xlsx"
    TEXT = "text"
    CALCULATED = "calculated"


TABLE_METRIC = "table_metric"


@dataclass(frozen=True)
class RawDataPoint:
    """One extracted observation.

    ``data_type`` holds the raw label until the name resolver runs; after
    that it is either a catalog name or the untouched raw label.

    ``source_ref`` locates the observation inside its file (rule match,
    table cell or row), so two different readings of one file and day never
    share an idempotency key.
    """

    department: Department
    data_type: str
    value: Optional[float]
    date: date
    source: str
    source_file: str = ""
    text_value: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    source_ref: str = ""

    @property
    def unit(self) -> Optional[str]:
        return self.metadata.get("unit")

    def with_data_type(self, data_type: str) -> "RawDataPoint":
        """Copy with a resolved name, keeping the raw label in metadata."""
        if data_type == self.data_type:
            return self
        metadata = dict(self.metadata)
        metadata.setdefault("original_data_type", self.data_type)
        return RawDataPoint(
            department=self.department,
            data_type=data_type,
            value=self.value,
            date=self.date,
            source=self.source,
            source_file=self.source_file,
            text_value=self.text_value,
            metadata=metadata,
            source_ref=self.source_ref,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "department": self.department.value,
            "data_type": self.data_type,
            "value": self.value,
            "text_value": self.text_value,
            "date": self.date.isoformat(),
            "source": self.source,
            "source_file": self.source_file,
            "source_ref": self.source_ref,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class StoredItem:
    """A persisted KPI item as returned by the store"""

    kpi_name: str
    date: date
    value: Optional[float]
    unit: str
    department: Optional[Department] = None
    category: str = KpiCategory.OPERATIONAL.value
    source: str = ""
    source_file: str = ""
    text_value: Optional[str] = None
    period: str = Period.DAILY.value
    confidence: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    source_ref: str = ""

    @property
    def idempotency_key(self) -> tuple:
        dept = self.department.value if self.department else ""
        return (dept, self.date, self.kpi_name, self.source_file or "", self.source_ref or "")


@dataclass(frozen=True)
class TimeBucket:
    """Half-open date interval [start, end)"""

    start: date
    end: date
    label: str

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end


@dataclass(frozen=True)
class KpiCalculationResult:
    """One KPI value for one time bucket"""

    kpi_name: str
    value: float
    unit: str
    date: date
    period: str
    confidence: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kpi_name": self.kpi_name,
            "value": self.value,
            "unit": self.unit,
            "date": self.date.isoformat(),
            "period": self.period,
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
        }


@dataclass
class PartitionResult:
    """Output of the deduplication gate"""

    new_data: List[RawDataPoint] = field(default_factory=list)
    duplicates: List[RawDataPoint] = field(default_factory=list)
    existing: List[StoredItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.new_data) + len(self.duplicates)
