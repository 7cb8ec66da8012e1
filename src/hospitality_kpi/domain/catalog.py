"""
KPI Catalog - Per-Department Canonical KPI Definitions

Holds the fixed set of KPI names items are stored under, plus the formula
definitions the calculation engine evaluates:
- Canonical name, unit and reporting category for every catalog KPI
- Calculation type and required raw inputs for each engine formula
- Category/unit lookup with defaults for names outside the catalog

The catalog ships as resources/kpi_catalog.json and is read-only at runtime.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from hospitality_kpi.domain.models import CalculationType, Department, KpiCategory

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).parent.parent / "resources"
DEFAULT_CATALOG_PATH = RESOURCES_DIR / "kpi_catalog.json"

DEFAULT_CATEGORY = KpiCategory.OPERATIONAL.value
DEFAULT_UNIT = "count"


@dataclass(frozen=True)
class CatalogEntry:
    """A canonical KPI as stored and reported"""

    name: str
    department: Department
    unit: str
    category: str
    calculation_type: CalculationType = CalculationType.SIMPLE
    required_inputs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class KpiDefinition:
    """A formula the calculation engine evaluates per time bucket"""

    name: str
    display_name: str
    department: Department
    unit: str
    category: str
    calculation_type: CalculationType
    required_inputs: List[str] = field(default_factory=list)


class KpiCatalog:
    """
    Read-only view over the KPI catalog.

    Example Usage:
        catalog = get_kpi_catalog()

        catalog.unit_for('Average Daily Rate (ADR)')
        # Returns: 'GHS/room'

        [d.name for d in catalog.definitions_for(Department.FRONT_OFFICE)]
        # Returns: ['occupancy_rate', 'average_daily_rate', 'revpar']
    """

    def __init__(self, catalog_path: Optional[str] = None):
        """
        Args:
            catalog_path: Path to a catalog JSON file. If None, loads the
                          packaged resources/kpi_catalog.json
        """
        raw = self._load_catalog(catalog_path)
        self.version = raw.get("version", "unknown")
        self._entries: Dict[Department, List[CatalogEntry]] = {}
        self._definitions: Dict[Department, List[KpiDefinition]] = {}
        self._by_name: Dict[str, CatalogEntry] = {}

        for dept_name, block in raw.get("departments", {}).items():
            department = Department.parse(dept_name)
            entries = [self._entry_from_dict(department, item) for item in block.get("kpis", [])]
            definitions = [self._definition_from_dict(department, item) for item in block.get("formulas", [])]
            self._entries[department] = entries
            self._definitions[department] = definitions
            for entry in entries:
                # First department to declare a shared name wins
                self._by_name.setdefault(entry.name, entry)

        logger.debug(
            f"Loaded KPI catalog v{self.version}: {len(self._by_name)} KPIs, "
            f"{sum(len(d) for d in self._definitions.values())} formulas"
        )

    def _load_catalog(self, catalog_path: Optional[str]) -> Dict:
        path = Path(catalog_path) if catalog_path else DEFAULT_CATALOG_PATH
        if not path.exists():
            raise FileNotFoundError(f"KPI catalog not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _entry_from_dict(department: Department, item: Dict) -> CatalogEntry:
        return CatalogEntry(
            name=item["name"],
            department=department,
            unit=item.get("unit", DEFAULT_UNIT),
            category=item.get("category", DEFAULT_CATEGORY),
            calculation_type=CalculationType(item.get("calculation_type", "simple")),
            required_inputs=list(item.get("required_inputs", [])),
        )

    @staticmethod
    def _definition_from_dict(department: Department, item: Dict) -> KpiDefinition:
        return KpiDefinition(
            name=item["name"],
            display_name=item.get("display_name", item["name"]),
            department=department,
            unit=item.get("unit", DEFAULT_UNIT),
            category=item.get("category", DEFAULT_CATEGORY),
            calculation_type=CalculationType(item.get("calculation_type", "simple")),
            required_inputs=list(item.get("required_inputs", [])),
        )

    def entries_for(self, department: Department) -> List[CatalogEntry]:
        return list(self._entries.get(department, []))

    def definitions_for(self, department: Department) -> List[KpiDefinition]:
        """Engine formula definitions registered for a department."""
        return list(self._definitions.get(department, []))

    def get(self, name: str) -> Optional[CatalogEntry]:
        return self._by_name.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def names(self, department: Optional[Department] = None) -> List[str]:
        if department is None:
            return list(self._by_name)
        return [entry.name for entry in self._entries.get(department, [])]

    def category_for(self, name: str) -> str:
        """Reporting category of a KPI name; 'operational' when unknown."""
        entry = self._by_name.get(name)
        if entry:
            return entry.category
        for definitions in self._definitions.values():
            for definition in definitions:
                if name in (definition.name, definition.display_name):
                    return definition.category
        return DEFAULT_CATEGORY

    def unit_for(self, name: str, fallback: Optional[str] = None) -> str:
        """Unit of a KPI name; the fallback (or 'count') when unknown."""
        entry = self._by_name.get(name)
        if entry:
            return entry.unit
        return fallback or DEFAULT_UNIT


# Singleton instance
_kpi_catalog = None


def get_kpi_catalog(catalog_path: Optional[str] = None) -> KpiCatalog:
    """
    Get singleton KpiCatalog instance

    Args:
        catalog_path: Path to kpi_catalog.json (optional, first call only)
    """
    global _kpi_catalog

    if _kpi_catalog is None:
        _kpi_catalog = KpiCatalog(catalog_path)

    return _kpi_catalog
