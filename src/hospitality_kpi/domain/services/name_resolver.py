"""
KPI Name Resolver - Raw Metric Label to Canonical Catalog Name

Resolution order (first hit wins):
1. Exact match - per-department table, case-sensitive. Carries the
   human labels seen in CSV exports ("Average Daily Rate") as well as the
   machine labels emitted by the metric rules ("average_daily_rate").
2. Fuzzy match - per-department alias table, case-insensitive; returns the
   first (most standard) variant.
3. Passthrough - the raw label is returned unchanged so it stays traceable.

Resolution runs once at ingestion. Stored items always hold the resolved
name, so no read-time remapping exists.

Raw formula inputs (occupied_rooms, available_rooms, revenue, ...) are not
KPI names and appear in neither table.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from hospitality_kpi.domain.models import Department

logger = logging.getLogger(__name__)

DEFAULT_MAPPINGS_PATH = Path(__file__).parent.parent.parent / "resources" / "kpi_name_mappings.json"

UNKNOWN_METRIC = "unknown_metric"


class KpiNameResolver:
    """
    Maps raw metric labels to canonical KPI names.

    Example Usage:
        resolver = get_name_resolver()

        resolver.resolve('Average Daily Rate', Department.FRONT_OFFICE)
        # Returns: 'Average Daily Rate (ADR)'

        resolver.resolve('mystery_metric', 'Finance')
        # Returns: 'mystery_metric'
    """

    def __init__(self, mappings_path: Optional[str] = None):
        raw = self._load_mappings(mappings_path)
        self.exact: Dict[Department, Dict[str, str]] = {}
        self.fuzzy: Dict[Department, Dict[str, List[str]]] = {}
        self._fuzzy_folded: Dict[Department, Dict[str, str]] = {}

        for dept_name, table in raw.get("exact", {}).items():
            self.exact[Department.parse(dept_name)] = dict(table)

        for dept_name, table in raw.get("fuzzy", {}).items():
            department = Department.parse(dept_name)
            self.fuzzy[department] = {label: list(variants) for label, variants in table.items()}
            folded: Dict[str, str] = {}
            for label, variants in table.items():
                if variants:
                    folded.setdefault(label.lower(), variants[0])
            self._fuzzy_folded[department] = folded

        self.stats = {"exact": 0, "fuzzy": 0, "passthrough": 0}

    def _load_mappings(self, mappings_path: Optional[str]) -> Dict:
        path = Path(mappings_path) if mappings_path else DEFAULT_MAPPINGS_PATH
        if not path.exists():
            raise FileNotFoundError(f"KPI name mappings not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def resolve(self, raw_label: Optional[str], department: Union[Department, str, None]) -> str:
        """
        Resolve a raw label to its canonical KPI name.

        Never raises and never returns an empty string.
        """
        if raw_label is None or not str(raw_label).strip():
            self.stats["passthrough"] += 1
            return UNKNOWN_METRIC
        label = str(raw_label)

        dept = self._coerce_department(department)
        if dept is not None:
            exact_name = self.exact.get(dept, {}).get(label)
            if exact_name:
                self.stats["exact"] += 1
                logger.debug(f"✓ Exact match for '{label}' in {dept.value}: '{exact_name}'")
                return exact_name

            fuzzy_name = self._fuzzy_folded.get(dept, {}).get(label.lower())
            if fuzzy_name:
                self.stats["fuzzy"] += 1
                logger.debug(f"✓ Fuzzy match for '{label}' in {dept.value}: '{fuzzy_name}'")
                return fuzzy_name

        self.stats["passthrough"] += 1
        logger.debug(f"No mapping for '{label}' in {dept.value if dept else department}, keeping raw label")
        return label

    @staticmethod
    def _coerce_department(department: Union[Department, str, None]) -> Optional[Department]:
        if department is None:
            return None
        try:
            return Department.parse(department)
        except ValueError:
            return None

    def is_known_label(self, raw_label: str, department: Union[Department, str]) -> bool:
        """Whether either table maps this label for the department."""
        dept = self._coerce_department(department)
        if dept is None:
            return False
        return raw_label in self.exact.get(dept, {}) or raw_label.lower() in self._fuzzy_folded.get(dept, {})

    def get_stats(self) -> Dict:
        """Get resolution statistics"""
        total = sum(self.stats.values())
        resolved = self.stats["exact"] + self.stats["fuzzy"]
        resolution_rate = (resolved / total * 100) if total > 0 else 0

        return {
            "total_resolutions": total,
            "exact": self.stats["exact"],
            "fuzzy": self.stats["fuzzy"],
            "passthrough": self.stats["passthrough"],
            "resolution_rate": f"{resolution_rate:.1f}%",
        }


# Singleton instance
_name_resolver = None


def get_name_resolver(mappings_path: Optional[str] = None) -> KpiNameResolver:
    """
    Get singleton KpiNameResolver instance

    Args:
        mappings_path: Path to kpi_name_mappings.json (optional, first call only)
    """
    global _name_resolver

    if _name_resolver is None:
        _name_resolver = KpiNameResolver(mappings_path)

    return _name_resolver
