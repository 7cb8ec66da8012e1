"""
Declarative extraction rule tables.

Loads resources/extraction_rules.yaml into compiled per-department header
and metric rules plus the secondary table-row patterns. New metrics or
departments are configuration changes only.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern

import yaml

from hospitality_kpi.domain.models import Department

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent.parent.parent / "resources" / "extraction_rules.yaml"


@dataclass(frozen=True)
class ExtractionRule:
    """One labeled-metric regex with a single value capture group"""

    pattern: Pattern
    data_type: str
    unit: str


@dataclass(frozen=True)
class TablePattern:
    pattern: Pattern
    unit: str


@dataclass
class DepartmentRules:
    department: Department
    headers: List[str] = field(default_factory=list)
    rules: List[ExtractionRule] = field(default_factory=list)


@dataclass
class RuleTable:
    """All department rules in file order plus the table-row patterns"""

    departments: Dict[Department, DepartmentRules] = field(default_factory=dict)
    table_patterns: List[TablePattern] = field(default_factory=list)

    def headers(self) -> Dict[Department, List[str]]:
        return {dept: list(block.headers) for dept, block in self.departments.items()}

    def rules_for(self, department: Department) -> List[ExtractionRule]:
        block = self.departments.get(department)
        return list(block.rules) if block else []


def _compile(pattern: str, where: str) -> Pattern:
    try:
        compiled = re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ValueError(f"Invalid regex in {where}: {pattern!r} ({e})") from e
    if compiled.groups < 1:
        raise ValueError(f"Rule pattern in {where} needs a capture group: {pattern!r}")
    return compiled


def load_rule_table(rules_path: Optional[str] = None) -> RuleTable:
    """
    Load and compile the extraction rule table.

    Raises:
        FileNotFoundError: If the rules file does not exist
        ValueError: If a department name or pattern is invalid
    """
    path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
    if not path.exists():
        raise FileNotFoundError(f"Extraction rules not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    table = RuleTable()
    for block in raw.get("departments", []):
        department = Department.parse(block["name"])
        rules = [
            ExtractionRule(
                pattern=_compile(rule["pattern"], department.value),
                data_type=rule["data_type"],
                unit=str(rule.get("unit", "")),
            )
            for rule in block.get("rules", [])
        ]
        headers = [str(h).lower() for h in block.get("headers", [])]
        table.departments[department] = DepartmentRules(department=department, headers=headers, rules=rules)

    table.table_patterns = [
        TablePattern(pattern=_compile(entry["pattern"], "table_patterns"), unit=str(entry.get("unit", "")))
        for entry in raw.get("table_patterns", [])
    ]

    logger.debug(
        f"Loaded {sum(len(b.rules) for b in table.departments.values())} metric rules "
        f"for {len(table.departments)} departments from {path}"
    )
    return table
