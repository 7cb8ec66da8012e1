"""
hospitality_kpi - Hotel Operations KPI Pipeline

Turns unstructured department reports into normalized, deduplicated,
time-stamped KPI records:
- Report date and department section detection
- Declarative regex metric extraction
- Canonical KPI name resolution (exact, fuzzy, passthrough)
- Derived KPI calculation over calendar buckets
- Deduplication against the KPI item store
"""

__version__ = "0.1.0"
