"""
CLI commands for hospitality-kpi
"""

from .admin import init_db, resolve
from .ingest import ingest
from .reports import calculate, kpis

__all__ = ["calculate", "ingest", "init_db", "kpis", "resolve"]
