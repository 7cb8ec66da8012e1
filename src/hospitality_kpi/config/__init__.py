"""
Configuration Layer

Application configuration with environment variable support.
"""

from hospitality_kpi.config.settings import (
    ApplicationSettings,
    DatabaseSettings,
    DedupSettings,
    EngineSettings,
    ExtractionSettings,
    KpiPipelineConfig,
    get_settings,
)

__all__ = [
    "ApplicationSettings",
    "DatabaseSettings",
    "DedupSettings",
    "EngineSettings",
    "ExtractionSettings",
    "KpiPipelineConfig",
    "get_settings",
]
