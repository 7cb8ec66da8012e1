"""
Pydantic settings models for the KPI pipeline configuration.

This module provides type-safe configuration with validation using Pydantic.
Configuration is loaded from config.yaml with environment variable substitution.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hospitality_kpi.domain.models import Department

CONFIG_ENV_VAR = "HOSPITALITY_KPI_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

# =============================================================================
# Application Settings
# =============================================================================


class ApplicationSettings(BaseSettings):
    """Application metadata and environment configuration."""

    model_config = SettingsConfigDict(env_prefix="APP_")

    name: str = Field(default="hospitality-kpi")
    version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is development, test or production."""
        if v not in ["development", "test", "production"]:
            raise ValueError("environment must be 'development', 'test' or 'production'")
        return v


# =============================================================================
# Database Settings
# =============================================================================


class DatabaseSettings(BaseSettings):
    """KPI item store connection configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = Field(default="sqlite:///data/kpi.db")
    echo: bool = Field(default=False)
    pool_size: int = Field(default=10)
    max_overflow: int = Field(default=20)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @field_validator("pool_size", "max_overflow")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v


# =============================================================================
# Extraction Settings
# =============================================================================


class ExtractionSettings(BaseSettings):
    """Date bounds, rule tables and the fallback department."""

    model_config = SettingsConfigDict(env_prefix="EXTRACTION_")

    min_year: int = Field(default=2000)
    max_year: int = Field(default=2030)
    default_department: str = Field(default=Department.FRONT_OFFICE.value)
    rules_path: Optional[str] = Field(default=None)
    mappings_path: Optional[str] = Field(default=None)
    catalog_path: Optional[str] = Field(default=None)
    enable_table_extraction: bool = Field(default=True)

    @field_validator("default_department")
    @classmethod
    def validate_department(cls, v: str) -> str:
        """Normalize to the department display name."""
        return Department.parse(v).value

    @field_validator("max_year")
    @classmethod
    def validate_year_range(cls, v: int, info) -> int:
        min_year = info.data.get("min_year")
        if min_year is not None and v <= min_year + 1:
            raise ValueError("max_year must leave at least one valid year above min_year")
        return v


# =============================================================================
# Deduplication Settings
# =============================================================================


class DedupSettings(BaseSettings):
    """Deduplication gate configuration."""

    model_config = SettingsConfigDict(env_prefix="DEDUP_")

    tolerance: float = Field(default=0.01)

    @field_validator("tolerance")
    @classmethod
    def validate_tolerance(cls, v: float) -> float:
        if v < 0:
            raise ValueError("tolerance must not be negative")
        return v


# =============================================================================
# Engine Settings
# =============================================================================


class EngineSettings(BaseSettings):
    """KPI calculation engine configuration."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_")

    precision: int = Field(default=2)
    confidence_sample_size: int = Field(default=10)

    @field_validator("precision")
    @classmethod
    def validate_precision(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError("precision must be between 0 and 6")
        return v

    @field_validator("confidence_sample_size")
    @classmethod
    def validate_sample_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("confidence_sample_size must be positive")
        return v


# =============================================================================
# Main Configuration
# =============================================================================


class KpiPipelineConfig(BaseSettings):
    """
    Master configuration - single source of truth.

    Example:
        >>> config = KpiPipelineConfig.from_yaml("config.yaml")
        >>> print(config.database.url)
        sqlite:///data/kpi.db
    """

    model_config = SettingsConfigDict(extra="allow")

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)

    @classmethod
    def from_yaml(cls, config_path: str | Path = DEFAULT_CONFIG_PATH) -> "KpiPipelineConfig":
        """
        Load configuration from YAML file with environment variable substitution.

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If config file doesn't exist
            ValueError: If required environment variable is missing
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            yaml_content = f.read()

        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default_value}
        def env_var_replacer(match):
            var_spec = match.group(1)
            if ":-" in var_spec:
                var_name, default = var_spec.split(":-", 1)
                return os.getenv(var_name, default)
            value = os.getenv(var_spec)
            if value is None:
                raise ValueError(f"Environment variable {var_spec} not set and no default provided")
            return value

        yaml_content = re.sub(r"\$\{([^}]+)\}", env_var_replacer, yaml_content)

        config_dict = yaml.safe_load(yaml_content) or {}

        return cls(**config_dict)


def get_settings(config_path: str | Path | None = None) -> KpiPipelineConfig:
    """
    Load settings from config_path, $HOSPITALITY_KPI_CONFIG or ./config.yaml.

    Falls back to defaults when the file does not exist.
    """
    path = config_path or os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    try:
        return KpiPipelineConfig.from_yaml(path)
    except FileNotFoundError:
        return KpiPipelineConfig()


__all__ = [
    "KpiPipelineConfig",
    "ApplicationSettings",
    "DatabaseSettings",
    "ExtractionSettings",
    "DedupSettings",
    "EngineSettings",
    "get_settings",
]
