"""
Pipeline exception hierarchy.

Only top-level input problems and store writes abort a request. Per-metric
misses are not exceptions at all, and per-KPI formula failures are logged
and skipped by the calculation engine.
"""


class KpiPipelineError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(KpiPipelineError):
    """Invalid request arguments (date range, period, department)."""


class DataStructureError(KpiPipelineError):
    """A data point is missing a required field."""

    def __init__(self, message: str, index: int = -1):
        super().__init__(message)
        self.index = index


class StoreError(KpiPipelineError):
    """The KPI item store failed to read or write."""


class DocumentError(KpiPipelineError):
    """A source document could not be read."""
