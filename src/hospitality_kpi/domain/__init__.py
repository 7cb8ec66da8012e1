"""Domain Layer - models, catalog and KPI services."""
