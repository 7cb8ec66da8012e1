"""Infrastructure Layer - document adapters, extraction and persistence."""
