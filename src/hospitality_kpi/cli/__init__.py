"""
Command-line interface for hospitality-kpi
"""

from hospitality_kpi.cli.main import cli, main

__all__ = ["cli", "main"]
