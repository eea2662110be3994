"""Lineup pool utilities (export)."""

from .export import ContestExportError, export_lineups_to_csv, export_ranked_summary

__all__ = [
    "ContestExportError",
    "export_lineups_to_csv",
    "export_ranked_summary",
]
