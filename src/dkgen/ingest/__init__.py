"""Input adapters that normalize raw projection data."""

from .projections import (
    DEFAULT_PROJECTION_MAPPING,
    ParseReport,
    ProjectionParseError,
    ProjectionRow,
    load_projection_csv,
    load_records_from_csv,
    parse_projection_text,
    rows_to_records,
)

__all__ = [
    "DEFAULT_PROJECTION_MAPPING",
    "ParseReport",
    "ProjectionParseError",
    "ProjectionRow",
    "load_projection_csv",
    "load_records_from_csv",
    "parse_projection_text",
    "rows_to_records",
]
