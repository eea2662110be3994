"""Helpers to load DraftKings projection CSVs and emit canonical records."""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from dkgen.models import InjuryStatus, PlayerRecord, Position


logger = logging.getLogger(__name__)

MALFORMED_MARKERS = frozenset({"#N/A", "N/A", "", "$"})

DEFAULT_PROJECTION_MAPPING = {
    "name": "Player",
    "team": "Team",
    "opponent": "Opponent",
    "position": "DK Position",
    "salary": "DK Salary",
    "projection": "DK Projection",
    "value": "DK Value",
    "ownership": "DK Ownership",
    "slate_id": "DKSlateID",
    "injury_status": "Injury Status",
    "bye": "Bye",
}

REQUIRED_FIELDS = ("name", "team", "position", "salary", "projection")

_POSITION_ALIASES = {
    "D/ST": "DST",
    "DEF": "DST",
    "D": "DST",
}

_INJURY_ALIASES = {
    "O": InjuryStatus.OUT,
    "OUT": InjuryStatus.OUT,
    "IR": InjuryStatus.OUT,
    "D": InjuryStatus.DOUBTFUL,
    "DOUBTFUL": InjuryStatus.DOUBTFUL,
    "Q": InjuryStatus.QUESTIONABLE,
    "QUESTIONABLE": InjuryStatus.QUESTIONABLE,
    "ACTIVE": InjuryStatus.ACTIVE,
    "A": InjuryStatus.ACTIVE,
}


class ProjectionParseError(ValueError):
    """Raised when a projection file cannot be turned into player records."""

    def __init__(self, message: str, *, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class ProjectionRow(BaseModel):
    line_number: int = 0
    raw_name: str
    raw_team: str
    raw_opponent: Optional[str] = None
    raw_position: Optional[str] = None
    raw_salary: str
    raw_projection: str
    raw_value: Optional[str] = None
    raw_ownership: Optional[str] = None
    raw_slate_id: Optional[str] = None
    raw_injury_status: Optional[str] = None
    raw_bye: Optional[str] = None

    @classmethod
    def from_mapping(
        cls,
        row: Mapping[str, str],
        mapping: Mapping[str, str],
        *,
        line_number: int = 0,
    ) -> "ProjectionRow":
        def extract(key: str, *, default: Optional[str] = None) -> Optional[str]:
            column = mapping.get(key)
            if column is None:
                return default
            value = row.get(column)
            return value.strip() if value is not None else default

        data = {
            "line_number": line_number,
            "raw_name": extract("name", default=""),
            "raw_team": extract("team", default=""),
            "raw_opponent": extract("opponent"),
            "raw_position": extract("position"),
            "raw_salary": extract("salary", default=""),
            "raw_projection": extract("projection", default=""),
            "raw_value": extract("value"),
            "raw_ownership": extract("ownership"),
            "raw_slate_id": extract("slate_id"),
            "raw_injury_status": extract("injury_status"),
            "raw_bye": extract("bye"),
        }
        return cls(**data)

    def required_fields(self) -> Tuple[Optional[str], ...]:
        return (
            self.raw_name,
            self.raw_team,
            self.raw_position,
            self.raw_salary,
            self.raw_projection,
        )

    def is_malformed(self) -> bool:
        return any(value is None or value in MALFORMED_MARKERS for value in self.required_fields())


@dataclass
class ParseReport:
    total_rows: int = 0
    parsed_rows: int = 0
    skipped_rows: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        return (
            f"Parsed {self.parsed_rows}/{self.total_rows} rows "
            f"({self.skipped_rows} skipped, {len(self.errors)} errors)"
        )


def _check_columns(fieldnames: Optional[Sequence[str]], mapping: Mapping[str, str]) -> None:
    if not fieldnames:
        raise ProjectionParseError("projection file is empty or has no header row")
    present = {name.strip() for name in fieldnames if name}
    missing = [mapping[key] for key in REQUIRED_FIELDS if mapping.get(key) not in present]
    if missing:
        raise ProjectionParseError(f"missing required columns: {', '.join(missing)}")


def read_projection_rows(
    handle: Iterable[str],
    *,
    mapping: Mapping[str, str] | None = None,
) -> List[ProjectionRow]:
    mapping = mapping or DEFAULT_PROJECTION_MAPPING
    reader = csv.DictReader(handle)
    _check_columns(reader.fieldnames, mapping)
    # Header occupies line 1.
    return [
        ProjectionRow.from_mapping(row, mapping, line_number=idx)
        for idx, row in enumerate(reader, start=2)
    ]


def load_projection_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[ProjectionRow]:
    with path.open(newline="", encoding="utf-8-sig") as f:
        return read_projection_rows(f, mapping=mapping)


def _parse_salary(raw_salary: str) -> int:
    digits = re.sub(r"[^0-9]", "", raw_salary.split(".", 1)[0])
    if not digits:
        raise ValueError(f"salary '{raw_salary}' has no digits")
    return int(digits)


def _parse_float(raw: Optional[str], label: str, *, default: float = 0.0) -> float:
    if raw is None:
        return default
    text = raw.strip().replace("$", "").replace(",", "")
    if not text:
        return default
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"{label} '{raw}' is not numeric") from None


def _parse_ownership(raw: Optional[str]) -> float:
    """Turn "46%", "46" or "0.46" into a 0..1 fraction."""

    if raw is None or not raw.strip():
        return 0.0
    text = raw.strip()
    is_percent = text.endswith("%")
    value = _parse_float(text.rstrip("%"), "ownership")
    if is_percent or value > 1.0:
        value /= 100.0
    return value


def _parse_position(raw: Optional[str]) -> Position:
    token = (raw or "").strip().upper()
    token = _POSITION_ALIASES.get(token, token)
    try:
        return Position(token)
    except ValueError:
        raise ValueError(f"position '{raw}' is not one of QB/RB/WR/TE/DST") from None


def _parse_injury(raw: Optional[str]) -> Optional[InjuryStatus]:
    if raw is None or not raw.strip():
        return None
    status = _INJURY_ALIASES.get(raw.strip().upper())
    if status is None:
        logger.warning("Unknown injury status %r; treating as unreported", raw)
    return status


def _parse_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "bye"}


def _clean_opponent(raw: Optional[str]) -> str:
    if not raw:
        return ""
    text = raw.strip().upper()
    text = re.sub(r"^(@|VS\.?\s*)", "", text)
    return text.strip()


def row_to_record(row: ProjectionRow) -> PlayerRecord:
    if row.is_malformed():
        raise ValueError("row contains malformed data (#N/A or missing values)")

    salary = _parse_salary(row.raw_salary)
    if salary <= 0:
        raise ValueError(f"salary must be positive, got {salary}")
    projection = _parse_float(row.raw_projection, "projection")
    if projection < 0:
        raise ValueError(f"projection must be non-negative, got {projection}")
    ownership = _parse_ownership(row.raw_ownership)
    if not 0.0 <= ownership <= 1.0:
        raise ValueError(f"ownership must be between 0 and 1, got {ownership}")
    value = _parse_float(row.raw_value, "value", default=projection / (salary / 1000.0))

    try:
        return PlayerRecord(
            name=row.raw_name,
            team=row.raw_team.upper(),
            opponent=_clean_opponent(row.raw_opponent),
            position=_parse_position(row.raw_position),
            salary=salary,
            projection=projection,
            value=value,
            ownership=ownership,
            slate_id=row.raw_slate_id or "",
            injury_status=_parse_injury(row.raw_injury_status),
            is_on_bye=_parse_flag(row.raw_bye),
        )
    except ValidationError as exc:
        raise ValueError(str(exc)) from None


def rows_to_records(
    rows: Sequence[ProjectionRow],
    *,
    skip_malformed: bool = True,
) -> Tuple[List[PlayerRecord], ParseReport]:
    records: List[PlayerRecord] = []
    report = ParseReport(total_rows=len(rows))
    for row in rows:
        try:
            record = row_to_record(row)
        except ValueError as exc:
            if not skip_malformed:
                raise ProjectionParseError(str(exc), line_number=row.line_number) from exc
            message = f"line {row.line_number}: {exc}"
            logger.warning("Skipping projection row %s", message)
            report.errors.append(message)
            report.skipped_rows += 1
            continue
        records.append(record)
        report.parsed_rows += 1

    logger.info("%s", report.summary())
    return records, report


def parse_projection_text(
    text: str,
    *,
    mapping: Mapping[str, str] | None = None,
    skip_malformed: bool = True,
) -> Tuple[List[PlayerRecord], ParseReport]:
    rows = read_projection_rows(io.StringIO(text), mapping=mapping)
    return rows_to_records(rows, skip_malformed=skip_malformed)


def load_records_from_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
    skip_malformed: bool = True,
) -> Tuple[List[PlayerRecord], ParseReport]:
    try:
        rows = load_projection_csv(path, mapping=mapping)
    except FileNotFoundError:
        raise ProjectionParseError(f"projection file not found: {path}") from None
    return rows_to_records(rows, skip_malformed=skip_malformed)
