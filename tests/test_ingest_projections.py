from pathlib import Path

import pytest

from dkgen.ingest import (
    DEFAULT_PROJECTION_MAPPING,
    ProjectionParseError,
    ProjectionRow,
    load_records_from_csv,
    parse_projection_text,
    rows_to_records,
)
from dkgen.models import InjuryStatus, Position


HEADER = "Player,Team,Opponent,DK Position,DK Salary,DK Projection,DK Value,DK Ownership,DKSlateID,Injury Status,Bye\n"


def _csv(*lines: str) -> str:
    return HEADER + "".join(line + "\n" for line in lines)


def test_parse_projection_text_builds_records():
    text = _csv(
        "Patrick Mahomes,kc,@BUF,QB,\"$8,000\",24.5,,46%,1001,,",
        "Bills,BUF,vs KC,DST,3200,7.1,2.2,0.08,1001,,",
    )

    records, report = parse_projection_text(text)

    assert report.parsed_rows == 2
    assert not report.has_errors
    qb, dst = records
    assert qb.team == "KC"
    assert qb.opponent == "BUF"
    assert qb.position is Position.QB
    assert qb.salary == 8000
    assert qb.ownership == pytest.approx(0.46)
    assert qb.value == pytest.approx(24.5 / 8.0)
    assert qb.slate_id == "1001"
    assert dst.opponent == "KC"
    assert dst.value == pytest.approx(2.2)
    assert dst.ownership == pytest.approx(0.08)


def test_malformed_rows_are_skipped_and_reported(caplog):
    text = _csv(
        "Good Back,NYJ,MIA,RB,5000,12.0,,,,,",
        "Ghost,NYJ,MIA,RB,#N/A,12.0,,,,,",
        ",NYJ,MIA,WR,4000,8.0,,,,,",
        "Broke,NYJ,MIA,WR,$,8.0,,,,,",
    )

    with caplog.at_level("WARNING", logger="dkgen.ingest.projections"):
        records, report = parse_projection_text(text)

    assert [r.name for r in records] == ["Good Back"]
    assert report.total_rows == 4
    assert report.skipped_rows == 3
    assert report.errors[0].startswith("line 3:")
    assert "Skipping projection row" in caplog.text


def test_strict_mode_raises_with_line_number():
    text = _csv(
        "Good Back,NYJ,MIA,RB,5000,12.0,,,,,",
        "Kicker,NYJ,MIA,K,4000,8.0,,,,,",
    )

    with pytest.raises(ProjectionParseError) as excinfo:
        parse_projection_text(text, skip_malformed=False)

    assert excinfo.value.line_number == 3
    assert "position" in str(excinfo.value)


def test_negative_projection_and_bad_ownership_rejected():
    text = _csv(
        "Neg,NYJ,MIA,RB,5000,-1,,,,,",
        "Chalk,NYJ,MIA,RB,5000,10,,150%,,,",
    )

    records, report = parse_projection_text(text)

    assert records == []
    assert report.skipped_rows == 2


def test_injury_and_bye_columns():
    text = _csv(
        "Hurt,DAL,PHI,WR,6000,14,,,,O,",
        "Stash,DAL,PHI,WR,6000,14,,,,IR,",
        "Maybe,DAL,PHI,WR,6000,14,,,,Q,",
        "Resting,DAL,PHI,WR,6000,14,,,,,1",
        "Mystery,DAL,PHI,TE,4000,9,,,,GTD,",
    )

    records, _ = parse_projection_text(text)
    by_name = {r.name: r for r in records}

    assert by_name["Hurt"].injury_status is InjuryStatus.OUT
    assert by_name["Stash"].is_out
    assert by_name["Maybe"].is_available
    assert by_name["Resting"].is_on_bye
    assert by_name["Mystery"].injury_status is None


def test_missing_required_columns_raise():
    with pytest.raises(ProjectionParseError, match="DK Salary"):
        parse_projection_text("Player,Team,DK Position,DK Projection\nA,KC,QB,20\n")
    with pytest.raises(ProjectionParseError):
        parse_projection_text("")


def test_custom_mapping():
    mapping = dict(DEFAULT_PROJECTION_MAPPING, salary="Salary", projection="Fpts")
    text = "Player,Team,DK Position,Salary,Fpts\nTight,DET,TE,4200,9.5\n"

    records, _ = parse_projection_text(text, mapping=mapping)

    assert records[0].salary == 4200
    assert records[0].projection == pytest.approx(9.5)
    assert records[0].ownership == 0.0


def test_row_from_mapping_strips_whitespace():
    row = ProjectionRow.from_mapping(
        {"Player": "  Spaced  ", "Team": "kc ", "DK Salary": "5000", "DK Projection": "10"},
        DEFAULT_PROJECTION_MAPPING,
        line_number=4,
    )

    assert row.raw_name == "Spaced"
    assert row.raw_position is None
    assert row.is_malformed()
    records, report = rows_to_records([row])
    assert records == []
    assert report.errors == ["line 4: row contains malformed data (#N/A or missing values)"]


def test_load_records_from_csv(tmp_path: Path):
    path = tmp_path / "projections.csv"
    path.write_text(_csv("Tony,DET,GB,TE,4000,9.0,,,,,"), encoding="utf-8")

    records, report = load_records_from_csv(path)

    assert records[0].name == "Tony"
    assert report.parsed_rows == 1

    with pytest.raises(ProjectionParseError, match="not found"):
        load_records_from_csv(tmp_path / "missing.csv")
