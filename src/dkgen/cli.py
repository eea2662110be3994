"""Command-line interface for generating lineups from projections."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from dkgen.config_loader import GenerationProfile
from dkgen.ingest import ProjectionParseError, load_records_from_csv
from dkgen.optimizer import (
    GenerationStrategy,
    InsufficientPlayerPool,
    LineupGenerator,
    ScoringStrategy,
    UnsupportedStrategy,
)
from dkgen.pool import export_lineups_to_csv
from dkgen.rules import create_draftkings_rule_engine


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate DraftKings NFL lineups from projections")
    parser.add_argument("projections", type=Path, help="Path to projections CSV")
    parser.add_argument(
        "--projection-column",
        action="append",
        default=[],
        help="Mapping for projection CSV columns (e.g., name=Player Name)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load generation profile JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save generation profile JSON", default=None)
    parser.add_argument("--lineups", type=int, default=None, help="Number of lineups to find (0 = unlimited)")
    parser.add_argument("--max-attempts", type=int, default=None, help="Upper bound on complete lineups evaluated")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Wall-clock budget in milliseconds")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in GenerationStrategy],
        default=None,
        help="Search strategy",
    )
    parser.add_argument(
        "--scoring",
        choices=[s.value for s in ScoringStrategy if s is not ScoringStrategy.CUSTOM],
        default=None,
        help="Primary ranking score",
    )
    parser.add_argument("--salary-cap", type=int, default=None, help="Exact salary every lineup must spend")
    parser.add_argument("--max-team", type=int, default=None, help="Maximum players from one team")
    parser.add_argument("--allow-duplicates", action="store_true", default=None)
    parser.add_argument("--prune-salary", action="store_true", default=None, help="Skip branches over the cap")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first malformed CSV row instead of skipping it",
    )
    parser.add_argument("--output", type=Path, default=Path("lineups.csv"), help="Output CSV path")
    parser.add_argument(
        "--upload",
        type=Path,
        default=None,
        help="Optional path for a DraftKings upload CSV",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Optional path to write generation stats JSON",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        profile = GenerationProfile.load(args.load_profile) if args.load_profile else GenerationProfile()
        profile.projection_mapping.update(_parse_mapping(args.projection_column))
        config = profile.to_config(
            strategy=args.strategy,
            max_attempts=args.max_attempts,
            timeout_ms=args.timeout_ms,
            target_lineups=args.lineups,
            scoring_strategy=args.scoring,
            salary_cap=args.salary_cap,
            allow_duplicates=args.allow_duplicates,
            prune_salary=args.prune_salary,
            enable_logging=True,
        )
        records, parse_report = load_records_from_csv(
            args.projections,
            mapping=profile.mapping(),
            skip_malformed=not args.strict,
        )
    except (ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(parse_report.summary())
    if args.save_profile:
        GenerationProfile.from_config(config, profile.projection_mapping).save(args.save_profile)
        print(f"Saved generation profile to {args.save_profile}")

    engine_kwargs = {"salary_cap": config.salary_cap}
    if args.max_team is not None:
        engine_kwargs["max_team_players"] = args.max_team
    generator = LineupGenerator(records, create_draftkings_rule_engine(**engine_kwargs), config)

    try:
        result = generator.generate()
    except (InsufficientPlayerPool, UnsupportedStrategy) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    stats = result.stats
    print(f"Generation: {stats.summary()}")

    with args.output.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["lineup_id", "salary", "projection", "score", "player_names", "teams", "positions", "ownership"]
        )
        for idx, scored in enumerate(result.scored, start=1):
            players = scored.lineup.players()
            writer.writerow(
                [
                    f"lineup-{idx}",
                    scored.lineup.total_salary,
                    f"{scored.lineup.total_projection:.2f}",
                    f"{scored.primary_score:.4f}",
                    " | ".join(player.name for player in players),
                    " ".join(player.team for player in players),
                    " ".join(player.position.value for player in players),
                    " ".join(f"{player.ownership:.2f}" for player in players),
                ]
            )
    print(f"Wrote {len(result.scored)} lineups to {args.output}")

    if args.upload:
        args.upload.write_text(export_lineups_to_csv(result.scored), encoding="utf-8")
        print(f"Wrote upload file to {args.upload}")

    if args.report:
        report_payload = {
            "attempts": stats.attempts,
            "valid_lineups": stats.valid_lineups,
            "invalid_lineups": stats.invalid_lineups,
            "rule_failures": stats.rule_failures,
            "duplicate_lineups": stats.duplicate_lineups,
            "duration_ms": stats.duration_ms,
            "timeout_occurred": stats.timeout_occurred,
            "stop_reason": stats.stop_reason.value,
            "parse_errors": parse_report.errors,
        }
        args.report.write_text(json.dumps(report_payload, indent=2), encoding="utf-8")
        print(f"Wrote generation report to {args.report}")

    if not result.scored:
        print(f"No valid lineups found (stopped: {stats.stop_reason.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
