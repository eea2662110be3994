"""Contest CSV export helpers for generated lineups."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from io import StringIO
from typing import Mapping, Sequence

from dkgen.config.roster import get_rules
from dkgen.models import Lineup, Slot
from dkgen.optimizer.scoring import ScoredLineup


class ContestExportError(RuntimeError):
    """Raised when a lineup cannot be exported for a contest template."""


@dataclass(frozen=True)
class ContestTemplate:
    """Representation of a contest upload schema."""

    site: str
    sport: str
    headers: tuple[str, ...]
    slot_order: tuple[str, ...]


_DEFAULT_HEADER_ALIASES: Mapping[str, str] = {
    "DEF": "DST",
}


def _slot_headers(roster_order: Sequence[str], slot_group) -> tuple[str, ...]:
    """DraftKings repeats the group name for numbered slots (RB, RB, WR...)."""

    headers: list[str] = []
    for slot in roster_order:
        group = slot_group(slot)
        headers.append(_DEFAULT_HEADER_ALIASES.get(group, group))
    return tuple(headers)


def resolve_template(site: str = "DK", sport: str = "NFL") -> ContestTemplate:
    rules = get_rules(site, sport)
    return ContestTemplate(
        site=rules.site,
        sport=rules.sport,
        headers=("EntryName", *_slot_headers(rules.roster_order, rules.slot_group)),
        slot_order=rules.roster_order,
    )


def _slot_cells(lineup: Lineup, label: str, slot_order: Sequence[str]) -> list[str]:
    if not lineup.is_complete:
        raise ContestExportError(
            f"Lineup {label} has {lineup.filled_count} of {len(slot_order)} slots filled"
        )
    cells = []
    for slot_name in slot_order:
        player = lineup[Slot(slot_name)]
        cells.append(player.identifier)
    return cells


def export_lineups_to_csv(
    lineups: Sequence[Lineup | ScoredLineup],
    *,
    entry_names: Sequence[str] | None = None,
    site: str = "DK",
    sport: str = "NFL",
) -> str:
    """Render lineups in the contest upload format, one row per lineup."""

    if entry_names is not None and len(entry_names) != len(lineups):
        raise ContestExportError("entry_names length must match lineups length")

    template = resolve_template(site, sport)
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(template.headers)

    for idx, item in enumerate(lineups):
        lineup = item.lineup if isinstance(item, ScoredLineup) else item
        entry_name = entry_names[idx] if entry_names is not None else f"lineup-{idx + 1}"
        writer.writerow([entry_name, *_slot_cells(lineup, entry_name, template.slot_order)])

    return buffer.getvalue()


def export_ranked_summary(lineups: Sequence[ScoredLineup]) -> str:
    """Human-oriented CSV: rank, salary, projection, score and player names."""

    template = resolve_template()
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Rank", "Salary", "Projection", "Score", *template.headers[1:]])
    for rank, scored in enumerate(lineups, start=1):
        lineup = scored.lineup
        names = [
            player.name if player is not None else ""
            for _, player in lineup.items()
        ]
        writer.writerow(
            [
                rank,
                lineup.total_salary,
                f"{lineup.total_projection:.2f}",
                f"{scored.primary_score:.4f}",
                *names,
            ]
        )
    return buffer.getvalue()


__all__ = [
    "ContestExportError",
    "ContestTemplate",
    "export_lineups_to_csv",
    "export_ranked_summary",
    "resolve_template",
]
