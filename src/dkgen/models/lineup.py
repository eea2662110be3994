"""Mutable nine-slot lineup buffer used during search and validation."""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from ..config.roster import DRAFTKINGS_CLASSIC
from .player import PlayerRecord, Position


class LineupError(ValueError):
    """Raised when a placement would break a lineup's slot invariants."""


class Slot(str, Enum):
    QB = "QB"
    RB1 = "RB1"
    RB2 = "RB2"
    WR1 = "WR1"
    WR2 = "WR2"
    WR3 = "WR3"
    TE = "TE"
    FLEX = "FLEX"
    DST = "DST"

    @property
    def slot_index(self) -> int:
        return _SLOT_INDEX[self]

    @property
    def group(self) -> str:
        return DRAFTKINGS_CLASSIC.slot_group(self.value)

    @property
    def eligible_positions(self) -> FrozenSet[Position]:
        return _SLOT_ELIGIBILITY[self]

    def accepts(self, player: PlayerRecord) -> bool:
        return player.position in _SLOT_ELIGIBILITY[self]

    @classmethod
    def ordered(cls) -> Tuple["Slot", ...]:
        return _SLOT_ORDER


_SLOT_ORDER: Tuple[Slot, ...] = tuple(Slot(name) for name in DRAFTKINGS_CLASSIC.roster_order)
_SLOT_INDEX: Dict[Slot, int] = {slot: idx for idx, slot in enumerate(_SLOT_ORDER)}
_SLOT_ELIGIBILITY: Dict[Slot, FrozenSet[Position]] = {
    slot: frozenset(Position(pos) for pos in DRAFTKINGS_CLASSIC.slot_positions[slot.value])
    for slot in _SLOT_ORDER
}
_NATIVE_SLOTS: Dict[Position, Tuple[Slot, ...]] = {
    Position.QB: (Slot.QB,),
    Position.RB: (Slot.RB1, Slot.RB2),
    Position.WR: (Slot.WR1, Slot.WR2, Slot.WR3),
    Position.TE: (Slot.TE,),
    Position.DST: (Slot.DST,),
}

ROSTER_SIZE = len(_SLOT_ORDER)


class Lineup:
    """Fixed nine-slot assignment with running salary and projection totals.

    Occupancy is tracked by object identity: a record can sit in at most one
    slot, even if another value-equal record exists elsewhere in the pool.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[PlayerRecord]] = [None] * ROSTER_SIZE
        self.total_salary = 0
        self.total_projection = 0.0

    @classmethod
    def from_slots(
        cls,
        assignment: Mapping[Slot, PlayerRecord],
        *,
        check: bool = True,
    ) -> "Lineup":
        """Build a lineup from a slot mapping.

        With ``check=False`` the slot eligibility and uniqueness checks are
        skipped so externally edited lineups can still be handed to the rule
        engine and reported on.
        """

        lineup = cls()
        for slot in _SLOT_ORDER:
            player = assignment.get(slot)
            if player is None:
                continue
            if check:
                lineup.place(slot, player)
            else:
                lineup._slots[slot.slot_index] = player
        if not check:
            lineup._recompute_totals()
        return lineup

    # ------------------------------------------------------------------
    # slot mutation

    def place(self, slot: Slot, player: PlayerRecord) -> None:
        idx = slot.slot_index
        if self._slots[idx] is not None:
            raise LineupError(f"Slot {slot.value} is already filled")
        if not slot.accepts(player):
            raise LineupError(
                f"{player.name} ({player.position.value}) is not eligible for slot {slot.value}"
            )
        if self.contains_player(player):
            raise LineupError(f"{player.name} is already in the lineup")
        self._slots[idx] = player
        self._recompute_totals()

    def unplace(self, slot: Slot) -> PlayerRecord:
        idx = slot.slot_index
        player = self._slots[idx]
        if player is None:
            raise LineupError(f"Slot {slot.value} is empty")
        self._slots[idx] = None
        self._recompute_totals()
        return player

    def add_player(self, player: PlayerRecord) -> Slot:
        """Place a player in the first open slot for their native position."""

        for slot in _NATIVE_SLOTS[player.position]:
            if self._slots[slot.slot_index] is None:
                self.place(slot, player)
                return slot
        raise LineupError(f"No open {player.position.value} slot for {player.name}")

    def add_to_flex(self, player: PlayerRecord) -> Slot:
        self.place(Slot.FLEX, player)
        return Slot.FLEX

    def remove_player(self, player: PlayerRecord) -> Slot:
        for slot in _SLOT_ORDER:
            if self._slots[slot.slot_index] is player:
                self.unplace(slot)
                return slot
        raise LineupError(f"{player.name} is not in the lineup")

    def _recompute_totals(self) -> None:
        # fsum is order independent, so place/unplace restore totals bit for bit.
        filled = [p for p in self._slots if p is not None]
        self.total_salary = sum(p.salary for p in filled)
        self.total_projection = math.fsum(p.projection for p in filled)

    # ------------------------------------------------------------------
    # queries

    def get(self, slot: Slot) -> Optional[PlayerRecord]:
        return self._slots[slot.slot_index]

    def __getitem__(self, slot: Slot) -> Optional[PlayerRecord]:
        return self._slots[slot.slot_index]

    def items(self) -> Iterator[Tuple[Slot, Optional[PlayerRecord]]]:
        for slot in _SLOT_ORDER:
            yield slot, self._slots[slot.slot_index]

    def players(self) -> List[PlayerRecord]:
        return [p for p in self._slots if p is not None]

    def contains_player(self, player: PlayerRecord) -> bool:
        return any(p is player for p in self._slots)

    def team_count(self, team: str) -> int:
        return sum(1 for p in self._slots if p is not None and p.team == team)

    def team_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for player in self.players():
            counts[player.team] = counts.get(player.team, 0) + 1
        return counts

    @property
    def filled_count(self) -> int:
        return sum(1 for p in self._slots if p is not None)

    @property
    def is_complete(self) -> bool:
        return self.filled_count == ROSTER_SIZE

    @property
    def total_ownership(self) -> float:
        return math.fsum(p.ownership for p in self.players())

    def salary_efficiency(self) -> float:
        """Projected points per $1000 spent; zero for an empty lineup."""

        if self.total_salary <= 0:
            return 0.0
        return self.total_projection / (self.total_salary / 1000.0)

    def remaining_salary(self, salary_cap: int = DRAFTKINGS_CLASSIC.salary_cap) -> int:
        return salary_cap - self.total_salary

    def signature(self) -> Tuple[int, ...]:
        """Slot-by-slot identity key; empty slots map to 0."""

        return tuple(id(p) if p is not None else 0 for p in self._slots)

    def same_assignment(self, other: "Lineup") -> bool:
        return all(a is b for a, b in zip(self._slots, other._slots))

    def copy(self) -> "Lineup":
        clone = Lineup()
        clone._slots = list(self._slots)
        clone.total_salary = self.total_salary
        clone.total_projection = self.total_projection
        return clone

    def __repr__(self) -> str:
        return (
            f"Lineup(filled={self.filled_count}, salary={self.total_salary}, "
            f"projection={self.total_projection:.2f})"
        )

    def __str__(self) -> str:
        lines = [f"Lineup (${self.total_salary} | {self.total_projection:.2f} pts)"]
        for slot, player in self.items():
            label = str(player) if player is not None else "[EMPTY]"
            lines.append(f"  {slot.value:<4} {label}")
        return "\n".join(lines)
