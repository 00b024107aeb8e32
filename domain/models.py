# domain/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from domain.enums import BracketSide, Outcome, Position, Stage, WinnerSlot


def match_code(stage: Stage | str, match_no: int) -> str:
    s = stage.value if isinstance(stage, Stage) else str(stage)
    return f"{s}-{int(match_no):02d}"


def _opt_int(v: Any) -> Optional[int]:
    return int(v) if v is not None else None


@dataclass(frozen=True)
class Entrant:
    entrant_id: int
    display_name: str


@dataclass(frozen=True)
class Slot:
    """
    One side of a match: a concrete entrant, a bye marker, or empty (awaiting a feeder result).
    """

    entrant_id: Optional[int] = None
    bye: bool = False

    @classmethod
    def of(cls, entrant_id: int) -> "Slot":
        return cls(entrant_id=int(entrant_id))

    @classmethod
    def make_bye(cls) -> "Slot":
        return cls(bye=True)

    @property
    def is_concrete(self) -> bool:
        return self.entrant_id is not None and not self.bye

    @property
    def is_empty(self) -> bool:
        return self.entrant_id is None and not self.bye


@dataclass(frozen=True)
class MatchDraft:
    """A match planned by the engine but not yet persisted (no match_id)."""

    stage: Stage
    bracket_side: BracketSide
    match_no: int
    slot_a: Slot
    slot_b: Slot
    source_match_a: Optional[int] = None
    source_match_b: Optional[int] = None


@dataclass(frozen=True)
class Match:
    match_id: int
    tournament_id: int
    stage: Stage
    bracket_side: BracketSide
    match_no: int
    slot_a: Slot
    slot_b: Slot
    winner: Optional[WinnerSlot] = None
    source_match_a: Optional[int] = None
    source_match_b: Optional[int] = None

    @property
    def code(self) -> str:
        return match_code(self.stage, self.match_no)

    def slot(self, side: WinnerSlot) -> Slot:
        return self.slot_a if side is WinnerSlot.A else self.slot_b

    @property
    def is_bye(self) -> bool:
        # exactly one concrete entrant facing a bye
        return (self.slot_a.is_concrete and self.slot_b.bye) or (self.slot_b.is_concrete and self.slot_a.bye)

    @property
    def resolved_winner(self) -> Optional[WinnerSlot]:
        if self.winner is not None:
            return self.winner
        if self.is_bye:
            return WinnerSlot.A if self.slot_a.is_concrete else WinnerSlot.B
        return None

    @property
    def is_decided(self) -> bool:
        return self.resolved_winner is not None

    def outcome_slot(self, outcome: Outcome) -> Slot:
        w = self.resolved_winner
        if w is None:
            raise ValueError(f"Match {self.code} has no winner yet.")
        return self.slot(w) if outcome is Outcome.WINNER else self.slot(w.other)

    @property
    def winner_id(self) -> Optional[int]:
        if not self.is_decided:
            return None
        return self.outcome_slot(Outcome.WINNER).entrant_id

    @property
    def loser_id(self) -> Optional[int]:
        if not self.is_decided:
            return None
        return self.outcome_slot(Outcome.LOSER).entrant_id

    def entrant_ids(self) -> list[int]:
        return [s.entrant_id for s in (self.slot_a, self.slot_b) if s.is_concrete]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Match":
        winner = row.get("winner")
        return cls(
            match_id=int(row["match_id"]),
            tournament_id=int(row["tournament_id"]),
            stage=Stage(str(row["stage"])),
            bracket_side=BracketSide(str(row["bracket_side"])),
            match_no=int(row["match_no"]),
            slot_a=Slot(entrant_id=_opt_int(row.get("slot_a_team_id")), bye=bool(row.get("slot_a_bye"))),
            slot_b=Slot(entrant_id=_opt_int(row.get("slot_b_team_id")), bye=bool(row.get("slot_b_bye"))),
            winner=WinnerSlot(str(winner)) if winner else None,
            source_match_a=_opt_int(row.get("source_match_a_id")),
            source_match_b=_opt_int(row.get("source_match_b_id")),
        )


@dataclass(frozen=True)
class TournamentContext:
    """
    Explicit tournament scope for every engine call.
    week/year tag the standings for the weekly champions history.
    """

    tournament_id: int
    week: int
    year: int

    @classmethod
    def for_date(cls, tournament_id: int, d: date) -> "TournamentContext":
        iso = d.isocalendar()
        return cls(tournament_id=int(tournament_id), week=int(iso[1]), year=int(iso[0]))


@dataclass(frozen=True)
class Standings:
    tournament_id: int
    champion_id: int
    first_runner_up_id: int
    second_runner_up_id: int
    week: int
    year: int

    def by_position(self) -> dict[Position, int]:
        return {
            Position.CHAMPION: self.champion_id,
            Position.FIRST_RUNNER_UP: self.first_runner_up_id,
            Position.SECOND_RUNNER_UP: self.second_runner_up_id,
        }
