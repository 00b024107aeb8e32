"""In-memory stand-ins for the MySQL repositories, used by the engine unit tests"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from domain.enums import BracketSide, Stage, TournamentStatus, WinnerSlot
from domain.models import Entrant, Match, MatchDraft, Standings
from domain.topology import STAGE_ORDER


class FakeMatchRepo:
    def __init__(self) -> None:
        self.matches: dict[int, Match] = {}
        self.stages: set[tuple[int, Stage]] = set()
        self.insert_calls = 0
        self._next_id = 1

    def _new(self, tournament_id: int, d: MatchDraft) -> Match:
        m = Match(
            match_id=self._next_id,
            tournament_id=tournament_id,
            stage=d.stage,
            bracket_side=d.bracket_side,
            match_no=d.match_no,
            slot_a=d.slot_a,
            slot_b=d.slot_b,
            source_match_a=d.source_match_a,
            source_match_b=d.source_match_b,
        )
        self.matches[m.match_id] = m
        self._next_id += 1
        return m

    async def insert_match(self, *, tournament_id: int, draft: MatchDraft) -> Match:
        return self._new(tournament_id, draft)

    async def insert_stage_if_absent(
        self,
        *,
        tournament_id: int,
        stage: Stage,
        bracket_side: BracketSide,
        drafts: Sequence[MatchDraft],
    ) -> list[Match]:
        self.insert_calls += 1
        if (tournament_id, stage) in self.stages:
            return []
        self.stages.add((tournament_id, stage))
        return [self._new(tournament_id, d) for d in drafts]

    async def get_match(self, *, match_id: int) -> Optional[Match]:
        return self.matches.get(match_id)

    async def update_winner(self, *, match_id: int, winner: Optional[WinnerSlot]) -> int:
        m = self.matches.get(match_id)
        if m is None:
            return 0
        self.matches[match_id] = replace(m, winner=winner)
        return 1

    async def list_stage(self, *, tournament_id: int, stage: Stage) -> list[Match]:
        return sorted(
            (m for m in self.matches.values() if m.tournament_id == tournament_id and m.stage is Stage(stage)),
            key=lambda m: m.match_no,
        )

    async def list_matches(self, *, tournament_id: int) -> list[Match]:
        return sorted(
            (m for m in self.matches.values() if m.tournament_id == tournament_id),
            key=lambda m: (STAGE_ORDER.index(m.stage), m.match_no),
        )

    async def list_stages(self, *, tournament_id: int) -> set[Stage]:
        return {s for (tid, s) in self.stages if tid == tournament_id}

    async def clear_winners(self, *, tournament_id: int, stage: Stage) -> int:
        n = 0
        for m in await self.list_stage(tournament_id=tournament_id, stage=stage):
            self.matches[m.match_id] = replace(m, winner=None)
            n += 1
        return n

    async def delete_stages(self, *, tournament_id: int, stages: Sequence[Stage]) -> int:
        doomed = [
            mid for mid, m in self.matches.items() if m.tournament_id == tournament_id and m.stage in set(stages)
        ]
        for mid in doomed:
            del self.matches[mid]
        self.stages -= {(tournament_id, s) for s in stages}
        return len(doomed)

    async def delete_by_tournament(self, *, tournament_id: int) -> int:
        return await self.delete_stages(tournament_id=tournament_id, stages=list(STAGE_ORDER))


class FakeTeamRepo:
    def __init__(self, entrants: Sequence[Entrant] = ()) -> None:
        self.entrants = list(entrants)

    async def list_paid_entrants(self, *, tournament_id: int) -> list[Entrant]:
        return list(self.entrants)

    async def entrant_names(self, *, tournament_id: int) -> dict[int, str]:
        return {e.entrant_id: e.display_name for e in self.entrants}


class FakeStandingsRepo:
    def __init__(self) -> None:
        self.rows: dict[int, Standings] = {}
        self.record_calls = 0

    async def record_standings(self, standings: Standings) -> bool:
        self.record_calls += 1
        if standings.tournament_id in self.rows:
            return False
        self.rows[standings.tournament_id] = standings
        return True

    async def get_standings(self, *, tournament_id: int) -> Optional[Standings]:
        return self.rows.get(tournament_id)

    async def delete_by_tournament(self, *, tournament_id: int) -> int:
        return 3 if self.rows.pop(tournament_id, None) is not None else 0


class FakeTournamentRepo:
    def __init__(self) -> None:
        self.status: dict[int, TournamentStatus] = {}

    async def get_tournament(self, *, tournament_id: int) -> Optional[Mapping[str, Any]]:
        return {
            "tournament_id": tournament_id,
            "title": f"Cup {tournament_id}",
            "status": self.status.get(tournament_id, TournamentStatus.ACTIVE).value,
            "start_date": date(2026, 10, 18),
        }

    async def set_status(self, *, tournament_id: int, status: TournamentStatus) -> int:
        self.status[tournament_id] = TournamentStatus(status)
        return 1
