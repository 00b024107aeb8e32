# repositories/match_repo.py
from __future__ import annotations

from typing import Any, Sequence

import aiomysql

from domain.enums import BracketSide, Stage, WinnerSlot
from domain.models import Match, MatchDraft
from domain.topology import STAGE_ORDER
from repositories.base_repo import BaseRepo, in_clause, is_duplicate_key


class _StageExists(Exception):
    pass


_INSERT_MATCH_SQL = """
    INSERT INTO bracket_match
      (tournament_id, stage, bracket_side, match_no,
       slot_a_team_id, slot_a_bye, slot_b_team_id, slot_b_bye,
       source_match_a_id, source_match_b_id)
    VALUES
      (%s, %s, %s, %s,
       %s, %s, %s, %s,
       %s, %s);
"""

_SELECT_STAGE_SQL = """
    SELECT *
    FROM bracket_match
    WHERE tournament_id=%s AND stage=%s
    ORDER BY match_no;
"""


def _draft_params(tournament_id: int, d: MatchDraft) -> tuple[Any, ...]:
    return (
        tournament_id,
        d.stage.value,
        d.bracket_side.value,
        d.match_no,
        d.slot_a.entrant_id,
        1 if d.slot_a.bye else 0,
        d.slot_b.entrant_id,
        1 if d.slot_b.bye else 0,
        d.source_match_a,
        d.source_match_b,
    )


def _stage_rank(m: Match) -> tuple[int, int]:
    return STAGE_ORDER.index(m.stage), m.match_no


class MatchRepo(BaseRepo):
    """
    Match store: bracket_match rows keyed by match_id, plus the bracket_stage guard rows
    that make stage creation an atomic insert-if-absent.
    """

    async def insert_match(self, *, tournament_id: int, draft: MatchDraft) -> Match:
        match_id = await self.insert_returning_id(_INSERT_MATCH_SQL, _draft_params(tournament_id, draft))
        m = await self.get_match(match_id=match_id)
        if m is None:
            raise RuntimeError(f"Failed to read back match {match_id} after insert")
        return m

    async def insert_stage_if_absent(
        self,
        *,
        tournament_id: int,
        stage: Stage,
        bracket_side: BracketSide,
        drafts: Sequence[MatchDraft],
    ) -> list[Match]:
        """
        Creates all matches of a stage in one transaction, guarded by the
        (tournament_id, stage, bracket_side) key. Returns [] if the stage already existed.
        """

        async def _tx(_conn, cur) -> list[Match]:
            try:
                await cur.execute(
                    "INSERT INTO bracket_stage (tournament_id, stage, bracket_side) VALUES (%s, %s, %s);",
                    (tournament_id, stage.value, bracket_side.value),
                )
            except aiomysql.IntegrityError as e:
                if is_duplicate_key(e):
                    raise _StageExists() from e
                raise

            await cur.executemany(_INSERT_MATCH_SQL, [_draft_params(tournament_id, d) for d in drafts])
            await cur.execute(_SELECT_STAGE_SQL, (tournament_id, stage.value))
            rows = await cur.fetchall()
            return [Match.from_row(r) for r in rows or []]

        try:
            return await self.in_tx("insert_stage_if_absent", _tx)
        except _StageExists:
            return []

    async def get_match(self, *, match_id: int) -> Match | None:
        row = await self.fetch_one("SELECT * FROM bracket_match WHERE match_id=%s;", (match_id,))
        return Match.from_row(row) if row else None

    async def update_winner(self, *, match_id: int, winner: WinnerSlot | None) -> int:
        return await self.execute(
            "UPDATE bracket_match SET winner=%s, updated_at=NOW(6) WHERE match_id=%s;",
            (winner.value if winner is not None else None, match_id),
        )

    async def list_stage(self, *, tournament_id: int, stage: Stage) -> list[Match]:
        rows = await self.fetch_all(_SELECT_STAGE_SQL, (tournament_id, Stage(stage).value))
        return [Match.from_row(r) for r in rows]

    async def list_matches(self, *, tournament_id: int) -> list[Match]:
        rows = await self.fetch_all(
            "SELECT * FROM bracket_match WHERE tournament_id=%s;",
            (tournament_id,),
        )
        return sorted((Match.from_row(r) for r in rows), key=_stage_rank)

    async def list_stages(self, *, tournament_id: int) -> set[Stage]:
        rows = await self.fetch_all(
            "SELECT stage FROM bracket_stage WHERE tournament_id=%s;",
            (tournament_id,),
        )
        return {Stage(str(r["stage"])) for r in rows}

    async def clear_winners(self, *, tournament_id: int, stage: Stage) -> int:
        return await self.execute(
            "UPDATE bracket_match SET winner=NULL, updated_at=NOW(6) WHERE tournament_id=%s AND stage=%s;",
            (tournament_id, Stage(stage).value),
        )

    async def delete_stages(self, *, tournament_id: int, stages: Sequence[Stage]) -> int:
        if not stages:
            return 0
        values = [Stage(s).value for s in stages]
        marks = in_clause(values)

        async def _tx(_conn, cur) -> int:
            await cur.execute(
                f"DELETE FROM bracket_match WHERE tournament_id=%s AND stage IN ({marks});",
                (tournament_id, *values),
            )
            deleted = cur.rowcount
            await cur.execute(
                f"DELETE FROM bracket_stage WHERE tournament_id=%s AND stage IN ({marks});",
                (tournament_id, *values),
            )
            return deleted

        return await self.in_tx("delete_stages", _tx)

    async def delete_by_tournament(self, *, tournament_id: int) -> int:
        async def _tx(_conn, cur) -> int:
            await cur.execute("DELETE FROM bracket_match WHERE tournament_id=%s;", (tournament_id,))
            deleted = cur.rowcount
            await cur.execute("DELETE FROM bracket_stage WHERE tournament_id=%s;", (tournament_id,))
            return deleted

        return await self.in_tx("delete_by_tournament", _tx)
