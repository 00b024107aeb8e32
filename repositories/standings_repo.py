# repositories/standings_repo.py
from __future__ import annotations

from typing import Any, Mapping

import aiomysql

from domain.enums import Position
from domain.models import Standings
from repositories.base_repo import BaseRepo, is_duplicate_key


class StandingsRepo(BaseRepo):
    """
    Final standings (champion + two runners-up) per tournament, tagged with week/year.
    Append-only history; rows are only removed when a tournament is regenerated.
    """

    async def record_standings(self, standings: Standings) -> bool:
        """
        Writes all three positions in one transaction.
        Returns False (and writes nothing) if standings already exist for the tournament.
        """

        async def _tx(_conn, cur) -> bool:
            try:
                await cur.executemany(
                    """
                    INSERT INTO standing (tournament_id, team_id, position, week, year)
                    VALUES (%s, %s, %s, %s, %s);
                    """,
                    [
                        (standings.tournament_id, team_id, int(pos), standings.week, standings.year)
                        for pos, team_id in standings.by_position().items()
                    ],
                )
            except aiomysql.IntegrityError as e:
                if is_duplicate_key(e):
                    return False
                raise
            return True

        return await self.in_tx("record_standings", _tx)

    async def get_standings(self, *, tournament_id: int) -> Standings | None:
        rows = await self.fetch_all(
            """
            SELECT team_id, position, week, year
            FROM standing
            WHERE tournament_id=%s
            ORDER BY position;
            """,
            (tournament_id,),
        )
        by_pos = {Position(int(r["position"])): r for r in rows}
        if len(by_pos) != len(Position):
            return None
        first = by_pos[Position.CHAMPION]
        return Standings(
            tournament_id=int(tournament_id),
            champion_id=int(first["team_id"]),
            first_runner_up_id=int(by_pos[Position.FIRST_RUNNER_UP]["team_id"]),
            second_runner_up_id=int(by_pos[Position.SECOND_RUNNER_UP]["team_id"]),
            week=int(first["week"]),
            year=int(first["year"]),
        )

    async def delete_by_tournament(self, *, tournament_id: int) -> int:
        return await self.execute("DELETE FROM standing WHERE tournament_id=%s;", (tournament_id,))

    async def list_champions(
        self,
        *,
        year: int | None = None,
        week: int | None = None,
        limit: int = 30,
    ) -> list[Mapping[str, Any]]:
        """
        Weekly champions history, newest first.
        Rows: tournament_id, title, week, year, position, team_id, team_name
        """
        where = []
        params: list[Any] = []
        if year is not None:
            where.append("s.year=%s")
            params.append(int(year))
        if week is not None:
            where.append("s.week=%s")
            params.append(int(week))
        where_sql = ("WHERE " + " AND ".join(where)) if where else ""
        params.append(int(limit))

        return await self.fetch_all(
            f"""
            SELECT
              s.tournament_id,
              t.title,
              s.week,
              s.year,
              s.position,
              s.team_id,
              tm.team_name
            FROM standing s
            JOIN tournament t ON t.tournament_id = s.tournament_id
            JOIN team tm ON tm.team_id = s.team_id
            {where_sql}
            ORDER BY s.year DESC, s.week DESC, s.created_at DESC, s.position ASC
            LIMIT %s;
            """,
            tuple(params),
        )
