# repositories/tournament_repo.py
from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from domain.enums import TournamentStatus
from repositories.base_repo import BaseRepo


class TournamentRepo(BaseRepo):
    async def create_tournament(
        self,
        *,
        title: str,
        description: str | None = None,
        rules: str | None = None,
        start_date: date | None = None,
        status: TournamentStatus = TournamentStatus.ACTIVE,
    ) -> int:
        return await self.insert_returning_id(
            """
            INSERT INTO tournament (title, description, rules, status, start_date)
            VALUES (%s, %s, %s, %s, %s);
            """,
            (title, description, rules, TournamentStatus(status).value, start_date),
        )

    async def get_tournament(self, *, tournament_id: int) -> Mapping[str, Any] | None:
        return await self.fetch_one(
            """
            SELECT tournament_id, title, description, rules, status, start_date, created_at
            FROM tournament
            WHERE tournament_id=%s;
            """,
            (tournament_id,),
        )

    async def list_tournaments(self, *, status: TournamentStatus | None = None) -> list[Mapping[str, Any]]:
        if status is None:
            return await self.fetch_all(
                "SELECT tournament_id, title, status, start_date FROM tournament ORDER BY created_at DESC;"
            )
        return await self.fetch_all(
            "SELECT tournament_id, title, status, start_date FROM tournament WHERE status=%s ORDER BY created_at DESC;",
            (TournamentStatus(status).value,),
        )

    async def set_status(self, *, tournament_id: int, status: TournamentStatus) -> int:
        return await self.execute(
            "UPDATE tournament SET status=%s, updated_at=NOW(6) WHERE tournament_id=%s;",
            (TournamentStatus(status).value, tournament_id),
        )
