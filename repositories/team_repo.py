# repositories/team_repo.py
from __future__ import annotations

from typing import Any, Mapping

import aiomysql

from domain.models import Entrant
from repositories.base_repo import BaseRepo, is_duplicate_key


class TeamNameTakenError(Exception):
    pass


class TeamInUseError(Exception):
    pass


class TeamRepo(BaseRepo):
    """Registered teams per tournament; the paid ones are the bracket's entrants."""

    async def create_team(
        self,
        *,
        tournament_id: int,
        team_name: str,
        team_captain: str | None = None,
        contact_no: str | None = None,
        paid: bool = False,
    ) -> int:
        try:
            return await self.insert_returning_id(
                """
                INSERT INTO team
                  (tournament_id, team_name, team_captain, contact_no, paid)
                VALUES
                  (%s, %s, %s, %s, %s);
                """,
                (tournament_id, team_name, team_captain, contact_no, 1 if paid else 0),
            )
        except aiomysql.IntegrityError as e:
            if is_duplicate_key(e):
                raise TeamNameTakenError(f"Team name {team_name!r} is already registered in this tournament.") from e
            raise

    async def get_team(self, *, team_id: int) -> Mapping[str, Any] | None:
        return await self.fetch_one(
            """
            SELECT team_id, tournament_id, team_name, team_captain, contact_no, paid, created_at
            FROM team
            WHERE team_id=%s;
            """,
            (team_id,),
        )

    async def set_paid(self, *, team_id: int, paid: bool) -> int:
        return await self.execute(
            "UPDATE team SET paid=%s WHERE team_id=%s;",
            (1 if paid else 0, team_id),
        )

    async def delete_team(self, *, team_id: int) -> int:
        try:
            return await self.execute("DELETE FROM team WHERE team_id=%s;", (team_id,))
        except aiomysql.IntegrityError as e:
            # standings rows reference the team
            raise TeamInUseError(f"Team {team_id} appears in recorded standings and cannot be removed.") from e

    async def list_teams(self, *, tournament_id: int) -> list[Mapping[str, Any]]:
        return await self.fetch_all(
            """
            SELECT team_id, team_name, team_captain, contact_no, paid, created_at
            FROM team
            WHERE tournament_id=%s
            ORDER BY created_at ASC, team_id ASC;
            """,
            (tournament_id,),
        )

    async def list_paid_entrants(self, *, tournament_id: int) -> list[Entrant]:
        rows = await self.fetch_all(
            """
            SELECT team_id, team_name
            FROM team
            WHERE tournament_id=%s AND paid=1
            ORDER BY created_at ASC, team_id ASC;
            """,
            (tournament_id,),
        )
        return [Entrant(entrant_id=int(r["team_id"]), display_name=str(r["team_name"])) for r in rows]

    async def entrant_names(self, *, tournament_id: int) -> dict[int, str]:
        rows = await self.list_teams(tournament_id=tournament_id)
        return {int(r["team_id"]): str(r["team_name"]) for r in rows}
