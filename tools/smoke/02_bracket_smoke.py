from __future__ import annotations

import os, sys
from dataclasses import asdict
from datetime import date
from uuid import uuid4

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import asyncio
import random
from config import load_config
from db.pool import DbPool, MySqlPoolConfig
from domain.enums import Stage, TournamentState, WinnerSlot
from domain.models import TournamentContext
from domain.topology import ENTRANT_COUNT
from repositories.match_repo import MatchRepo
from repositories.standings_repo import StandingsRepo
from repositories.team_repo import TeamRepo
from repositories.tournament_repo import TournamentRepo
from services.bracket_service import BracketService

async def main() -> None:
    cfg = load_config(require_token=False)

    run_id = os.getenv("SMOKE_RUN_ID") or f"smk_{uuid4().hex[:10]}"

    db = DbPool()
    await db.start(MySqlPoolConfig(**asdict(cfg.mysql)))

    tournaments = TournamentRepo(db)
    teams = TeamRepo(db)
    matches = MatchRepo(db)
    standings_repo = StandingsRepo(db)
    brackets = BracketService(
        match_repo=matches,
        team_repo=teams,
        standings_repo=standings_repo,
        tournament_repo=tournaments,
        rng=random.Random(cfg.bracket_rng_seed),
    )

    tournament_id = await tournaments.create_tournament(
        title=f"SMOKE_CUP_{run_id}",
        description="smoke test",
        start_date=date.today(),
    )
    for i in range(ENTRANT_COUNT):
        await teams.create_team(tournament_id=tournament_id, team_name=f"SMOKE_TEAM_{i+1}", paid=True)

    ctx = TournamentContext.for_date(tournament_id, date.today())
    r1 = await brackets.generate_bracket(ctx)
    assert len(r1) == 8

    # slot A wins everything; advance until the Final exists
    while True:
        bracket = await brackets.get_bracket(ctx)
        for ms in bracket.values():
            for m in ms:
                if not m.is_decided:
                    await brackets.record_winner(ctx, match_id=m.match_id, slot=WinnerSlot.A)
        created = await brackets.advance_ready(ctx)
        print(f"OK: advanced {[s.value for s in created]}")
        if not created:
            break

    bracket = await brackets.get_bracket(ctx)
    assert Stage.FINAL in bracket
    assert sum(len(ms) for ms in bracket.values()) == 22

    final = await brackets.finalize_standings(ctx)
    again = await brackets.finalize_standings(ctx)
    assert final == again
    assert await brackets.get_state(ctx) is TournamentState.COMPLETE

    await db.close()
    print(
        f"OK: bracket smoke passed. run_id={run_id} tournament_id={tournament_id} "
        f"champion={final.champion_id} runner_up={final.first_runner_up_id} second={final.second_runner_up_id}"
    )

if __name__ == "__main__":
    asyncio.run(main())
