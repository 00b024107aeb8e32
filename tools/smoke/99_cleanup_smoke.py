from __future__ import annotations

import os, sys
from dataclasses import asdict

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import asyncio
from config import load_config
from db.pool import DbPool, MySqlPoolConfig
from db.tx import get_cursor

async def main() -> None:
    cfg = load_config(require_token=False)

    run_id = os.getenv("SMOKE_RUN_ID")
    title_like = f"SMOKE_CUP_{run_id}" if run_id else "SMOKE_CUP_%"

    db = DbPool()
    await db.start(MySqlPoolConfig(**asdict(cfg.mysql)))

    # standing.team_id has no cascade, so standings go first; the rest cascade from tournament
    statements = [
        ("DELETE s FROM standing s JOIN tournament t ON t.tournament_id=s.tournament_id WHERE t.title LIKE %s;", (title_like,)),
        ("DELETE FROM tournament WHERE title LIKE %s;", (title_like,)),
    ]

    async with get_cursor(db.pool, dict_rows=False) as cur:
        for sql, params in statements:
            await cur.execute(sql, params)
            print(f"OK: {cur.rowcount} rows affected")

    await db.close()
    print(f"OK: cleanup done for {title_like}")

if __name__ == "__main__":
    asyncio.run(main())
