from __future__ import annotations

import os, sys
from dataclasses import asdict
from pathlib import Path

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import asyncio
from config import load_config
from db.pool import DbPool, MySqlPoolConfig
from db.tx import get_cursor


def _statements(sql: str) -> list[str]:
    lines = [ln for ln in sql.splitlines() if not ln.strip().startswith("--")]
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


async def main() -> None:
    cfg = load_config(require_token=False)
    schema = Path(ROOT, "db", "schema.sql").read_text(encoding="utf-8")

    db = DbPool()
    await db.start(MySqlPoolConfig(**asdict(cfg.mysql)))

    async with get_cursor(db.pool, dict_rows=False) as cur:
        for stmt in _statements(schema):
            await cur.execute(stmt)
            print(f"OK: {stmt.splitlines()[0]}")

    await db.close()
    print(f"OK: schema applied to {cfg.mysql.database}")

if __name__ == "__main__":
    asyncio.run(main())
