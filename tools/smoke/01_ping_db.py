from __future__ import annotations

import os, re, sys
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
from repositories.base_repo import in_clause


def _schema_tables() -> list[str]:
    schema = Path(ROOT, "db", "schema.sql").read_text(encoding="utf-8")
    return re.findall(r"CREATE TABLE IF NOT EXISTS\s+(\w+)", schema)


async def main() -> int:
    cfg = load_config(require_token=False)
    expected = _schema_tables()

    db = DbPool()
    await db.start(MySqlPoolConfig(**asdict(cfg.mysql)))
    await db.ping()
    print(f"OK: connected to {cfg.mysql.host}:{cfg.mysql.port}/{cfg.mysql.database}")

    async with get_cursor(db.pool, dict_rows=True) as cur:
        await cur.execute(
            f"""
            SELECT table_name AS t
            FROM information_schema.tables
            WHERE table_schema=%s AND table_name IN ({in_clause(expected)});
            """,
            (cfg.mysql.database, *expected),
        )
        present = {str(r["t"]) for r in await cur.fetchall()}

    await db.close()

    missing = [t for t in expected if t not in present]
    if missing:
        print(f"FAIL: missing tables {', '.join(missing)}; run 00_apply_schema.py first.")
        return 1
    print(f"OK: all {len(expected)} tables present ({', '.join(expected)})")
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
