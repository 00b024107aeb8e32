"""Unit tests for StandingsRepo against a mocked aiomysql layer"""

import unittest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import aiomysql

from domain.models import Standings
from repositories.standings_repo import StandingsRepo


def _db() -> MagicMock:
    db = MagicMock()
    db.query_timeout = 0.5
    return db


def _tx_cursor():
    cur = MagicMock()
    cur.executemany = AsyncMock()
    tx_calls = []

    @asynccontextmanager
    async def _tx(_pool, *, dict_rows=True):
        tx_calls.append(dict_rows)
        yield MagicMock(), cur

    return cur, _tx, tx_calls


STANDINGS = Standings(
    tournament_id=7, champion_id=11, first_runner_up_id=12, second_runner_up_id=13, week=42, year=2026
)


class TestStandingsRepo(unittest.IsolatedAsyncioTestCase):
    async def test_record_writes_three_positions_in_one_transaction(self):
        cur, tx, tx_calls = _tx_cursor()
        repo = StandingsRepo(_db())

        with patch("repositories.base_repo.transaction", tx):
            self.assertTrue(await repo.record_standings(STANDINGS))

        self.assertEqual(len(tx_calls), 1)
        cur.executemany.assert_awaited_once()
        rows = cur.executemany.await_args.args[1]
        self.assertEqual(rows, [(7, 11, 1, 42, 2026), (7, 12, 2, 42, 2026), (7, 13, 3, 42, 2026)])

    async def test_record_again_reports_existing_standings(self):
        cur, tx, _ = _tx_cursor()
        cur.executemany.side_effect = aiomysql.IntegrityError(1062, "Duplicate entry '7-1' for key 'PRIMARY'")
        repo = StandingsRepo(_db())

        with patch("repositories.base_repo.transaction", tx):
            self.assertFalse(await repo.record_standings(STANDINGS))

    async def test_record_with_missing_team_propagates(self):
        cur, tx, _ = _tx_cursor()
        cur.executemany.side_effect = aiomysql.IntegrityError(1452, "Cannot add or update a child row")
        repo = StandingsRepo(_db())

        with patch("repositories.base_repo.transaction", tx):
            with self.assertRaises(aiomysql.IntegrityError):
                await repo.record_standings(STANDINGS)
