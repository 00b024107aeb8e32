# config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")


def _maybe_load_env_file() -> None:
    """
    Load .env next to this file, if present.
    Variables already set in the process environment win.
    """
    dotenv_path = Path(__file__).resolve().parent / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path, override=False)


@dataclass(frozen=True)
class MySqlConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    minsize: int = 1
    maxsize: int = 5
    connect_timeout: int = 5
    query_timeout: float = 5.0  # per storage call, seconds


@dataclass(frozen=True)
class BotConfig:
    token: str
    dev_guild_id: int | None
    command_prefix: str
    log_level: str
    bracket_rng_seed: int | None  # None = fresh OS entropy on every start
    mysql: MySqlConfig


def _raw(name: str) -> str | None:
    """Env value with surrounding whitespace removed; blank counts as unset."""
    v = os.getenv(name)
    if v is None:
        return None
    v = v.strip()
    return v or None


def _typed(name: str, cast: Callable[[str], T], default: T, what: str) -> T:
    v = _raw(name)
    if v is None:
        return default
    try:
        return cast(v)
    except ValueError as e:
        raise ValueError(f"{name} must be {what}, got: {v!r}") from e


def _require(ok: bool, message: str) -> None:
    if not ok:
        raise ValueError(message)


def load_config(*, require_token: bool = True) -> BotConfig:
    """
    Build the bot configuration from the environment (and .env).
    `require_token=False` is for the smoke tools, which only talk to MySQL.
    """
    _maybe_load_env_file()

    token = _raw("DISCORD_TOKEN") or ""
    if require_token and not token:
        raise RuntimeError("Missing DISCORD_TOKEN environment variable.")

    mysql = MySqlConfig(
        host=_raw("DB_HOST") or "127.0.0.1",
        port=_typed("DB_PORT", int, 3306, "an integer"),
        user=_raw("DB_USER") or "root",
        password=_raw("DB_PASSWORD") or "",
        database=_raw("DB_NAME") or "weekly_cup",
        minsize=_typed("DB_POOL_MIN", int, 1, "an integer"),
        maxsize=_typed("DB_POOL_MAX", int, 5, "an integer"),
        connect_timeout=_typed("DB_CONNECT_TIMEOUT", int, 5, "an integer"),
        query_timeout=_typed("DB_QUERY_TIMEOUT", float, 5.0, "a number"),
    )
    _require(mysql.minsize >= 1, "DB_POOL_MIN must be >= 1")
    _require(mysql.maxsize >= mysql.minsize, "DB_POOL_MAX must be >= DB_POOL_MIN")
    _require(mysql.connect_timeout >= 1, "DB_CONNECT_TIMEOUT must be >= 1")
    _require(mysql.query_timeout > 0, "DB_QUERY_TIMEOUT must be > 0")

    return BotConfig(
        token=token,
        dev_guild_id=_typed("DEV_GUILD_ID", int, None, "an integer"),
        command_prefix=_raw("COMMAND_PREFIX") or "!",
        log_level=(_raw("LOG_LEVEL") or "INFO").upper(),
        bracket_rng_seed=_typed("BRACKET_RNG_SEED", int, None, "an integer"),
        mysql=mysql,
    )
