# renderers/embeds.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import discord

from db.errors import StorageUnavailableError
from domain.enums import Position
from domain.models import Standings
from services.bracket_service import (
    AlreadyFinalizedError,
    BracketAlreadyExistsError,
    BracketServiceError,
    IncompleteStageError,
    InvalidEntrantCountError,
    StageLockedError,
    UnknownMatchError,
)


@dataclass(frozen=True)
class EmbedTheme:
    primary: int = 0x1F6FEB   # arena blue
    success: int = 0x2ECC71
    warning: int = 0xF1C40F
    danger: int = 0xE74C3C
    neutral: int = 0x5865F2
    gold: int = 0xFACC15


_FAILURE_TITLES: tuple[tuple[type[Exception], str], ...] = (
    (InvalidEntrantCountError, "Not enough paid teams"),
    (IncompleteStageError, "Stage not finished"),
    (UnknownMatchError, "Match not found"),
    (AlreadyFinalizedError, "Tournament finalized"),
    (BracketAlreadyExistsError, "Bracket already exists"),
    (StageLockedError, "Stage locked"),
    (StorageUnavailableError, "Database unavailable"),
    (BracketServiceError, "Bracket error"),
)

_MEDALS = {
    Position.CHAMPION: "🏆",
    Position.FIRST_RUNNER_UP: "🥈",
    Position.SECOND_RUNNER_UP: "🥉",
}


class Embeds:
    """
    Centralized embed styling so every command looks consistent.
    """

    def __init__(self, *, theme: EmbedTheme | None = None, footer: str = "Weekly Cup") -> None:
        self._theme = theme or EmbedTheme()
        self._footer = footer

    def base(
        self,
        *,
        title: str,
        description: str | None = None,
        color: int | None = None,
    ) -> discord.Embed:
        e = discord.Embed(
            title=title,
            description=description,
            color=color if color is not None else self._theme.primary,
        )
        e.set_footer(text=self._footer)
        return e

    def info(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.neutral)

    def success(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.success)

    def warning(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.warning)

    def error(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.danger)

    def failure(self, ex: Exception) -> discord.Embed:
        """Error embed for a typed engine/storage failure; the message names the violated precondition."""
        title = next((t for cls, t in _FAILURE_TITLES if isinstance(ex, cls)), "Error")
        return self.error(title=title, description=str(ex))

    def standings(self, standings: Standings, *, names: Mapping[int, str], title: str) -> discord.Embed:
        e = self.base(
            title=title,
            description=f"Week {standings.week} - {standings.year}",
            color=self._theme.gold,
        )
        for pos, team_id in standings.by_position().items():
            e.add_field(
                name=f"{_MEDALS[pos]} {pos.label}",
                value=names.get(team_id, f"Team {team_id}"),
                inline=False,
            )
        return e
