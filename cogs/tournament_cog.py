# cogs/tournament_cog.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from db.errors import StorageUnavailableError
from domain.topology import ENTRANT_COUNT
from repositories.standings_repo import StandingsRepo
from repositories.team_repo import TeamInUseError, TeamNameTakenError, TeamRepo
from repositories.tournament_repo import TournamentRepo
from renderers.embeds import Embeds
from renderers.champions_view import ChampionsOptions, ChampionsView

logger = logging.getLogger(__name__)


def _parse_date(v: Optional[str]) -> Optional[date]:
    if not v:
        return None
    return date.fromisoformat(v.strip())


class TournamentCog(commands.Cog):
    tournament = app_commands.Group(name="tournament", description="Weekly tournaments, teams and champions.")

    def __init__(
        self,
        bot: commands.Bot,
        *,
        tournament_repo: TournamentRepo,
        team_repo: TeamRepo,
        standings_repo: StandingsRepo,
        embeds: Embeds,
        champions_view: ChampionsView,
    ) -> None:
        self.bot = bot
        self.tournament_repo = tournament_repo
        self.team_repo = team_repo
        self.standings_repo = standings_repo
        self.embeds = embeds
        self.champions_view = champions_view

    async def _can_manage(self, interaction: discord.Interaction) -> bool:
        if not interaction.guild:
            return False
        if isinstance(interaction.user, discord.Member):
            return interaction.user.guild_permissions.manage_guild or interaction.user.guild_permissions.manage_channels
        return False

    async def _deny(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message("Missing permission to manage tournaments here.", ephemeral=True)

    async def _storage_failed(self, interaction: discord.Interaction, ex: StorageUnavailableError) -> None:
        logger.warning("Tournament command failed: %s", ex)
        await interaction.followup.send(embed=self.embeds.failure(ex), ephemeral=True)

    # -----------------------------
    # Commands
    # -----------------------------

    @tournament.command(name="create", description="Create this week's tournament.")
    @app_commands.describe(
        title="Tournament title",
        start_date="Start date as YYYY-MM-DD (default: today)",
        description="Short description",
        rules="Rules text",
    )
    async def create(
        self,
        interaction: discord.Interaction,
        title: str,
        start_date: Optional[str] = None,
        description: Optional[str] = None,
        rules: Optional[str] = None,
    ) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            start = _parse_date(start_date) or date.today()
        except ValueError:
            await interaction.followup.send(
                embed=self.embeds.warning(title="Invalid date", description="Use the YYYY-MM-DD format, e.g. 2026-10-18.")
            )
            return

        try:
            tournament_id = await self.tournament_repo.create_tournament(
                title=title.strip()[:128],
                description=description,
                rules=rules,
                start_date=start,
            )
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        iso = start.isocalendar()
        await interaction.followup.send(
            embed=self.embeds.success(
                title="Tournament created",
                description=(
                    f"**ID:** `{tournament_id}`\n**Title:** {title}\n"
                    f"**Starts:** {start.isoformat()} (week {iso[1]}, {iso[0]})\n"
                    f"Next: add {ENTRANT_COUNT} teams with `/tournament team_add` and mark them paid."
                ),
            )
        )

    @tournament.command(name="info", description="Show tournament details.")
    async def info(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.response.defer(ephemeral=True)

        try:
            t = await self.tournament_repo.get_tournament(tournament_id=tournament_id)
            teams = await self.team_repo.list_teams(tournament_id=tournament_id) if t else []
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        if not t:
            await interaction.followup.send(
                embed=self.embeds.error(title="Not found", description="Tournament not found."), ephemeral=True
            )
            return

        paid = sum(1 for r in teams if int(r.get("paid") or 0))
        e = self.embeds.info(title=f"Tournament {tournament_id}: {t.get('title')}", description=t.get("description"))
        e.add_field(name="Status", value=str(t.get("status")), inline=True)
        e.add_field(name="Start", value=str(t.get("start_date") or "-"), inline=True)
        e.add_field(name="Teams", value=f"{len(teams)} registered, {paid}/{ENTRANT_COUNT} paid", inline=True)
        if t.get("rules"):
            e.add_field(name="Rules", value=str(t.get("rules"))[:1024], inline=False)
        await interaction.followup.send(embed=e, ephemeral=True)

    @tournament.command(name="team_add", description="Register a team.")
    @app_commands.describe(
        tournament_id="Tournament ID",
        team_name="Team name (unique per tournament)",
        team_captain="Captain name",
        contact_no="Contact number",
        paid="Entry fee already paid",
    )
    async def team_add(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        team_name: str,
        team_captain: Optional[str] = None,
        contact_no: Optional[str] = None,
        paid: bool = False,
    ) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            t = await self.tournament_repo.get_tournament(tournament_id=tournament_id)
            if not t:
                await interaction.followup.send(
                    embed=self.embeds.error(title="Not found", description="Tournament not found.")
                )
                return
            team_id = await self.team_repo.create_team(
                tournament_id=tournament_id,
                team_name=team_name.strip()[:128],
                team_captain=team_captain,
                contact_no=contact_no,
                paid=paid,
            )
        except TeamNameTakenError as ex:
            await interaction.followup.send(embed=self.embeds.warning(title="Name taken", description=str(ex)))
            return
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        await interaction.followup.send(
            embed=self.embeds.success(
                title="Team registered",
                description=f"**{team_name}** (team `{team_id}`) {'paid' if paid else 'not paid yet'}.",
            )
        )

    @tournament.command(name="team_paid", description="Mark a team as paid (or unpaid).")
    async def team_paid(self, interaction: discord.Interaction, team_id: int, paid: bool = True) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=True)

        try:
            n = await self.team_repo.set_paid(team_id=team_id, paid=paid)
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        if n <= 0:
            e = self.embeds.warning(title="No change", description=f"Team `{team_id}` not found or already in that state.")
        else:
            e = self.embeds.success(title="Payment updated", description=f"Team `{team_id}` is now {'paid' if paid else 'unpaid'}.")
        await interaction.followup.send(embed=e, ephemeral=True)

    @tournament.command(name="team_remove", description="Remove a registered team.")
    async def team_remove(self, interaction: discord.Interaction, team_id: int) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=True)

        try:
            n = await self.team_repo.delete_team(team_id=team_id)
        except TeamInUseError as ex:
            await interaction.followup.send(embed=self.embeds.warning(title="Team in use", description=str(ex)), ephemeral=True)
            return
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        if n <= 0:
            e = self.embeds.warning(title="No change", description=f"Team `{team_id}` not found.")
        else:
            e = self.embeds.success(title="Team removed", description=f"Team `{team_id}` was removed.")
        await interaction.followup.send(embed=e, ephemeral=True)

    @tournament.command(name="teams", description="List registered teams.")
    async def teams(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.response.defer(ephemeral=False)

        try:
            rows = await self.team_repo.list_teams(tournament_id=tournament_id)
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        if not rows:
            await interaction.followup.send(embed=self.embeds.warning(title="No teams", description="No teams registered yet."))
            return

        lines = []
        for r in rows:
            mark = "💰" if int(r.get("paid") or 0) else "·"
            captain = f" ({r.get('team_captain')})" if r.get("team_captain") else ""
            lines.append(f"{mark} `{r.get('team_id')}` {r.get('team_name')}{captain}")
        paid = sum(1 for r in rows if int(r.get("paid") or 0))

        e = self.embeds.info(
            title=f"Tournament {tournament_id} Teams ({paid}/{ENTRANT_COUNT} paid)",
            description="\n".join(lines)[:4000],
        )
        await interaction.followup.send(embed=e)

    @tournament.command(name="champions", description="Weekly champions history.")
    @app_commands.describe(year="Filter by year", week="Filter by ISO week")
    async def champions(
        self,
        interaction: discord.Interaction,
        year: Optional[app_commands.Range[int, 2000, 2100]] = None,
        week: Optional[app_commands.Range[int, 1, 53]] = None,
    ) -> None:
        await interaction.response.defer(ephemeral=False)

        try:
            rows = await self.standings_repo.list_champions(year=year, week=week)
        except StorageUnavailableError as ex:
            await self._storage_failed(interaction, ex)
            return

        text = self.champions_view.render(rows, opts=ChampionsOptions())
        await interaction.followup.send(content=text)


async def setup(
    bot: commands.Bot,
    *,
    tournament_repo: TournamentRepo,
    team_repo: TeamRepo,
    standings_repo: StandingsRepo,
    embeds: Embeds,
    champions_view: ChampionsView,
) -> None:
    await bot.add_cog(
        TournamentCog(
            bot,
            tournament_repo=tournament_repo,
            team_repo=team_repo,
            standings_repo=standings_repo,
            embeds=embeds,
            champions_view=champions_view,
        )
    )
