# cogs/bracket_cog.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from db.errors import StorageUnavailableError
from domain.enums import Stage, WinnerSlot
from domain.models import TournamentContext
from domain.topology import STAGE_ORDER
from repositories.team_repo import TeamRepo
from repositories.tournament_repo import TournamentRepo
from services.bracket_service import BracketService, BracketServiceError
from renderers.embeds import Embeds
from renderers.bracket_view import BracketView

logger = logging.getLogger(__name__)

_STAGE_CHOICES = [app_commands.Choice(name=s.value, value=s.value) for s in STAGE_ORDER]
_ADVANCE_CHOICES = [c for c in _STAGE_CHOICES if c.value != Stage.R1.value]


class BracketCog(commands.Cog):
    bracket = app_commands.Group(name="bracket", description="Run the weekly double-elimination bracket.")

    def __init__(
        self,
        bot: commands.Bot,
        *,
        bracket_service: BracketService,
        tournament_repo: TournamentRepo,
        team_repo: TeamRepo,
        embeds: Embeds,
        bracket_view: BracketView,
    ) -> None:
        self.bot = bot
        self.brackets = bracket_service
        self.tournament_repo = tournament_repo
        self.team_repo = team_repo
        self.embeds = embeds
        self.bracket_view = bracket_view

    # -----------------------------
    # Helpers
    # -----------------------------

    async def _can_manage(self, interaction: discord.Interaction) -> bool:
        if not interaction.guild:
            return False
        if isinstance(interaction.user, discord.Member):
            return interaction.user.guild_permissions.manage_guild or interaction.user.guild_permissions.manage_channels
        return False

    async def _context(
        self,
        tournament_id: int,
        *,
        week: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Optional[TournamentContext]:
        t = await self.tournament_repo.get_tournament(tournament_id=tournament_id)
        if not t:
            return None
        start = t.get("start_date")
        ctx = TournamentContext.for_date(tournament_id, start if isinstance(start, date) else date.today())
        if week is not None or year is not None:
            ctx = TournamentContext(
                tournament_id=ctx.tournament_id,
                week=int(week) if week is not None else ctx.week,
                year=int(year) if year is not None else ctx.year,
            )
        return ctx

    async def _deny(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message("Missing permission to manage the bracket here.", ephemeral=True)

    async def _not_found(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.followup.send(
            embed=self.embeds.error(title="Not found", description=f"Tournament `{tournament_id}` not found.")
        )

    async def _fail(self, interaction: discord.Interaction, ex: Exception) -> None:
        logger.warning("Bracket command failed: %s", ex)
        await interaction.followup.send(embed=self.embeds.failure(ex))

    # -----------------------------
    # Commands
    # -----------------------------

    @bracket.command(name="generate", description="Draw the Round 1 matches from the 16 paid teams.")
    @app_commands.describe(
        tournament_id="Tournament ID",
        confirm_reset="Delete the existing bracket and standings first",
    )
    async def generate(self, interaction: discord.Interaction, tournament_id: int, confirm_reset: bool = False) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            ctx = await self._context(tournament_id)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            created = await self.brackets.generate_bracket(ctx, confirm_reset=confirm_reset)
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        await interaction.followup.send(
            embed=self.embeds.success(
                title="Bracket generated",
                description=(
                    f"Created **{len(created)}** Round 1 matches for tournament `{tournament_id}`.\n"
                    f"Use `/bracket show {tournament_id}` to view."
                ),
            )
        )

    @bracket.command(name="show", description="Show the current bracket.")
    async def show(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.response.defer(ephemeral=False)

        try:
            ctx = await self._context(tournament_id)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            bracket = await self.brackets.get_bracket(ctx)
            names = await self.team_repo.entrant_names(tournament_id=tournament_id)
            state = await self.brackets.get_state(ctx)
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        if not bracket:
            await interaction.followup.send(
                embed=self.embeds.warning(title="No matches", description="No bracket generated yet.")
            )
            return

        e = self.embeds.info(title=f"Tournament {tournament_id} Bracket", description=f"State: **{state.value}**")
        await interaction.followup.send(embed=e)
        for chunk in self.bracket_view.render_chunks(bracket=bracket, names=names, title=f"Tournament {tournament_id}"):
            await interaction.followup.send(content=chunk)

        await interaction.followup.send(
            embed=self.embeds.info(
                title="Recording results",
                description=(
                    "Use the match id (`#`) and the winning slot letter shown in the bracket.\n\n"
                    f"Example:\n`/bracket winner tournament_id:{tournament_id} match_id:12 slot:A`\n\n"
                    "Recording the same winner again clears it."
                ),
            )
        )

    @bracket.command(name="winner", description="Record (or clear) the winner of a match.")
    @app_commands.describe(
        tournament_id="Tournament ID",
        match_id="Match id shown as #id in /bracket show",
        slot="Winning slot (A or B)",
    )
    @app_commands.choices(
        slot=[
            app_commands.Choice(name="A", value=WinnerSlot.A.value),
            app_commands.Choice(name="B", value=WinnerSlot.B.value),
        ]
    )
    async def winner(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        match_id: int,
        slot: app_commands.Choice[str],
    ) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            ctx = await self._context(tournament_id)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            m = await self.brackets.record_winner(ctx, match_id=match_id, slot=slot.value)
            names = await self.team_repo.entrant_names(tournament_id=tournament_id)
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        if m.winner is None:
            e = self.embeds.warning(title="Winner cleared", description=f"`{m.code}` (#{m.match_id}) has no winner now.")
        else:
            name = names.get(m.winner_id, f"Team {m.winner_id}")
            e = self.embeds.success(
                title="Match recorded",
                description=f"`{m.code}` (#{m.match_id}) won by **{name}** (slot {m.winner.value}).",
            )
        await interaction.followup.send(embed=e)

    @bracket.command(name="advance", description="Build the next stage(s) from finished results.")
    @app_commands.describe(
        tournament_id="Tournament ID",
        stage="Stage to build (leave empty to build every stage that is ready)",
    )
    @app_commands.choices(stage=_ADVANCE_CHOICES)
    async def advance(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        stage: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            ctx = await self._context(tournament_id)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            if stage is not None:
                created = await self.brackets.advance_stage(ctx, stage.value)
                built = [stage.value] if created else []
            else:
                built = [s.value for s in await self.brackets.advance_ready(ctx)]
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        if not built:
            await interaction.followup.send(
                embed=self.embeds.warning(title="Nothing to advance", description="No stage is ready yet.")
            )
            return
        await interaction.followup.send(
            embed=self.embeds.success(title="Bracket advanced", description="Stages ready: " + ", ".join(built))
        )

    @bracket.command(name="cancel", description="Clear a stage's results and remove every stage built from it.")
    @app_commands.describe(tournament_id="Tournament ID", stage="Stage to cancel")
    @app_commands.choices(stage=_STAGE_CHOICES)
    async def cancel(self, interaction: discord.Interaction, tournament_id: int, stage: app_commands.Choice[str]) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            ctx = await self._context(tournament_id)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            removed = await self.brackets.cancel_stage(ctx, stage.value)
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        removed_txt = ", ".join(s.value for s in removed) if removed else "none"
        await interaction.followup.send(
            embed=self.embeds.success(
                title="Stage cancelled",
                description=f"Cleared results of **{stage.value}**.\nRemoved stages: {removed_txt}",
            )
        )

    @bracket.command(name="finalize", description="Record the champion and runners-up.")
    @app_commands.describe(
        tournament_id="Tournament ID",
        week="ISO week to file the result under (default: tournament start week)",
        year="Year to file the result under",
    )
    async def finalize(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        week: Optional[app_commands.Range[int, 1, 53]] = None,
        year: Optional[app_commands.Range[int, 2000, 2100]] = None,
    ) -> None:
        if not await self._can_manage(interaction):
            await self._deny(interaction)
            return
        await interaction.response.defer(ephemeral=False)

        try:
            ctx = await self._context(tournament_id, week=week, year=year)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            standings = await self.brackets.finalize_standings(ctx)
            names = await self.team_repo.entrant_names(tournament_id=tournament_id)
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        await interaction.followup.send(
            embed=self.embeds.standings(standings, names=names, title=f"Tournament {tournament_id} Results")
        )

    @bracket.command(name="state", description="Show how far the bracket has progressed.")
    async def state(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.response.defer(ephemeral=True)

        try:
            ctx = await self._context(tournament_id)
            if ctx is None:
                await self._not_found(interaction, tournament_id)
                return
            st = await self.brackets.get_state(ctx)
        except (BracketServiceError, StorageUnavailableError) as ex:
            await self._fail(interaction, ex)
            return

        await interaction.followup.send(
            embed=self.embeds.info(title=f"Tournament {tournament_id}", description=f"State: **{st.value}**"),
            ephemeral=True,
        )


async def setup(
    bot: commands.Bot,
    *,
    bracket_service: BracketService,
    tournament_repo: TournamentRepo,
    team_repo: TeamRepo,
    embeds: Embeds,
    bracket_view: BracketView,
) -> None:
    await bot.add_cog(
        BracketCog(
            bot,
            bracket_service=bracket_service,
            tournament_repo=tournament_repo,
            team_repo=team_repo,
            embeds=embeds,
            bracket_view=bracket_view,
        )
    )
