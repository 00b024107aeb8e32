# main.py
from __future__ import annotations

import asyncio
import logging
import random
import signal
from dataclasses import asdict
from typing import Optional

import discord
from discord.ext import commands

from config import BotConfig, load_config
from db.pool import DbPool, MySqlPoolConfig

from repositories.match_repo import MatchRepo
from repositories.standings_repo import StandingsRepo
from repositories.team_repo import TeamRepo
from repositories.tournament_repo import TournamentRepo

from services.bracket_service import BracketService

from renderers.embeds import Embeds
from renderers.bracket_view import BracketView
from renderers.champions_view import ChampionsView

from cogs.bracket_cog import setup as setup_bracket_cog
from cogs.tournament_cog import setup as setup_tournament_cog


class WeeklyCupBot(commands.Bot):
    def __init__(self, cfg: BotConfig) -> None:
        self.cfg = cfg

        intents = discord.Intents.default()
        super().__init__(
            command_prefix=self.cfg.command_prefix,
            intents=intents,
            allowed_mentions=discord.AllowedMentions.none(),
        )

        self.db: Optional[DbPool] = None

    async def setup_hook(self) -> None:
        logging.info("Starting setup_hook...")

        # --- DB ---
        self.db = DbPool()
        await self.db.start(MySqlPoolConfig(**asdict(self.cfg.mysql)))

        # --- Repos ---
        match_repo = MatchRepo(self.db)
        team_repo = TeamRepo(self.db)
        standings_repo = StandingsRepo(self.db)
        tournament_repo = TournamentRepo(self.db)

        # --- Services ---
        if self.cfg.bracket_rng_seed is not None:
            logging.warning("BRACKET_RNG_SEED is set (%s); bracket draws are reproducible", self.cfg.bracket_rng_seed)
        bracket_service = BracketService(
            match_repo=match_repo,
            team_repo=team_repo,
            standings_repo=standings_repo,
            tournament_repo=tournament_repo,
            rng=random.Random(self.cfg.bracket_rng_seed),
        )

        # --- Renderers ---
        embeds = Embeds()
        bracket_view = BracketView()
        champions_view = ChampionsView()

        # --- Cogs ---
        await setup_tournament_cog(
            self,
            tournament_repo=tournament_repo,
            team_repo=team_repo,
            standings_repo=standings_repo,
            embeds=embeds,
            champions_view=champions_view,
        )
        await setup_bracket_cog(
            self,
            bracket_service=bracket_service,
            tournament_repo=tournament_repo,
            team_repo=team_repo,
            embeds=embeds,
            bracket_view=bracket_view,
        )

        # --- Slash sync ---
        if self.cfg.dev_guild_id:
            guild = discord.Object(id=self.cfg.dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logging.info("Slash commands synced to DEV guild %s", self.cfg.dev_guild_id)
        else:
            await self.tree.sync()
            logging.info("Slash commands synced globally")

        logging.info("setup_hook complete.")

    async def close(self) -> None:
        try:
            await super().close()
        finally:
            if self.db:
                await self.db.close()
                self.db = None


async def _run_bot() -> None:
    cfg = load_config()

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bot = WeeklyCupBot(cfg)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _request_stop(*_args) -> None:
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop)
        except NotImplementedError:
            pass

    async with bot:
        runner = asyncio.create_task(bot.start(cfg.token))
        stopper = asyncio.create_task(stop_event.wait())
        done, _pending = await asyncio.wait({runner, stopper}, return_when=asyncio.FIRST_COMPLETED)
        stopper.cancel()
        if runner in done:
            # surfaces login / setup_hook failures
            runner.result()
        else:
            logging.info("Shutdown requested")
            await bot.close()
            await asyncio.gather(runner, return_exceptions=True)


def main() -> None:
    asyncio.run(_run_bot())


if __name__ == "__main__":
    main()
