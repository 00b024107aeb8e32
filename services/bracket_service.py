# services/bracket_service.py
from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Optional, Sequence

from domain.enums import Stage, TournamentState, TournamentStatus, WinnerSlot
from domain.models import Entrant, Match, MatchDraft, Slot, Standings, TournamentContext
from domain.topology import (
    ENTRANT_COUNT,
    STAGE_ORDER,
    dependencies,
    dependents,
    downstream,
    pair_in_order,
    ready_stages,
    spec_for,
)
from repositories.match_repo import MatchRepo
from repositories.standings_repo import StandingsRepo
from repositories.team_repo import TeamRepo
from repositories.tournament_repo import TournamentRepo

logger = logging.getLogger(__name__)


class BracketServiceError(Exception):
    pass


class InvalidEntrantCountError(BracketServiceError):
    pass


class IncompleteStageError(BracketServiceError):
    pass


class UnknownMatchError(BracketServiceError):
    pass


class AlreadyFinalizedError(BracketServiceError):
    pass


class BracketAlreadyExistsError(BracketServiceError):
    pass


class BracketStateError(BracketServiceError):
    pass


class StageLockedError(BracketStateError):
    pass


class BracketIntegrityError(BracketStateError):
    pass


def _codes(matches: Sequence[Match]) -> str:
    return ", ".join(m.code for m in matches)


def _stage_names(stages: Sequence[Stage]) -> str:
    return ", ".join(s.value for s in stages)


class BracketService:
    """
    16-entrant double elimination engine.

    Responsible for:
      - Seeding R1 from the paid entrants (uniform random draw)
      - Recording / toggling match winners
      - Building each later stage from its feeder results (explicit, operator-triggered)
      - Cancelling a stage and everything derived from it
      - Writing the final standings once

    Notes:
      - Stage creation goes through MatchRepo.insert_stage_if_absent, so a repeated or
        racing advance never creates a stage twice.
      - Nothing here retries storage calls; StorageUnavailableError reaches the caller.
    """

    def __init__(
        self,
        *,
        match_repo: MatchRepo,
        team_repo: TeamRepo,
        standings_repo: StandingsRepo,
        tournament_repo: TournamentRepo,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._matches = match_repo
        self._teams = team_repo
        self._standings = standings_repo
        self._tournaments = tournament_repo
        self._rng = rng or random.Random()

    # -------------------------
    # Public API
    # -------------------------

    async def generate_bracket(
        self,
        ctx: TournamentContext,
        *,
        entrants: Optional[Sequence[Entrant]] = None,
        confirm_reset: bool = False,
    ) -> list[Match]:
        """
        Shuffle the entrants and create the 8 R1 matches.

        Requires exactly 16 entrants (the tournament's paid teams when `entrants` is None).
        If matches or standings already exist the call fails unless `confirm_reset` is set,
        in which case all matches and standings of the tournament are deleted first.
        """
        tid = ctx.tournament_id
        if entrants is None:
            entrants = await self._teams.list_paid_entrants(tournament_id=tid)
        entrants = list(entrants)

        if len(entrants) != ENTRANT_COUNT:
            raise InvalidEntrantCountError(
                f"Need exactly {ENTRANT_COUNT} paid entrants, found {len(entrants)}."
            )
        ids = [e.entrant_id for e in entrants]
        if len(set(ids)) != len(ids):
            raise BracketStateError("Entrant list contains the same entrant more than once.")

        existing = await self._matches.list_matches(tournament_id=tid)
        standings = await self._standings.get_standings(tournament_id=tid)
        if (existing or standings) and not confirm_reset:
            if standings:
                raise AlreadyFinalizedError(
                    f"Tournament {tid} already has final standings. Confirm the reset to regenerate the bracket."
                )
            raise BracketAlreadyExistsError(
                f"Tournament {tid} already has {len(existing)} matches. Confirm the reset to regenerate the bracket."
            )

        if confirm_reset and (existing or standings):
            await self._matches.delete_by_tournament(tournament_id=tid)
            await self._standings.delete_by_tournament(tournament_id=tid)
            await self._tournaments.set_status(tournament_id=tid, status=TournamentStatus.ACTIVE)
            logger.info("Tournament %s reset: %d matches and standings removed", tid, len(existing))

        shuffled = list(entrants)
        self._rng.shuffle(shuffled)

        spec = spec_for(Stage.R1)
        drafts = [
            MatchDraft(
                stage=Stage.R1,
                bracket_side=spec.side,
                match_no=match_no,
                slot_a=Slot.of(a.entrant_id),
                slot_b=Slot.of(b.entrant_id),
            )
            for match_no, (a, b) in enumerate(pair_in_order(shuffled), start=1)
        ]

        created = await self._matches.insert_stage_if_absent(
            tournament_id=tid, stage=Stage.R1, bracket_side=spec.side, drafts=drafts
        )
        if not created:
            # another generate for this tournament landed first
            logger.warning("Tournament %s: R1 already existed at insert time; returning stored matches", tid)
            return await self._matches.list_stage(tournament_id=tid, stage=Stage.R1)

        logger.info("Tournament %s: bracket generated (%d R1 matches)", tid, len(created))
        return created

    async def record_winner(self, ctx: TournamentContext, *, match_id: int, slot: WinnerSlot | str) -> Match:
        """
        Set the winner of a match. Recording the same winner again clears it.
        Blocked once the match's stage has been advanced past.
        """
        tid = ctx.tournament_id
        slot = WinnerSlot(slot)

        m = await self._matches.get_match(match_id=match_id)
        if m is None or m.tournament_id != tid:
            raise UnknownMatchError(f"Match {match_id} does not exist in tournament {tid}.")

        if not (m.slot_a.is_concrete and m.slot_b.is_concrete):
            raise BracketStateError(
                f"Match {m.code} needs two entrants before a winner can be recorded."
            )

        if await self._standings.get_standings(tournament_id=tid) is not None:
            raise AlreadyFinalizedError(f"Tournament {tid} is finalized; results can no longer change.")

        existing = await self._matches.list_stages(tournament_id=tid)
        derived = [s for s in dependents(m.stage) if s in existing]
        if derived:
            raise StageLockedError(
                f"{m.stage.value} already feeds {_stage_names(derived)}. "
                f"Cancel {m.stage.value} before changing its results."
            )

        new_winner = None if m.winner is slot else slot
        await self._matches.update_winner(match_id=m.match_id, winner=new_winner)

        if new_winner is None:
            logger.info("Tournament %s: winner cleared on %s (match %s)", tid, m.code, m.match_id)
        else:
            logger.info("Tournament %s: %s won by slot %s (match %s)", tid, m.code, new_winner.value, m.match_id)
        return replace(m, winner=new_winner)

    async def advance_stage(self, ctx: TournamentContext, stage: Stage | str) -> list[Match]:
        """
        Build `stage` from its feeder results. A no-op (returns the stored matches) if it already exists.
        """
        tid = ctx.tournament_id
        stage = Stage(stage)
        if stage is Stage.R1:
            raise BracketStateError("R1 is seeded by bracket generation, not advanced.")

        existing = await self._matches.list_stage(tournament_id=tid, stage=stage)
        if existing:
            logger.info("Tournament %s: %s already exists, nothing to advance", tid, stage.value)
            return existing

        feeders: dict[Stage, list[Match]] = {}
        for dep in dependencies(stage):
            ms = await self._matches.list_stage(tournament_id=tid, stage=dep)
            if not ms:
                raise IncompleteStageError(f"Cannot build {stage.value}: {dep.value} has not been created yet.")
            undecided = [m for m in ms if not m.is_decided]
            if undecided:
                raise IncompleteStageError(
                    f"Cannot build {stage.value}: {dep.value} match(es) {_codes(undecided)} have no winner."
                )
            feeders[dep] = ms

        drafts = self._plan_stage(stage, feeders)
        created = await self._matches.insert_stage_if_absent(
            tournament_id=tid, stage=stage, bracket_side=spec_for(stage).side, drafts=drafts
        )
        if not created:
            logger.warning("Tournament %s: %s was created concurrently; returning stored matches", tid, stage.value)
            return await self._matches.list_stage(tournament_id=tid, stage=stage)

        logger.info("Tournament %s: advanced to %s (%d matches)", tid, stage.value, len(created))
        return created

    async def advance_ready(self, ctx: TournamentContext) -> list[Stage]:
        """
        Create every stage whose feeders are complete. Returns the stages created, in table order.
        """
        tid = ctx.tournament_id
        matches = await self._matches.list_matches(tournament_id=tid)
        existing = {m.stage for m in matches}
        complete = {s for s in existing if all(m.is_decided for m in matches if m.stage is s)}

        created: list[Stage] = []
        for s in ready_stages(existing=existing, complete=complete):
            await self.advance_stage(ctx, s)
            created.append(s)
        return created

    async def finalize_standings(self, ctx: TournamentContext) -> Standings:
        """
        Champion = Final winner, 1st runner-up = Final loser, 2nd runner-up = Upper-Semi loser.
        Written once; later calls return the stored standings.
        """
        tid = ctx.tournament_id
        stored = await self._standings.get_standings(tournament_id=tid)
        if stored is not None:
            logger.info("Tournament %s: standings already recorded", tid)
            return stored

        final = await self._single_decided(tid, Stage.FINAL)
        semi = await self._single_decided(tid, Stage.UPPER_SEMI)

        standings = Standings(
            tournament_id=tid,
            champion_id=int(final.winner_id),
            first_runner_up_id=int(final.loser_id),
            second_runner_up_id=int(semi.loser_id),
            week=ctx.week,
            year=ctx.year,
        )
        if not await self._standings.record_standings(standings):
            logger.warning("Tournament %s: standings were recorded concurrently", tid)
            again = await self._standings.get_standings(tournament_id=tid)
            return again if again is not None else standings

        await self._tournaments.set_status(tournament_id=tid, status=TournamentStatus.COMPLETED)
        logger.info(
            "Tournament %s finalized (week %s/%s): champion=%s runner-up=%s second runner-up=%s",
            tid, ctx.week, ctx.year,
            standings.champion_id, standings.first_runner_up_id, standings.second_runner_up_id,
        )
        return standings

    async def cancel_stage(self, ctx: TournamentContext, stage: Stage | str) -> list[Stage]:
        """
        Clear the winners of `stage` and delete every stage derived from it.
        Returns the deleted stages in table order.
        """
        tid = ctx.tournament_id
        stage = Stage(stage)

        if await self._standings.get_standings(tournament_id=tid) is not None:
            raise AlreadyFinalizedError(
                f"Tournament {tid} is finalized. Regenerate the bracket (with reset) to replay it."
            )

        existing = await self._matches.list_stages(tournament_id=tid)
        doomed = [s for s in downstream(stage) if s in existing]
        if doomed:
            await self._matches.delete_stages(tournament_id=tid, stages=doomed)
        cleared = await self._matches.clear_winners(tournament_id=tid, stage=stage)

        logger.info(
            "Tournament %s: cancelled %s (%d winners cleared, removed: %s)",
            tid, stage.value, cleared, _stage_names(doomed) or "none",
        )
        return doomed

    async def get_state(self, ctx: TournamentContext) -> TournamentState:
        tid = ctx.tournament_id
        if await self._standings.get_standings(tournament_id=tid) is not None:
            return TournamentState.COMPLETE
        existing = await self._matches.list_stages(tournament_id=tid)
        latest = [s for s in STAGE_ORDER if s in existing]
        if not latest:
            return TournamentState.UNSEEDED
        return TournamentState(latest[-1].value)

    async def get_bracket(self, ctx: TournamentContext) -> dict[Stage, list[Match]]:
        matches = await self._matches.list_matches(tournament_id=ctx.tournament_id)
        out: dict[Stage, list[Match]] = {}
        for s in STAGE_ORDER:
            ms = sorted((m for m in matches if m.stage is s), key=lambda m: m.match_no)
            if ms:
                out[s] = ms
        return out

    # -------------------------
    # Internals
    # -------------------------

    def _plan_stage(self, stage: Stage, feeders: dict[Stage, list[Match]]) -> list[MatchDraft]:
        spec = spec_for(stage)

        # (slot, source match) in bracket order, feeds concatenated as listed in the topology
        entries: list[tuple[Slot, int]] = []
        for feed in spec.feeds:
            for m in sorted(feeders[feed.stage], key=lambda x: x.match_no):
                entries.append((m.outcome_slot(feed.outcome), m.match_id))

        if len(entries) != 2 * spec.match_count:
            raise BracketIntegrityError(
                f"{stage.value} expects {2 * spec.match_count} entrants but its feeders produced {len(entries)}."
            )

        seen: set[int] = set()
        for slot, _src in entries:
            if slot.is_concrete:
                if slot.entrant_id in seen:
                    raise BracketIntegrityError(
                        f"Entrant {slot.entrant_id} would appear twice in {stage.value}; stored results are inconsistent."
                    )
                seen.add(slot.entrant_id)

        return [
            MatchDraft(
                stage=stage,
                bracket_side=spec.side,
                match_no=match_no,
                slot_a=a_slot,
                slot_b=b_slot,
                source_match_a=a_src,
                source_match_b=b_src,
            )
            for match_no, ((a_slot, a_src), (b_slot, b_src)) in enumerate(pair_in_order(entries), start=1)
        ]

    async def _single_decided(self, tournament_id: int, stage: Stage) -> Match:
        ms = await self._matches.list_stage(tournament_id=tournament_id, stage=stage)
        if not ms:
            raise IncompleteStageError(f"Cannot finalize: {stage.value} has not been created yet.")
        m = ms[0]
        if not m.is_decided:
            raise IncompleteStageError(f"Cannot finalize: {stage.value} ({m.code}) has no winner.")
        return m
