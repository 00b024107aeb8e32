"""Unit tests for match/slot helpers"""

from datetime import date

import pytest

from domain.enums import BracketSide, Outcome, Position, Stage, WinnerSlot
from domain.models import Match, Slot, Standings, TournamentContext, match_code


def _match(slot_a: Slot, slot_b: Slot, winner=None) -> Match:
    return Match(
        match_id=7,
        tournament_id=1,
        stage=Stage.LB_R2,
        bracket_side=BracketSide.LOWER,
        match_no=2,
        slot_a=slot_a,
        slot_b=slot_b,
        winner=winner,
    )


def test_match_code():
    assert match_code(Stage.R2, 1) == "R2-01"
    assert _match(Slot.of(1), Slot.of(2)).code == "LB-R2-02"


def test_undecided_match_has_no_outcome():
    m = _match(Slot.of(1), Slot.of(2))
    assert not m.is_decided
    assert m.winner_id is None
    with pytest.raises(ValueError):
        m.outcome_slot(Outcome.WINNER)


def test_winner_and_loser():
    m = _match(Slot.of(1), Slot.of(2), winner=WinnerSlot.B)
    assert m.winner_id == 2
    assert m.loser_id == 1


def test_bye_is_decided_for_the_concrete_entrant():
    m = _match(Slot.make_bye(), Slot.of(5))
    assert m.is_bye
    assert m.resolved_winner is WinnerSlot.B
    assert m.winner_id == 5
    assert m.outcome_slot(Outcome.LOSER).bye
    assert m.entrant_ids() == [5]


def test_from_row():
    m = Match.from_row(
        {
            "match_id": 3,
            "tournament_id": 1,
            "stage": "Upper-Semi",
            "bracket_side": "upper",
            "match_no": 1,
            "slot_a_team_id": 9,
            "slot_a_bye": 0,
            "slot_b_team_id": None,
            "slot_b_bye": 0,
            "winner": None,
            "source_match_a_id": 20,
            "source_match_b_id": None,
        }
    )
    assert m.stage is Stage.UPPER_SEMI
    assert m.slot_b.is_empty
    assert m.source_match_a == 20
    assert not m.is_decided


def test_context_uses_iso_week():
    ctx = TournamentContext.for_date(4, date(2026, 1, 1))
    assert (ctx.week, ctx.year) == (1, 2026)
    ctx = TournamentContext.for_date(4, date(2027, 1, 1))
    assert (ctx.week, ctx.year) == (53, 2026)


def test_standings_by_position():
    s = Standings(tournament_id=1, champion_id=1, first_runner_up_id=9, second_runner_up_id=3, week=42, year=2026)
    assert s.by_position() == {Position.CHAMPION: 1, Position.FIRST_RUNNER_UP: 9, Position.SECOND_RUNNER_UP: 3}
    assert Position.SECOND_RUNNER_UP.label == "2nd Runner Up"
