"""Unit tests for the text renderers and the failure embeds"""

from domain.enums import BracketSide, Stage, WinnerSlot
from domain.models import Match, Slot
from db.errors import StorageUnavailableError
from renderers.bracket_view import BracketView
from renderers.champions_view import ChampionsView
from renderers.embeds import Embeds
from services.bracket_service import IncompleteStageError, InvalidEntrantCountError, StageLockedError


def _m(match_id, stage, side, match_no, a, b, winner=None) -> Match:
    return Match(
        match_id=match_id,
        tournament_id=1,
        stage=stage,
        bracket_side=side,
        match_no=match_no,
        slot_a=a,
        slot_b=b,
        winner=winner,
    )


BRACKET = {
    Stage.R2: [_m(9, Stage.R2, BracketSide.UPPER, 1, Slot.of(1), Slot.of(3), WinnerSlot.A)],
    Stage.LB_R2: [_m(13, Stage.LB_R2, BracketSide.LOWER, 1, Slot.of(3), Slot())],
}
NAMES = {1: "Falcons", 3: "Owls"}


def test_bracket_lines_show_ids_codes_and_status():
    lines = BracketView().lines(bracket=BRACKET, names=NAMES)

    assert lines[0] == "-- UPPER --"
    assert lines[1] == "R2:"
    assert "#9" in lines[2] and "R2-01" in lines[2]
    assert "Falcons" in lines[2] and "Owls" in lines[2]
    assert lines[2].endswith("✅ A")
    assert "-- LOWER --" in lines
    lb = next(ln for ln in lines if "LB-R2-01" in ln)
    assert "(tbd)" in lb and lb.endswith("⏳")


def test_bracket_render_unknown_names_fall_back_to_ids():
    text = BracketView().render(bracket=BRACKET, names={}, title="Cup")
    assert text.startswith("```text\n=== Cup ===")
    assert "Team 1" in text
    assert text.endswith("```")


def test_bracket_render_empty():
    assert "(no matches yet)" in BracketView().render(bracket={}, names={})


def test_bracket_chunks_fit_discord_limit():
    big = {
        Stage.R1: [
            _m(i, Stage.R1, BracketSide.UPPER, i, Slot.of(2 * i), Slot.of(2 * i + 1)) for i in range(1, 200)
        ]
    }
    chunks = BracketView().render_chunks(bracket=big, names={}, limit=500)
    assert len(chunks) > 1
    assert all(len(c) <= 500 for c in chunks)
    assert all(c.startswith("```text\n") and c.endswith("\n```") for c in chunks)


def test_champions_table_groups_by_week():
    rows = [
        {"tournament_id": 2, "title": "Cup 2", "week": 43, "year": 2026, "position": 1, "team_id": 5, "team_name": "Owls"},
        {"tournament_id": 2, "title": "Cup 2", "week": 43, "year": 2026, "position": 2, "team_id": 6, "team_name": "Hawks"},
        {"tournament_id": 1, "title": "Cup 1", "week": 42, "year": 2026, "position": 1, "team_id": 1, "team_name": "Falcons"},
    ]
    text = ChampionsView().render(rows)

    assert "W43 2026" in text and "W42 2026" in text
    assert text.count("W43 2026") == 1
    assert "Champion" in text and "1st Runner Up" in text
    assert "Falcons" in text


def test_champions_empty():
    assert "(no champions recorded yet)" in ChampionsView().render([])


def test_failure_embed_titles():
    embeds = Embeds()

    e = embeds.failure(InvalidEntrantCountError("Need exactly 16 paid entrants, found 12."))
    assert e.title == "Not enough paid teams"
    assert e.description == "Need exactly 16 paid entrants, found 12."

    assert embeds.failure(StageLockedError("locked")).title == "Stage locked"
    assert embeds.failure(IncompleteStageError("R1 open")).title == "Stage not finished"
    assert embeds.failure(StorageUnavailableError("fetch_all", "timed out after 5s")).title == "Database unavailable"
    assert embeds.failure(RuntimeError("boom")).title == "Error"
