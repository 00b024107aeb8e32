"""Unit tests for the bracket topology table and its helpers"""

import pytest

from domain.enums import BracketSide, Outcome, Stage
from domain.topology import (
    STAGE_ORDER,
    TOPOLOGY,
    dependencies,
    dependents,
    downstream,
    pair_in_order,
    ready_stages,
    spec_for,
)


def test_stage_order_follows_the_table():
    assert STAGE_ORDER == (
        Stage.R1,
        Stage.R2,
        Stage.LB_R2,
        Stage.R3,
        Stage.LB_R2_FINAL,
        Stage.LB_R3,
        Stage.LB_FINAL,
        Stage.R4,
        Stage.UPPER_SEMI,
        Stage.FINAL,
    )


def test_total_matches_for_sixteen_entrants():
    assert sum(spec.match_count for spec in TOPOLOGY.values()) == 22


def test_lower_bracket_stages_are_on_the_lower_side():
    lower = {s for s, spec in TOPOLOGY.items() if spec.side is BracketSide.LOWER}
    assert lower == {Stage.LB_R2, Stage.LB_R2_FINAL, Stage.LB_R3, Stage.LB_FINAL}


def test_upper_semi_takes_r4_loser_then_lower_champion():
    feeds = spec_for(Stage.UPPER_SEMI).feeds
    assert [(f.stage, f.outcome) for f in feeds] == [(Stage.R4, Outcome.LOSER), (Stage.LB_FINAL, Outcome.WINNER)]


def test_dependencies_and_dependents():
    assert dependencies(Stage.LB_FINAL) == (Stage.LB_R2_FINAL, Stage.LB_R3)
    assert dependencies(Stage.R1) == ()
    assert dependents(Stage.R2) == (Stage.LB_R2, Stage.R3)
    assert dependents(Stage.R4) == (Stage.UPPER_SEMI, Stage.FINAL)
    assert dependents(Stage.FINAL) == ()


def test_downstream_of_r2_is_everything_after_it():
    assert set(downstream(Stage.R2)) == {
        Stage.LB_R2,
        Stage.LB_R2_FINAL,
        Stage.LB_R3,
        Stage.LB_FINAL,
        Stage.R3,
        Stage.R4,
        Stage.UPPER_SEMI,
        Stage.FINAL,
    }
    assert Stage.R1 not in downstream(Stage.R2)


def test_downstream_of_lower_round_skips_upper_rounds():
    assert downstream(Stage.LB_R3) == (Stage.LB_FINAL, Stage.UPPER_SEMI, Stage.FINAL)


def test_ready_stages_needs_complete_feeders():
    assert ready_stages(existing={Stage.R1}, complete=set()) == []
    assert ready_stages(existing={Stage.R1}, complete={Stage.R1}) == [Stage.R2]
    assert ready_stages(existing={Stage.R1, Stage.R2}, complete={Stage.R1, Stage.R2}) == [Stage.LB_R2, Stage.R3]


def test_ready_stages_joint_trigger():
    existing = {Stage.R1, Stage.R2, Stage.LB_R2, Stage.R3, Stage.LB_R2_FINAL}
    complete = set(existing)
    assert Stage.LB_FINAL not in ready_stages(existing=existing, complete=complete)

    existing |= {Stage.LB_R3}
    assert Stage.LB_FINAL in ready_stages(existing=existing, complete=existing)


def test_pair_in_order():
    assert pair_in_order([1, 2, 3, 4]) == [(1, 2), (3, 4)]
    assert pair_in_order([]) == []
    with pytest.raises(ValueError):
        pair_in_order([1, 2, 3])
