# domain/topology.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, TypeVar

from domain.enums import BracketSide, Outcome, Stage

T = TypeVar("T")

ENTRANT_COUNT = 16


@dataclass(frozen=True)
class Feed:
    stage: Stage
    outcome: Outcome


@dataclass(frozen=True)
class StageSpec:
    stage: Stage
    side: BracketSide
    match_count: int
    feeds: tuple[Feed, ...]  # empty for R1 (seeded from entrants)


def _w(stage: Stage) -> Feed:
    return Feed(stage, Outcome.WINNER)


def _l(stage: Stage) -> Feed:
    return Feed(stage, Outcome.LOSER)


# 16-entrant double elimination. Feeds are concatenated in the order listed,
# then paired consecutively (1v2, 3v4, ...).
TOPOLOGY: dict[Stage, StageSpec] = {
    Stage.R1: StageSpec(Stage.R1, BracketSide.UPPER, 8, ()),
    Stage.R2: StageSpec(Stage.R2, BracketSide.UPPER, 4, (_w(Stage.R1),)),
    Stage.LB_R2: StageSpec(Stage.LB_R2, BracketSide.LOWER, 2, (_l(Stage.R2),)),
    Stage.R3: StageSpec(Stage.R3, BracketSide.UPPER, 2, (_w(Stage.R2),)),
    Stage.LB_R2_FINAL: StageSpec(Stage.LB_R2_FINAL, BracketSide.LOWER, 1, (_w(Stage.LB_R2),)),
    Stage.LB_R3: StageSpec(Stage.LB_R3, BracketSide.LOWER, 1, (_l(Stage.R3),)),
    Stage.LB_FINAL: StageSpec(Stage.LB_FINAL, BracketSide.LOWER, 1, (_w(Stage.LB_R2_FINAL), _w(Stage.LB_R3))),
    Stage.R4: StageSpec(Stage.R4, BracketSide.UPPER, 1, (_w(Stage.R3),)),
    Stage.UPPER_SEMI: StageSpec(Stage.UPPER_SEMI, BracketSide.UPPER, 1, (_l(Stage.R4), _w(Stage.LB_FINAL))),
    Stage.FINAL: StageSpec(Stage.FINAL, BracketSide.UPPER, 1, (_w(Stage.R4), _w(Stage.UPPER_SEMI))),
}

STAGE_ORDER: tuple[Stage, ...] = tuple(TOPOLOGY)


def _check_topology() -> None:
    for spec in TOPOLOGY.values():
        if not spec.feeds:
            supplied = ENTRANT_COUNT
        else:
            supplied = sum(TOPOLOGY[f.stage].match_count for f in spec.feeds)
        if supplied != 2 * spec.match_count:
            raise RuntimeError(f"Topology error: {spec.stage.value} is fed {supplied} entrants for {spec.match_count} matches.")
        for f in spec.feeds:
            if STAGE_ORDER.index(f.stage) >= STAGE_ORDER.index(spec.stage):
                raise RuntimeError(f"Topology error: {spec.stage.value} is fed by later stage {f.stage.value}.")


_check_topology()


def spec_for(stage: Stage) -> StageSpec:
    return TOPOLOGY[Stage(stage)]


def dependencies(stage: Stage) -> tuple[Stage, ...]:
    """Distinct feeder stages, in feed order."""
    out: list[Stage] = []
    for f in spec_for(stage).feeds:
        if f.stage not in out:
            out.append(f.stage)
    return tuple(out)


def dependents(stage: Stage) -> tuple[Stage, ...]:
    """Stages fed directly by `stage`, in table order."""
    stage = Stage(stage)
    return tuple(s for s in STAGE_ORDER if stage in dependencies(s))


def downstream(stage: Stage) -> tuple[Stage, ...]:
    """Every stage derived from `stage`, transitively, in table order (excluding `stage`)."""
    seen: set[Stage] = set()
    frontier = [Stage(stage)]
    while frontier:
        cur = frontier.pop()
        for d in dependents(cur):
            if d not in seen:
                seen.add(d)
                frontier.append(d)
    return tuple(s for s in STAGE_ORDER if s in seen)


def ready_stages(*, existing: Iterable[Stage], complete: Iterable[Stage]) -> list[Stage]:
    """Stages not yet created whose feeder stages all exist and are complete."""
    existing_set = set(existing)
    complete_set = set(complete)
    out: list[Stage] = []
    for s in STAGE_ORDER:
        if s is Stage.R1 or s in existing_set:
            continue
        if all(d in complete_set for d in dependencies(s)):
            out.append(s)
    return out


def pair_in_order(items: Sequence[T]) -> list[tuple[T, T]]:
    if len(items) % 2 != 0:
        raise ValueError(f"Cannot pair an odd number of entries ({len(items)}).")
    return [(items[i], items[i + 1]) for i in range(0, len(items), 2)]
