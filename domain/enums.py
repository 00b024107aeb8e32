# domain/enums.py
from __future__ import annotations

from enum import Enum, IntEnum


class BracketSide(str, Enum):
    UPPER = "upper"
    LOWER = "lower"


class Stage(str, Enum):
    # Declaration order is the topology table order (bracket order of play).
    R1 = "R1"
    R2 = "R2"
    LB_R2 = "LB-R2"
    R3 = "R3"
    LB_R2_FINAL = "LB-R2-Final"
    LB_R3 = "LB-R3"
    LB_FINAL = "LB-Final"
    R4 = "R4"
    UPPER_SEMI = "Upper-Semi"
    FINAL = "Final"


class WinnerSlot(str, Enum):
    A = "A"
    B = "B"

    @property
    def other(self) -> "WinnerSlot":
        return WinnerSlot.B if self is WinnerSlot.A else WinnerSlot.A


class Outcome(str, Enum):
    WINNER = "winner"
    LOSER = "loser"


class TournamentState(str, Enum):
    UNSEEDED = "Unseeded"
    R1 = "R1"
    R2 = "R2"
    LB_R2 = "LB-R2"
    R3 = "R3"
    LB_R2_FINAL = "LB-R2-Final"
    LB_R3 = "LB-R3"
    LB_FINAL = "LB-Final"
    R4 = "R4"
    UPPER_SEMI = "Upper-Semi"
    FINAL = "Final"
    COMPLETE = "Complete"


class Position(IntEnum):
    CHAMPION = 1
    FIRST_RUNNER_UP = 2
    SECOND_RUNNER_UP = 3

    @property
    def label(self) -> str:
        return {
            Position.CHAMPION: "Champion",
            Position.FIRST_RUNNER_UP: "1st Runner Up",
            Position.SECOND_RUNNER_UP: "2nd Runner Up",
        }[self]


class TournamentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
