# renderers/bracket_view.py
from __future__ import annotations

from typing import Mapping, Optional, Sequence

from domain.enums import BracketSide, Stage
from domain.models import Match, Slot

DISCORD_MESSAGE_LIMIT = 2000


def _pad(s: str, width: int) -> str:
    s = s or ""
    if len(s) >= width:
        return s[: max(0, width - 1)] + "…" if width >= 2 else s[:width]
    return s + (" " * (width - len(s)))


def _slot_label(slot: Slot, names: Mapping[int, str], *, name_width: int) -> str:
    if slot.bye:
        return _pad("BYE", name_width)
    if slot.entrant_id is None:
        return _pad("(tbd)", name_width)
    return _pad(names.get(slot.entrant_id) or f"Team {slot.entrant_id}", name_width)


def _status_mark(m: Match) -> str:
    if m.winner is not None:
        return f"✅ {m.winner.value}"
    if m.is_bye:
        return "✅ bye"
    return "⏳"


def _code_block(lines: Sequence[str]) -> str:
    return "```text\n" + "\n".join(lines).rstrip() + "\n```"


class BracketView:
    """
    Monospace bracket listing for the operator (Discord code blocks).

    Each line carries the match id the /bracket winner command expects, plus
    the A/B slot letters used to pick the winner.
    """

    def __init__(self, *, name_width: int = 18) -> None:
        self._name_width = int(name_width)

    def lines(self, *, bracket: Mapping[Stage, Sequence[Match]], names: Mapping[int, str]) -> list[str]:
        out: list[str] = []
        curr_side: Optional[BracketSide] = None
        for stage, matches in bracket.items():
            if not matches:
                continue
            side = matches[0].bracket_side
            if side is not curr_side:
                curr_side = side
                out.append(f"-- {side.value.upper()} --")
            out.append(f"{stage.value}:")
            for m in matches:
                a = _slot_label(m.slot_a, names, name_width=self._name_width)
                b = _slot_label(m.slot_b, names, name_width=self._name_width)
                out.append(f"  #{m.match_id:<5} {m.code:<15} A {a} vs B {b}  {_status_mark(m)}")
            out.append("")
        return out

    def render(
        self,
        *,
        bracket: Mapping[Stage, Sequence[Match]],
        names: Mapping[int, str],
        title: str = "Bracket",
        max_lines: int = 60,
    ) -> str:
        body = self.lines(bracket=bracket, names=names) or ["(no matches yet)"]

        # keep the end when trimming; the finals matter most
        if len(body) > max_lines:
            body = ["..."] + body[-(max_lines - 1):]

        return _code_block([f"=== {title} ===", ""] + body)

    def render_chunks(
        self,
        *,
        bracket: Mapping[Stage, Sequence[Match]],
        names: Mapping[int, str],
        title: str = "Bracket",
        limit: int = DISCORD_MESSAGE_LIMIT,
    ) -> list[str]:
        """Split the listing into code blocks that each fit in one Discord message."""
        body = self.lines(bracket=bracket, names=names) or ["(no matches yet)"]
        budget = limit - len(_code_block([]))

        chunks: list[list[str]] = [[f"=== {title} ===", ""]]
        size = sum(len(x) + 1 for x in chunks[0])
        for line in body:
            if size + len(line) + 1 > budget and chunks[-1]:
                chunks.append([])
                size = 0
            chunks[-1].append(line)
            size += len(line) + 1
        return [_code_block(c) for c in chunks if any(x.strip() for x in c)]
