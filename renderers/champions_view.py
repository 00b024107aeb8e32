# renderers/champions_view.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from domain.enums import Position


def _safe_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _pad(s: str, width: int) -> str:
    s = s or ""
    if len(s) > width:
        return s[: max(0, width - 1)] + "…" if width >= 2 else s[:width]
    return s + (" " * (width - len(s)))


def _position_label(v: Any) -> str:
    try:
        return Position(_safe_int(v)).label
    except ValueError:
        return f"#{v}"


@dataclass(frozen=True)
class ChampionsOptions:
    max_rows: int = 30
    name_width: int = 22
    title: str = "Weekly Champions"


class ChampionsView:
    """
    Weekly champions history as a monospace table.

    Expected rows (from StandingsRepo.list_champions):
      tournament_id, title, week, year, position, team_id, team_name
    """

    def render(self, rows: Sequence[Mapping[str, Any]], *, opts: ChampionsOptions | None = None) -> str:
        o = opts or ChampionsOptions()
        data = list(rows)[: o.max_rows]

        week_w = 10  # "W42 2026"
        pos_w = 14
        name_w = max(o.name_width, min(30, max((len(str(r.get("team_name") or "")) for r in data), default=o.name_width)))

        lines: list[str] = [f"=== {o.title} ==="]
        if not data:
            lines.append("(no champions recorded yet)")
            return "```text\n" + "\n".join(lines).rstrip() + "\n```"

        lines.append(f"{_pad('Week', week_w)} {_pad('Place', pos_w)} {_pad('Team', name_w)}")
        lines.append("-" * (week_w + 1 + pos_w + 1 + name_w))

        last_key: tuple[int, int, int] | None = None
        for r in data:
            key = (_safe_int(r.get("year")), _safe_int(r.get("week")), _safe_int(r.get("tournament_id")))
            if last_key is not None and key != last_key:
                lines.append("")
            week_txt = f"W{key[1]} {key[0]}" if key != last_key else ""
            last_key = key

            name = str(r.get("team_name") or f"team:{r.get('team_id')}")
            lines.append(f"{_pad(week_txt, week_w)} {_pad(_position_label(r.get('position')), pos_w)} {_pad(name, name_w)}")

        return "```text\n" + "\n".join(lines).rstrip() + "\n```"
