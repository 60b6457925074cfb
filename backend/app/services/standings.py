"""
Standings ranking.

A single tie-break chain orders participants everywhere: inside a poule,
when comparing candidates across poules, and for the non-qualified pool.

    1. match points (desc)
    2. average = points / turns, 0 when no turns played (desc)
    3. best single run (desc)

Full ties keep their input order (Python's sort is stable).
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from app.services.errors import InputError

logger = logging.getLogger(__name__)

FALLBACK_POULE_NUMBER = 1


@dataclass(frozen=True)
class Standing:
    participant_id: str
    player_name: str
    match_points: int = 0
    points: int = 0
    turns: int = 0
    best_run: int = 0

    @property
    def average(self) -> float:
        if self.turns <= 0:
            return 0.0
        return self.points / self.turns

    def ranking_key(self):
        return (-self.match_points, -self.average, -self.best_run)


@dataclass
class Poule:
    number: int
    standings: List[Standing] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.standings)

    def at(self, rank: int) -> Optional[Standing]:
        """1-based rank lookup; None when the poule is smaller."""
        if 1 <= rank <= len(self.standings):
            return self.standings[rank - 1]
        return None


def rank_standings(standings: Iterable[Standing]) -> List[Standing]:
    return sorted(standings, key=lambda s: s.ranking_key())


def standing_from_row(row) -> Standing:
    """Build a Standing from a PouleResult-like row, rejecting negative metrics."""
    for attr in ("match_points", "points", "turns", "best_run"):
        value = getattr(row, attr)
        if value is None or value < 0:
            raise InputError(
                f"Invalid {attr} for participant {row.participant_id}: {value!r}"
            )
    return Standing(
        participant_id=row.participant_id,
        player_name=row.player_name,
        match_points=row.match_points,
        points=row.points,
        turns=row.turns,
        best_run=row.best_run,
    )


def build_poules(rows: Sequence) -> List[Poule]:
    """
    Group round-robin rows into ranked poules.

    Rows are grouped by poule_number (ascending) and kept in player_order
    before ranking so that full ties resolve to sheet order. Rows with no
    poule number are all placed in one poule.
    """
    if not rows:
        return []

    if any(r.poule_number is None for r in rows):
        if any(r.poule_number is not None for r in rows):
            logger.warning("Incomplete poule numbering; treating all %d results as one poule", len(rows))
        ordered = sorted(rows, key=lambda r: r.player_order)
        return [Poule(number=FALLBACK_POULE_NUMBER, standings=rank_standings(standing_from_row(r) for r in ordered))]

    grouped: "OrderedDict[int, list]" = OrderedDict()
    for row in sorted(rows, key=lambda r: (r.poule_number, r.player_order)):
        grouped.setdefault(row.poule_number, []).append(row)

    return [
        Poule(number=number, standings=rank_standings(standing_from_row(r) for r in group))
        for number, group in grouped.items()
    ]


def overall_ranking(poules: Sequence[Poule]) -> List[Standing]:
    """Every participant across all poules, ranked by the tie-break chain."""
    return rank_standings(s for poule in poules for s in poule.standings)
