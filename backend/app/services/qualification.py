"""
Qualification: which poule players enter the elimination bracket.

The rule is derived from the number of poules every time it is needed:

    poules  rule               candidates
    0-1     single_poule       (no bracket)
    2       top2_each          1st and 2nd of each poule
    3       all_1st_best_2nd   every 1st + the best 2nd across poules
    4       all_1st            every 1st
    5+      best_4_overall     every 1st and 2nd, best ranked win

Candidates are ranked with the standings tie-break chain and truncated to the
bracket size; seed = rank index + 1. Everyone else forms the non-qualified
pool, ranked the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence

from app.services.errors import InputError
from app.services.standings import Poule, Standing, rank_standings

logger = logging.getLogger(__name__)


class QualificationRule(str, Enum):
    single_poule = "single_poule"
    top2_each = "top2_each"
    all_1st_best_2nd = "all_1st_best_2nd"
    all_1st = "all_1st"
    best_4_overall = "best_4_overall"


@dataclass(frozen=True)
class Qualifier:
    standing: Standing
    seed: int
    poule_number: int

    @property
    def participant_id(self) -> str:
        return self.standing.participant_id

    @property
    def player_name(self) -> str:
        return self.standing.player_name


@dataclass
class QualificationResult:
    rule: QualificationRule
    qualifiers: List[Qualifier] = field(default_factory=list)
    non_qualified: List[Standing] = field(default_factory=list)


def rule_for_poule_count(poule_count: int) -> QualificationRule:
    if poule_count <= 1:
        return QualificationRule.single_poule
    if poule_count == 2:
        return QualificationRule.top2_each
    if poule_count == 3:
        return QualificationRule.all_1st_best_2nd
    if poule_count == 4:
        return QualificationRule.all_1st
    return QualificationRule.best_4_overall


def _firsts(poules: Sequence[Poule]) -> List[Standing]:
    return [p.at(1) for p in poules if p.at(1) is not None]


def _seconds(poules: Sequence[Poule]) -> List[Standing]:
    return [p.at(2) for p in poules if p.at(2) is not None]


def gather_candidates(poules: Sequence[Poule], rule: QualificationRule) -> List[Standing]:
    if rule == QualificationRule.top2_each:
        return [s for p in poules for s in p.standings[:2]]
    if rule == QualificationRule.all_1st_best_2nd:
        seconds = rank_standings(_seconds(poules))
        return _firsts(poules) + seconds[:1]
    if rule == QualificationRule.all_1st:
        return _firsts(poules)
    if rule == QualificationRule.best_4_overall:
        return _firsts(poules) + _seconds(poules)
    raise InputError(f"Qualification rule {rule.value} has no bracket")


def select_qualifiers(
    poules: Sequence[Poule],
    bracket_size: int,
    rule: QualificationRule,
) -> QualificationResult:
    if bracket_size not in (2, 4):
        raise InputError(f"bracket_size must be 2 or 4, got {bracket_size}")

    everyone = [s for p in poules for s in p.standings]
    if len(everyone) < bracket_size:
        raise InputError(
            f"Configuration incompatible: {len(everyone)} participants for a bracket of {bracket_size}"
        )

    poule_of = {s.participant_id: p.number for p in poules for s in p.standings}

    selected = rank_standings(gather_candidates(poules, rule))[:bracket_size]
    if len(selected) < bracket_size:
        # Degenerate poule data (e.g. poules of 1): top up from the overall ranking
        chosen = {s.participant_id for s in selected}
        extra = [s for s in rank_standings(everyone) if s.participant_id not in chosen]
        logger.warning(
            "Rule %s produced %d candidates for %d bracket slots; topping up from overall ranking",
            rule.value, len(selected), bracket_size,
        )
        selected = rank_standings(selected + extra[: bracket_size - len(selected)])

    qualifiers = [
        Qualifier(standing=s, seed=i + 1, poule_number=poule_of[s.participant_id])
        for i, s in enumerate(selected)
    ]
    qualified_ids = {q.participant_id for q in qualifiers}
    non_qualified = rank_standings(s for s in everyone if s.participant_id not in qualified_ids)

    return QualificationResult(rule=rule, qualifiers=qualifiers, non_qualified=non_qualified)
