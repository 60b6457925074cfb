"""
Classification (consolation) matches for players who missed the bracket.

Round 1: the non-qualified pool (best -> worst) is paired from the worst end
upward. With an odd pool the best non-qualified player takes a bye straight
to place bracket_size + 1. Each round-1 match decides a two-place band:

    start = bracket_size + 1 + (1 if bye) + 2 * (i - 1)     i = 1 at the top
    winner -> start, loser -> start + 1

Round 2 (optional): once every round-1 match is decided, losers of adjacent
round-1 matches (1&2, 3&4, ...) play each other. The winner takes the better
of their two round-1 places, the loser the other one. A trailing unpaired
loser keeps its round-1 place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from app.models.bracket_match import PHASE_CLASSIFICATION_R1, PHASE_CLASSIFICATION_R2, ROLE_LOSER
from app.services.bracket_builder import MatchSpec
from app.services.standings import Standing

logger = logging.getLogger(__name__)


@dataclass
class ClassificationBye:
    standing: Standing
    position: int


@dataclass
class ClassificationPlan:
    round1: List[MatchSpec] = field(default_factory=list)
    bye: Optional[ClassificationBye] = None

    @property
    def positions_covered(self) -> List[int]:
        covered = []
        if self.bye is not None:
            covered.append(self.bye.position)
        for spec in self.round1:
            covered.extend([spec.resulting_place, spec.resulting_place + 1])
        return sorted(covered)


def band_start(bracket_size: int, has_bye: bool, match_index: int) -> int:
    """Higher place of the band decided by round-1 match `match_index` (1-based, top-down)."""
    return bracket_size + 1 + (1 if has_bye else 0) + 2 * (match_index - 1)


def build_classification(non_qualified: Sequence[Standing], bracket_size: int) -> ClassificationPlan:
    players = list(non_qualified)
    plan = ClassificationPlan()
    if not players:
        return plan

    if len(players) % 2 == 1:
        plan.bye = ClassificationBye(standing=players.pop(0), position=bracket_size + 1)

    # Pair from the bottom: (n-2, n-1), (n-4, n-3), ... then list them top-down
    pairs = []
    for i in range(len(players) - 1, 0, -2):
        pairs.insert(0, (players[i - 1], players[i]))

    has_bye = plan.bye is not None
    for idx, (upper, lower) in enumerate(pairs, start=1):
        start = band_start(bracket_size, has_bye, idx)
        plan.round1.append(
            MatchSpec(
                phase=PHASE_CLASSIFICATION_R1,
                match_order=idx,
                label=f"Classification {start}-{start + 1}",
                placeholder_1=upper.player_name,
                placeholder_2=lower.player_name,
                player1_id=upper.participant_id,
                player1_name=upper.player_name,
                player2_id=lower.participant_id,
                player2_name=lower.player_name,
                resulting_place=start,
            )
        )
    return plan


def round1_complete(round1_matches: Sequence) -> bool:
    return bool(round1_matches) and all(m.winner_participant_id is not None for m in round1_matches)


def build_round2(round1_matches: Sequence) -> List[MatchSpec]:
    """Cross matches between losers of adjacent round-1 matches."""
    ordered = sorted(round1_matches, key=lambda m: m.match_order)
    specs: List[MatchSpec] = []
    for idx in range(0, len(ordered) - 1, 2):
        upper, lower = ordered[idx], ordered[idx + 1]
        upper_place = upper.resulting_place + 1
        lower_place = lower.resulting_place + 1
        specs.append(
            MatchSpec(
                phase=PHASE_CLASSIFICATION_R2,
                match_order=len(specs) + 1,
                label=f"Classification cross {upper_place}/{lower_place}",
                placeholder_1=f"Loser CL{upper.match_order}",
                placeholder_2=f"Loser CL{lower.match_order}",
                source_1=(PHASE_CLASSIFICATION_R1, upper.match_order),
                source_2=(PHASE_CLASSIFICATION_R1, lower.match_order),
                source_1_role=ROLE_LOSER,
                source_2_role=ROLE_LOSER,
                resulting_place=upper_place,
            )
        )
    if len(ordered) % 2 == 1 and len(ordered) > 1:
        logger.warning(
            "Odd number of round-1 classification matches (%d); loser of CL%d keeps its round-1 place",
            len(ordered), ordered[-1].match_order,
        )
    return specs
