"""
Elimination bracket construction.

4 qualifiers: SF1 = seed 1 vs seed 4, SF2 = seed 2 vs seed 3, then a Final
(SF winners) and a Petite Finale for 3rd place (SF losers). Final and Petite
Finale start as placeholders and are filled only once both semifinals have
a winner.

2 qualifiers: a single Final, seed 1 vs seed 2.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from app.models.bracket_match import (
    BracketMatch,
    PHASE_FINAL,
    PHASE_PETITE_FINALE,
    PHASE_SEMIFINAL,
    ROLE_LOSER,
    ROLE_WINNER,
)
from app.services.errors import InputError
from app.services.qualification import Qualifier

MatchRef = Tuple[str, int]  # (phase, match_order)


@dataclass
class MatchSpec:
    """A match to be persisted; slots are None for placeholders."""
    phase: str
    match_order: int
    label: str
    placeholder_1: str
    placeholder_2: str
    player1_id: Optional[str] = None
    player1_name: Optional[str] = None
    player2_id: Optional[str] = None
    player2_name: Optional[str] = None
    source_1: Optional[MatchRef] = None
    source_2: Optional[MatchRef] = None
    source_1_role: Optional[str] = None
    source_2_role: Optional[str] = None
    resulting_place: Optional[int] = None

    @property
    def ref(self) -> MatchRef:
        return (self.phase, self.match_order)

    def to_model(self, tournament_id: int, ids_by_ref: Dict[MatchRef, int]) -> BracketMatch:
        """Build the row; source refs must already be persisted (present in ids_by_ref)."""
        return BracketMatch(
            tournament_id=tournament_id,
            phase=self.phase,
            match_order=self.match_order,
            match_label=self.label,
            player1_id=self.player1_id,
            player1_name=self.player1_name,
            player2_id=self.player2_id,
            player2_name=self.player2_name,
            placeholder_side_1=self.placeholder_1,
            placeholder_side_2=self.placeholder_2,
            source_match_1_id=ids_by_ref[self.source_1] if self.source_1 else None,
            source_match_2_id=ids_by_ref[self.source_2] if self.source_2 else None,
            source_1_role=self.source_1_role,
            source_2_role=self.source_2_role,
            resulting_place=self.resulting_place,
        )


def _seeded_match(phase: str, order: int, label: str, a: Qualifier, b: Qualifier, place: Optional[int]) -> MatchSpec:
    return MatchSpec(
        phase=phase,
        match_order=order,
        label=label,
        placeholder_1=f"Seed {a.seed}",
        placeholder_2=f"Seed {b.seed}",
        player1_id=a.participant_id,
        player1_name=a.player_name,
        player2_id=b.participant_id,
        player2_name=b.player_name,
        resulting_place=place,
    )


def semifinal_seed_pairs() -> List[Tuple[int, int]]:
    """Highest seed meets lowest seed so the top two can only meet in the final."""
    return [(1, 4), (2, 3)]


def build_bracket(qualifiers: Sequence[Qualifier]) -> List[MatchSpec]:
    by_seed = {q.seed: q for q in qualifiers}
    if sorted(by_seed) != list(range(1, len(qualifiers) + 1)):
        raise InputError("Qualifier seeds must be 1..N without gaps")

    if len(qualifiers) == 2:
        return [
            _seeded_match(PHASE_FINAL, 1, "Final (1st - 2nd place)", by_seed[1], by_seed[2], 1),
        ]

    if len(qualifiers) != 4:
        raise InputError(f"Bracket needs 2 or 4 qualifiers, got {len(qualifiers)}")

    matches = []
    for order, (high, low) in enumerate(semifinal_seed_pairs(), start=1):
        matches.append(
            _seeded_match(
                PHASE_SEMIFINAL,
                order,
                f"Semifinal {order}: seed {high} vs seed {low}",
                by_seed[high],
                by_seed[low],
                None,
            )
        )

    sf1 = (PHASE_SEMIFINAL, 1)
    sf2 = (PHASE_SEMIFINAL, 2)
    matches.append(
        MatchSpec(
            phase=PHASE_FINAL,
            match_order=1,
            label="Final (1st - 2nd place)",
            placeholder_1="Winner SF1",
            placeholder_2="Winner SF2",
            source_1=sf1,
            source_2=sf2,
            source_1_role=ROLE_WINNER,
            source_2_role=ROLE_WINNER,
            resulting_place=1,
        )
    )
    matches.append(
        MatchSpec(
            phase=PHASE_PETITE_FINALE,
            match_order=1,
            label="Petite finale (3rd - 4th place)",
            placeholder_1="Loser SF1",
            placeholder_2="Loser SF2",
            source_1=sf1,
            source_2=sf2,
            source_1_role=ROLE_LOSER,
            source_2_role=ROLE_LOSER,
            resulting_place=3,
        )
    )
    return matches

