"""
Final positions from decided bracket and classification matches.

Order of resolution:
1. Final: winner 1, loser 2
2. Petite finale: winner 3, loser 4
3. Classification round 1: winner takes the band's higher place, loser the lower
4. Bye player: its pre-assigned place
5. Classification round 2: the two players swap places if the lower-placed one wins
6. Anyone left unplaced is appended after the highest place, in standings order

The result must cover exactly 1..N; anything else is a ConsistencyError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from app.models.bracket_match import (
    BRACKET_PHASES,
    PHASE_CLASSIFICATION_R1,
    PHASE_CLASSIFICATION_R2,
    PHASE_FINAL,
    PHASE_PETITE_FINALE,
)
from app.services.errors import ConsistencyError
from app.services.standings import Standing

REQUIRED_PHASES = BRACKET_PHASES + (PHASE_CLASSIFICATION_R1,)

DEGRADATION_NONE = "none"
DEGRADATION_LAST_PLAYER = "last_player"


@dataclass
class PlacedParticipant:
    participant_id: str
    player_name: Optional[str]
    position: int
    points: int = 0


def missing_required_matches(matches: Sequence) -> List[int]:
    """Ids of bracket and round-1 classification matches still lacking a winner."""
    return sorted(
        m.id for m in matches if m.phase in REQUIRED_PHASES and m.winner_participant_id is None
    )


def _place_decided_match(placed: Dict[str, PlacedParticipant], match) -> None:
    if match.winner_participant_id is None or match.resulting_place is None:
        return
    loser = match.loser_participant_id
    for pid, pos in ((match.winner_participant_id, match.resulting_place), (loser, match.resulting_place + 1)):
        if pid is not None and pid not in placed:
            placed[pid] = PlacedParticipant(participant_id=pid, player_name=match.name_of(pid), position=pos)


def _apply_round2(placed: Dict[str, PlacedParticipant], match) -> None:
    if match.winner_participant_id is None or not match.slots_resolved:
        return
    winner = placed.get(match.winner_participant_id)
    loser = placed.get(match.loser_participant_id)
    if winner is None or loser is None:
        return
    high, low = sorted((winner.position, loser.position))
    winner.position = high
    loser.position = low


def compute_final_positions(
    matches: Sequence,
    ranked_participants: Sequence[Standing],
    bye_participant_id: Optional[str] = None,
    bye_player_name: Optional[str] = None,
    bye_position: Optional[int] = None,
) -> List[PlacedParticipant]:
    placed: Dict[str, PlacedParticipant] = {}

    def by_phase(phase: str):
        return sorted((m for m in matches if m.phase == phase), key=lambda m: m.match_order)

    for phase in (PHASE_FINAL, PHASE_PETITE_FINALE, PHASE_CLASSIFICATION_R1):
        for match in by_phase(phase):
            _place_decided_match(placed, match)

    if bye_participant_id is not None and bye_position is not None and bye_participant_id not in placed:
        placed[bye_participant_id] = PlacedParticipant(
            participant_id=bye_participant_id, player_name=bye_player_name, position=bye_position
        )

    for match in by_phase(PHASE_CLASSIFICATION_R2):
        _apply_round2(placed, match)

    next_position = max((p.position for p in placed.values()), default=0) + 1
    for standing in ranked_participants:
        if standing.participant_id not in placed:
            placed[standing.participant_id] = PlacedParticipant(
                participant_id=standing.participant_id,
                player_name=standing.player_name,
                position=next_position,
            )
            next_position += 1

    return sorted(placed.values(), key=lambda p: p.position)


def positions_from_ranking(ranked_participants: Sequence[Standing]) -> List[PlacedParticipant]:
    """Single-poule tournaments: the ranking is the final standing."""
    return [
        PlacedParticipant(participant_id=s.participant_id, player_name=s.player_name, position=i + 1)
        for i, s in enumerate(ranked_participants)
    ]


def assert_bijection(placed: Sequence[PlacedParticipant], total_participants: int) -> None:
    ids = [p.participant_id for p in placed]
    if len(set(ids)) != len(ids):
        raise ConsistencyError("A participant was assigned more than one position")
    positions = sorted(p.position for p in placed)
    if positions != list(range(1, total_participants + 1)):
        raise ConsistencyError(
            f"Positions {positions} do not cover 1..{total_participants} exactly once"
        )


def apply_points(
    placed: Sequence[PlacedParticipant],
    lookup: Dict[int, int],
    degradation: str = DEGRADATION_NONE,
) -> List[PlacedParticipant]:
    """
    Map each position through the points table (missing positions score 0).

    With degradation "last_player" the last-placed participant receives the
    points of the position after theirs.
    """
    total = len(placed)
    for p in placed:
        position = p.position
        if degradation == DEGRADATION_LAST_PLAYER and total > 0 and position == total:
            position += 1
        p.points = lookup.get(position, 0)
    return list(placed)
