"""
Advancement: when match results arrive, populate dependent match slots.

- Final / Petite finale take SF winners / losers once BOTH semifinals are decided.
- Classification round 2 is created once every round-1 match is decided (when
  enabled for the tournament) and its slots take the round-1 losers.

Called after every result write; safe to call redundantly. Does not commit;
the caller owns the transaction.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from app.models.bracket_match import (
    PHASE_CLASSIFICATION_R1,
    PHASE_CLASSIFICATION_R2,
    PHASE_ORDER,
    ROLE_LOSER,
    ROLE_WINNER,
    BracketMatch,
)
from app.models.tournament import Tournament
from app.services.bracket_builder import MatchRef, MatchSpec
from app.services.classification_builder import build_round2, round1_complete

logger = logging.getLogger(__name__)


def load_matches(session: Session, tournament_id: int) -> List[BracketMatch]:
    """All matches of a tournament in display order: phase, then match_order."""
    matches = session.exec(select(BracketMatch).where(BracketMatch.tournament_id == tournament_id)).all()
    return sorted(matches, key=lambda m: (PHASE_ORDER.get(m.phase, 99), m.match_order))


def persist_match_specs(
    session: Session,
    tournament_id: int,
    specs: Sequence[MatchSpec],
    ids_by_ref: Optional[Dict[MatchRef, int]] = None,
) -> List[BracketMatch]:
    """
    Insert match specs, independent matches first so dependents can reference their ids.
    Flushes but does not commit.
    """
    ids_by_ref = dict(ids_by_ref or {})
    created: List[BracketMatch] = []

    independent = [s for s in specs if s.source_1 is None and s.source_2 is None]
    dependent = [s for s in specs if s.source_1 is not None or s.source_2 is not None]

    for batch in (independent, dependent):
        rows = [spec.to_model(tournament_id, ids_by_ref) for spec in batch]
        for row in rows:
            session.add(row)
        session.flush()
        for row in rows:
            ids_by_ref[(row.phase, row.match_order)] = row.id
        created.extend(rows)

    return created


def _source_participant(source: Optional[BracketMatch], role: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """(participant_id, name) delivered by a decided source match for the given role."""
    if source is None or source.winner_participant_id is None:
        return None, None
    if role == ROLE_WINNER:
        pid = source.winner_participant_id
    elif role == ROLE_LOSER:
        pid = source.loser_participant_id
    else:
        return None, None
    return pid, source.name_of(pid)


def _clear_result(match: BracketMatch) -> None:
    match.winner_participant_id = None
    match.player1_points = 0
    match.player1_turns = 0
    match.player2_points = 0
    match.player2_turns = 0
    match.completed_at = None


def populate_dependent_match(match: BracketMatch, by_id: Dict[int, BracketMatch]) -> int:
    """
    Fill both slots of a dependent match once all of its sources are decided.
    Returns the number of slots whose value changed (0 when nothing to do).
    """
    source_1 = by_id.get(match.source_match_1_id) if match.source_match_1_id else None
    source_2 = by_id.get(match.source_match_2_id) if match.source_match_2_id else None
    if source_1 is None or source_2 is None:
        return 0
    if source_1.winner_participant_id is None or source_2.winner_participant_id is None:
        # Never guess: wait until both upstream matches are decided
        return 0

    p1_id, p1_name = _source_participant(source_1, match.source_1_role)
    p2_id, p2_name = _source_participant(source_2, match.source_2_role)

    changed = 0
    if match.player1_id != p1_id:
        match.player1_id, match.player1_name = p1_id, p1_name
        changed += 1
    if match.player2_id != p2_id:
        match.player2_id, match.player2_name = p2_id, p2_name
        changed += 1

    # A recorded result belongs to the previous pairing
    if changed and match.winner_participant_id is not None:
        logger.info(
            "Upstream correction: clearing result of match %s (%s #%d)",
            match.id, match.phase, match.match_order,
        )
        _clear_result(match)
    return changed


def ensure_round2_matches(session: Session, tournament: Tournament, matches: List[BracketMatch]) -> List[BracketMatch]:
    """Create classification round 2 once, when enabled and round 1 is fully decided."""
    if not tournament.classification_round2:
        return []
    if any(m.phase == PHASE_CLASSIFICATION_R2 for m in matches):
        return []
    round1 = [m for m in matches if m.phase == PHASE_CLASSIFICATION_R1]
    if not round1_complete(round1):
        return []

    specs = build_round2(round1)
    if not specs:
        return []
    ids_by_ref = {(m.phase, m.match_order): m.id for m in round1}
    created = persist_match_specs(session, tournament.id, specs, ids_by_ref)
    logger.info("Tournament %d: created %d classification round-2 matches", tournament.id, len(created))
    return created


def apply_advancement(session: Session, tournament: Tournament) -> int:
    """
    Re-evaluate every dependency of the tournament.

    Returns count of slots changed plus matches created. Idempotent: a second
    call with unchanged results returns 0.
    """
    matches = load_matches(session, tournament.id)
    created = ensure_round2_matches(session, tournament, matches)
    matches.extend(created)

    by_id = {m.id: m for m in matches}
    changed = len(created)
    for match in matches:
        if match.source_match_1_id is None and match.source_match_2_id is None:
            continue
        count = populate_dependent_match(match, by_id)
        if count:
            session.add(match)
            changed += count
            logger.debug(
                "Tournament %d: %s #%d now %s vs %s",
                tournament.id, match.phase, match.match_order, match.player1_id, match.player2_id,
            )

    if changed:
        session.flush()
    return changed
