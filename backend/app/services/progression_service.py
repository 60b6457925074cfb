"""
Progression coordinator: generate -> record results -> finalize.

Each entry point runs under the tournament's write lock and inside a single
transaction: either the complete new state is committed or the session is
rolled back and the error propagates to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlmodel import Session, select

from app.config import ProgressionConfig
from app.models.bracket_match import BracketMatch
from app.models.final_position import FinalPosition
from app.models.poule_result import PouleResult
from app.models.tournament import Tournament
from app.services.advancement_service import apply_advancement, load_matches, persist_match_specs
from app.services.bracket_builder import build_bracket
from app.services.classification_builder import ClassificationBye, build_classification
from app.services.errors import InputError, NotFoundError, PreconditionError, ValidationError
from app.services.hooks import run_post_finalize_hooks
from app.services.position_finalizer import (
    PlacedParticipant,
    apply_points,
    assert_bijection,
    compute_final_positions,
    missing_required_matches,
    positions_from_ranking,
)
from app.services.position_points import get_position_points_lookup
from app.services.qualification import (
    QualificationRule,
    Qualifier,
    rule_for_poule_count,
    select_qualifiers,
)
from app.services.standings import Poule, Standing, build_poules, overall_ranking
from app.utils.locks import tournament_lock
from app.utils.timestamps import utc_now
from app.utils.poule_distribution import is_single_poule

logger = logging.getLogger(__name__)

MODE_SINGLE_POULE = "single_poule"
MODE_BRACKET = "bracket"


@dataclass
class GenerationResult:
    tournament_id: int
    mode: str
    rule: QualificationRule
    total_participants: int
    poules: List[Poule] = field(default_factory=list)
    qualifiers: List[Qualifier] = field(default_factory=list)
    non_qualified: List[Standing] = field(default_factory=list)
    matches: List[BracketMatch] = field(default_factory=list)
    bye: Optional[ClassificationBye] = None
    final_standings: List[Standing] = field(default_factory=list)  # single_poule only


@dataclass
class MatchResultInput:
    winner_participant_id: str
    player1_points: int = 0
    player1_turns: int = 0
    player2_points: int = 0
    player2_turns: int = 0


@dataclass
class MatchResultOutcome:
    match: BracketMatch
    advanced_count: int = 0


@dataclass
class FinalizationResult:
    tournament_id: int
    mode: str
    positions: List[PlacedParticipant] = field(default_factory=list)


@dataclass
class ProgressionState:
    tournament: Tournament
    mode: Optional[str]
    rule: Optional[str]
    poules: List[Poule] = field(default_factory=list)
    matches: List[BracketMatch] = field(default_factory=list)
    final_positions: List[FinalPosition] = field(default_factory=list)


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise NotFoundError("Tournament not found")
    return tournament


def _load_results(session: Session, tournament_id: int) -> List[PouleResult]:
    return session.exec(
        select(PouleResult).where(PouleResult.tournament_id == tournament_id).order_by(PouleResult.id)
    ).all()


def _delete_final_positions(session: Session, tournament_id: int) -> None:
    for position in session.exec(select(FinalPosition).where(FinalPosition.tournament_id == tournament_id)).all():
        session.delete(position)


def _clear_progression(session: Session, tournament_id: int) -> None:
    """Remove all match and position rows of a tournament (part of the caller's transaction)."""
    _delete_final_positions(session, tournament_id)
    for match in session.exec(select(BracketMatch).where(BracketMatch.tournament_id == tournament_id)).all():
        session.delete(match)
    # Deletes must reach the database before re-inserting rows with the same unique keys
    session.flush()


def reset_progression(session: Session, tournament: Tournament) -> None:
    """
    Drop the generated structure after the round-robin results changed.

    Matches, final positions and the progression snapshot go; the tournament
    is back to "not generated". Part of the caller's transaction.
    """
    _clear_progression(session, tournament.id)
    tournament.mode = None
    tournament.qualification_rule = None
    tournament.bracket_size = None
    tournament.classification_round2 = False
    tournament.bye_participant_id = None
    tournament.bye_player_name = None
    tournament.bye_position = None
    tournament.generated_at = None
    tournament.finalized_at = None
    session.add(tournament)
    logger.info("Tournament %d: results replaced, progression reset", tournament.id)


def generate(session: Session, tournament_id: int, config: ProgressionConfig) -> GenerationResult:
    """
    Build the bracket and classification structure from round-robin results.

    Regenerating replaces every match and final position of the tournament.
    With unchanged results and configuration the output is identical.
    """
    with tournament_lock(tournament_id):
        try:
            tournament = _get_tournament(session, tournament_id)
            rows = _load_results(session, tournament_id)
            if not rows:
                raise InputError("No round-robin results available for this tournament")

            poules = build_poules(rows)
            total = len(rows)
            rule = rule_for_poule_count(len(poules))

            _clear_progression(session, tournament_id)
            tournament.generated_at = utc_now()
            tournament.finalized_at = None
            tournament.bye_participant_id = None
            tournament.bye_player_name = None
            tournament.bye_position = None

            if is_single_poule(total, config.single_poule_threshold) or rule == QualificationRule.single_poule:
                tournament.mode = MODE_SINGLE_POULE
                tournament.qualification_rule = QualificationRule.single_poule.value
                tournament.bracket_size = None
                tournament.classification_round2 = False
                session.add(tournament)
                session.commit()
                logger.info("Tournament %d: %d players, single poule (no bracket)", tournament_id, total)
                return GenerationResult(
                    tournament_id=tournament_id,
                    mode=MODE_SINGLE_POULE,
                    rule=QualificationRule.single_poule,
                    total_participants=total,
                    poules=poules,
                    final_standings=overall_ranking(poules),
                )

            if config.bracket_size > total:
                raise InputError(
                    f"Configuration incompatible: bracket of {config.bracket_size} with {total} participants"
                )

            qualification = select_qualifiers(poules, config.bracket_size, rule)
            plan = build_classification(qualification.non_qualified, config.bracket_size)
            specs = build_bracket(qualification.qualifiers) + plan.round1
            matches = persist_match_specs(session, tournament_id, specs)

            tournament.mode = MODE_BRACKET
            tournament.qualification_rule = rule.value
            tournament.bracket_size = config.bracket_size
            tournament.classification_round2 = config.enable_classification_round2
            if plan.bye is not None:
                tournament.bye_participant_id = plan.bye.standing.participant_id
                tournament.bye_player_name = plan.bye.standing.player_name
                tournament.bye_position = plan.bye.position
            session.add(tournament)
            session.commit()
            for match in matches:
                session.refresh(match)

            logger.info(
                "Tournament %d: %d players in %d poules, rule=%s, %d matches generated (bye=%s)",
                tournament_id, total, len(poules), rule.value, len(matches),
                tournament.bye_participant_id,
            )
            return GenerationResult(
                tournament_id=tournament_id,
                mode=MODE_BRACKET,
                rule=rule,
                total_participants=total,
                poules=poules,
                qualifiers=qualification.qualifiers,
                non_qualified=qualification.non_qualified,
                matches=load_matches(session, tournament_id),
                bye=plan.bye,
            )
        except Exception:
            session.rollback()
            raise


def _validate_result(match: BracketMatch, result: MatchResultInput) -> None:
    if not match.slots_resolved:
        raise PreconditionError(
            f"Match {match.id} ({match.phase} #{match.match_order}) has unresolved player slots",
            [match.id],
        )
    if result.winner_participant_id not in (match.player1_id, match.player2_id):
        raise ValidationError(
            f"Winner {result.winner_participant_id} is not a player of match {match.id}"
        )
    for name in ("player1_points", "player1_turns", "player2_points", "player2_turns"):
        if getattr(result, name) < 0:
            raise ValidationError(f"{name} must be >= 0")


def record_match_result(
    session: Session,
    tournament_id: int,
    match_id: int,
    result: MatchResultInput,
) -> MatchResultOutcome:
    """Store a match result, then populate any dependent match it unlocks."""
    with tournament_lock(tournament_id):
        try:
            tournament = _get_tournament(session, tournament_id)
            match = session.get(BracketMatch, match_id)
            if not match or match.tournament_id != tournament_id:
                raise NotFoundError("Match not found")

            _validate_result(match, result)

            match.winner_participant_id = result.winner_participant_id
            match.player1_points = result.player1_points
            match.player1_turns = result.player1_turns
            match.player2_points = result.player2_points
            match.player2_turns = result.player2_turns
            match.completed_at = utc_now()
            session.add(match)
            session.flush()

            advanced_count = apply_advancement(session, tournament)
            session.commit()
            session.refresh(match)
        except Exception:
            session.rollback()
            raise

    logger.info(
        "Tournament %d: %s #%d won by %s (%d dependent updates)",
        tournament_id, match.phase, match.match_order, match.winner_participant_id, advanced_count,
    )
    return MatchResultOutcome(match=match, advanced_count=advanced_count)


def finalize(
    session: Session,
    tournament_id: int,
    config: ProgressionConfig,
    run_hooks: bool = True,
) -> FinalizationResult:
    """
    Derive and persist the complete finishing order with points.

    Re-running with unchanged matches reproduces the same positions and
    replaces the stored ones.
    """
    with tournament_lock(tournament_id):
        try:
            tournament = _get_tournament(session, tournament_id)
            if tournament.mode is None:
                raise PreconditionError("Progression has not been generated for this tournament")

            rows = _load_results(session, tournament_id)
            if not rows:
                raise InputError("No round-robin results available for this tournament")
            ranked = overall_ranking(build_poules(rows))

            if tournament.mode == MODE_SINGLE_POULE:
                placed = positions_from_ranking(ranked)
            else:
                matches = load_matches(session, tournament_id)
                missing = missing_required_matches(matches)
                if missing:
                    raise PreconditionError(
                        f"Matches without a winner: {', '.join(str(m) for m in missing)}",
                        missing,
                    )
                placed = compute_final_positions(
                    matches,
                    ranked,
                    bye_participant_id=tournament.bye_participant_id,
                    bye_player_name=tournament.bye_player_name,
                    bye_position=tournament.bye_position,
                )

            assert_bijection(placed, len(ranked))

            lookup = get_position_points_lookup(session, tournament.organization_id, len(ranked))
            apply_points(placed, lookup, config.position_points_degradation)

            _delete_final_positions(session, tournament_id)
            session.flush()
            finalized_at = utc_now()
            for p in placed:
                session.add(
                    FinalPosition(
                        tournament_id=tournament_id,
                        participant_id=p.participant_id,
                        player_name=p.player_name,
                        position=p.position,
                        points=p.points,
                        finalized_at=finalized_at,
                    )
                )
            tournament.finalized_at = finalized_at
            session.add(tournament)
            session.commit()
            mode = tournament.mode
        except Exception:
            session.rollback()
            raise

    logger.info("Tournament %d finalized: %d positions (%s)", tournament_id, len(placed), mode)
    if run_hooks:
        run_post_finalize_hooks(tournament_id)
    return FinalizationResult(tournament_id=tournament_id, mode=mode, positions=placed)


def get_state(session: Session, tournament_id: int) -> ProgressionState:
    tournament = _get_tournament(session, tournament_id)
    poules = build_poules(_load_results(session, tournament_id))
    final_positions = session.exec(
        select(FinalPosition)
        .where(FinalPosition.tournament_id == tournament_id)
        .order_by(FinalPosition.position)
    ).all()
    return ProgressionState(
        tournament=tournament,
        mode=tournament.mode,
        rule=tournament.qualification_rule,
        poules=poules,
        matches=load_matches(session, tournament_id),
        final_positions=list(final_positions),
    )
