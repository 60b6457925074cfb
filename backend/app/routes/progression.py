"""
Progression endpoints: generate the bracket/classification structure, record
match results (dependent matches fill automatically), finalize positions.
"""
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.config import ProgressionConfig, get_progression_config
from app.database import get_session
from app.models.bracket_match import BracketMatch
from app.services import progression_service
from app.services.errors import ProgressionError
from app.services.progression_service import MatchResultInput
from app.services.standings import Poule, Standing
from app.utils.http_errors import to_http_exception

router = APIRouter()


class ConfigOverrides(BaseModel):
    """Per-tenant values supplied by the settings collaborator; null = keep default."""
    bracket_size: Optional[int] = None
    single_poule_threshold: Optional[int] = None
    allow_poule_of_two: Optional[bool] = None
    enable_classification_round2: Optional[bool] = None
    position_points_degradation: Optional[Literal["none", "last_player"]] = None


class StandingResponse(BaseModel):
    participant_id: str
    player_name: str
    match_points: int
    points: int
    turns: int
    best_run: int
    average: float


class PouleResponse(BaseModel):
    number: int
    standings: List[StandingResponse]


class QualifierResponse(StandingResponse):
    seed: int
    poule_number: int


class ByeResponse(BaseModel):
    participant_id: str
    player_name: str
    position: int


class MatchResponse(BaseModel):
    id: int
    phase: str
    match_order: int
    match_label: str
    player1_id: Optional[str] = None
    player1_name: Optional[str] = None
    player2_id: Optional[str] = None
    player2_name: Optional[str] = None
    placeholder_side_1: str
    placeholder_side_2: str
    player1_points: int
    player1_turns: int
    player2_points: int
    player2_turns: int
    winner_participant_id: Optional[str] = None
    resulting_place: Optional[int] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GenerateResponse(BaseModel):
    tournament_id: int
    mode: str
    qualification_rule: str
    total_participants: int
    poules: List[PouleResponse]
    qualifiers: List[QualifierResponse] = []
    non_qualified: List[StandingResponse] = []
    matches: List[MatchResponse] = []
    bye: Optional[ByeResponse] = None
    final_standings: List[StandingResponse] = []


class MatchResultRequest(BaseModel):
    winner_participant_id: str
    player1_points: int = Field(default=0, ge=0)
    player1_turns: int = Field(default=0, ge=0)
    player2_points: int = Field(default=0, ge=0)
    player2_turns: int = Field(default=0, ge=0)


class MatchResultResponse(BaseModel):
    match: MatchResponse
    advanced_count: int = 0


class PositionResponse(BaseModel):
    participant_id: str
    player_name: Optional[str] = None
    position: int
    points: int


class FinalizeResponse(BaseModel):
    tournament_id: int
    mode: str
    positions: List[PositionResponse]


class ProgressionStateResponse(BaseModel):
    tournament_id: int
    mode: Optional[str] = None
    qualification_rule: Optional[str] = None
    bracket_size: Optional[int] = None
    generated_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None
    poules: List[PouleResponse]
    matches: List[MatchResponse]
    final_positions: List[PositionResponse]


def _standing(s: Standing) -> StandingResponse:
    return StandingResponse(
        participant_id=s.participant_id,
        player_name=s.player_name,
        match_points=s.match_points,
        points=s.points,
        turns=s.turns,
        best_run=s.best_run,
        average=round(s.average, 3),
    )


def _poule(p: Poule) -> PouleResponse:
    return PouleResponse(number=p.number, standings=[_standing(s) for s in p.standings])


def _match(m: BracketMatch) -> MatchResponse:
    return MatchResponse.model_validate(m)


@router.post(
    "/tournaments/{tournament_id}/progression/generate",
    response_model=GenerateResponse,
)
def generate_progression(
    tournament_id: int,
    overrides: Optional[ConfigOverrides] = Body(default=None),
    config: ProgressionConfig = Depends(get_progression_config),
    session: Session = Depends(get_session),
) -> GenerateResponse:
    """Compute qualifiers and (re)create all bracket and classification matches."""
    try:
        if overrides is not None:
            config = config.with_overrides(overrides.model_dump())
        result = progression_service.generate(session, tournament_id, config)
    except ProgressionError as e:
        raise to_http_exception(e)

    return GenerateResponse(
        tournament_id=result.tournament_id,
        mode=result.mode,
        qualification_rule=result.rule.value,
        total_participants=result.total_participants,
        poules=[_poule(p) for p in result.poules],
        qualifiers=[
            QualifierResponse(**_standing(q.standing).model_dump(), seed=q.seed, poule_number=q.poule_number)
            for q in result.qualifiers
        ],
        non_qualified=[_standing(s) for s in result.non_qualified],
        matches=[_match(m) for m in result.matches],
        bye=(
            ByeResponse(
                participant_id=result.bye.standing.participant_id,
                player_name=result.bye.standing.player_name,
                position=result.bye.position,
            )
            if result.bye
            else None
        ),
        final_standings=[_standing(s) for s in result.final_standings],
    )


@router.patch(
    "/tournaments/{tournament_id}/progression/matches/{match_id}",
    response_model=MatchResultResponse,
)
def record_match_result(
    tournament_id: int,
    match_id: int,
    payload: MatchResultRequest,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    """Record scores and winner. Final/petite finale and classification round 2 fill automatically."""
    try:
        outcome = progression_service.record_match_result(
            session,
            tournament_id,
            match_id,
            MatchResultInput(**payload.model_dump()),
        )
    except ProgressionError as e:
        raise to_http_exception(e)
    return MatchResultResponse(match=_match(outcome.match), advanced_count=outcome.advanced_count)


@router.post(
    "/tournaments/{tournament_id}/progression/finalize",
    response_model=FinalizeResponse,
)
def finalize_progression(
    tournament_id: int,
    overrides: Optional[ConfigOverrides] = Body(default=None),
    config: ProgressionConfig = Depends(get_progression_config),
    session: Session = Depends(get_session),
) -> FinalizeResponse:
    """Write final positions and points. 409 lists matches still lacking a winner."""
    try:
        if overrides is not None:
            config = config.with_overrides(overrides.model_dump())
        result = progression_service.finalize(session, tournament_id, config)
    except ProgressionError as e:
        raise to_http_exception(e)
    return FinalizeResponse(
        tournament_id=result.tournament_id,
        mode=result.mode,
        positions=[
            PositionResponse(
                participant_id=p.participant_id,
                player_name=p.player_name,
                position=p.position,
                points=p.points,
            )
            for p in result.positions
        ],
    )


@router.get(
    "/tournaments/{tournament_id}/progression",
    response_model=ProgressionStateResponse,
)
def get_progression_state(
    tournament_id: int,
    session: Session = Depends(get_session),
) -> ProgressionStateResponse:
    """Current matches, poule standings and mode. Stable order: phase, match_order."""
    try:
        state = progression_service.get_state(session, tournament_id)
    except ProgressionError as e:
        raise to_http_exception(e)
    tournament = state.tournament
    return ProgressionStateResponse(
        tournament_id=tournament.id,
        mode=state.mode,
        qualification_rule=state.rule,
        bracket_size=tournament.bracket_size,
        generated_at=tournament.generated_at,
        finalized_at=tournament.finalized_at,
        poules=[_poule(p) for p in state.poules],
        matches=[_match(m) for m in state.matches],
        final_positions=[
            PositionResponse(
                participant_id=fp.participant_id,
                player_name=fp.player_name,
                position=fp.position,
                points=fp.points,
            )
            for fp in state.final_positions
        ],
    )
