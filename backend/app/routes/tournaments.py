from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlmodel import Session, select

from app.database import get_session
from app.models.bracket_match import BracketMatch
from app.models.final_position import FinalPosition
from app.models.poule_result import PouleResult
from app.models.tournament import Tournament
from app.services.progression_service import reset_progression
from app.utils.locks import release_tournament_lock, tournament_lock

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    organization_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TournamentResponse(BaseModel):
    id: int
    name: str
    organization_id: Optional[int] = None
    notes: Optional[str] = None
    mode: Optional[str] = None
    bracket_size: Optional[int] = None
    generated_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PouleResultIn(BaseModel):
    participant_id: str
    player_name: str
    poule_number: Optional[int] = Field(default=None, ge=1)
    player_order: int = Field(default=0, ge=0)
    match_points: int = Field(default=0, ge=0)
    points: int = Field(default=0, ge=0)
    turns: int = Field(default=0, ge=0)
    best_run: int = Field(default=0, ge=0)

    @field_validator("participant_id")
    @classmethod
    def normalize_participant_id(cls, v):
        """Licence numbers are often typed with spaces."""
        v = "".join(v.split())
        if not v:
            raise ValueError("participant_id is required")
        return v


class PouleResultsReplace(BaseModel):
    results: List[PouleResultIn]

    @model_validator(mode="after")
    def validate_unique_participants(self):
        ids = [r.participant_id for r in self.results]
        if len(ids) != len(set(ids)):
            raise ValueError("participant_id must be unique within a tournament")
        return self


class PouleResultResponse(PouleResultIn):
    id: int
    tournament_id: int

    class Config:
        from_attributes = True


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a new tournament"""
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament with its results, matches and final positions"""
    with tournament_lock(tournament_id):
        tournament = session.get(Tournament, tournament_id)
        if not tournament:
            raise HTTPException(status_code=404, detail="Tournament not found")
        try:
            # Children before parent
            for model in (FinalPosition, BracketMatch, PouleResult):
                for row in session.exec(select(model).where(model.tournament_id == tournament_id)).all():
                    session.delete(row)
            session.flush()
            session.delete(tournament)
            session.commit()
        except Exception as e:
            session.rollback()
            raise HTTPException(status_code=500, detail=f"Failed to delete tournament: {str(e)}")
    release_tournament_lock(tournament_id)
    return Response(status_code=204)


@router.get("/tournaments/{tournament_id}/poule-results", response_model=List[PouleResultResponse])
def list_poule_results(tournament_id: int, session: Session = Depends(get_session)):
    """Round-robin results, ordered by poule then sheet order"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return session.exec(
        select(PouleResult)
        .where(PouleResult.tournament_id == tournament_id)
        .order_by(PouleResult.poule_number, PouleResult.player_order, PouleResult.id)
    ).all()


@router.put("/tournaments/{tournament_id}/poule-results", response_model=List[PouleResultResponse])
def replace_poule_results(
    tournament_id: int,
    payload: PouleResultsReplace,
    session: Session = Depends(get_session),
):
    """Replace all round-robin results. Any generated progression is discarded."""
    with tournament_lock(tournament_id):
        tournament = session.get(Tournament, tournament_id)
        if not tournament:
            raise HTTPException(status_code=404, detail="Tournament not found")
        try:
            reset_progression(session, tournament)
            for row in session.exec(select(PouleResult).where(PouleResult.tournament_id == tournament_id)).all():
                session.delete(row)
            session.flush()
            rows = [PouleResult(tournament_id=tournament_id, **r.model_dump()) for r in payload.results]
            for row in rows:
                session.add(row)
            session.commit()
        except Exception as e:
            session.rollback()
            raise HTTPException(status_code=500, detail=f"Failed to store poule results: {str(e)}")
        for row in rows:
            session.refresh(row)
    return rows
