from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.database import get_session
from app.services.errors import ProgressionError
from app.services.position_points import get_position_points_lookup, replace_position_points
from app.utils.http_errors import to_http_exception

router = APIRouter()


class PositionPointsEntry(BaseModel):
    position: int = Field(ge=1)
    points: int = Field(ge=0)


class PositionPointsTable(BaseModel):
    organization_id: Optional[int] = None
    player_count: int = Field(default=0, ge=0)  # 0 = any field size
    entries: List[PositionPointsEntry]


@router.get("/position-points", response_model=Dict[int, int])
def get_position_points(
    player_count: int = Query(0, ge=0),
    organization_id: Optional[int] = None,
    session: Session = Depends(get_session),
) -> Dict[int, int]:
    """Effective position -> points mapping for a field size (with fallbacks)"""
    return get_position_points_lookup(session, organization_id, player_count)


@router.put("/position-points", response_model=List[PositionPointsEntry])
def put_position_points(
    payload: PositionPointsTable,
    session: Session = Depends(get_session),
) -> List[PositionPointsEntry]:
    """Replace the table for one (organization, field size)"""
    try:
        rows = replace_position_points(
            session,
            payload.organization_id,
            payload.player_count,
            {e.position: e.points for e in payload.entries},
        )
    except ProgressionError as e:
        raise to_http_exception(e)
    return [PositionPointsEntry(position=r.position, points=r.points) for r in rows]
