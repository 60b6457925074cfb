"""
Position -> points lookup.

Tables can be keyed by field size. Lookup order for a tournament of N players:
1. rows for exactly N players
2. rows for the smallest field size >= N
3. rows with player_count 0 (generic table)
4. any rows of the organization
"""
import logging
from typing import Dict, List, Optional

from sqlmodel import Session, select

from app.models.position_points import PositionPoints
from app.services.errors import InputError

logger = logging.getLogger(__name__)


def _org_filter(stmt, organization_id: Optional[int]):
    if organization_id is None:
        return stmt
    return stmt.where(PositionPoints.organization_id == organization_id)


def get_position_points_lookup(session: Session, organization_id: Optional[int], player_count: int) -> Dict[int, int]:
    rows: List[PositionPoints] = []

    if player_count and player_count > 0:
        rows = session.exec(
            _org_filter(select(PositionPoints), organization_id)
            .where(PositionPoints.player_count == player_count)
            .order_by(PositionPoints.position)
        ).all()

        if not rows:
            closest = session.exec(
                _org_filter(select(PositionPoints.player_count), organization_id)
                .where(PositionPoints.player_count >= player_count)
                .order_by(PositionPoints.player_count)
            ).first()
            if closest is not None:
                rows = session.exec(
                    _org_filter(select(PositionPoints), organization_id)
                    .where(PositionPoints.player_count == closest)
                    .order_by(PositionPoints.position)
                ).all()

    if not rows:
        rows = session.exec(
            _org_filter(select(PositionPoints), organization_id)
            .where(PositionPoints.player_count == 0)
            .order_by(PositionPoints.position)
        ).all()

    if not rows:
        rows = session.exec(
            _org_filter(select(PositionPoints), organization_id).order_by(PositionPoints.position)
        ).all()

    if not rows:
        logger.warning(
            "No position points configured for organization %s (players=%d); all points will be 0",
            organization_id, player_count,
        )

    lookup: Dict[int, int] = {}
    for row in rows:
        lookup.setdefault(row.position, row.points)
    return lookup


def replace_position_points(
    session: Session,
    organization_id: Optional[int],
    player_count: int,
    points_by_position: Dict[int, int],
) -> List[PositionPoints]:
    """Replace one (organization, field size) table. Commits."""
    if player_count < 0:
        raise InputError("player_count must be >= 0")
    for position, points in points_by_position.items():
        if position < 1:
            raise InputError(f"Position must be >= 1, got {position}")
        if points < 0:
            raise InputError(f"Points must be >= 0, got {points} for position {position}")

    existing = session.exec(
        select(PositionPoints).where(
            PositionPoints.organization_id == organization_id,
            PositionPoints.player_count == player_count,
        )
    ).all()
    for row in existing:
        session.delete(row)
    session.flush()

    rows = [
        PositionPoints(organization_id=organization_id, player_count=player_count, position=pos, points=pts)
        for pos, pts in sorted(points_by_position.items())
    ]
    for row in rows:
        session.add(row)
    session.commit()
    for row in rows:
        session.refresh(row)
    return rows
