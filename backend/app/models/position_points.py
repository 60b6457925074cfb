from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class PositionPoints(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("organization_id", "player_count", "position", name="uq_position_points"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: Optional[int] = Field(default=None, index=True)
    player_count: int = Field(default=0)  # 0 = applies to any field size
    position: int
    points: int
