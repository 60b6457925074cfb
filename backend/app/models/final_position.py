from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from app.utils.timestamps import utc_now

if TYPE_CHECKING:
    from app.models.tournament import Tournament


class FinalPosition(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "participant_id", name="uq_final_position_participant"),
        SAUniqueConstraint("tournament_id", "position", name="uq_final_position_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    participant_id: str
    player_name: Optional[str] = Field(default=None)
    position: int  # 1 = champion
    points: int = Field(default=0)
    finalized_at: datetime = Field(default_factory=utc_now)

    tournament: "Tournament" = Relationship(back_populates="final_positions")
