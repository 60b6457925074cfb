from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.tournament import Tournament


class PouleResult(SQLModel, table=True):
    """Aggregated round-robin result of one participant (read-only input to the engine)."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "participant_id", name="uq_poule_result_participant"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    participant_id: str  # licence number
    player_name: str
    poule_number: Optional[int] = Field(default=None)  # null when poule layout is unknown
    player_order: int = Field(default=0)  # position inside the poule sheet

    match_points: int = Field(default=0)
    points: int = Field(default=0)
    turns: int = Field(default=0)  # innings ("reprises")
    best_run: int = Field(default=0)  # best single run ("série")

    tournament: "Tournament" = Relationship(back_populates="poule_results")
