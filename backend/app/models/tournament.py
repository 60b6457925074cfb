from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from app.utils.timestamps import utc_now

if TYPE_CHECKING:
    from app.models.bracket_match import BracketMatch
    from app.models.final_position import FinalPosition
    from app.models.poule_result import PouleResult


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    organization_id: Optional[int] = Field(default=None, index=True)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    # Progression snapshot, rewritten by every generate call
    mode: Optional[str] = Field(default=None)  # "single_poule" | "bracket" | None (not generated)
    qualification_rule: Optional[str] = Field(default=None)
    bracket_size: Optional[int] = Field(default=None)  # 2 | 4
    classification_round2: bool = Field(default=False)
    bye_participant_id: Optional[str] = Field(default=None)
    bye_player_name: Optional[str] = Field(default=None)
    bye_position: Optional[int] = Field(default=None)
    generated_at: Optional[datetime] = Field(default=None)
    finalized_at: Optional[datetime] = Field(default=None)

    # Relationships
    poule_results: List["PouleResult"] = Relationship(back_populates="tournament")
    matches: List["BracketMatch"] = Relationship(back_populates="tournament")
    final_positions: List["FinalPosition"] = Relationship(back_populates="tournament")
