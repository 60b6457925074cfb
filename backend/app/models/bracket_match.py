from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from app.utils.timestamps import utc_now

if TYPE_CHECKING:
    from app.models.tournament import Tournament

PHASE_SEMIFINAL = "SF"
PHASE_FINAL = "F"
PHASE_PETITE_FINALE = "PF"
PHASE_CLASSIFICATION_R1 = "CL_R1"
PHASE_CLASSIFICATION_R2 = "CL_R2"

BRACKET_PHASES = (PHASE_SEMIFINAL, PHASE_FINAL, PHASE_PETITE_FINALE)
PHASE_ORDER = {
    PHASE_SEMIFINAL: 1,
    PHASE_FINAL: 2,
    PHASE_PETITE_FINALE: 3,
    PHASE_CLASSIFICATION_R1: 4,
    PHASE_CLASSIFICATION_R2: 5,
}

ROLE_WINNER = "WINNER"
ROLE_LOSER = "LOSER"


class BracketMatch(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "phase", "match_order", name="uq_bracket_match_phase_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    phase: str  # "SF" | "F" | "PF" | "CL_R1" | "CL_R2"
    match_order: int  # 1..N within phase
    match_label: str

    # Player slots (null until the upstream match resolves them)
    player1_id: Optional[str] = Field(default=None)
    player1_name: Optional[str] = Field(default=None)
    player2_id: Optional[str] = Field(default=None)
    player2_name: Optional[str] = Field(default=None)

    # Placeholder text (always present, used when slots are null or for display)
    placeholder_side_1: str
    placeholder_side_2: str

    # Upstream match → slot (F/PF from semifinals, CL_R2 from CL_R1)
    source_match_1_id: Optional[int] = Field(default=None)
    source_match_2_id: Optional[int] = Field(default=None)
    source_1_role: Optional[str] = Field(default=None)  # "WINNER" | "LOSER"
    source_2_role: Optional[str] = Field(default=None)

    # Scores
    player1_points: int = Field(default=0)
    player1_turns: int = Field(default=0)
    player2_points: int = Field(default=0)
    player2_turns: int = Field(default=0)
    winner_participant_id: Optional[str] = Field(default=None)

    # Higher (numerically smaller) place of the two-position band this match decides
    resulting_place: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = Field(default=None)

    tournament: "Tournament" = Relationship(back_populates="matches")

    @property
    def slots_resolved(self) -> bool:
        return self.player1_id is not None and self.player2_id is not None

    @property
    def loser_participant_id(self) -> Optional[str]:
        if self.winner_participant_id is None:
            return None
        if self.winner_participant_id == self.player1_id:
            return self.player2_id
        return self.player1_id

    def name_of(self, participant_id: Optional[str]) -> Optional[str]:
        if participant_id is None:
            return None
        if participant_id == self.player1_id:
            return self.player1_name
        if participant_id == self.player2_id:
            return self.player2_name
        return None
