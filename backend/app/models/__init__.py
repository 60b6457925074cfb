from app.models.bracket_match import BracketMatch
from app.models.final_position import FinalPosition
from app.models.poule_result import PouleResult
from app.models.position_points import PositionPoints
from app.models.tournament import Tournament

__all__ = [
    "Tournament",
    "PouleResult",
    "BracketMatch",
    "FinalPosition",
    "PositionPoints",
]
