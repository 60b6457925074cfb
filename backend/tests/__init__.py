# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from app.models.bracket_match import BracketMatch  # noqa: F401
from app.models.final_position import FinalPosition  # noqa: F401
from app.models.poule_result import PouleResult  # noqa: F401
from app.models.position_points import PositionPoints  # noqa: F401
from app.models.tournament import Tournament  # noqa: F401
