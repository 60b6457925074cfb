from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.config import ProgressionConfig, get_progression_config
from app.services.errors import ProgressionError
from app.services.qualification import rule_for_poule_count
from app.utils.http_errors import to_http_exception
from app.utils.poule_distribution import compute_poule_configuration, is_single_poule

router = APIRouter()


class PouleConfigurationResponse(BaseModel):
    players: int
    poules: List[int]
    tables: int
    min_players: int
    description: str
    single_poule: bool
    qualification_rule: str


@router.get("/poules/configuration", response_model=PouleConfigurationResponse)
def get_poule_configuration(
    players: int = Query(..., ge=0),
    allow_poule_of_two: Optional[bool] = None,
    config: ProgressionConfig = Depends(get_progression_config),
):
    """Poule sizes and table count for a player count (sizing only, no assignment)"""
    allow = config.allow_poule_of_two if allow_poule_of_two is None else allow_poule_of_two
    try:
        poule_config = compute_poule_configuration(players, allow)
    except ProgressionError as e:
        raise to_http_exception(e)

    single = is_single_poule(players, config.single_poule_threshold)
    rule = rule_for_poule_count(1 if single else len(poule_config.poules))
    return PouleConfigurationResponse(
        players=players,
        poules=poule_config.poules,
        tables=poule_config.tables,
        min_players=poule_config.min_players,
        description=poule_config.description,
        single_poule=single,
        qualification_rule=rule.value,
    )
