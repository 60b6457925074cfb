"""
Progression configuration.

Defaults come from the environment (loaded with python-dotenv); per-tenant
values supplied by the caller are merged on top and re-validated. The result
is an immutable object passed explicitly into each stage call.
"""

import os
from typing import Any, Dict, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.services.errors import InputError

load_dotenv()

ALLOWED_BRACKET_SIZES = (2, 4)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("true", "1", "yes")


class ProgressionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bracket_size: int = 4
    single_poule_threshold: int = 5
    allow_poule_of_two: bool = False
    enable_classification_round2: bool = True
    position_points_degradation: Literal["none", "last_player"] = "none"

    @field_validator("bracket_size")
    @classmethod
    def validate_bracket_size(cls, v):
        if v not in ALLOWED_BRACKET_SIZES:
            raise ValueError(f"bracket_size must be one of {ALLOWED_BRACKET_SIZES}, got {v}")
        return v

    @field_validator("single_poule_threshold")
    @classmethod
    def validate_threshold(cls, v):
        if v < 0:
            raise ValueError("single_poule_threshold must be >= 0")
        return v

    def with_overrides(self, overrides: Optional[Dict[str, Any]]) -> "ProgressionConfig":
        """Return a validated copy with the non-null overrides applied."""
        if not overrides:
            return self
        update = {k: v for k, v in overrides.items() if v is not None}
        return build_config({**self.model_dump(), **update})


def build_config(values: Dict[str, Any]) -> ProgressionConfig:
    try:
        return ProgressionConfig(**values)
    except PydanticValidationError as e:
        raise InputError(f"Invalid progression configuration: {e.errors()[0]['msg']}") from e


def load_progression_config() -> ProgressionConfig:
    """Read progression defaults from the environment."""
    values: Dict[str, Any] = {
        "allow_poule_of_two": _env_bool("ALLOW_POULE_OF_TWO", False),
        "enable_classification_round2": _env_bool("ENABLE_CLASSIFICATION_ROUND2", True),
        "position_points_degradation": os.getenv("POSITION_POINTS_DEGRADATION", "none"),
    }
    try:
        values["bracket_size"] = int(os.getenv("BRACKET_SIZE", "4"))
        values["single_poule_threshold"] = int(os.getenv("SINGLE_POULE_THRESHOLD", "5"))
    except ValueError as e:
        raise InputError(f"Invalid progression configuration: {e}") from e
    return build_config(values)


def get_progression_config() -> ProgressionConfig:
    """FastAPI dependency"""
    return load_progression_config()
