"""
Poule Distribution

Sizes the round-robin poules for a player count:
1. Preferred poule size is 3
2. Remainder 1: the last poule absorbs the extra player (becomes 4)
3. Remainder 2: an extra poule of 2 when allowed, otherwise the last poule becomes 5

Only sizes are computed here; assigning players to poules is done upstream.
"""

import math
from dataclasses import dataclass, field
from typing import List

from app.services.errors import InputError

PREFERRED_POULE_SIZE = 3


@dataclass
class PouleConfiguration:
    poules: List[int] = field(default_factory=list)
    tables: int = 0
    min_players: int = PREFERRED_POULE_SIZE
    description: str = ""


def minimum_players(allow_poule_of_two: bool) -> int:
    return 2 if allow_poule_of_two else PREFERRED_POULE_SIZE


def compute_poule_sizes(num_players: int, allow_poule_of_two: bool = False) -> List[int]:
    """
    Compute poule sizes for a given number of players.

    Examples:
        7  -> [3, 4]
        8  -> [3, 5]     (poules of 2 not allowed)
        8  -> [3, 3, 2]  (poules of 2 allowed)

    Returns an empty list when there are not enough players to form a poule.
    """
    if num_players < 0:
        raise InputError(f"Player count must be >= 0, got {num_players}")

    if num_players < minimum_players(allow_poule_of_two):
        return []

    if num_players == 2 and allow_poule_of_two:
        return [2]

    num_poules = num_players // PREFERRED_POULE_SIZE
    remainder = num_players % PREFERRED_POULE_SIZE
    poules = [PREFERRED_POULE_SIZE] * num_poules

    if remainder == 1:
        poules[-1] = 4
    elif remainder == 2:
        if allow_poule_of_two:
            poules.append(2)
        else:
            poules[-1] = 5

    return poules


def compute_tables_needed(poule_sizes: List[int]) -> int:
    """1 table for poules of 3 or fewer, ceil(size/2) for larger poules."""
    total = 0
    for size in poule_sizes:
        if size <= 3:
            total += 1
        else:
            total += math.ceil(size / 2)
    return total


def describe_poules(poule_sizes: List[int]) -> str:
    if not poule_sizes:
        return "Not enough players"
    if len(poule_sizes) == 1:
        return f"1 poule: {poule_sizes[0]}"
    return f"{len(poule_sizes)} poules: {' + '.join(str(s) for s in poule_sizes)}"


def compute_poule_configuration(num_players: int, allow_poule_of_two: bool = False) -> PouleConfiguration:
    poules = compute_poule_sizes(num_players, allow_poule_of_two)
    return PouleConfiguration(
        poules=poules,
        tables=compute_tables_needed(poules),
        min_players=minimum_players(allow_poule_of_two),
        description=describe_poules(poules),
    )


def is_single_poule(total_players: int, threshold: int) -> bool:
    """Small fields play one poule and no bracket."""
    return total_players <= threshold
