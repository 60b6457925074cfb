import pytest

from app.models.bracket_match import (
    PHASE_FINAL,
    PHASE_PETITE_FINALE,
    PHASE_SEMIFINAL,
    ROLE_LOSER,
    ROLE_WINNER,
)
from app.services.bracket_builder import build_bracket, semifinal_seed_pairs
from app.services.errors import InputError
from app.services.qualification import Qualifier
from app.services.standings import Standing


def _qualifiers(n):
    return [
        Qualifier(standing=Standing(f"Q{seed}", f"Seed {seed} player"), seed=seed, poule_number=seed)
        for seed in range(1, n + 1)
    ]


def test_semifinals_pair_highest_with_lowest_seed():
    specs = build_bracket(_qualifiers(4))
    semis = [s for s in specs if s.phase == PHASE_SEMIFINAL]

    assert [(s.player1_id, s.player2_id) for s in semis] == [("Q1", "Q4"), ("Q2", "Q3")]
    assert semifinal_seed_pairs() == [(1, 4), (2, 3)]
    # Seeds 1 and 2 are never drawn together before the final
    assert all({s.player1_id, s.player2_id} != {"Q1", "Q2"} for s in semis)


def test_final_and_petite_finale_start_as_placeholders():
    specs = {s.ref: s for s in build_bracket(_qualifiers(4))}
    final = specs[(PHASE_FINAL, 1)]
    petite = specs[(PHASE_PETITE_FINALE, 1)]

    assert final.player1_id is None and final.player2_id is None
    assert (final.placeholder_1, final.placeholder_2) == ("Winner SF1", "Winner SF2")
    assert (final.source_1, final.source_2) == ((PHASE_SEMIFINAL, 1), (PHASE_SEMIFINAL, 2))
    assert final.source_1_role == final.source_2_role == ROLE_WINNER
    assert final.resulting_place == 1

    assert petite.player1_id is None and petite.player2_id is None
    assert (petite.placeholder_1, petite.placeholder_2) == ("Loser SF1", "Loser SF2")
    assert petite.source_1_role == petite.source_2_role == ROLE_LOSER
    assert petite.resulting_place == 3


def test_two_qualifiers_play_only_a_final():
    specs = build_bracket(_qualifiers(2))

    assert len(specs) == 1
    final = specs[0]
    assert final.phase == PHASE_FINAL
    assert (final.player1_id, final.player2_id) == ("Q1", "Q2")
    assert final.resulting_place == 1


@pytest.mark.parametrize("count", [0, 1, 3, 8])
def test_unsupported_qualifier_counts(count):
    with pytest.raises(InputError):
        build_bracket(_qualifiers(count))


def test_seed_gap_rejected():
    qualifiers = _qualifiers(4)
    qualifiers[3] = Qualifier(standing=qualifiers[3].standing, seed=5, poule_number=4)
    with pytest.raises(InputError):
        build_bracket(qualifiers)


def test_to_model_resolves_source_ids():
    specs = {s.ref: s for s in build_bracket(_qualifiers(4))}
    ids = {(PHASE_SEMIFINAL, 1): 11, (PHASE_SEMIFINAL, 2): 12}

    row = specs[(PHASE_FINAL, 1)].to_model(tournament_id=7, ids_by_ref=ids)

    assert row.tournament_id == 7
    assert (row.source_match_1_id, row.source_match_2_id) == (11, 12)
    assert row.match_label == "Final (1st - 2nd place)"
    assert row.winner_participant_id is None
