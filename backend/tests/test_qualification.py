"""
Qualification rules per poule count, seeding and the non-qualified pool.
"""

import pytest

from app.services.errors import InputError
from app.services.qualification import QualificationRule, rule_for_poule_count, select_qualifiers
from app.services.standings import build_poules
from tests.conftest import poule_rows, result_models


def _poules(layout):
    return build_poules(result_models(poule_rows(layout)))


def _ids(qualifiers):
    return [q.participant_id for q in qualifiers]


@pytest.mark.parametrize(
    "count,rule",
    [
        (0, QualificationRule.single_poule),
        (1, QualificationRule.single_poule),
        (2, QualificationRule.top2_each),
        (3, QualificationRule.all_1st_best_2nd),
        (4, QualificationRule.all_1st),
        (5, QualificationRule.best_4_overall),
        (9, QualificationRule.best_4_overall),
    ],
)
def test_rule_for_poule_count(count, rule):
    assert rule_for_poule_count(count) == rule


class TestRules:
    def test_top2_each(self):
        result = select_qualifiers(_poules([3, 3]), 4, QualificationRule.top2_each)
        assert _ids(result.qualifiers) == ["P1-1", "P2-1", "P1-2", "P2-2"]
        assert [q.seed for q in result.qualifiers] == [1, 2, 3, 4]
        assert [s.participant_id for s in result.non_qualified] == ["P1-3", "P2-3"]

    def test_all_firsts_and_best_second(self):
        """Seven players in poules of 3, 2, 2: three winners plus the best runner-up."""
        result = select_qualifiers(_poules([3, 2, 2]), 4, QualificationRule.all_1st_best_2nd)
        assert _ids(result.qualifiers) == ["P1-1", "P2-1", "P3-1", "P1-2"]
        assert [s.participant_id for s in result.non_qualified] == ["P2-2", "P3-2", "P1-3"]

    def test_all_firsts(self):
        result = select_qualifiers(_poules([3, 3, 3, 3]), 4, QualificationRule.all_1st)
        assert _ids(result.qualifiers) == ["P1-1", "P2-1", "P3-1", "P4-1"]
        assert len(result.non_qualified) == 8
        assert result.non_qualified[0].participant_id == "P1-2"

    def test_best_four_overall_can_take_a_runner_up(self):
        rows = [("A", 1, 8, 99, 10, 5), ("B", 1, 8, 98, 10, 5), ("C", 1, 0, 10, 10, 1)]
        for n in range(2, 6):
            rows += [
                (f"F{n}", n, 6, 90 - n, 10, 5),
                (f"S{n}", n, 2, 50, 10, 2),
                (f"T{n}", n, 0, 20, 10, 1),
            ]
        poules = build_poules(result_models(rows))

        result = select_qualifiers(poules, 4, QualificationRule.best_4_overall)

        assert _ids(result.qualifiers) == ["A", "B", "F2", "F3"]
        assert result.qualifiers[1].poule_number == 1

    def test_bracket_of_two_keeps_best_two(self):
        result = select_qualifiers(_poules([3, 3]), 2, QualificationRule.top2_each)
        assert _ids(result.qualifiers) == ["P1-1", "P2-1"]
        assert len(result.non_qualified) == 4

    def test_short_candidate_list_topped_up_from_ranking(self):
        rows = [
            ("X", 1, 4, 50, 10, 3),
            ("Y1", 2, 4, 60, 10, 3),
            ("Y2", 2, 2, 40, 10, 2),
            ("Y3", 2, 0, 30, 10, 1),
        ]
        result = select_qualifiers(build_poules(result_models(rows)), 4, QualificationRule.top2_each)
        assert _ids(result.qualifiers) == ["Y1", "X", "Y2", "Y3"]
        assert result.non_qualified == []


@pytest.mark.parametrize("layout", [[3, 3], [3, 2, 2], [4, 4, 4, 4], [3, 3, 3, 3, 3], [4, 4, 4, 4, 4, 4]])
@pytest.mark.parametrize("bracket_size", [2, 4])
def test_qualified_and_non_qualified_partition_participants(layout, bracket_size):
    poules = _poules(layout)
    rule = rule_for_poule_count(len(poules))

    result = select_qualifiers(poules, bracket_size, rule)

    qualified = set(_ids(result.qualifiers))
    rest = {s.participant_id for s in result.non_qualified}
    everyone = {s.participant_id for p in poules for s in p.standings}
    assert len(result.qualifiers) == bracket_size
    assert [q.seed for q in result.qualifiers] == list(range(1, bracket_size + 1))
    assert qualified.isdisjoint(rest)
    assert qualified | rest == everyone


def test_selection_is_deterministic():
    first = select_qualifiers(_poules([3, 3, 3, 3, 3]), 4, QualificationRule.best_4_overall)
    second = select_qualifiers(_poules([3, 3, 3, 3, 3]), 4, QualificationRule.best_4_overall)
    assert _ids(first.qualifiers) == _ids(second.qualifiers)
    assert [s.participant_id for s in first.non_qualified] == [s.participant_id for s in second.non_qualified]


def test_invalid_bracket_size_rejected():
    with pytest.raises(InputError):
        select_qualifiers(_poules([3, 3]), 8, QualificationRule.top2_each)


def test_bracket_larger_than_field_rejected():
    poules = build_poules(result_models([("A", 1, 0, 0, 0, 0), ("B", 2, 0, 0, 0, 0), ("C", 3, 0, 0, 0, 0)]))
    with pytest.raises(InputError, match="Configuration incompatible"):
        select_qualifiers(poules, 4, QualificationRule.all_1st_best_2nd)


def test_single_poule_rule_has_no_bracket():
    with pytest.raises(InputError):
        select_qualifiers(_poules([3, 3]), 2, QualificationRule.single_poule)
