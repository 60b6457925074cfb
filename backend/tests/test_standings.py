"""Tie-break chain: match points, then average, then best run; full ties keep input order."""

import pytest

from app.models.poule_result import PouleResult
from app.services.errors import InputError
from app.services.standings import Standing, build_poules, overall_ranking, rank_standings


def _row(pid, poule=None, mp=0, pts=0, turns=0, run=0, order=0):
    return PouleResult(
        tournament_id=1,
        participant_id=pid,
        player_name=f"Player {pid}",
        poule_number=poule,
        player_order=order,
        match_points=mp,
        points=pts,
        turns=turns,
        best_run=run,
    )


def test_match_points_rank_first():
    a = Standing("A", "A", match_points=2, points=10, turns=10)
    b = Standing("B", "B", match_points=4, points=5, turns=10)
    assert [s.participant_id for s in rank_standings([a, b])] == ["B", "A"]


def test_average_breaks_match_point_tie():
    a = Standing("A", "A", match_points=4, points=30, turns=20)  # 1.5
    b = Standing("B", "B", match_points=4, points=40, turns=20)  # 2.0
    assert [s.participant_id for s in rank_standings([a, b])] == ["B", "A"]


def test_best_run_breaks_average_tie():
    a = Standing("A", "A", match_points=4, points=30, turns=15, best_run=5)
    b = Standing("B", "B", match_points=4, points=20, turns=10, best_run=7)
    assert [s.participant_id for s in rank_standings([a, b])] == ["B", "A"]


def test_full_tie_keeps_insertion_order():
    players = [Standing(pid, pid, match_points=2, points=10, turns=5, best_run=3) for pid in "CAB"]
    assert [s.participant_id for s in rank_standings(players)] == ["C", "A", "B"]
    assert [s.participant_id for s in rank_standings(reversed(players))] == ["B", "A", "C"]


def test_average_is_zero_without_turns():
    assert Standing("A", "A", points=50, turns=0).average == 0.0
    assert Standing("A", "A", points=50, turns=20).average == 2.5


def test_build_poules_groups_and_ranks():
    rows = [
        _row("A", poule=2, mp=0, order=0),
        _row("B", poule=1, mp=2, order=1),
        _row("C", poule=2, mp=4, order=2),
        _row("D", poule=1, mp=4, order=3),
    ]
    poules = build_poules(rows)
    assert [p.number for p in poules] == [1, 2]
    assert [s.participant_id for s in poules[0].standings] == ["D", "B"]
    assert [s.participant_id for s in poules[1].standings] == ["C", "A"]
    assert poules[0].at(1).participant_id == "D"
    assert poules[0].at(3) is None


def test_build_poules_without_numbers_is_one_poule():
    rows = [_row("A", mp=0, order=0), _row("B", mp=2, order=1), _row("C", mp=1, order=2)]
    poules = build_poules(rows)
    assert len(poules) == 1
    assert [s.participant_id for s in poules[0].standings] == ["B", "C", "A"]


def test_build_poules_empty():
    assert build_poules([]) == []


def test_negative_metric_rejected():
    with pytest.raises(InputError):
        build_poules([_row("A", poule=1, mp=-1)])


def test_overall_ranking_crosses_poules():
    rows = [
        _row("A", poule=1, mp=4, pts=20, turns=10),
        _row("B", poule=1, mp=0, pts=10, turns=10),
        _row("C", poule=2, mp=4, pts=30, turns=10),
        _row("D", poule=2, mp=0, pts=5, turns=10),
    ]
    assert [s.participant_id for s in overall_ranking(build_poules(rows))] == ["C", "A", "B", "D"]
