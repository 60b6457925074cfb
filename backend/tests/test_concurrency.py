"""
Two semifinal results arriving at the same moment, each through its own
session on a shared file database. The final and petite finale must be
populated exactly once, from both results.
"""
import threading

from sqlmodel import Session, SQLModel, create_engine, select

from app.models.bracket_match import BracketMatch, PHASE_FINAL, PHASE_PETITE_FINALE, PHASE_SEMIFINAL
from app.services.progression_service import MatchResultInput, generate, record_match_result
from tests.conftest import poule_rows, seed_tournament


def _match(session, tournament_id, phase, order=1):
    return session.exec(
        select(BracketMatch).where(
            BracketMatch.tournament_id == tournament_id,
            BracketMatch.phase == phase,
            BracketMatch.match_order == order,
        )
    ).one()


def test_simultaneous_semifinal_results(tmp_path, config):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'progression.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)
    try:
        with Session(engine) as session:
            tournament_id = seed_tournament(session, poule_rows([3, 2, 2])).id
            generate(session, tournament_id, config)
            sf1_id = _match(session, tournament_id, PHASE_SEMIFINAL, 1).id
            sf2_id = _match(session, tournament_id, PHASE_SEMIFINAL, 2).id

        barrier = threading.Barrier(2)
        errors = []
        advanced = []

        def record(match_id, winner):
            with Session(engine) as session:
                barrier.wait()
                try:
                    outcome = record_match_result(
                        session, tournament_id, match_id, MatchResultInput(winner_participant_id=winner)
                    )
                    advanced.append(outcome.advanced_count)
                except Exception as e:
                    errors.append(e)

        threads = [
            threading.Thread(target=record, args=(sf1_id, "P1-1")),
            threading.Thread(target=record, args=(sf2_id, "P3-1")),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        # Whichever result lands second fills both dependent matches
        assert sorted(advanced) == [0, 4]
        with Session(engine) as session:
            final = _match(session, tournament_id, PHASE_FINAL)
            petite = _match(session, tournament_id, PHASE_PETITE_FINALE)
            assert (final.player1_id, final.player2_id) == ("P1-1", "P3-1")
            assert (petite.player1_id, petite.player2_id) == ("P1-2", "P2-1")
            assert final.winner_participant_id is None
    finally:
        engine.dispose()
