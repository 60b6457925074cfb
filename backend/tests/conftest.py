from typing import List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.config import ProgressionConfig
from app.database import get_session
from app.main import app
from app.models.poule_result import PouleResult
from app.models.tournament import Tournament
from app.services.hooks import clear_post_finalize_hooks

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see tests/__init__.py)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after each test so position-points tables never leak
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_hooks():
    yield
    clear_post_finalize_hooks()


@pytest.fixture
def config() -> ProgressionConfig:
    return ProgressionConfig(
        bracket_size=4,
        single_poule_threshold=5,
        allow_poule_of_two=False,
        enable_classification_round2=True,
    )


# (participant_id, poule_number, match_points, points, turns, best_run)
ResultRow = Tuple[str, Optional[int], int, int, int, int]


def seed_tournament(session: Session, rows: Sequence[ResultRow], organization_id: Optional[int] = None) -> Tournament:
    """Create a tournament with round-robin results; player_name = 'Player <id>'."""
    tournament = Tournament(name="Test Tournament", organization_id=organization_id)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)

    for row in result_models(rows, tournament.id):
        session.add(row)
    session.commit()
    return tournament


def poule_rows(poule_sizes: List[int]) -> List[ResultRow]:
    """
    Deterministic results for the given poule layout.

    Player "P<poule>-<rank>" finishes <rank> in poule <poule>. Across poules,
    lower poule numbers have slightly better averages, so the overall ranking
    is: all 1sts (poule 1 first), all 2nds, all 3rds, ...
    """
    rows: List[ResultRow] = []
    for poule_number, size in enumerate(poule_sizes, start=1):
        for rank in range(1, size + 1):
            match_points = 2 * (5 - rank)
            points = 100 - 10 * rank - poule_number
            rows.append((f"P{poule_number}-{rank}", poule_number, match_points, points, 10, 10 - rank))
    return rows


def result_models(rows: Sequence[ResultRow], tournament_id: int = 1) -> List[PouleResult]:
    """Unsaved PouleResult rows for the pure ranking/qualification functions."""
    return [
        PouleResult(
            tournament_id=tournament_id,
            participant_id=pid,
            player_name=f"Player {pid}",
            poule_number=poule,
            player_order=order,
            match_points=mp,
            points=pts,
            turns=turns,
            best_run=run,
        )
        for order, (pid, poule, mp, pts, turns, run) in enumerate(rows)
    ]
