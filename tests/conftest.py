"""Shared test fixtures."""
import json
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from saftrend.models.saf import SafPoint, SafSummary  # noqa: F401

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="strava_activities")
def strava_activities_fixture() -> List[Dict[str, Any]]:
    """
    Six Strava list items from March 2024. Four qualify for SAF (the ride
    without HR and the weights session do not). The qualifying runs follow
    speed = 1.0 + 0.01 * t_days + 0.01 * avg_hr exactly, so beta1 == beta2
    and SAF equals the horizon.
    """
    return json.loads((FIXTURES_DIR / "strava_activities.json").read_text())
