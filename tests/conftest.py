"""
Pytest configuration and fixtures for lesson-core tests
"""

import os
import random
from typing import List

import pytest
from fastapi.testclient import TestClient

os.environ.pop("SNAPSHOT_DIR", None)
os.environ["MCQ_BATCH_SIZE"] = "50"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from lesson_core.main import app
from lesson_core.models import Question
from lesson_core.services.quiz_engine import QuizSession
from lesson_core.services.snapshot_store import InMemorySnapshotStore
from lesson_core.services.ticker import ManualTicker


def make_questions(count: int, options: int = 4) -> List[Question]:
    """Pool where question i is answered correctly by option i % options."""
    return [
        Question(
            text=f"Question {i}",
            options=[f"Option {i}.{o}" for o in range(options)],
            correct_option_index=i % options,
            explanation=f"Because {i % options}",
        )
        for i in range(count)
    ]


@pytest.fixture
def store():
    return InMemorySnapshotStore()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def session_factory(store, ticker):
    """Build sessions sharing one store and ticker, like a host reloading a page."""
    def factory(count: int = 10, content_id: str = "chapter-1", batch_size: int = 50, seed: int = 7, **kwargs):
        return QuizSession(
            content_id,
            make_questions(count),
            store,
            ticker=ticker,
            batch_size=batch_size,
            rng=random.Random(seed),
            **kwargs,
        )
    return factory


@pytest.fixture(scope="session")
def test_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def question_payload():
    def build(count: int) -> List[dict]:
        return [q.model_dump(exclude={"index"}) for q in make_questions(count)]
    return build
