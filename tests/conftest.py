import random

import pytest
from fastapi.testclient import TestClient

from timed_quiz.core.config import Settings
from timed_quiz.db.question_store import MemoryQuestionStore
from timed_quiz.db.session_store import MemorySessionStore
from timed_quiz.main import create_app
from timed_quiz.models.question import QuizConfig
from timed_quiz.models.quiz_sessions import PlayerRecord, QuizSession
from timed_quiz.services.leaderboard import Leaderboard
from timed_quiz.services.question_bank import QuestionBank
from timed_quiz.services.quiz_engine import QuizEngine

START_MS = 1_700_000_000_000
ADMIN_CODE = "letmein"


class FakeClock:
    """Manually advanced epoch-millisecond clock"""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_submitted_session(
    session_id: str,
    score: int,
    time_taken_ms: int,
    submitted_at: int = START_MS,
    name: str = None,
    total: int = 5
) -> QuizSession:
    """A submitted session carrying only what the leaderboard reads"""
    return QuizSession(
        sessionId=session_id,
        player=PlayerRecord(id=f"player_{session_id}", name=name or session_id),
        questions=[
            {"id": f"q{i}", "prompt": f"Q{i}", "options": ["a", "b", "c", "d"], "category": "General"}
            for i in range(total)
        ],
        config=QuizConfig(questionCount=total, durationMs=60000),
        startedAt=submitted_at - time_taken_ms,
        expiresAt=submitted_at - time_taken_ms + 60000,
        submitted=True,
        submittedAt=submitted_at,
        score=score,
        timeTakenMs=time_taken_ms
    )


async def add_questions(bank: QuestionBank, count: int, correct_indices=None):
    """Create `count` questions; correct index cycles 0..3 unless given"""
    created = []
    for i in range(count):
        correct = correct_indices[i] if correct_indices else i % 4
        created.append(await bank.create_question(
            prompt=f"Question {i}?",
            options=[f"Option {i}-{j}" for j in range(4)],
            correct_index=correct,
            category="Finance" if i % 2 else "Economics",
            difficulty="Medium"
        ))
    return created


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def question_store():
    return MemoryQuestionStore()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def bank(question_store, clock):
    return QuestionBank(question_store, rng=random.Random(7), clock=clock)


@pytest.fixture
async def seeded_bank(bank):
    await add_questions(bank, 12)
    await bank.init_config(8, 240000)
    return bank


@pytest.fixture
def leaderboard():
    return Leaderboard(queue_size=8)


@pytest.fixture
def engine(seeded_bank, session_store, leaderboard, clock):
    return QuizEngine(seeded_bank, session_store, leaderboard, clock=clock)


@pytest.fixture
def test_settings():
    return Settings(
        storage_backend="memory",
        quiz_question_count=3,
        quiz_duration_ms=60000,
        admin_code=ADMIN_CODE
    )


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Code": ADMIN_CODE}


@pytest.fixture
def seeded_client(client, admin_headers):
    for i in range(5):
        response = client.post(
            "/quiz/admin/questions",
            json={
                "prompt": f"Question {i}?",
                "options": ["A", "B", "C", "D"],
                "correctIndex": i % 4,
                "category": "Finance"
            },
            headers=admin_headers
        )
        assert response.status_code == 201
    return client
