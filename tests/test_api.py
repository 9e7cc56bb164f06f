"""HTTP contract tests against the in-memory backend."""

from fastapi.testclient import TestClient

from timed_quiz.api.leaderboard import resolve_limit
from timed_quiz.core.config import Settings
from timed_quiz.main import create_app


def start(client, name="Ada"):
    response = client.post("/quiz/start", json={"name": name, "email": "ada@example.com"})
    assert response.status_code == 201
    return response.json()


def answer_key(client, admin_headers):
    listing = client.get("/quiz/admin/questions", headers=admin_headers).json()
    return {q["id"]: q["correctIndex"] for q in listing["questions"]}


def test_root_and_health(seeded_client):
    assert seeded_client.get("/").json()["status"] == "operational"

    health = seeded_client.get("/health")
    assert health.status_code == 200
    body = health.json()
    assert body["status"] == "healthy"
    assert body["components"]["question_bank"]["questions"] == 5


def test_health_degraded_without_questions(client):
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["components"]["question_bank"]["status"] == "degraded"


def test_start_session_contract(seeded_client):
    body = start(seeded_client)

    assert set(body) == {
        "sessionId", "questions", "startedAt", "expiresAt",
        "durationMs", "serverTime", "player"
    }
    assert body["expiresAt"] - body["startedAt"] == 60000
    assert len(body["questions"]) == 3
    for question in body["questions"]:
        assert set(question) == {"id", "prompt", "options", "category"}
    assert set(body["player"]) == {"id", "name"}
    assert body["player"]["name"] == "Ada"


def test_start_session_validation(seeded_client):
    blank = seeded_client.post("/quiz/start", json={"name": "   "})
    assert blank.status_code == 400
    assert blank.json()["code"] == "ValidationError"
    assert blank.json()["error"]

    missing = seeded_client.post("/quiz/start", json={"email": "x@example.com"})
    assert missing.status_code == 400
    assert missing.json()["code"] == "ValidationError"


def test_start_session_insufficient_questions(client):
    response = client.post("/quiz/start", json={"name": "Ada"})
    assert response.status_code == 503
    assert response.json()["code"] == "InsufficientDataError"


def test_fetch_session(seeded_client):
    body = start(seeded_client)

    fetched = seeded_client.get(f"/quiz/session/{body['sessionId']}")
    assert fetched.status_code == 200
    assert fetched.json()["expiresAt"] == body["expiresAt"]
    assert fetched.json()["questions"] == body["questions"]

    unknown = seeded_client.get("/quiz/session/does-not-exist")
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "NotFoundError"


def test_submit_flow(seeded_client, admin_headers):
    body = start(seeded_client)
    key = answer_key(seeded_client, admin_headers)
    answers = [
        {"questionId": q["id"], "optionIndex": key[q["id"]]}
        for q in body["questions"][:2]
    ]

    submitted = seeded_client.post(
        "/quiz/submit",
        json={"sessionId": body["sessionId"], "answers": answers}
    )
    assert submitted.status_code == 200
    result = submitted.json()
    assert result["score"] == 2
    assert result["totalQuestions"] == 3
    assert 0 <= result["timeTakenMs"] <= 60000

    again = seeded_client.post("/quiz/submit", json={"sessionId": body["sessionId"], "answers": []})
    assert again.status_code == 409
    assert again.json()["code"] == "AlreadySubmittedError"

    fetched = seeded_client.get(f"/quiz/session/{body['sessionId']}")
    assert fetched.status_code == 409

    board = seeded_client.get("/leaderboard").json()
    assert board["entries"] == [{
        "sessionId": body["sessionId"],
        "playerName": "Ada",
        "score": 2,
        "totalQuestions": 3,
        "timeTakenMs": result["timeTakenMs"],
    }]


def test_submit_unknown_session(seeded_client):
    response = seeded_client.post("/quiz/submit", json={"sessionId": "nope", "answers": []})
    assert response.status_code == 404


def test_leaderboard_limit(seeded_client):
    for name in ("A", "B", "C"):
        body = start(seeded_client, name)
        seeded_client.post("/quiz/submit", json={"sessionId": body["sessionId"], "answers": []})

    assert len(seeded_client.get("/leaderboard?limit=2").json()["entries"]) == 2
    assert len(seeded_client.get("/leaderboard?limit=0").json()["entries"]) == 1
    assert len(seeded_client.get("/leaderboard").json()["entries"]) == 3


def test_resolve_limit_bounds():
    settings = Settings(leaderboard_default_limit=20, leaderboard_max_limit=50)
    assert resolve_limit(None, settings) == 20
    assert resolve_limit(0, settings) == 1
    assert resolve_limit(500, settings) == 50
    assert resolve_limit(7, settings) == 7


# ==================== ADMIN ====================

def test_admin_requires_code(client):
    assert client.get("/quiz/admin/questions").status_code == 403
    assert client.get("/quiz/admin/questions", headers={"X-Admin-Code": "wrong"}).status_code == 403


def test_admin_closed_without_configured_code():
    app = create_app(Settings(storage_backend="memory", admin_code=None))
    with TestClient(app) as client:
        response = client.get("/quiz/admin/config", headers={"X-Admin-Code": ""})
        assert response.status_code == 403


def test_admin_question_lifecycle(client, admin_headers):
    created = client.post(
        "/quiz/admin/questions",
        json={
            "prompt": "Which is a bond?",
            "options": ["Equity", "Treasury note", "Option", "Future"],
            "correctIndex": 1,
            "category": "Finance",
            "difficulty": "Medium"
        },
        headers=admin_headers
    )
    assert created.status_code == 201
    question = created.json()
    assert question["correctIndex"] == 1

    listing = client.get("/quiz/admin/questions", headers=admin_headers).json()
    assert [q["id"] for q in listing["questions"]] == [question["id"]]
    assert listing["config"]["questionCount"] == 3

    deleted = client.delete(f"/quiz/admin/questions/{question['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    missing = client.delete(f"/quiz/admin/questions/{question['id']}", headers=admin_headers)
    assert missing.status_code == 404


def test_admin_rejects_invalid_question(client, admin_headers):
    response = client.post(
        "/quiz/admin/questions",
        json={"prompt": "Q?", "options": ["a", "b", "c"], "correctIndex": 0},
        headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "ValidationError"


def test_admin_config_update(seeded_client, admin_headers):
    before = seeded_client.get("/quiz/admin/config", headers=admin_headers).json()
    assert (before["questionCount"], before["durationMs"], before["version"]) == (3, 60000, 1)

    in_flight = start(seeded_client)

    updated = seeded_client.put(
        "/quiz/admin/config",
        json={"questionCount": 2, "durationMs": 30000},
        headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["version"] == 2

    fetched = seeded_client.get(f"/quiz/session/{in_flight['sessionId']}").json()
    assert fetched["durationMs"] == 60000
    assert len(fetched["questions"]) == 3

    invalid = seeded_client.put(
        "/quiz/admin/config",
        json={"questionCount": 0, "durationMs": 30000},
        headers=admin_headers
    )
    assert invalid.status_code == 400
