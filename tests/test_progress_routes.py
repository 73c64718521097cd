from __future__ import annotations

import uuid

import pytest

REPERTOIRE = str(uuid.uuid4())
OTHER_REPERTOIRE = str(uuid.uuid4())


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers(client, register_payload):
    resp = client.post("/api/auth/register", json=register_payload())
    return bearer(resp.get_json()["data"]["tokens"]["accessToken"])


def _review(client, headers, node="e4", correct=True, repertoire=REPERTOIRE):
    return client.post(f"/api/progress/{repertoire}/{node}", json={"wasCorrect": correct}, headers=headers)


def test_progress_requires_authentication(client):
    assert client.get("/api/progress/stats").status_code == 401
    assert client.post(f"/api/progress/{REPERTOIRE}/e4", json={"wasCorrect": True}).status_code == 401


def test_record_review_creates_and_updates(client, headers):
    first = _review(client, headers)
    second = _review(client, headers)

    assert first.status_code == second.status_code == 200
    data = second.get_json()["data"]
    assert data["repertoireId"] == REPERTOIRE
    assert data["nodeId"] == "e4"
    assert data["timesReviewed"] == 2
    assert data["timesCorrect"] == 2
    assert data["interval"] == 6
    assert data["streak"] == 2
    assert data["easeFactor"] == pytest.approx(2.5)


def test_record_review_validates_body_and_ids(client, headers):
    missing = client.post(f"/api/progress/{REPERTOIRE}/e4", json={}, headers=headers)
    bad_id = _review(client, headers, repertoire="not-a-uuid")

    assert missing.status_code == 400
    assert "wasCorrect" in missing.get_json()["details"]
    assert bad_id.status_code == 400
    assert bad_id.get_json()["message"] == "Invalid repertoire ID format"


def test_get_single_position(client, headers):
    assert client.get(f"/api/progress/{REPERTOIRE}/e4", headers=headers).status_code == 404

    _review(client, headers, correct=False)
    resp = client.get(f"/api/progress/{REPERTOIRE}/e4", headers=headers)

    assert resp.status_code == 200
    assert resp.get_json()["data"]["easeFactor"] == pytest.approx(2.3)


def test_repertoire_progress_lists_only_that_repertoire(client, headers):
    _review(client, headers, node="e4")
    _review(client, headers, node="d4")
    _review(client, headers, node="c4", repertoire=OTHER_REPERTOIRE)

    resp = client.get(f"/api/progress/{REPERTOIRE}", headers=headers)

    assert resp.status_code == 200
    nodes = {row["nodeId"] for row in resp.get_json()["data"]}
    assert nodes == {"e4", "d4"}


def test_reset_makes_position_due(client, headers):
    _review(client, headers, node="e4")
    _review(client, headers, node="d4")
    assert client.get("/api/progress/due", headers=headers).get_json()["data"] == []

    reset = client.post(f"/api/progress/{REPERTOIRE}/e4/reset", headers=headers)
    due = client.get("/api/progress/due", headers=headers)
    filtered = client.get(f"/api/progress/due?repertoireId={OTHER_REPERTOIRE}", headers=headers)

    assert reset.status_code == 200
    assert reset.get_json()["data"]["timesReviewed"] == 0
    assert [row["nodeId"] for row in due.get_json()["data"]] == ["e4"]
    assert filtered.get_json()["data"] == []


def test_due_rejects_bad_repertoire_filter(client, headers):
    resp = client.get("/api/progress/due?repertoireId=xyz", headers=headers)

    assert resp.status_code == 400


def test_stats(client, headers):
    empty = client.get("/api/progress/stats", headers=headers).get_json()["data"]
    assert empty == {
        "totalPositions": 0,
        "positionsLearned": 0,
        "averageEaseFactor": 2.5,
        "longestStreak": 0,
        "positionsDueToday": 0,
    }

    for _ in range(3):
        _review(client, headers, node="e4")
    _review(client, headers, node="d4", correct=False)
    client.post(f"/api/progress/{REPERTOIRE}/c4/reset", headers=headers)

    stats = client.get("/api/progress/stats", headers=headers).get_json()["data"]

    assert stats["totalPositions"] == 3
    # e4 (streak 3) and c4 (fresh, ease 2.5) count as learned, d4 (ease 2.3) does not
    assert stats["positionsLearned"] == 2
    assert stats["averageEaseFactor"] == pytest.approx((2.5 + 2.3 + 2.5) / 3)
    assert stats["longestStreak"] == 3
    assert stats["positionsDueToday"] == 1


def test_timestamps_serialise_the_same_after_reload(client, headers):
    written = _review(client, headers).get_json()["data"]
    read = client.get(f"/api/progress/{REPERTOIRE}/e4", headers=headers).get_json()["data"]

    assert written["nextReview"] == read["nextReview"]
    assert written["lastReview"] == read["lastReview"]
    assert read["nextReview"].endswith("+00:00")


def test_repertoire_progress_is_newest_review_first(client, headers):
    for node in ("e4", "d4", "c4"):
        _review(client, headers, node=node)
    _review(client, headers, node="e4")

    resp = client.get(f"/api/progress/{REPERTOIRE}", headers=headers)

    assert [row["nodeId"] for row in resp.get_json()["data"]] == ["e4", "c4", "d4"]
    assert resp.get_json()["meta"]["total"] == 3


def test_due_positions_are_oldest_first(client, headers):
    for node in ("e4", "d4", "c4"):
        _review(client, headers, node=node)
    # reset in a different order than the rows were created
    for node in ("c4", "e4"):
        client.post(f"/api/progress/{REPERTOIRE}/{node}/reset", headers=headers)

    due = client.get("/api/progress/due", headers=headers).get_json()["data"]

    assert [row["nodeId"] for row in due] == ["c4", "e4"]


def test_progress_is_private_to_each_user(client, headers, register_payload):
    other = client.post("/api/auth/register", json=register_payload(email="eve@example.com", username="eve"))
    other_headers = bearer(other.get_json()["data"]["tokens"]["accessToken"])
    _review(client, other_headers, node="e4")
    client.post(f"/api/progress/{REPERTOIRE}/d4/reset", headers=other_headers)

    assert client.get(f"/api/progress/{REPERTOIRE}/e4", headers=headers).status_code == 404
    assert client.get(f"/api/progress/{REPERTOIRE}", headers=headers).get_json()["data"] == []
    assert client.get("/api/progress/due", headers=headers).get_json()["data"] == []
    assert client.get("/api/progress/stats", headers=headers).get_json()["data"]["totalPositions"] == 0
    assert client.get("/api/progress/stats", headers=other_headers).get_json()["data"]["totalPositions"] == 2
