"""
HTTP surface tests through FastAPI's TestClient.
"""

import random

import pytest
from fastapi.testclient import TestClient

from relevance import RelevanceEngine
from relevance.server import create_app
from relevance.services import InMemoryChunkStore
from relevance.settings import ServiceSettings

from tests.conftest import make_chunk, near


@pytest.fixture
def client():
    rng = random.Random(4)
    chunks = [make_chunk(f"c{i}", embedding=near(i % 8, rng)) for i in range(20)]
    engine = RelevanceEngine(chunks=InMemoryChunkStore(chunks), rng=random.Random(0))
    app = create_app(engine=engine, settings=ServiceSettings(log_level="WARNING"))
    return TestClient(app)


def _run(client, user_id="u1", **body):
    response = client.post(f"/api/users/{user_id}/runs", json=body)
    assert response.status_code == 200
    return response.json()


class TestRoot:
    def test_health(self, client):
        data = client.get("/").json()
        assert data["status"] == "ok"
        assert data["judge"]["configured"] is False


class TestRuns:
    def test_trigger_run(self, client):
        summary = _run(client, budget=5)
        assert summary["created"] == 5
        assert summary["mode"] == "untrained"

    def test_run_without_body(self, client):
        response = client.post("/api/users/u1/runs")
        assert response.status_code == 200
        assert response.json()["created"] == 20

    def test_since_without_offset(self, client):
        summary = _run(client, since="2020-01-01T00:00:00")
        assert summary["considered"] == 20

    def test_negative_budget_rejected(self, client):
        assert client.post("/api/users/u1/runs", json={"budget": -1}).status_code == 422


class TestSignals:
    def test_list_by_state(self, client):
        _run(client, budget=5)
        data = client.get("/api/users/u1/signals", params={"state": "pending"}).json()
        assert data["user_id"] == "u1"
        assert len(data["signals"]) == 5
        assert all(s["state"] == "pending" for s in data["signals"])
        assert client.get("/api/users/u1/signals", params={"state": "saved"}).json()["signals"] == []

    def test_action_updates_signal_and_profile(self, client):
        _run(client, budget=3)
        signal_id = client.get("/api/users/u1/signals").json()["signals"][0]["id"]
        response = client.post(f"/api/signals/{signal_id}/action", json={"action": "saved"})
        assert response.status_code == 200
        data = response.json()
        assert data["signal"]["state"] == "saved"
        assert data["profile"]["total_saved"] == 1
        assert data["profile"]["has_positive_centroid"] is True

    def test_second_action_conflicts(self, client):
        _run(client, budget=3)
        signal_id = client.get("/api/users/u1/signals").json()["signals"][0]["id"]
        client.post(f"/api/signals/{signal_id}/action", json={"action": "skipped"})
        response = client.post(f"/api/signals/{signal_id}/action", json={"action": "saved"})
        assert response.status_code == 409

    def test_unknown_signal(self, client):
        response = client.post("/api/signals/nope/action", json={"action": "saved"})
        assert response.status_code == 404

    def test_invalid_action(self, client):
        _run(client, budget=1)
        signal_id = client.get("/api/users/u1/signals").json()["signals"][0]["id"]
        response = client.post(f"/api/signals/{signal_id}/action", json={"action": "liked"})
        assert response.status_code == 422


class TestProfile:
    def test_cold_start_profile(self, client):
        data = client.get("/api/users/new-user/profile").json()
        assert data["mode"] == "untrained"
        assert data["total_saved"] == 0
        assert data["separation"] is None
