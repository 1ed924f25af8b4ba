"""Tests for goal and diagnostic context endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

    from growthlab.models.context import DiagnosticContext
    from growthlab.models.goal import Goal


class TestGoals:
    def test_create_with_numeric_id(self, client: TestClient):
        resp = client.post(
            "/api/v1/goals",
            json={"id": "12", "title": "Reduzir CPA", "target_metric": "CPA"},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == 12
        assert data["current_cycle"] == 1

    def test_create_without_id_gets_uuid(self, client: TestClient):
        resp = client.post("/api/v1/goals", json={"title": "Aumentar ROAS"})
        assert resp.status_code == 201
        goal_id = resp.json()["id"]
        assert isinstance(goal_id, str)
        assert len(goal_id) == 36

        fetched = client.get(f"/api/v1/goals/{goal_id}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "Aumentar ROAS"

    def test_create_with_invalid_id(self, client: TestClient):
        resp = client.post("/api/v1/goals", json={"id": "abc", "title": "x"})
        assert resp.status_code == 400

    def test_duplicate_id_is_store_error(self, client: TestClient, numeric_goal: Goal):
        resp = client.post("/api/v1/goals", json={"id": 7, "title": "dup"})
        assert resp.status_code == 500
        assert "UNIQUE" in resp.json()["error"]

    def test_get_goal(self, client: TestClient, numeric_goal: Goal):
        resp = client.get("/api/v1/goals/7")
        assert resp.status_code == 200
        assert resp.json()["ad_platform"] == "Meta Ads"

    def test_get_missing_goal(self, client: TestClient):
        assert client.get("/api/v1/goals/999").status_code == 404
        assert client.get("/api/v1/goals/not-a-goal").status_code == 404

    def test_requires_auth(self, anon_client: TestClient):
        assert anon_client.post("/api/v1/goals", json={"title": "x"}).status_code == 401


class TestContexts:
    def test_create_context_and_fetch_latest(self, client: TestClient, numeric_goal: Goal):
        resp = client.post(
            "/api/v1/contexts",
            json={
                "raw_input": "texto livre",
                "structured_analysis": {"strategic_overview": "Há pouca informação no funil."},
                "goal_id": 7,
            },
        )
        assert resp.status_code == 201
        assert resp.json()["goal_id"] == 7

        latest = client.get("/api/v1/contexts/latest")
        assert latest.status_code == 200
        data = latest.json()
        assert data["context"]["id"] == resp.json()["id"]
        assert data["current_cycle"] == 2
        assert data["strategic_overview"] == "Há pouca informação no funil."
        assert data["sparse_information"] is True

    def test_latest_when_none(self, client: TestClient):
        resp = client.get("/api/v1/contexts/latest")
        assert resp.status_code == 200
        assert resp.json()["context"] is None
        assert resp.json()["current_cycle"] == 1

    def test_latest_decodes_json_string_analysis(self, client: TestClient):
        client.post(
            "/api/v1/contexts",
            json={"structured_analysis": '{"strategic_analysis": "CTR em queda"}'},
        )
        data = client.get("/api/v1/contexts/latest").json()
        assert data["context"]["structured_analysis"] == {"strategic_analysis": "CTR em queda"}
        assert data["strategic_overview"] == "CTR em queda"
        assert data["sparse_information"] is False

    def test_set_context_goal(
        self, client: TestClient, sample_context: DiagnosticContext, numeric_goal: Goal
    ):
        resp = client.put(f"/api/v1/contexts/{sample_context.id}/goal", json={"goal_id": "7"})
        assert resp.status_code == 200
        assert resp.json()["goal_id"] == 7

    def test_set_goal_on_other_users_context(
        self, other_client: TestClient, sample_context: DiagnosticContext
    ):
        resp = other_client.put(f"/api/v1/contexts/{sample_context.id}/goal", json={"goal_id": 7})
        assert resp.status_code == 404
