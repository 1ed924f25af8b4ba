"""Tests for experiment listing, editing and lifecycle endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from growthlab.models.experiment import NewExperiment

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

    from growthlab.db import Database
    from growthlab.models.experiment import Experiment
    from growthlab.models.goal import Goal


@pytest.fixture()
def stored(db: Database, numeric_goal: Goal, user_id: str) -> list[Experiment]:
    return db.insert_experiments(
        [
            NewExperiment(
                user_id=user_id,
                hypothesis=f"Hipótese {i}",
                variable="CTR",
                expected_result="+20%",
                goal_id=numeric_goal.id,
            )
            for i in range(3)
        ]
    )


class TestListExperiments:
    def test_empty_list(self, client: TestClient):
        resp = client.get("/api/v1/experiments")
        assert resp.status_code == 200
        data = resp.json()
        assert data["experiments"] == []
        assert data["total"] == 0

    def test_list_newest_first(self, client: TestClient, stored: list[Experiment]):
        resp = client.get("/api/v1/experiments")
        assert resp.status_code == 200
        ids = [e["id"] for e in resp.json()["experiments"]]
        assert ids == sorted((e.id for e in stored), reverse=True)

    def test_filter_by_status(self, client: TestClient, stored: list[Experiment]):
        client.post(f"/api/v1/experiments/{stored[0].id}/activate")

        resp = client.get("/api/v1/experiments?status=backlog")
        data = resp.json()
        assert data["total"] == 2
        assert all(e["status"] == "backlog" for e in data["experiments"])

    def test_exclude_ids(self, client: TestClient, stored: list[Experiment]):
        resp = client.get(
            f"/api/v1/experiments?exclude={stored[0].id}&exclude={stored[1].id}"
        )
        data = resp.json()
        assert [e["id"] for e in data["experiments"]] == [stored[2].id]

    def test_other_users_records_hidden(self, other_client: TestClient, stored: list[Experiment]):
        resp = other_client.get("/api/v1/experiments")
        assert resp.json()["total"] == 0

    def test_invalid_status_is_400(self, client: TestClient):
        resp = client.get("/api/v1/experiments?status=running")
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid request")


class TestGetExperiment:
    def test_get_existing(self, client: TestClient, stored: list[Experiment]):
        resp = client.get(f"/api/v1/experiments/{stored[0].id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["hypothesis"] == "Hipótese 0"
        assert data["suggested_cutoff_line"] == "10%"

    def test_get_nonexistent(self, client: TestClient):
        resp = client.get("/api/v1/experiments/99999")
        assert resp.status_code == 404
        assert "not found" in resp.json()["error"]

    def test_get_other_users_record(self, other_client: TestClient, stored: list[Experiment]):
        resp = other_client.get(f"/api/v1/experiments/{stored[0].id}")
        assert resp.status_code == 404


class TestLifecycle:
    def test_backlog_active_archived(self, client: TestClient, stored: list[Experiment]):
        exp_id = stored[0].id

        resp = client.post(f"/api/v1/experiments/{exp_id}/activate")
        assert resp.status_code == 200
        assert resp.json()["status"] == "em_execucao"
        assert resp.json()["allowed_actions"] == ["queue", "archive"]

        resp = client.post(f"/api/v1/experiments/{exp_id}/archive")
        assert resp.status_code == 200
        assert resp.json()["status"] == "archived"
        assert resp.json()["allowed_actions"] == []

    def test_archived_rejects_further_actions(
        self, client: TestClient, db: Database, stored: list[Experiment]
    ):
        exp_id = stored[0].id
        client.post(f"/api/v1/experiments/{exp_id}/archive")

        for action in ("activate", "queue", "archive"):
            resp = client.post(f"/api/v1/experiments/{exp_id}/{action}")
            assert resp.status_code == 400

        assert db.get_experiment(exp_id).status.value == "archived"

    def test_queue_returns_to_backlog(self, client: TestClient, stored: list[Experiment]):
        exp_id = stored[0].id
        client.post(f"/api/v1/experiments/{exp_id}/activate")

        resp = client.post(f"/api/v1/experiments/{exp_id}/queue")
        assert resp.json()["status"] == "backlog"

    def test_transition_keeps_goal_and_context(
        self, client: TestClient, stored: list[Experiment]
    ):
        resp = client.post(f"/api/v1/experiments/{stored[0].id}/activate")
        assert resp.json()["goal_id"] == stored[0].goal_id
        assert resp.json()["context_id"] == stored[0].context_id

    def test_unknown_action_is_400(self, client: TestClient, stored: list[Experiment]):
        resp = client.post(f"/api/v1/experiments/{stored[0].id}/delete")
        assert resp.status_code == 400

    def test_missing_experiment_is_404(self, client: TestClient):
        resp = client.post("/api/v1/experiments/99999/activate")
        assert resp.status_code == 404


class TestEditExperiment:
    def test_edit_expected_result_mirrors_target_value(
        self, client: TestClient, stored: list[Experiment]
    ):
        resp = client.patch(
            f"/api/v1/experiments/{stored[0].id}",
            json={"expected_result": "3,5", "cutoff_line": "Pausar se CPA > R$ 60"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["expected_result"] == "3,5"
        assert data["target_value"] == 3.5
        assert data["cutoff_line"] == "Pausar se CPA > R$ 60"
        assert data["suggested_cutoff_line"] == ""

    def test_blank_text_clears_field(self, client: TestClient, stored: list[Experiment]):
        resp = client.patch(f"/api/v1/experiments/{stored[0].id}", json={"expected_result": "  "})
        data = resp.json()
        assert data["expected_result"] is None
        assert data["target_value"] is None

    def test_unknown_field_rejected(self, client: TestClient, stored: list[Experiment]):
        resp = client.patch(f"/api/v1/experiments/{stored[0].id}", json={"status": "archived"})
        assert resp.status_code == 400

    def test_edit_missing_experiment(self, client: TestClient):
        resp = client.patch("/api/v1/experiments/99999", json={"hypothesis": "x"})
        assert resp.status_code == 404


class TestCorrelationId:
    def test_response_has_correlation_id(self, client: TestClient):
        resp = client.get("/api/v1/health")
        assert "X-Correlation-ID" in resp.headers

    def test_custom_correlation_id_echoed(self, client: TestClient):
        resp = client.get("/api/v1/health", headers={"X-Correlation-ID": "abc123"})
        assert resp.headers["X-Correlation-ID"] == "abc123"
