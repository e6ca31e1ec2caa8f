"""
Tests for the HTTP trigger surface

Workflow and repositories are swapped through app.dependency_overrides.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from helpdesk.config import Settings
from helpdesk.dependencies import get_confidence_engine, get_suggestion_repository, get_workflow
from helpdesk.exceptions import (
    CapabilityFailureError,
    ProcessingTimeoutError,
    TicketNotFoundError,
    WorkflowClosedError,
)
from helpdesk.main import app
from helpdesk.models.schemas import SuggestionStatus
from helpdesk.services.confidence import ConfidenceEngine


@pytest.fixture
def client(workflow, suggestions):
    app.dependency_overrides[get_workflow] = lambda: workflow
    app.dependency_overrides[get_suggestion_repository] = lambda: suggestions
    app.dependency_overrides[get_confidence_engine] = lambda: ConfidenceEngine(Settings())
    yield TestClient(app)
    app.dependency_overrides.clear()


def failing_workflow(error):
    workflow = MagicMock()
    workflow.process_ticket = AsyncMock(side_effect=error)
    return workflow


class TestProcessTicket:

    def test_success(self, client):
        response = client.post("/api/ai/process-ticket", json={"ticket_id": "T1", "priority": "high"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["action"] == "auto_resolve"
        assert body["data"]["auto_resolved"] is True
        assert body["data"]["trace_id"]
        assert body["data"]["processing_time_ms"] >= 0

    def test_invalid_priority_rejected(self, client):
        response = client.post("/api/ai/process-ticket", json={"ticket_id": "T1", "priority": "asap"})

        assert response.status_code == 422

    @pytest.mark.parametrize("error, code, kind", [
        (TicketNotFoundError("T9"), 404, "not_found"),
        (ProcessingTimeoutError("too slow"), 504, "timeout"),
        (CapabilityFailureError("job failed"), 502, "capability_failure"),
        (WorkflowClosedError("closed"), 503, "workflow_closed"),
        (RuntimeError("unexpected"), 500, "internal_error"),
    ])
    def test_error_mapping(self, client, error, code, kind):
        app.dependency_overrides[get_workflow] = lambda: failing_workflow(error)

        response = client.post("/api/ai/process-ticket", json={"ticket_id": "T9"})

        assert response.status_code == code
        assert response.json()["detail"]["kind"] == kind

    def test_error_detail_carries_context(self, client):
        app.dependency_overrides[get_workflow] = lambda: failing_workflow(TicketNotFoundError("T9"))

        response = client.post("/api/ai/process-ticket", json={"ticket_id": "T9"})

        assert response.json()["detail"] == {
            "kind": "not_found",
            "message": "Ticket T9 not found",
            "ticket_id": "T9",
        }


class TestQueries:

    def test_processing_status_before_and_after(self, client):
        before = client.get("/api/ai/processing-status/T1").json()
        client.post("/api/ai/process-ticket", json={"ticket_id": "T1"})
        after = client.get("/api/ai/processing-status/T1").json()

        assert before["data"] == {"status": "not_processed"}
        assert after["data"]["status"] == "auto_applied"

    def test_list_suggestions(self, client):
        client.post("/api/ai/process-ticket", json={"ticket_id": "T1"})

        response = client.get("/api/ai/suggestions", params={"ticket_id": "T1", "status": "auto_applied"})

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["status"] == "auto_applied"

    def test_confidence_feedback(self, client):
        response = client.post(
            "/api/ai/confidence/feedback",
            json={"ticket_id": "T1", "predicted_confidence": 0.9, "correct": True},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["bin"]["samples"] == 251
        assert "overall" in data["stats"]["components"]


class TestSuggestionReview:

    def process(self, client, suggestions):
        client.post("/api/ai/process-ticket", json={"ticket_id": "T1"})
        return suggestions.for_ticket("T1")[0]

    def test_get_suggestion(self, client, suggestions):
        stored = self.process(client, suggestions)

        response = client.get(f"/api/ai/suggestions/{stored.id}")

        assert response.status_code == 200
        assert response.json()["id"] == stored.id
        assert response.json()["status"] == "auto_applied"

    def test_get_missing_suggestion(self, client):
        response = client.get("/api/ai/suggestions/nope")

        assert response.status_code == 404
        assert response.json()["detail"]["suggestion_id"] == "nope"

    def test_review_appends_audit_and_feeds_calibration(self, client, suggestions):
        stored = self.process(client, suggestions)

        response = client.post(
            f"/api/ai/suggestions/{stored.id}/review",
            json={"decision": "approve", "classification_accuracy": "correct", "reviewer_id": "agent-7"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["decision"] == "approve"
        assert data["bin"]["range"] == [0.8, 1.0]
        assert data["bin"]["samples"] == 251

        record = suggestions.records[stored.id]
        assert record.status == SuggestionStatus.AUTO_APPLIED
        last = record.audit_trail[-1]
        assert last.action == "Human review recorded"
        assert last.actor == "agent-7"
        assert last.details == {"decision": "approve", "classification_accuracy": "correct"}

    def test_review_without_verdict_skips_calibration(self, client, suggestions):
        stored = self.process(client, suggestions)

        response = client.post(f"/api/ai/suggestions/{stored.id}/review", json={"decision": "reject"})

        assert response.status_code == 200
        assert response.json()["data"]["bin"] is None

    def test_review_missing_suggestion(self, client):
        response = client.post("/api/ai/suggestions/nope/review", json={"decision": "approve"})

        assert response.status_code == 404

    def test_review_rejects_unknown_decision(self, client, suggestions):
        stored = self.process(client, suggestions)

        response = client.post(f"/api/ai/suggestions/{stored.id}/review", json={"decision": "maybe"})

        assert response.status_code == 422


class TestHealth:

    def test_basic_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" not in response.headers

    def test_workflow_health(self, client):
        response = client.get("/api/health/workflow")

        assert response.status_code == 200
        assert response.json()["in_flight"] == 0
        assert "X-Request-ID" in response.headers
