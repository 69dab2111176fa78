"""
HTTP tests for the FastAPI app, run against an in-process service container.
"""

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from api.index import app
from conftest import ACCOUNT_ID, tag_bytes, tag_image
from core.container import get_container
from submissions.queue import SubmissionQueue
from verification.classifier import ClassifierUnavailable


@pytest.fixture()
def client(services):
    app.dependency_overrides[get_container] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def submission(n=1, **overrides):
    data = {
        "account_id": str(ACCOUNT_ID),
        "store_id": "S1",
        "product_id": f"100000{n}",
        "price": 1000 * n,
        "image_base64": tag_image(f"tag-{n}"),
    }
    data.update(overrides)
    return data


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestLedgerEndpoints:
    """Tests for the raw ledger routes."""

    def test_add_then_confirm(self, client):
        """Test the add-then-confirm flow end to end."""
        created = client.post("/transactions", json={
            "account_id": str(ACCOUNT_ID), "amount": 5, "reason": "price_report",
        })
        assert created.status_code == 201
        transaction_id = created.json()["transaction"]["id"]
        assert created.json()["transaction"]["status"] == "pending"

        confirmed = client.post(f"/transactions/{transaction_id}/confirm", json={"performed_by": "admin"})
        assert confirmed.status_code == 200
        assert confirmed.json()["applied"] is True
        assert confirmed.json()["transaction"]["status"] == "confirmed"

        again = client.post(f"/transactions/{transaction_id}/cancel", json={})
        assert again.status_code == 200
        assert again.json()["applied"] is False

        balance = client.get(f"/accounts/{ACCOUNT_ID}/balance").json()
        assert balance["confirmed_points"] == 5
        assert balance["pending_points"] == 0

    def test_non_positive_amount_rejected(self, client):
        """Test that zero points is a 400 and nothing is stored."""
        response = client.post("/transactions", json={
            "account_id": str(ACCOUNT_ID), "amount": 0, "reason": "price_report",
        })

        assert response.status_code == 400
        assert client.get("/transactions").json() == []

    def test_unknown_transaction_is_404(self, client):
        assert client.get(f"/transactions/{uuid4()}").status_code == 404
        assert client.post(f"/transactions/{uuid4()}/confirm", json={}).status_code == 404

    def test_list_filters_by_status(self, client):
        for _ in range(2):
            client.post("/transactions", json={"account_id": str(ACCOUNT_ID), "amount": 5, "reason": "price_report"})

        assert len(client.get("/transactions", params={"status": "pending"}).json()) == 2
        assert client.get("/transactions", params={"status": "confirmed"}).json() == []

    def test_ledger_history(self, client):
        client.post("/transactions", json={"account_id": str(ACCOUNT_ID), "amount": 7, "reason": "event_bonus"})

        history = client.get(f"/accounts/{ACCOUNT_ID}/ledger").json()

        assert history["total_count"] == 1
        assert history["pending_points"] == 7


class TestSubmissionEndpoints:
    """Tests for single submissions and batch runs."""

    def test_valid_submission_is_confirmed(self, client):
        response = client.post("/submissions", json=submission())

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "succeeded"
        assert body["outcome"]["points_awarded"] == 5
        assert body["outcome"]["transaction_status"] == "confirmed"

    def test_rejected_photo_is_422(self, client, classifier):
        classifier.valid = False
        classifier.reason = "Not a price tag"

        response = client.post("/submissions", json=submission())

        assert response.status_code == 422
        assert response.json()["detail"] == "Not a price tag"
        assert client.get("/transactions").json() == []

    def test_classifier_down_during_prefill_is_503(self, client, classifier):
        classifier.errors[tag_bytes("tag-1")] = ClassifierUnavailable("Image classifier failed")

        response = client.post("/submissions", json=submission(product_id=None, price=None))

        assert response.status_code == 503
        assert client.get("/transactions").json() == []

    def test_verification_only_writes_nothing(self, client):
        response = client.post("/verification", json=submission())

        assert response.status_code == 200
        assert response.json()["points_to_award"] == 5
        assert client.get("/transactions").json() == []

    def test_run_lifecycle(self, client):
        """Test create, start and read back a three item run with one repeat."""
        created = client.post("/submissions/runs", json=[submission(1), submission(2), submission(1)])
        assert created.status_code == 201
        run_id = created.json()["state"]["run_id"]
        assert created.json()["summary"]["queued"] == 3

        started = client.post(f"/submissions/runs/{run_id}/start")
        assert started.status_code == 200
        assert started.json()["state"]["completed"] is True

        summary = client.get(f"/submissions/runs/{run_id}").json()["summary"]
        assert (summary["succeeded"], summary["failed"], summary["skipped"]) == (2, 0, 1)

    def test_empty_run_rejected(self, client):
        assert client.post("/submissions/runs", json=[]).status_code == 400

    def test_pause_idle_run_conflicts(self, client):
        run_id = client.post("/submissions/runs", json=[submission()]).json()["state"]["run_id"]

        assert client.post(f"/submissions/runs/{run_id}/pause").status_code == 409

    def test_start_while_running_conflicts(self, client, services):
        run_id = client.post("/submissions/runs", json=[submission()]).json()["state"]["run_id"]
        running = SubmissionQueue(services.processor.process, delay_seconds=0)
        services.runs.attach_queue(UUID(run_id), running)

        assert client.post(f"/submissions/runs/{run_id}/start").status_code == 409
        assert services.runs.get_queue(UUID(run_id)) is running
        assert client.get(f"/submissions/runs/{run_id}").json()["summary"]["queued"] == 1

    def test_unknown_run_is_404(self, client):
        assert client.get(f"/submissions/runs/{uuid4()}").status_code == 404
        assert client.post(f"/submissions/runs/{uuid4()}/start").status_code == 404


class TestAdminEndpoints:
    """Tests for the manual review routes."""

    def test_listing_and_batch_confirm(self, client, classifier):
        classifier.unavailable = True
        for n in (1, 2):
            assert client.post("/submissions", json=submission(n)).status_code == 201

        listing = client.get("/admin/transactions").json()
        assert listing["total_count"] == 2
        assert listing["stats"]["pending"] == 2
        assert listing["rows"][0]["observation"]["store_name"] == "Costco Yangjae"

        ids = [row["transaction"]["id"] for row in listing["rows"]]
        result = client.post("/admin/transactions/batch-confirm", json={
            "transaction_ids": ids + [str(uuid4())], "performed_by": "admin",
        }).json()

        assert (result["success_count"], result["fail_count"]) == (2, 1)
        assert client.get(f"/accounts/{ACCOUNT_ID}/balance").json()["confirmed_points"] == 10

    def test_empty_batch_is_invalid(self, client):
        assert client.post("/admin/transactions/batch-cancel", json={"transaction_ids": []}).status_code == 422

    def test_single_cancel(self, client):
        created = client.post("/transactions", json={
            "account_id": str(ACCOUNT_ID), "amount": 5, "reason": "price_report",
        }).json()
        transaction_id = created["transaction"]["id"]

        response = client.post(f"/admin/transactions/{transaction_id}/cancel", json={"performed_by": "admin"})

        assert response.json()["transaction"]["status"] == "cancelled"
        assert client.post(f"/admin/transactions/{uuid4()}/cancel", json={}).status_code == 404
