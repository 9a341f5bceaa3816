"""Tests for the interface log and metrics endpoints."""

import uuid
from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.database import get_db
from app.main import app
from app.models.interface_run import utcnow

NEW_RUN = {
    "interfaceName": "Employee Sync",
    "integrationKey": "INT-0101",
    "status": "FAILED",
    "message": "Connection timeout after 30 seconds",
    "severity": "HIGH",
    "executionTime": 30000,
    "recordsProcessed": 0,
    "sourceSystem": "Workday",
    "targetSystem": "SAP ECP",
    "errorDetails": "Connection timeout",
    "retryCount": 1,
    "nextRetryTime": "2024-05-10T12:05:00Z",
}


def test_health_needs_no_auth():
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/interfaces/logs", headers={"Authorization": ""})

    assert response.status_code == 401
    assert response.json() == {"message": "No token provided"}


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/interfaces/metrics", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_create_and_fetch_log(client):
    created = client.post("/api/interfaces/logs", json=NEW_RUN)

    assert created.status_code == 201
    body = created.json()
    assert body["interfaceName"] == "Employee Sync"
    assert body["status"] == "FAILED"
    assert body["nextRetryTime"] == "2024-05-10T12:05:00Z"
    uuid.UUID(body["id"])

    fetched = client.get(f"/api/interfaces/logs/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_create_rejects_invalid_payload(client):
    missing = {k: v for k, v in NEW_RUN.items() if k != "sourceSystem"}
    bad_status = {**NEW_RUN, "status": "DONE"}
    negative = {**NEW_RUN, "executionTime": -5}
    too_long = {**NEW_RUN, "integrationKey": "K" * 101}

    for payload in (missing, bad_status, negative, too_long):
        response = client.post("/api/interfaces/logs", json=payload)
        assert response.status_code == 400
        assert "message" in response.json()


def test_update_log(client):
    run_id = client.post("/api/interfaces/logs", json={**NEW_RUN, "status": "RUNNING"}).json()["id"]

    response = client.put(f"/api/interfaces/logs/{run_id}", json={"status": "SUCCESS", "severity": "LOW"})

    assert response.status_code == 200
    assert response.json()["status"] == "SUCCESS"
    assert response.json()["severity"] == "LOW"
    assert response.json()["interfaceName"] == "Employee Sync"


def test_update_cannot_clear_required_field(client):
    run_id = client.post("/api/interfaces/logs", json=NEW_RUN).json()["id"]

    response = client.put(f"/api/interfaces/logs/{run_id}", json={"interfaceName": None})

    assert response.status_code == 400


def test_missing_log_is_not_found(client):
    missing = uuid.uuid4()

    assert client.get(f"/api/interfaces/logs/{missing}").status_code == 404
    assert client.put(f"/api/interfaces/logs/{missing}", json={"status": "FAILED"}).status_code == 404
    response = client.delete(f"/api/interfaces/logs/{missing}")
    assert response.status_code == 404
    assert response.json() == {"message": "Interface log not found"}


def test_delete_log(client):
    run_id = client.post("/api/interfaces/logs", json=NEW_RUN).json()["id"]

    response = client.delete(f"/api/interfaces/logs/{run_id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Interface log deleted successfully"}
    assert client.get(f"/api/interfaces/logs/{run_id}").status_code == 404


def test_list_logs_filters_and_paginates(client, make_run):
    for _ in range(2):
        make_run(status="FAILED")
    for _ in range(5):
        make_run(status="SUCCESS")

    response = client.get("/api/interfaces/logs", params={"status": "FAILED", "page": 1, "limit": 10})

    assert response.status_code == 200
    body = response.json()
    assert len(body["interfaces"]) == 2
    assert body["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalRecords": 2,
        "hasNextPage": False,
        "hasPrevPage": False,
    }


def test_list_logs_global_search(client, make_run):
    make_run(interface_name="Employee Sync")
    make_run(interface_name="Payroll Integration")

    body = client.get("/api/interfaces/logs", params={"globalSearch": "Employee"}).json()

    assert [r["interfaceName"] for r in body["interfaces"]] == ["Employee Sync"]


def test_list_logs_rejects_malformed_date(client):
    response = client.get("/api/interfaces/logs", params={"startDate": "13/45/2024"})

    assert response.status_code == 400
    assert "startDate" in response.json()["message"]


def test_list_logs_rejects_bad_paging(client):
    assert client.get("/api/interfaces/logs", params={"page": 0}).status_code == 400
    assert client.get("/api/interfaces/logs", params={"limit": 0}).status_code == 400


def test_export_logs_csv(client, make_run):
    make_run(status="FAILED", interface_name="Payroll Integration")

    response = client.get("/api/interfaces/logs/export", params={"status": "FAILED"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Interface Name,Integration Key,Status")
    assert lines[1].startswith("Payroll Integration,")


def test_metrics_empty_store(client):
    response = client.get("/api/interfaces/metrics", params={"timeRange": "24h"})

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["totalExecutions"] == 0
    assert body["statusByInterface"] == []
    assert len(body["hourlyTrends"]) == 24
    assert body["timeRange"] == "24h"
    assert all(s["count"] == 0 for b in body["hourlyTrends"] for s in b["statuses"])


def test_metrics_summary(client, make_run):
    make_run(status="SUCCESS")
    make_run(status="SUCCESS")
    make_run(status="FAILED")

    body = client.get("/api/interfaces/metrics").json()

    assert body["summary"]["totalExecutions"] == 3
    assert body["summary"]["successCount"] == 2
    assert body["summary"]["failedCount"] == 1
    assert body["statusByInterface"][0]["interfaceName"] == "Employee Sync"
    assert body["statusByInterface"][0]["total"] == 3


def test_metrics_custom_window(client, make_run):
    end = utcnow().replace(microsecond=0)
    start = end - timedelta(days=7)
    make_run(created_at=end - timedelta(days=1))

    body = client.get(
        "/api/interfaces/metrics",
        params={"startDate": start.isoformat(), "endDate": end.isoformat()},
    ).json()

    assert body["timeRange"] == "custom"
    assert len(body["hourlyTrends"]) == 7
    assert body["summary"]["totalExecutions"] == 1
    assert datetime.fromisoformat(body["startDate"]).replace(tzinfo=None) == start


def test_metrics_inverted_window(client, make_run):
    make_run()

    response = client.get(
        "/api/interfaces/metrics",
        params={"startDate": "2024-02-01T00:00:00", "endDate": "2024-01-01T00:00:00"},
    )

    assert response.status_code == 400
    assert response.json() == {"message": "startDate must not be after endDate"}


def test_metrics_unknown_time_range(client):
    response = client.get("/api/interfaces/metrics", params={"timeRange": "90d"})

    assert response.status_code == 400


def test_metrics_custom_time_range_uses_date_pair(client, make_run):
    make_run(created_at=datetime(2024, 1, 3, 10, 0))

    response = client.get(
        "/api/interfaces/metrics",
        params={
            "timeRange": "custom",
            "startDate": "2024-01-01T00:00:00Z",
            "endDate": "2024-01-08T00:00:00Z",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["timeRange"] == "custom"
    assert len(body["hourlyTrends"]) == 7
    assert body["summary"]["totalExecutions"] == 1


def test_list_logs_severity_and_integration_key(client, make_run):
    make_run(severity="CRITICAL", status="FAILED", integration_key="INT-0042")
    make_run(severity="CRITICAL", status="FAILED", integration_key="EXT-0042")
    make_run(severity="LOW", integration_key="INT-0043")

    body = client.get(
        "/api/interfaces/logs",
        params={"severity": "CRITICAL", "integrationKey": "int-"},
    ).json()

    assert [r["integrationKey"] for r in body["interfaces"]] == ["INT-0042"]
    assert body["pagination"]["totalRecords"] == 1


class _StatementError(Exception):
    def __init__(self, pgcode):
        super().__init__("statement failed")
        self.pgcode = pgcode


class _FailingSession:
    """Session stand-in whose every query fails in the driver."""

    def __init__(self, bind, pgcode):
        self.bind = bind
        self.pgcode = pgcode

    def get_bind(self):
        return self.bind

    def query(self, *entities):
        raise OperationalError("SELECT 1", {}, _StatementError(self.pgcode))


def test_cancelled_statement_renders_504(client, test_db):
    app.dependency_overrides[get_db] = lambda: _FailingSession(test_db.get_bind(), "57014")

    response = client.get("/api/interfaces/metrics")

    assert response.status_code == 504
    assert response.json() == {"message": "Compute metrics timed out"}


def test_store_failure_renders_500(client, test_db):
    app.dependency_overrides[get_db] = lambda: _FailingSession(test_db.get_bind(), "08006")

    response = client.get("/api/interfaces/metrics")

    assert response.status_code == 500
    assert response.json() == {"message": "Compute metrics failed: store unavailable"}
