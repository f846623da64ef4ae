"""
API tests for the request, SLA and catalog routes.

The app runs its real lifespan against the in-memory row store; each test
reseeds the company tables through ``app.state``.
"""

import pytest
from fastapi.testclient import TestClient

from hrdesk.config import settings
from hrdesk.main import app
from hrdesk.tracking.infrastructure import DEFAULT_HEADERS
from tests.factories import manila, request_row

STAFF = {"X-User-Email": "hr@itam.example", "X-User-Role": "hr_staff"}
EMPLOYEE = {
    "X-User-Email": "ana@itam.example",
    "X-User-Role": "employee",
    "X-User-Department": "Finance",
    "X-User-Name": "Ana Cruz",
    "X-Company-Code": "ITM",
    "X-Account-Code": "7",
}


@pytest.fixture
def client():
    with TestClient(app) as c:
        for table in settings.company_tables.values():
            app.state.row_store.seed(table, DEFAULT_HEADERS)
        yield c


@pytest.fixture
def seeded(client):
    app.state.row_store.seed("ITAM Requests", DEFAULT_HEADERS, [
        request_row("ITM-7-0001", Email="ana@itam.example", Department="Finance"),
        request_row("ITM-7-0002", status="Completed", Email="ben@itam.example", Department="Sales",
                    Start=manila(2024, 6, 3, 10), End=manila(2024, 6, 3, 12),
                    **{"Due Date": manila(2024, 6, 19, 9), "TAT (mins)": 120}),
    ])
    return client


class TestSubmitEndpoint:

    def test_submit_returns_id_and_due_date(self, client):
        response = client.post(
            "/requests",
            json={"service": "Employee Relations", "process_step": "Case Filing", "details": "Concern"},
            headers=EMPLOYEE,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["request_id"] == "ITM-7-0001"
        assert data["company"] == "ITAM"
        assert data["due_date_rule"] == "employee_relations"
        assert data["due_date"] is not None
        assert data["attachment_url"] is None

    def test_submit_with_attachment(self, client):
        response = client.post(
            "/requests",
            json={
                "service": "Timekeeping - Sick Leave",
                "process_step": "Filing",
                "attachment": {"filename": "note.txt", "mime_type": "text/plain", "content_base64": "aGk="},
            },
            headers=EMPLOYEE,
        )
        assert response.status_code == 201
        assert response.json()["attachment_url"].startswith("file://")

    def test_unknown_company_code_is_400(self, client):
        headers = {**EMPLOYEE, "X-Company-Code": "ABC"}
        response = client.post("/requests", json={"service": "Employee Relations"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationException"

    def test_missing_service_is_422(self, client):
        response = client.post("/requests", json={"details": "no service"}, headers=EMPLOYEE)
        assert response.status_code == 422

    def test_unknown_role_is_400(self, client):
        headers = {**EMPLOYEE, "X-User-Role": "superuser"}
        response = client.post("/requests", json={"service": "Employee Relations"}, headers=headers)
        assert response.status_code == 400


class TestLifecycleEndpoint:

    def test_start_then_pause(self, seeded):
        started = seeded.post("/requests/ITM-7-0001/actions/Start", headers=STAFF)
        assert started.status_code == 200
        body = started.json()
        assert body["status"] == "In Progress"
        assert body["company"] == "ITAM"
        assert body["start"] is not None
        assert body["due_date"] is not None

        paused = seeded.post("/requests/ITM-7-0001/actions/pause", headers=STAFF)
        assert paused.status_code == 200
        assert paused.json()["status"] == "Paused"

    def test_body_fills_remarks(self, seeded):
        response = seeded.post(
            "/requests/ITM-7-0001/actions/Start",
            json={"remarks": "Picked up"},
            headers=STAFF,
        )
        assert response.status_code == 200
        assert response.json()["remarks"] == "Picked up"

    def test_wrong_state_is_409(self, seeded):
        response = seeded.post("/requests/ITM-7-0001/actions/End", headers=STAFF)
        assert response.status_code == 409
        assert response.json()["error_type"] == "TransitionError"

    def test_unknown_request_is_404(self, seeded):
        response = seeded.post("/requests/ITM-7-0099/actions/Start", headers=STAFF)
        assert response.status_code == 404
        assert "ITM-7-0099" in response.json()["detail"]

    def test_unknown_prefix_is_400(self, seeded):
        response = seeded.post("/requests/XYZ-7-0001/actions/Start", headers=STAFF)
        assert response.status_code == 400

    def test_unknown_action_is_400(self, seeded):
        response = seeded.post("/requests/ITM-7-0001/actions/Cancel", headers=STAFF)
        assert response.status_code == 400

    def test_selected_company_mismatch_is_400(self, seeded):
        headers = {**STAFF, "X-Selected-Company": "Summit"}
        response = seeded.post("/requests/ITM-7-0001/actions/Start", headers=headers)
        assert response.status_code == 400
        assert app.state.row_store._rows["ITAM Requests"][0]["Status"] == "Open"

    def test_correlation_id_is_echoed(self, seeded):
        headers = {**STAFF, "X-Correlation-ID": "abc-123"}
        response = seeded.post("/requests/ITM-7-0099/actions/Start", headers=headers)
        assert response.headers["X-Correlation-ID"] == "abc-123"
        assert response.json()["correlation_id"] == "abc-123"


class TestUnifiedLogEndpoint:

    def test_staff_sees_all(self, seeded):
        response = seeded.get("/requests/log", headers=STAFF)
        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 2
        assert {r["request_id"] for r in data["records"]} == {"ITM-7-0001", "ITM-7-0002"}

    def test_employee_sees_own(self, seeded):
        data = seeded.get("/requests/log", headers=EMPLOYEE).json()
        assert [r["request_id"] for r in data["records"]] == ["ITM-7-0001"]

    def test_status_filter_is_echoed(self, seeded):
        data = seeded.get("/requests/log", params={"status": "Completed"}, headers=STAFF).json()
        assert [r["request_id"] for r in data["records"]] == ["ITM-7-0002"]
        assert data["filters"] == {"status": "Completed"}


class TestSLAEndpoints:

    def test_due_date_preview(self, client):
        response = client.get(
            "/sla/due-date",
            params={"service": "Employee Relations", "request_date": "2024-06-03T09:00:00+08:00"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["rule"] == "employee_relations"
        assert data["due_date"] == "2024-06-19T09:00:00+08:00"
        assert data["due_date_required"] is True

    def test_due_date_preview_no_match(self, client):
        data = client.get("/sla/due-date", params={"service": "Car Wash"}).json()
        assert data["rule"] == "no_match"
        assert data["due_date"] is None
        assert data["due_date_required"] is False

    def test_report_over_unified_log(self, seeded):
        response = seeded.get("/sla/report", headers=STAFF)
        assert response.status_code == 200
        overall = response.json()["overall"]
        assert overall["total"] == 2
        assert overall["closed_within"] == 1

    def test_report_over_supplied_records(self, client):
        payload = {"records": [
            {"request_id": "ITM-7-0001", "service": "Grievance", "status": "Completed",
             "end": "2024-06-02T10:00:00+08:00", "due_date": "2024-06-03T09:00:00+08:00"},
            {"request_id": "ITM-7-0002", "service": "Grievance", "status": "Completed",
             "end": "2024-06-05T10:00:00+08:00", "due_date": "2024-06-03T09:00:00+08:00",
             "tat_minutes": 300},
        ]}
        response = client.post("/sla/report", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert data["overall"]["compliance_percent"] == 50.0
        assert data["per_service"][0]["service"] == "Grievance"
        assert sum(band["count"] for band in data["tat_histogram"]) == 2


class TestCatalogAndHealth:

    def test_catalog_lists_services(self, client):
        data = client.get("/catalog/services").json()
        assert data["total_count"] == len(data["services"]) > 0
        names = {s["name"] for s in data["services"]}
        assert "Employee Concerns" in names

    def test_catalog_category_filter(self, client):
        data = client.get("/catalog/services", params={"category": "timekeeping"}).json()
        assert data["services"]
        assert all(s["category"] == "Timekeeping" for s in data["services"])

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["row_store"] == "memory"
        assert data["checks"]["service_catalog"].startswith("loaded")
        assert data["checks"]["reminder_scheduler"] == "stopped"

    def test_root(self, client):
        assert client.get("/").json()["service"] == "HR Service Desk"
