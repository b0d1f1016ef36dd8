"""Tests for the HTTP API: auth, validation, cases, history and dashboard."""

from __future__ import annotations

import uuid
from unittest.mock import patch

from jose import jwt

from securohelp.core.config import settings
from securohelp.core.security import create_token


def _create(client, headers, client_id, **extra):
    body = {"clientId": str(client_id), "incidentDate": "2025-01-10", **extra}
    resp = client.post("/api/cases", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestHealthEndpoint:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] in ("healthy", "degraded")
        assert "version" in body


class TestAuthentication:

    def test_missing_token_is_401(self, client):
        resp = client.get("/api/cases")
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Brak autoryzacji"}

    def test_bad_signature_is_401(self, client, agent):
        token = jwt.encode({"userId": str(agent.id)}, "wrong-secret", algorithm="HS256")
        resp = client.get("/api/cases", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_unknown_user_is_401(self, client):
        token = create_token(uuid.uuid4())
        resp = client.get("/api/cases", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_cookie_token_is_accepted(self, client, agent):
        client.cookies.set(settings.auth_cookie_name, create_token(agent.id))
        resp = client.get("/api/case-statuses")
        assert resp.status_code == 200


class TestCaseStatuses:

    def test_active_catalog_in_sort_order(self, client, auth_headers):
        resp = client.get("/api/case-statuses", headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert [s["code"] for s in body][:3] == ["NEW", "DOCUMENTS", "SENT_TO_INSURER"]
        assert body[-1]["code"] == "CLOSED"
        assert body[-1]["isFinal"] is True
        assert body[0]["sortOrder"] == 1


class TestCasesEndpoint:

    def test_create_case(self, client, auth_headers, sample_client, agent):
        body = _create(
            client, auth_headers, sample_client.id,
            claimValue="8300.50", vehicleBrand="Toyota",
        )
        assert body["caseNumber"].startswith("SH/")
        assert body["status"]["code"] == "NEW"
        assert body["client"]["lastName"] == "Nowak"
        assert body["assignedAgent"]["email"] == agent.email
        assert body["vehicleBrand"] == "Toyota"
        assert body["closedDate"] is None

    def test_create_missing_fields_is_400(self, client, auth_headers):
        resp = client.post("/api/cases", json={"incidentDescription": "x"}, headers=auth_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert {d["field"] for d in body["details"]} == {"clientId", "incidentDate"}

    def test_create_unknown_client_is_404(self, client, auth_headers):
        resp = client.post(
            "/api/cases",
            json={"clientId": str(uuid.uuid4()), "incidentDate": "2025-01-10"},
            headers=auth_headers,
        )
        assert resp.status_code == 404

    def test_create_with_invalid_status_is_400(self, client, auth_headers, sample_client):
        resp = client.post(
            "/api/cases",
            json={"clientId": str(sample_client.id), "incidentDate": "2025-01-10", "statusId": 99},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Nieprawidłowy status sprawy"

    def test_list_with_pagination(self, client, auth_headers, sample_client):
        for _ in range(3):
            _create(client, auth_headers, sample_client.id)

        resp = client.get("/api/cases?page=1&limit=2", headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["cases"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    def test_list_filters_by_status_code(self, client, auth_headers, sample_client):
        _create(client, auth_headers, sample_client.id)
        sent = _create(client, auth_headers, sample_client.id, statusId=3)

        resp = client.get("/api/cases?status=SENT_TO_INSURER", headers=auth_headers)
        assert [c["id"] for c in resp.json()["cases"]] == [sent["id"]]

    def test_list_limit_out_of_range_is_400(self, client, auth_headers):
        resp = client.get("/api/cases?limit=500", headers=auth_headers)
        assert resp.status_code == 400

    def test_get_unknown_case_is_404(self, client, auth_headers):
        resp = client.get(f"/api/cases/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_create_with_blank_agent_and_insurer(self, client, auth_headers, sample_client, agent):
        body = _create(
            client, auth_headers, sample_client.id,
            assignedAgentId="", insuranceCompanyId="", claimValue=None, vehicleYear=None,
        )
        assert body["assignedAgentId"] == str(agent.id)
        assert body["insuranceCompanyId"] is None

    def test_put_form_body_with_blank_agent(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)
        resp = client.put(
            f"/api/cases/{case['id']}",
            json={
                "statusId": 3,
                "assignedAgentId": "",
                "insuranceCompanyId": "",
                "statusComment": "",
                "internalNotes": "",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["status"]["code"] == "SENT_TO_INSURER"
        assert body["assignedAgentId"] is None
        assert body["assignedAgent"] is None
        assert body["documentsSentDate"] is not None

    def test_put_rejects_status_fields(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)
        resp = client.put(
            f"/api/cases/{case['id']}",
            json={"closedDate": "2025-01-01T00:00:00Z"},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_put_invalid_status_is_400(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)
        resp = client.put(
            f"/api/cases/{case['id']}", json={"statusId": 77}, headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_delete_then_404(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)

        resp = client.delete(f"/api/cases/{case['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert "message" in resp.json()

        assert client.get(f"/api/cases/{case['id']}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/cases/{case['id']}", headers=auth_headers).status_code == 404

    def test_persistence_failure_is_500(self, client, auth_headers, sample_client):
        from securohelp.core.errors import PersistenceError

        with patch(
            "securohelp.services.cases.run_in_transaction", side_effect=PersistenceError(),
        ):
            resp = client.post(
                "/api/cases",
                json={"clientId": str(sample_client.id), "incidentDate": "2025-01-10"},
                headers=auth_headers,
            )
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Błąd zapisu danych"}


class TestStatusLifecycle:
    """Create, send, decide, reopen through the API."""

    def test_full_scenario(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)
        url = f"/api/cases/{case['id']}"

        resp = client.put(
            url,
            json={"statusId": "3", "statusComment": "dokumenty wysłane", "claimNumber": "PZU/1"},
            headers=auth_headers,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["status"]["code"] == "SENT_TO_INSURER"
        assert body["documentsSentDate"] is not None
        assert body["claimNumber"] == "PZU/1"

        body = client.put(url, json={"statusId": 4}, headers=auth_headers).json()
        assert body["decisionDate"] is not None
        assert body["closedDate"] is None
        decision_date = body["decisionDate"]

        body = client.put(url, json={"statusId": 1}, headers=auth_headers).json()
        assert body["status"]["code"] == "NEW"
        assert body["decisionDate"] == decision_date

        detail = client.get(url, headers=auth_headers).json()
        history = detail["statusHistory"]
        assert len(history) == 4
        assert (history[0]["fromStatusId"], history[0]["toStatusId"]) == (4, 1)
        assert history[0]["fromStatus"]["code"] == "POSITIVE_DECISION"
        assert history[0]["changedBy"]["email"] == "agent@securohelp.test"
        assert history[-1]["fromStatusId"] is None
        assert history[-1]["comment"] == "Sprawa utworzona"
        assert history[2]["comment"] == "dokumenty wysłane"

        asc = client.get(f"{url}/status-history?order=asc", headers=auth_headers).json()
        assert [h["toStatusId"] for h in asc] == [1, 3, 4, 1]

        report = client.get(f"{url}/status-history/verify", headers=auth_headers).json()
        assert report["ok"] is True
        assert report["entryCount"] == 4
        assert report["violations"] == []

    def test_same_status_adds_no_history(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)
        url = f"/api/cases/{case['id']}"

        client.put(url, json={"statusId": 1, "statusComment": "nic"}, headers=auth_headers)

        history = client.get(f"{url}/status-history", headers=auth_headers).json()
        assert len(history) == 1

    def test_blank_status_is_ignored(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id)
        resp = client.put(
            f"/api/cases/{case['id']}",
            json={"statusId": "", "internalNotes": "oddzwonić"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["internalNotes"] == "oddzwonić"
        assert resp.json()["status"]["code"] == "NEW"


class TestDashboard:

    def test_stats(self, client, auth_headers, sample_client):
        first = _create(client, auth_headers, sample_client.id)
        _create(client, auth_headers, sample_client.id)
        client.put(f"/api/cases/{first['id']}", json={"statusId": 8}, headers=auth_headers)

        resp = client.get("/api/dashboard/stats", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "totalClients": 1,
            "activeCases": 1,
            "newCasesThisMonth": 2,
            "completedCasesThisMonth": 1,
        }

    def test_recent_cases(self, client, auth_headers, sample_client):
        case = _create(client, auth_headers, sample_client.id, claimValue="100")

        resp = client.get("/api/dashboard/recent-cases", headers=auth_headers)
        assert resp.status_code == 200
        [row] = resp.json()
        assert row["caseNumber"] == case["caseNumber"]
        assert row["clientName"] == "Jan Nowak"
        assert row["statusName"] == "Nowa"
        assert row["statusColor"] == "#3B82F6"
