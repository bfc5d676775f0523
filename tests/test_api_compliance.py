from datetime import datetime, timedelta, timezone

import pytest

from app.models.compliance import (
    ComplianceEvent,
    ComplianceEventStatus,
    CompliancePriority,
)


@pytest.fixture()
def generated(client, auth_headers, business):
    resp = client.post(f"/api/compliance/generate/{business.id}", headers=auth_headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture()
def overdue_event(db_session, business):
    event = ComplianceEvent(
        business_entity_id=business.id,
        event_type="annual_report",
        title="Annual Report Filing",
        description="File annual report with Secretary of State",
        due_date=datetime.now(timezone.utc).date() - timedelta(days=3),
        status=ComplianceEventStatus.pending,
        priority=CompliancePriority.high,
        category="state_filing",
    )
    db_session.add(event)
    db_session.commit()
    db_session.refresh(event)
    return event


class TestComplianceEndpoints:
    def test_generate(self, generated, business) -> None:
        assert generated["business_entity_id"] == business.id
        assert generated["generated"] == len(generated["events"])
        assert generated["generated"] > 0

    def test_generate_twice_adds_nothing(
        self, client, auth_headers, business, generated
    ) -> None:
        resp = client.post(
            f"/api/compliance/generate/{business.id}", headers=auth_headers
        )
        assert resp.status_code == 201
        assert resp.json()["generated"] == 0

    def test_generate_foreign_business(self, client, other_headers, business) -> None:
        resp = client.post(
            f"/api/compliance/generate/{business.id}", headers=other_headers
        )
        assert resp.status_code == 404

    def test_calendar(self, client, auth_headers, business, overdue_event) -> None:
        resp = client.get(
            f"/api/compliance/calendar/{business.id}", headers=auth_headers
        )
        assert resp.status_code == 200
        entries = resp.json()
        assert entries[0]["id"] == overdue_event.id
        assert entries[0]["display_status"] == "overdue"
        assert entries[0]["status"] == "pending"
        assert entries[0]["days_until_due"] == -3

    def test_calendar_status_filter(
        self, client, auth_headers, business, generated, overdue_event
    ) -> None:
        resp = client.get(
            f"/api/compliance/calendar/{business.id}?status=overdue",
            headers=auth_headers,
        )
        assert [e["id"] for e in resp.json()] == [overdue_event.id]

    def test_calendar_invalid_status(self, client, auth_headers, business) -> None:
        resp = client.get(
            f"/api/compliance/calendar/{business.id}?status=late",
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_dashboard(self, client, auth_headers, business, overdue_event) -> None:
        resp = client.get(
            f"/api/compliance/dashboard/{business.id}", headers=auth_headers
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["overdue"] == 1
        assert data["compliance_score"] == 0

    def test_upcoming(self, client, auth_headers, business, generated) -> None:
        resp = client.get(
            f"/api/compliance/upcoming/{business.id}?days=730", headers=auth_headers
        )
        assert resp.status_code == 200
        entries = resp.json()
        assert entries
        assert all(e["urgency"] in {"high", "medium", "low"} for e in entries)
        due_dates = [e["due_date"] for e in entries]
        assert due_dates == sorted(due_dates)

    def test_complete_and_dismiss(
        self, client, auth_headers, db_session, business, overdue_event
    ) -> None:
        resp = client.patch(
            f"/api/compliance/complete/{overdue_event.id}", headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        assert resp.json()["completed_at"] is not None

        resp = client.patch(
            f"/api/compliance/dismiss/{overdue_event.id}", headers=auth_headers
        )
        assert resp.status_code == 400

    def test_dismiss(self, client, auth_headers, overdue_event) -> None:
        resp = client.patch(
            f"/api/compliance/dismiss/{overdue_event.id}", headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "dismissed"

    def test_filing_requirement(self, client, auth_headers) -> None:
        resp = client.get(
            "/api/compliance/requirements/California/LLC", headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["frequency"] == "biennial"

    def test_filing_requirement_not_found(self, client, auth_headers) -> None:
        resp = client.get(
            "/api/compliance/requirements/Nonexistent State/LLC",
            headers=auth_headers,
        )
        assert resp.status_code == 404
