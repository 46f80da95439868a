"""
Integration tests for the compliance routes.

Tests cover:
- Checklist items: CRUD, status stamping, overdue and statistics
- Board meetings: status, resolutions and upcoming
- Conflicts of interest: resolution and severity ordering
- Insider trading windows: blackouts and the can-trade check
"""
from datetime import datetime, timedelta

from spacos.models.compliance import (
    ComplianceItem, ComplianceStatus, Conflict, ConflictSeverity, InsiderTradingWindow, TradingWindowStatus,
)


def _add(db, record):
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


class TestComplianceItems:

    def test_create_and_list(self, client, make_spac):
        spac = make_spac()
        response = client.post("/api/compliance/items", json={
            "spac_id": spac.id,
            "name": "Annual 10-K Filing",
            "category": "SEC",
            "due_date": (datetime.utcnow() + timedelta(days=30)).isoformat(),
            "assigned_to": "CFO",
        })

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"
        assert response.json()["completed_date"] is None

        page = client.get("/api/compliance/items", params={"spac_id": spac.id, "category": "SEC"}).json()
        assert page["total"] == 1

    def test_create_unknown_spac(self, client):
        response = client.post("/api/compliance/items", json={"spac_id": 99, "name": "10-Q"})
        assert response.status_code == 404

    def test_compliant_stamps_completed_date(self, client, db, make_spac):
        spac = make_spac()
        item = _add(db, ComplianceItem(spac_id=spac.id, name="Board independence"))

        body = client.post(f"/api/compliance/items/{item.id}/status", json={"status": "COMPLIANT"}).json()
        assert body["status"] == "COMPLIANT"
        assert body["completed_date"] is not None

    def test_update(self, client, db, make_spac):
        spac = make_spac()
        item = _add(db, ComplianceItem(spac_id=spac.id, name="Audit committee charter"))

        body = client.patch(f"/api/compliance/items/{item.id}", json={"assigned_to": "General Counsel"}).json()
        assert body["assigned_to"] == "General Counsel"
        assert client.patch("/api/compliance/items/999", json={"notes": "x"}).status_code == 404

    def test_overdue_and_statistics(self, client, db, make_spac):
        spac = make_spac()
        now = datetime.utcnow()
        _add(db, ComplianceItem(spac_id=spac.id, name="Late 10-Q", category="SEC", due_date=now - timedelta(days=3)))
        _add(db, ComplianceItem(
            spac_id=spac.id, name="Done 8-K", category="SEC",
            status=ComplianceStatus.COMPLIANT, due_date=now - timedelta(days=10),
        ))
        _add(db, ComplianceItem(spac_id=spac.id, name="Tax return", category="Tax", due_date=now + timedelta(days=60)))

        overdue = client.get("/api/compliance/items/overdue").json()
        assert [i["name"] for i in overdue] == ["Late 10-Q"]

        stats = client.get("/api/compliance/items/statistics", params={"spac_id": spac.id}).json()
        assert stats["total"] == 3
        assert stats["overdue"] == 1
        assert stats["by_category"] == {"SEC": 2, "Tax": 1}
        assert stats["by_status"]["COMPLIANT"] == 1


class TestBoardMeetings:

    def create(self, client, spac_id, days_ahead=10):
        response = client.post("/api/compliance/board-meetings", json={
            "spac_id": spac_id,
            "title": "Q3 Board Meeting",
            "type": "regular",
            "scheduled_date": (datetime.utcnow() + timedelta(days=days_ahead)).isoformat(),
            "agenda": ["Approve minutes", "Target update"],
        })
        assert response.status_code == 201, response.text
        return response.json()

    def test_complete_stamps_actual_date(self, client, make_spac):
        meeting = self.create(client, make_spac().id)
        assert meeting["status"] == "scheduled"

        body = client.post(
            f"/api/compliance/board-meetings/{meeting['id']}/status",
            json={"status": "completed", "quorum_met": True},
        ).json()
        assert body["actual_date"] is not None
        assert body["quorum_met"] is True

    def test_resolutions_append_and_reject_duplicates(self, client, make_spac):
        meeting = self.create(client, make_spac().id)
        url = f"/api/compliance/board-meetings/{meeting['id']}/resolutions"

        client.post(url, json={"number": 1, "title": "Approve extension", "votes_for": 5, "passed": True})
        body = client.post(url, json={"number": 2, "title": "Engage auditor"}).json()
        assert [r["number"] for r in body["resolutions"]] == [1, 2]
        assert body["resolutions"][0]["votes_for"] == 5

        assert client.post(url, json={"number": 2, "title": "Again"}).status_code == 409

    def test_upcoming(self, client, make_spac):
        spac = make_spac()
        soon = self.create(client, spac.id, days_ahead=5)
        self.create(client, spac.id, days_ahead=60)

        upcoming = client.get("/api/compliance/board-meetings/upcoming", params={"days": 30}).json()
        assert [m["id"] for m in upcoming] == [soon["id"]]


class TestConflicts:

    def test_resolve_with_disclosure(self, client, make_spac):
        spac = make_spac()
        conflict = client.post("/api/compliance/conflicts", json={
            "spac_id": spac.id,
            "title": "Director sits on target board",
            "party_name": "J. Smith",
            "severity": "HIGH",
        }).json()
        assert conflict["is_resolved"] is False

        body = client.post(
            f"/api/compliance/conflicts/{conflict['id']}/resolve",
            json={"resolution": "Director recused", "disclosed_in": "S-4"},
        ).json()
        assert body["is_resolved"] is True
        assert body["resolved_date"] is not None
        assert body["disclosed_in"] == "S-4"
        assert body["disclosed_date"] is not None

    def test_resolve_requires_text(self, client, db, make_spac):
        conflict = _add(db, Conflict(spac_id=make_spac().id, title="Advisor fee"))
        response = client.post(f"/api/compliance/conflicts/{conflict.id}/resolve", json={"resolution": ""})
        assert response.status_code == 422

    def test_unresolved_most_severe_first(self, client, db, make_spac):
        spac = make_spac()
        _add(db, Conflict(spac_id=spac.id, title="Low", severity=ConflictSeverity.LOW))
        _add(db, Conflict(spac_id=spac.id, title="Critical", severity=ConflictSeverity.CRITICAL))
        _add(db, Conflict(spac_id=spac.id, title="Resolved", severity=ConflictSeverity.CRITICAL, is_resolved=True))
        _add(db, Conflict(spac_id=spac.id, title="Medium", severity=ConflictSeverity.MEDIUM))

        titles = [c["title"] for c in client.get("/api/compliance/conflicts/unresolved").json()]
        assert titles == ["Critical", "Medium", "Low"]


class TestTradingWindows:

    def test_create_rejects_end_before_start(self, client, make_spac):
        now = datetime.utcnow()
        response = client.post("/api/compliance/trading-windows", json={
            "spac_id": make_spac().id,
            "status": "BLACKOUT",
            "start_date": now.isoformat(),
            "end_date": (now - timedelta(days=1)).isoformat(),
        })
        assert response.status_code == 400

    def test_company_wide_blackout_blocks_everyone(self, client, db, make_spac):
        spac = make_spac()
        now = datetime.utcnow()
        _add(db, InsiderTradingWindow(
            spac_id=spac.id, status=TradingWindowStatus.BLACKOUT, affects_all=True,
            start_date=now - timedelta(days=1), end_date=now + timedelta(days=14), reason="Pending merger announcement",
        ))

        body = client.get("/api/compliance/trading-windows/can-trade", params={"spac_id": spac.id, "user_id": "u-1"}).json()
        assert body["can_trade"] is False
        assert body["active_blackouts"][0]["reason"] == "Pending merger announcement"

    def test_personal_blackout_only_blocks_that_insider(self, client, db, make_spac):
        spac = make_spac()
        now = datetime.utcnow()
        _add(db, InsiderTradingWindow(
            spac_id=spac.id, status=TradingWindowStatus.BLACKOUT, user_id="u-1",
            start_date=now - timedelta(days=1),
        ))

        def can_trade(user_id):
            return client.get(
                "/api/compliance/trading-windows/can-trade", params={"spac_id": spac.id, "user_id": user_id},
            ).json()["can_trade"]

        assert can_trade("u-1") is False
        assert can_trade("u-2") is True

    def test_ended_and_open_windows_do_not_block(self, client, db, make_spac):
        spac = make_spac()
        now = datetime.utcnow()
        _add(db, InsiderTradingWindow(
            spac_id=spac.id, status=TradingWindowStatus.BLACKOUT, affects_all=True,
            start_date=now - timedelta(days=30), end_date=now - timedelta(days=1),
        ))
        _add(db, InsiderTradingWindow(
            spac_id=spac.id, status=TradingWindowStatus.OPEN, affects_all=True, start_date=now - timedelta(days=1),
        ))

        body = client.get("/api/compliance/trading-windows/can-trade", params={"spac_id": spac.id, "user_id": "u-1"}).json()
        assert body["can_trade"] is True
        assert client.get("/api/compliance/trading-windows/blackouts").json() == []

    def test_close_ends_blackout(self, client, db, make_spac):
        spac = make_spac()
        window = _add(db, InsiderTradingWindow(
            spac_id=spac.id, status=TradingWindowStatus.BLACKOUT, affects_all=True,
            start_date=datetime.utcnow() - timedelta(days=2),
        ))
        assert len(client.get("/api/compliance/trading-windows/blackouts").json()) == 1

        body = client.post(f"/api/compliance/trading-windows/{window.id}/close", json={}).json()
        assert body["status"] == "CLOSED"
        assert body["end_date"] is not None
        assert client.get("/api/compliance/trading-windows/blackouts").json() == []

    def test_list_filters_by_status(self, client, db, make_spac):
        spac = make_spac()
        now = datetime.utcnow()
        _add(db, InsiderTradingWindow(spac_id=spac.id, status=TradingWindowStatus.OPEN, start_date=now))
        _add(db, InsiderTradingWindow(spac_id=spac.id, status=TradingWindowStatus.BLACKOUT, start_date=now))

        page = client.get("/api/compliance/trading-windows", params={"status": ["BLACKOUT"]}).json()
        assert page["total"] == 1
        assert page["items"][0]["status"] == "BLACKOUT"
