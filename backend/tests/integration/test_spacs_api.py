"""
Integration tests for the SPAC and organization routes.

Tests cover:
- CRUD with ticker uniqueness and soft delete
- Filtering, sorting and pagination
- Lifecycle status transitions
- Deadline extension
- Timeline, statistics, pipeline and approaching deadlines
- Global search
"""
from datetime import datetime, timedelta

from spacos.db.base import get_db
from spacos.main import app
from spacos.models.filing import FilingType, FilingStatus
from spacos.models.organization import OrganizationType
from spacos.models.spac import Spac, SpacStatus


def create_spac(client, **overrides):
    payload = {"name": "Alpha Acquisition Corp", "ticker": "alpa", "ipo_size": 250_000_000}
    payload.update(overrides)
    response = client.post("/api/spacs", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestOrganizations:

    def test_create_and_get(self, client):
        response = client.post("/api/organizations", json={
            "name": "Northbank Securities", "slug": "northbank", "type": "IB",
        })
        assert response.status_code == 201
        org = response.json()

        fetched = client.get(f"/api/organizations/{org['id']}").json()
        assert fetched["type"] == "IB"

    def test_duplicate_slug(self, client, make_organization):
        make_organization(slug="northbank")
        response = client.post("/api/organizations", json={"name": "Other", "slug": "northbank"})
        assert response.status_code == 409

    def test_invalid_slug(self, client):
        response = client.post("/api/organizations", json={"name": "Bad", "slug": "Not A Slug"})
        assert response.status_code == 422

    def test_soft_delete(self, client, make_organization):
        org = make_organization()
        assert client.delete(f"/api/organizations/{org.id}").status_code == 200
        assert client.get(f"/api/organizations/{org.id}").status_code == 404

    def test_filter_by_type(self, client, make_organization):
        make_organization(name="Sponsor One", type=OrganizationType.SPAC_SPONSOR)
        make_organization(name="Bank One", type=OrganizationType.IB)

        page = client.get("/api/organizations", params={"type": "IB"}).json()
        assert [o["name"] for o in page["items"]] == ["Bank One"]


class TestSpacCrud:

    def test_create_uppercases_ticker(self, client):
        spac = create_spac(client)
        assert spac["ticker"] == "ALPA"
        assert spac["status"] == "SEARCHING"
        assert spac["extensions_used"] == 0

    def test_duplicate_ticker_case_insensitive(self, client):
        create_spac(client)
        response = client.post("/api/spacs", json={"name": "Other", "ticker": "Alpa"})
        assert response.status_code == 409
        assert response.json()["detail"] == "A SPAC with this ticker already exists"

    def test_update(self, client):
        spac = create_spac(client)
        response = client.patch(f"/api/spacs/{spac['id']}", json={"description": "Fintech focus"})
        assert response.status_code == 200
        assert response.json()["description"] == "Fintech focus"

    def test_update_ticker_conflict(self, client):
        create_spac(client, ticker="ONE")
        second = create_spac(client, ticker="TWO", name="Second")
        response = client.patch(f"/api/spacs/{second['id']}", json={"ticker": "one"})
        assert response.status_code == 409

    def test_soft_delete_hides(self, client):
        spac = create_spac(client)
        assert client.delete(f"/api/spacs/{spac['id']}").status_code == 200
        assert client.get(f"/api/spacs/{spac['id']}").status_code == 404
        assert client.get("/api/spacs").json()["total"] == 0

    def test_missing(self, client):
        response = client.get("/api/spacs/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "SPAC not found"


class TestSpacList:

    def test_pagination_envelope(self, client):
        for i in range(3):
            create_spac(client, name=f"SPAC {i}", ticker=f"SP{i}")

        page = client.get("/api/spacs", params={"page": 2, "page_size": 2}).json()
        assert page["total"] == 3
        assert page["page"] == 2
        assert page["total_pages"] == 2
        assert len(page["items"]) == 1

    def test_page_size_clamped(self, client):
        page = client.get("/api/spacs", params={"page_size": 500}).json()
        assert page["page_size"] == 100

    def test_filters_and_sort(self, client, make_spac):
        make_spac(name="Zeta Holdings", ticker="ZETA", ipo_size=100_000_000)
        make_spac(name="Alpha Holdings", ticker="ALPH", ipo_size=300_000_000, status=SpacStatus.LOI_SIGNED)

        by_name = client.get("/api/spacs", params={"sort_by": "name", "sort_order": "asc"}).json()
        assert [s["ticker"] for s in by_name["items"]] == ["ALPH", "ZETA"]

        by_status = client.get("/api/spacs", params={"status": "LOI_SIGNED"}).json()
        assert [s["ticker"] for s in by_status["items"]] == ["ALPH"]

        by_size = client.get("/api/spacs", params={"ipo_size_min": 200_000_000}).json()
        assert [s["ticker"] for s in by_size["items"]] == ["ALPH"]

        by_search = client.get("/api/spacs", params={"search": "zeta"}).json()
        assert [s["ticker"] for s in by_search["items"]] == ["ZETA"]

    def test_invalid_sort_field(self, client):
        assert client.get("/api/spacs", params={"sort_by": "password"}).status_code == 422


class TestSpacStatus:

    def test_valid_transition_stamps_dates(self, client):
        spac = create_spac(client)
        client.post(f"/api/spacs/{spac['id']}/status", json={"status": "LOI_SIGNED"})
        response = client.post(f"/api/spacs/{spac['id']}/status", json={"status": "DA_ANNOUNCED"})

        assert response.status_code == 200
        assert response.json()["status"] == "DA_ANNOUNCED"
        assert response.json()["da_announced_date"] is not None

    def test_invalid_transition(self, client):
        spac = create_spac(client)
        response = client.post(f"/api/spacs/{spac['id']}/status", json={"status": "COMPLETED"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot transition from SEARCHING to COMPLETED"

    def test_terminal_status_locked(self, client, make_spac):
        spac = make_spac(status=SpacStatus.LIQUIDATED)
        response = client.post(f"/api/spacs/{spac.id}/status", json={"status": "SEARCHING"})
        assert response.status_code == 400

    def test_transitions_endpoint(self, client):
        spac = create_spac(client)
        body = client.get(f"/api/spacs/{spac['id']}/transitions").json()
        assert body == {"status": "SEARCHING", "allowed": ["LIQUIDATING", "LOI_SIGNED", "TERMINATED"]}


class TestExtendDeadline:

    def test_extend_by_months(self, client):
        spac = create_spac(client, deadline_date="2024-01-31T00:00:00", trust_balance=1_000_000)
        response = client.post(
            f"/api/spacs/{spac['id']}/extend-deadline",
            json={"months": 1, "contribution_amount": 50_000},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["deadline_date"].startswith("2024-02-29")
        assert body["extension_deadline"].startswith("2024-02-29")
        assert body["extensions_used"] == 1
        assert body["trust_balance"] == 1_050_000

    def test_no_deadline(self, client):
        spac = create_spac(client)
        response = client.post(f"/api/spacs/{spac['id']}/extend-deadline", json={"months": 3})
        assert response.status_code == 400
        assert response.json()["detail"] == "SPAC does not have a deadline set"

    def test_max_extensions(self, client):
        spac = create_spac(client, deadline_date="2024-01-01T00:00:00", max_extensions=1)
        client.post(f"/api/spacs/{spac['id']}/extend-deadline", json={"months": 3})
        response = client.post(f"/api/spacs/{spac['id']}/extend-deadline", json={"months": 3})
        assert response.status_code == 400
        assert response.json()["detail"] == "Maximum extensions already used"

    def test_months_bounds(self, client):
        spac = create_spac(client, deadline_date="2024-01-01T00:00:00")
        response = client.post(f"/api/spacs/{spac['id']}/extend-deadline", json={"months": 13})
        assert response.status_code == 422


class TestSpacViews:

    def test_timeline(self, client, make_spac, make_filing):
        now = datetime.utcnow()
        spac = make_spac(ipo_date=now - timedelta(days=300), deadline_date=now + timedelta(days=60))
        make_filing(spac.id, type=FilingType.FORM_8K, status=FilingStatus.FILED, filed_date=now - timedelta(days=10))
        make_filing(spac.id, type=FilingType.S4)

        events = client.get(f"/api/spacs/{spac.id}/timeline").json()

        assert [e["type"] for e in events] == ["ipo", "filing", "deadline"]
        assert [e["status"] for e in events] == ["past", "past", "future"]
        assert events[1]["title"] == "FORM_8K Filed"

    def test_statistics(self, client, make_spac):
        make_spac(ticker="ONE", ipo_size=100, trust_balance=90)
        make_spac(ticker="TWO", ipo_size=300, status=SpacStatus.COMPLETED)

        stats = client.get("/api/spacs/statistics").json()
        assert stats["total"] == 2
        assert stats["by_status"]["COMPLETED"] == 1
        assert stats["average_ipo_size"] == 200
        assert stats["total_trust_balance"] == 90

    def test_pipeline(self, client, make_spac, make_target):
        spac = make_spac()
        make_target(spac_id=spac.id)

        columns = client.get("/api/spacs/pipeline").json()
        searching = next(c for c in columns if c["status"] == "SEARCHING")
        assert searching["count"] == 1
        assert searching["spacs"][0]["active_targets"] == 1
        assert searching["spacs"][0]["open_tasks"] == 0

    def test_approaching_deadlines(self, client, make_spac):
        now = datetime.utcnow()
        make_spac(ticker="SOON", deadline_date=now + timedelta(days=20))
        make_spac(ticker="LATE", deadline_date=now + timedelta(days=200))
        make_spac(ticker="DONE", deadline_date=now + timedelta(days=20), status=SpacStatus.COMPLETED)

        soon = client.get("/api/spacs/approaching-deadlines").json()
        assert [s["ticker"] for s in soon] == ["SOON"]

        wide = client.get("/api/spacs/approaching-deadlines", params={"days_ahead": 365}).json()
        assert [s["ticker"] for s in wide] == ["SOON", "LATE"]


class TestGlobalSearch:

    def test_search_across_entities(self, client, make_spac, make_target, make_contact, make_company):
        make_spac(name="Orion Acquisition", ticker="ORN")
        make_target(name="Orion Robotics")
        make_contact(first_name="Orion", last_name="Smith", email="orion@example.com")
        make_company(name="Unrelated LLC")

        body = client.get("/api/search", params={"q": "orion"}).json()

        assert body["total"] == 3
        assert body["results"]["spacs"][0]["subtitle"] == "ORN"
        assert body["results"]["contacts"][0]["title"] == "Orion Smith"
        assert body["results"]["companies"] == []

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_responses_carry_request_id(self, client):
        first = client.get("/health").headers["X-Request-ID"]
        second = client.get("/health").headers["X-Request-ID"]
        assert first and first != second

    def test_requests_use_the_test_database(self, client, db):
        assert get_db in app.dependency_overrides

        created = create_spac(client, ticker="TDB")
        assert db.query(Spac).filter(Spac.id == created["id"]).one().ticker == "TDB"
