"""
Integration tests for investment-bank mandates and PE ownership stakes.
"""
from spacos.models.organization import OrganizationType


class TestMandates:

    def test_create_with_contacts(self, client, make_organization, make_contact):
        bank = make_organization(name="Gamma Securities", type=OrganizationType.IB)
        contact = make_contact()

        response = client.post("/api/mandates", json={
            "organization_id": bank.id,
            "client_name": "Beta Robotics",
            "service_type": "MA_SELLSIDE",
            "deal_value": 400000000,
            "contact_ids": [contact.id],
        })

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "ACTIVE"
        assert [c["full_name"] for c in body["contacts"]] == ["Jane Doe"]

    def test_requires_investment_bank(self, client, make_organization):
        sponsor = make_organization()
        response = client.post("/api/mandates", json={
            "organization_id": sponsor.id, "client_name": "Beta", "service_type": "OTHER",
        })
        assert response.status_code == 400

    def test_unknown_contacts(self, client, make_organization):
        bank = make_organization(name="Gamma Securities", type=OrganizationType.IB)
        response = client.post("/api/mandates", json={
            "organization_id": bank.id, "client_name": "Beta", "service_type": "OTHER", "contact_ids": [5, 6],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Unknown contact ids: 5, 6"

    def test_cursor_pagination(self, client, make_organization):
        bank = make_organization(name="Gamma Securities", type=OrganizationType.IB)
        ids = [
            client.post("/api/mandates", json={
                "organization_id": bank.id, "client_name": f"Client {i}", "service_type": "OTHER",
            }).json()["id"]
            for i in range(3)
        ]

        first = client.get("/api/mandates", params={"limit": 2}).json()
        assert [m["id"] for m in first["items"]] == [ids[2], ids[1]]
        assert first["next_cursor"] == ids[1]

        second = client.get("/api/mandates", params={"limit": 2, "cursor": first["next_cursor"]}).json()
        assert [m["id"] for m in second["items"]] == [ids[0]]
        assert second["next_cursor"] is None

    def test_organization_summary(self, client, make_organization):
        bank = make_organization(name="Gamma Securities", type=OrganizationType.IB)
        for value, status in [(100, "ACTIVE"), (250, "WON")]:
            client.post("/api/mandates", json={
                "organization_id": bank.id, "client_name": "C", "service_type": "OTHER",
                "deal_value": value, "status": status,
            })

        body = client.get(f"/api/mandates/organization/{bank.id}").json()
        assert body["total_deal_value"] == 350
        assert body["by_status"]["WON"] == 1

    def test_update_contacts_and_delete(self, client, make_organization, make_contact):
        bank = make_organization(name="Gamma Securities", type=OrganizationType.IB)
        contact = make_contact()
        mandate = client.post("/api/mandates", json={
            "organization_id": bank.id, "client_name": "C", "service_type": "OTHER", "contact_ids": [contact.id],
        }).json()

        updated = client.patch(f"/api/mandates/{mandate['id']}", json={"contact_ids": [], "status": "LOST"}).json()
        assert updated["contacts"] == []
        assert updated["status"] == "LOST"

        client.delete(f"/api/mandates/{mandate['id']}")
        assert client.get(f"/api/mandates/{mandate['id']}").status_code == 404


class TestOwnership:

    def _pair(self, make_organization):
        fund = make_organization(name="Delta Capital Partners", type=OrganizationType.PE_FIRM)
        company = make_organization(name="Beta Robotics Inc", type=OrganizationType.TARGET_COMPANY)
        return fund, company

    def test_create_and_portfolio(self, client, make_organization):
        fund, company = self._pair(make_organization)
        response = client.post("/api/ownership", json={
            "owner_id": fund.id, "owned_id": company.id, "ownership_pct": 65, "stake_type": "MAJORITY",
        })

        assert response.status_code == 201
        assert response.json()["owned"]["name"] == "Beta Robotics Inc"

        portfolio = client.get(f"/api/ownership/owner/{fund.id}").json()
        assert [s["owned_id"] for s in portfolio] == [company.id]
        owners = client.get(f"/api/ownership/owned/{company.id}").json()
        assert [s["owner_id"] for s in owners] == [fund.id]

    def test_self_ownership(self, client, make_organization):
        fund, _ = self._pair(make_organization)
        response = client.post("/api/ownership", json={
            "owner_id": fund.id, "owned_id": fund.id, "ownership_pct": 10, "stake_type": "MINORITY",
        })
        assert response.status_code == 400

    def test_duplicate_pair(self, client, make_organization):
        fund, company = self._pair(make_organization)
        payload = {"owner_id": fund.id, "owned_id": company.id, "ownership_pct": 30, "stake_type": "MINORITY"}
        client.post("/api/ownership", json=payload)
        assert client.post("/api/ownership", json=payload).status_code == 409

    def test_exit_filter(self, client, make_organization):
        fund, company = self._pair(make_organization)
        stake = client.post("/api/ownership", json={
            "owner_id": fund.id, "owned_id": company.id, "ownership_pct": 30, "stake_type": "MINORITY",
        }).json()
        client.patch(f"/api/ownership/{stake['id']}", json={"exit_status": "FULLY_EXITED", "exit_multiple": 2.5})

        active = client.get(f"/api/ownership/owner/{fund.id}", params={"exit_status": "ACTIVE"}).json()
        exited = client.get(f"/api/ownership/owner/{fund.id}", params={"exit_status": "FULLY_EXITED"}).json()
        assert active == []
        assert exited[0]["exit_multiple"] == 2.5
