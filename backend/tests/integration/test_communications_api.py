"""
Integration tests for recorded e-mails and meetings.
"""
from datetime import datetime, timedelta

from spacos.api.emails import make_snippet
from spacos.models.contact import Contact


def _email_payload(**overrides):
    payload = {
        "direction": "INBOUND",
        "from_address": "jane.doe@example.com",
        "to_addresses": ["deals@spacos.test"],
        "subject": "Management presentation",
        "body": "Attached is the deck.",
        "thread_id": "t-1",
        "sent_at": "2024-05-01T10:00:00",
    }
    payload.update(overrides)
    return payload


class TestSnippet:

    def test_collapses_whitespace(self):
        assert make_snippet("Hello\n\n   there") == "Hello there"

    def test_truncates(self):
        snippet = make_snippet("x" * 500)
        assert len(snippet) == 200
        assert snippet.endswith("...")

    def test_empty(self):
        assert make_snippet(None) is None


class TestEmails:

    def test_record_links_contact_by_address(self, client, db, make_contact):
        contact = make_contact()
        response = client.post("/api/emails", json=_email_payload(from_address="Jane.Doe@example.com"))

        assert response.status_code == 201
        assert response.json()["contact_id"] == contact.id
        assert response.json()["snippet"] == "Attached is the deck."

        db.expire_all()
        assert db.get(Contact, contact.id).last_interaction_at == datetime(2024, 5, 1, 10, 0)

    def test_outbound_matches_recipient(self, client, make_contact):
        contact = make_contact()
        body = client.post("/api/emails", json=_email_payload(
            direction="OUTBOUND",
            from_address="deals@spacos.test",
            to_addresses=["jane.doe@example.com"],
        )).json()
        assert body["contact_id"] == contact.id

    def test_unknown_explicit_contact(self, client):
        assert client.post("/api/emails", json=_email_payload(contact_id=42)).status_code == 404

    def test_thread_oldest_first(self, client):
        client.post("/api/emails", json=_email_payload(subject="Re: deck", sent_at="2024-05-02T10:00:00"))
        client.post("/api/emails", json=_email_payload())

        thread = client.get("/api/emails/thread/t-1").json()
        assert [e["subject"] for e in thread] == ["Management presentation", "Re: deck"]
        assert client.get("/api/emails/thread/missing").status_code == 404

    def test_read_star_and_statistics(self, client):
        first = client.post("/api/emails", json=_email_payload()).json()
        client.post("/api/emails", json=_email_payload(direction="OUTBOUND"))

        assert client.post(f"/api/emails/{first['id']}/read").json()["is_read"] is True
        assert client.post(f"/api/emails/{first['id']}/star").json()["is_starred"] is True

        stats = client.get("/api/emails/statistics").json()
        assert stats["total"] == 2
        assert stats["unread"] == 1
        assert stats["starred"] == 1
        assert stats["by_direction"] == {"INBOUND": 1, "OUTBOUND": 1}

    def test_bulk_read(self, client):
        ids = [client.post("/api/emails", json=_email_payload()).json()["id"] for _ in range(2)]
        assert client.post("/api/emails/read", json={"ids": ids}).json() == {"updated": 2}

    def test_link_and_unlink_contact(self, client, make_contact):
        email = client.post("/api/emails", json=_email_payload(from_address="someone@else.com")).json()
        assert email["contact_id"] is None

        contact = make_contact()
        assert client.post(f"/api/emails/{email['id']}/contact", json={"contact_id": contact.id}).json()["contact_id"] == contact.id
        assert client.post(f"/api/emails/{email['id']}/contact", json={"contact_id": None}).json()["contact_id"] is None


class TestMeetings:

    def _meeting(self, client, start, **overrides):
        payload = {
            "title": "Diligence session",
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
        }
        payload.update(overrides)
        return client.post("/api/meetings", json=payload)

    def test_create_with_contact_attendee(self, client, make_contact):
        contact = make_contact()
        response = self._meeting(client, datetime(2024, 6, 1, 14), attendees=[{"contact_id": contact.id}])

        assert response.status_code == 201
        attendee = response.json()["attendees"][0]
        assert attendee["name"] == "Jane Doe"
        assert attendee["email"] == "jane.doe@example.com"
        assert attendee["status"] == "PENDING"

    def test_end_before_start(self, client):
        response = client.post("/api/meetings", json={
            "title": "Backwards",
            "start_time": "2024-06-01T15:00:00",
            "end_time": "2024-06-01T14:00:00",
        })
        assert response.status_code == 400

    def test_duplicate_attendee(self, client):
        meeting = self._meeting(client, datetime(2024, 6, 1, 14), attendees=[{"email": "a@example.com"}]).json()
        response = client.post(f"/api/meetings/{meeting['id']}/attendees", json={"email": "A@example.com"})
        assert response.status_code == 409

    def test_attendee_needs_contact_or_email(self, client):
        meeting = self._meeting(client, datetime(2024, 6, 1, 14)).json()
        assert client.post(f"/api/meetings/{meeting['id']}/attendees", json={"name": "Nobody"}).status_code == 422

    def test_attendee_status_and_removal(self, client):
        meeting = self._meeting(client, datetime(2024, 6, 1, 14)).json()
        attendee = client.post(f"/api/meetings/{meeting['id']}/attendees", json={"email": "a@example.com"}).json()

        updated = client.post(
            f"/api/meetings/{meeting['id']}/attendees/{attendee['id']}/status",
            json={"status": "ACCEPTED"},
        )
        assert updated.json()["status"] == "ACCEPTED"

        client.delete(f"/api/meetings/{meeting['id']}/attendees/{attendee['id']}")
        assert client.get(f"/api/meetings/{meeting['id']}").json()["attendees"] == []

    def test_upcoming(self, client):
        now = datetime.utcnow()
        self._meeting(client, now + timedelta(days=2), title="Soon")
        self._meeting(client, now + timedelta(days=30), title="Later")
        self._meeting(client, now - timedelta(days=2), title="Past")

        assert [m["title"] for m in client.get("/api/meetings/upcoming").json()] == ["Soon"]

    def test_contact_meetings_match_by_email(self, client, make_contact):
        contact = make_contact()
        self._meeting(client, datetime(2024, 6, 1, 14), title="By email", attendees=[{"email": "JANE.DOE@example.com"}])
        self._meeting(client, datetime(2024, 6, 2, 14), title="Unrelated", attendees=[{"email": "x@example.com"}])

        titles = [m["title"] for m in client.get(f"/api/meetings/contact/{contact.id}").json()]
        assert titles == ["By email"]

    def test_patch_rejects_bad_times(self, client):
        meeting = self._meeting(client, datetime(2024, 6, 1, 14)).json()
        response = client.patch(f"/api/meetings/{meeting['id']}", json={"end_time": "2024-06-01T13:00:00"})
        assert response.status_code == 400
