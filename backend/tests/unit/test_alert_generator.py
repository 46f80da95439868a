"""
Unit tests for alert_generator.py.

Tests cover:
- Day counting
- SPAC deadline thresholds
- Filing due thresholds
- SEC comment thresholds
- Candidate ordering
- Persisted sync and deduplication
"""
from datetime import datetime, timedelta

import pytest
from spacos.models.alert import ComplianceAlert, ComplianceAlertType, AlertSeverity
from spacos.models.filing import Filing, FilingType, FilingStatus, SecComment
from spacos.models.spac import Spac, SpacStatus
from spacos.services.alert_generator import (
    AlertCandidate,
    days_until,
    spac_deadline_alert,
    filing_due_alert,
    sec_comment_alert,
    sort_candidates,
    generate_alerts,
    sync_alerts,
    cleanup_dismissed_alerts,
)

NOW = datetime(2024, 6, 1, 12, 0, 0)


def make_spac(**kwargs):
    defaults = {"id": 1, "name": "Alpha Acquisition Corp", "ticker": "ALPA", "status": SpacStatus.SEARCHING}
    defaults.update(kwargs)
    return Spac(**defaults)


class TestDaysUntil:

    def test_partial_day_rounds_up(self):
        assert days_until(NOW + timedelta(hours=1), NOW) == 1

    def test_past_is_negative(self):
        assert days_until(NOW - timedelta(days=2), NOW) == -2

    def test_same_instant(self):
        assert days_until(NOW, NOW) == 0


class TestSpacDeadlineAlert:
    """Tests for SPAC deadline thresholds."""

    def test_missed(self):
        alert = spac_deadline_alert(make_spac(deadline_date=NOW - timedelta(days=3)), NOW)
        assert alert.type == ComplianceAlertType.DEADLINE_MISSED
        assert alert.severity == AlertSeverity.high
        assert alert.title == "SPAC Deadline Missed: Alpha Acquisition Corp"
        assert "3 days ago" in alert.description

    def test_critical(self):
        alert = spac_deadline_alert(make_spac(deadline_date=NOW + timedelta(days=3)), NOW)
        assert alert.type == ComplianceAlertType.DEADLINE_CRITICAL
        assert alert.severity == AlertSeverity.high
        assert alert.title == "Critical: SPAC Deadline in 3 Days"

    def test_approaching(self):
        alert = spac_deadline_alert(make_spac(deadline_date=NOW + timedelta(days=7)), NOW)
        assert alert.type == ComplianceAlertType.DEADLINE_APPROACHING
        assert alert.severity == AlertSeverity.medium
        assert "(ALPA)" in alert.description

    def test_far_deadline_ignored(self):
        assert spac_deadline_alert(make_spac(deadline_date=NOW + timedelta(days=8)), NOW) is None

    def test_extension_deadline_preferred(self):
        spac = make_spac(
            deadline_date=NOW - timedelta(days=10),
            extension_deadline=NOW + timedelta(days=60),
        )
        assert spac_deadline_alert(spac, NOW) is None

    def test_terminal_spac_ignored(self):
        spac = make_spac(status=SpacStatus.COMPLETED, deadline_date=NOW - timedelta(days=1))
        assert spac_deadline_alert(spac, NOW) is None


class TestFilingDueAlert:
    """Tests for filing due thresholds."""

    def make_filing(self, days, status=FilingStatus.DRAFTING):
        return Filing(id=5, spac_id=1, type=FilingType.S4, status=status, due_date=NOW + timedelta(days=days))

    def test_missed(self):
        alert = filing_due_alert(self.make_filing(-1), "Alpha", NOW)
        assert alert.type == ComplianceAlertType.DEADLINE_MISSED
        assert alert.title == "Filing Deadline Missed: S4"

    def test_critical(self):
        alert = filing_due_alert(self.make_filing(2), "Alpha", NOW)
        assert alert.type == ComplianceAlertType.DEADLINE_CRITICAL
        assert alert.title == "Critical: S4 Due in 2 Days"

    def test_due_soon(self):
        alert = filing_due_alert(self.make_filing(5), "Alpha", NOW)
        assert alert.type == ComplianceAlertType.FILING_REQUIRED
        assert alert.severity == AlertSeverity.medium
        assert alert.title == "Filing Due Soon: S4"

    def test_filed_ignored(self):
        assert filing_due_alert(self.make_filing(-1, FilingStatus.FILED), "Alpha", NOW) is None


class TestSecCommentAlert:
    """Tests for SEC comment response thresholds."""

    def make_comment(self, days, resolved=False):
        return SecComment(
            id=9, filing_id=5, spac_id=1, comment_number=4, comment_text="Clarify PIPE terms",
            due_date=NOW + timedelta(days=days), is_resolved=resolved,
        )

    def test_overdue(self):
        alert = sec_comment_alert(self.make_comment(-2), "Alpha", NOW)
        assert alert.type == ComplianceAlertType.COMPLIANCE_WARNING
        assert alert.severity == AlertSeverity.high
        assert alert.title == "Overdue SEC Comment Response"

    def test_critical(self):
        alert = sec_comment_alert(self.make_comment(1), "Alpha", NOW)
        assert alert.title == "Critical: SEC Comment Response Due"
        assert alert.severity == AlertSeverity.high

    def test_due_soon(self):
        alert = sec_comment_alert(self.make_comment(6), "Alpha", NOW)
        assert alert.title == "SEC Comment Response Due Soon"
        assert alert.severity == AlertSeverity.medium

    def test_resolved_ignored(self):
        assert sec_comment_alert(self.make_comment(-2, resolved=True), "Alpha", NOW) is None


class TestSortCandidates:

    def test_severity_then_due_date(self):
        def candidate(title, severity, due):
            return AlertCandidate(1, ComplianceAlertType.COMPLIANCE_WARNING, severity, title, "", due)

        ordered = sort_candidates([
            candidate("medium-early", AlertSeverity.medium, NOW),
            candidate("high-undated", AlertSeverity.high, None),
            candidate("high-late", AlertSeverity.high, NOW + timedelta(days=5)),
            candidate("high-early", AlertSeverity.high, NOW + timedelta(days=1)),
        ])
        assert [c.title for c in ordered] == ["high-early", "high-late", "high-undated", "medium-early"]


class TestSyncAlerts:
    """Tests for generation against the database."""

    @pytest.fixture
    def spac(self, db):
        spac = Spac(name="Alpha Acquisition Corp", ticker="ALPA", deadline_date=NOW + timedelta(days=2))
        db.add(spac)
        db.commit()
        return spac

    def test_generate_scans_all_sources(self, db, spac):
        filing = Filing(spac_id=spac.id, type=FilingType.FORM_10Q, due_date=NOW + timedelta(days=6))
        db.add(filing)
        db.commit()
        db.add(SecComment(
            filing_id=filing.id, spac_id=spac.id, comment_number=1,
            comment_text="Comment", due_date=NOW - timedelta(days=1),
        ))
        db.commit()

        candidates = generate_alerts(db, now=NOW)

        assert [c.type for c in candidates] == [
            ComplianceAlertType.COMPLIANCE_WARNING,
            ComplianceAlertType.DEADLINE_CRITICAL,
            ComplianceAlertType.FILING_REQUIRED,
        ]

    def test_sync_skips_existing(self, db, spac):
        assert sync_alerts(db, now=NOW) == 1
        assert sync_alerts(db, now=NOW) == 0
        assert db.query(ComplianceAlert).count() == 1

    def test_dismissed_alert_does_not_block(self, db, spac):
        sync_alerts(db, now=NOW)
        alert = db.query(ComplianceAlert).one()
        alert.is_dismissed = True
        db.commit()

        assert sync_alerts(db, now=NOW) == 1

    def test_cleanup_dismissed(self, db, spac):
        db.add(ComplianceAlert(
            spac_id=spac.id, type=ComplianceAlertType.COMPLIANCE_WARNING, title="Old",
            is_dismissed=True, updated_at=datetime.utcnow() - timedelta(days=45),
        ))
        db.add(ComplianceAlert(
            spac_id=spac.id, type=ComplianceAlertType.COMPLIANCE_WARNING, title="Fresh",
            is_dismissed=True,
        ))
        db.commit()

        assert cleanup_dismissed_alerts(db, days_old=30) == 1
        assert [a.title for a in db.query(ComplianceAlert).all()] == ["Fresh"]
