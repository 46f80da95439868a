"""
Unit tests for insights.py.

Tests cover:
- Status, priority and recency ordering
- Summary counts
- Feed assembly from alerts, target scores, score history and filings
- Failing sources are skipped
"""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from spacos.models.alert import ComplianceAlert, ComplianceAlertType, AlertSeverity
from spacos.models.filing import Filing, FilingType, FilingStatus
from spacos.models.spac import Spac
from spacos.models.target import Target, TargetStatus, ScoreHistory
from spacos.services.insights import Insight, build_insight_feed, sort_insights, summarize

NOW = datetime(2024, 6, 1, 12, 0, 0)


def insight(id, status="NEW", priority="MEDIUM", type="RISK", age_hours=0):
    return Insight(
        id=id, type=type, priority=priority, status=status, title=id, description="",
        source="test", timestamp=NOW - timedelta(hours=age_hours), confidence=50,
    )


class TestSortInsights:

    def test_status_before_priority(self):
        ordered = sort_insights([
            insight("ack-critical", status="ACKNOWLEDGED", priority="CRITICAL"),
            insight("new-low", priority="LOW"),
        ])
        assert [i.id for i in ordered] == ["new-low", "ack-critical"]

    def test_priority_then_newest(self):
        ordered = sort_insights([
            insight("medium", priority="MEDIUM"),
            insight("high-old", priority="HIGH", age_hours=5),
            insight("high-new", priority="HIGH", age_hours=1),
        ])
        assert [i.id for i in ordered] == ["high-new", "high-old", "medium"]


class TestSummarize:

    def test_counts(self):
        summary = summarize([
            insight("a", type="RISK", priority="HIGH"),
            insight("b", type="OPPORTUNITY", status="ACKNOWLEDGED"),
            insight("c", type="ALERT", priority="CRITICAL"),
        ])
        assert summary == {
            "total_insights": 3,
            "new_insights": 2,
            "high_priority": 2,
            "by_type": {"risk": 1, "opportunity": 1, "alert": 1, "recommendation": 0},
        }


class TestBuildInsightFeed:
    """Tests for the aggregated feed against the database."""

    @pytest.fixture
    def spac(self, db):
        spac = Spac(name="Alpha Acquisition Corp", ticker="ALPA")
        db.add(spac)
        db.commit()
        return spac

    def test_alert_mapping(self, db, spac):
        db.add_all([
            ComplianceAlert(spac_id=spac.id, type=ComplianceAlertType.DEADLINE_MISSED,
                            severity=AlertSeverity.high, title="Missed", due_date=NOW),
            ComplianceAlert(spac_id=spac.id, type=ComplianceAlertType.FILING_REQUIRED,
                            severity=AlertSeverity.medium, title="Filing", is_read=True),
            ComplianceAlert(spac_id=spac.id, type=ComplianceAlertType.COMPLIANCE_WARNING,
                            severity=AlertSeverity.low, title="Low"),
        ])
        db.commit()

        feed = build_insight_feed(db, now=NOW)
        by_title = {i.title: i for i in feed.insights}

        assert set(by_title) == {"Missed", "Filing"}
        assert by_title["Missed"].type == "RISK"
        assert by_title["Missed"].priority == "HIGH"
        assert by_title["Missed"].metrics[0]["value"] == "2024-06-01"
        assert by_title["Filing"].type == "RECOMMENDATION"
        assert by_title["Filing"].status == "ACKNOWLEDGED"
        assert feed.insights[0].title == "Missed"

    def test_target_scores(self, db, spac):
        db.add_all([
            Target(name="Star", spac_id=spac.id, ai_score=92, status=TargetStatus.PRELIMINARY),
            Target(name="Good", spac_id=spac.id, ai_score=81, status=TargetStatus.NDA_SIGNED),
            Target(name="Weak", spac_id=spac.id, ai_score=25, status=TargetStatus.NEGOTIATION),
            Target(name="Late", spac_id=spac.id, ai_score=85, status=TargetStatus.NEGOTIATION),
            Target(name="Unscored", spac_id=spac.id, ai_score=0, status=TargetStatus.DUE_DILIGENCE),
        ])
        db.commit()

        feed = build_insight_feed(db, spac_id=spac.id, now=NOW)
        by_title = {i.title: i for i in feed.insights}

        assert set(by_title) == {"High-Fit Target: Star", "High-Fit Target: Good", "Low AI Score: Weak"}
        assert by_title["High-Fit Target: Star"].priority == "HIGH"
        assert by_title["High-Fit Target: Good"].priority == "MEDIUM"
        assert by_title["Low AI Score: Weak"].priority == "HIGH"
        assert by_title["Low AI Score: Weak"].confidence == 75

    def test_score_changes(self, db, spac):
        target = Target(name="Mover", spac_id=spac.id)
        db.add(target)
        db.commit()
        db.add_all([
            ScoreHistory(target_id=target.id, ai_score=50, recorded_at=NOW - timedelta(days=3)),
            ScoreHistory(target_id=target.id, ai_score=75, recorded_at=NOW - timedelta(days=1)),
        ])
        db.commit()

        feed = build_insight_feed(db, now=NOW)

        assert len(feed.insights) == 1
        change = feed.insights[0]
        assert change.type == "OPPORTUNITY"
        assert change.priority == "HIGH"
        assert change.title == "Score Increased for Mover"

    def test_small_score_change_ignored(self, db, spac):
        target = Target(name="Steady", spac_id=spac.id)
        db.add(target)
        db.commit()
        db.add_all([
            ScoreHistory(target_id=target.id, ai_score=60, recorded_at=NOW - timedelta(days=2)),
            ScoreHistory(target_id=target.id, ai_score=55, recorded_at=NOW - timedelta(days=1)),
        ])
        db.commit()

        assert build_insight_feed(db, now=NOW).insights == []

    def test_filing_intelligence(self, db, spac):
        db.add_all([
            Filing(spac_id=spac.id, type=FilingType.FORM_8K, status=FilingStatus.FILED,
                   filed_date=NOW - timedelta(days=2)),
            Filing(spac_id=spac.id, type=FilingType.S4, status=FilingStatus.FILED,
                   filed_date=NOW - timedelta(days=45)),
            Filing(spac_id=spac.id, type=FilingType.S4, status=FilingStatus.DRAFTING),
        ])
        db.commit()

        feed = build_insight_feed(db, now=NOW)

        assert len(feed.market_intelligence) == 1
        intel = feed.market_intelligence[0]
        assert intel.headline == "FORM 8K Filed: Alpha Acquisition Corp"
        assert "ALPA" in intel.tags

    def test_failing_source_skipped(self, db, spac):
        db.add(ComplianceAlert(spac_id=spac.id, type=ComplianceAlertType.DEADLINE_CRITICAL,
                               severity=AlertSeverity.high, title="Critical"))
        db.commit()

        with patch(
            "spacos.services.insights.target_score_insights",
            side_effect=OperationalError("SELECT", {}, Exception("boom")),
        ):
            feed = build_insight_feed(db, now=NOW)

        assert [i.title for i in feed.insights] == ["Critical"]
        assert feed.summary["total_insights"] == 1
