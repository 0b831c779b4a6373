"""
Unit tests for the dashboard summary and customer history views.
"""

from dashboard.summary import (
    arriving_today,
    build_dashboard_summary,
    customer_history,
    normalize_log_entry,
    recent_logs,
)
from dashboard.normalizer import normalize_bookings
from models.log_entry import LogActionType


def test_arriving_today(raw_booking, now):
    """Test only today's pending/confirmed bookings are listed."""
    raws = [
        raw_booking(id="1", status="pending", carBrand="Honda", carModel="City"),
        raw_booking(id="2", status="repairing"),
        raw_booking(id="3", status="confirmed", reservationDate="2025-05-08T09:00:00+08:00"),
        raw_booking(id="4", status="CONFIRMED", firstName="Ana", lastName="Reyes"),
    ]

    arriving = arriving_today(normalize_bookings(raws, now), now)

    assert arriving == [
        {"id": "1", "customer_name": "JUAN DELA CRUZ", "initials": "JD", "car": "HONDA CITY"},
        {"id": "4", "customer_name": "ANA REYES", "initials": "AR", "car": "TOYOTA VIOS"},
    ]


def test_arriving_today_limit(raw_booking, now):
    """Test the arriving list is capped."""
    raws = [raw_booking(id=str(i), status="pending") for i in range(8)]
    assert len(arriving_today(normalize_bookings(raws, now), now, limit=5)) == 5


class TestRecentLogs:
    """Test the activity log view."""

    def test_only_login_and_logout(self):
        assert normalize_log_entry({"logType": "ORDER", "activity": "x"}) is None
        assert normalize_log_entry("LOGIN") is None

        entry = normalize_log_entry(
            {"id": 7, "logType": "login", "activity": "Ana logged in", "performedBy": "ana@shop.ph", "userId": 12}
        )
        assert entry.log_type is LogActionType.LOGIN
        assert entry.id == "7"
        assert entry.user_id == "12"

    def test_newest_first_and_undated_last(self):
        raws = [
            {"id": "a", "logType": "LOGIN", "activity": "A", "performedBy": "a", "timestamp": "2025-05-07T08:00:00+08:00"},
            {"id": "b", "logType": "LOGOUT", "activity": "B", "performedBy": "b"},
            {"id": "c", "logType": "LOGOUT", "activity": "C", "performedBy": "c", "timestamp": "2025-05-07T12:15:00+08:00"},
        ]

        logs = recent_logs(raws)

        assert [log["id"] for log in logs] == ["c", "a", "b"]
        assert logs[0]["timestamp"] == "05/07/2025, 12:15 PM"
        assert logs[2]["timestamp"] == "Invalid date/time"

    def test_limit(self):
        raws = [{"logType": "LOGIN", "activity": str(i), "performedBy": "x"} for i in range(15)]
        assert len(recent_logs(raws, limit=10)) == 10


class TestDashboardSummary:
    """Test the dashboard payload."""

    def test_summary(self, raw_booking, now):
        raws = [
            raw_booking(id="1", userId="u1", status="pending"),
            raw_booking(id="2", userId="u2", status="PENDING", reservationDate="2025-04-01T09:00:00+08:00"),
            raw_booking(id="3", userId="u2", status="completed"),
            raw_booking(id="4", userId="u3", status="repairing"),
            raw_booking(id="5", userId="u3", status="Confirmed", reservationDate="2025-05-09T09:00:00+08:00"),
            raw_booking(id="6", userId="u4", status="confirmed"),
            {"status": "weird"},
        ]
        logs = [{"id": "l1", "logType": "LOGIN", "activity": "Admin logged in", "performedBy": "admin"}]

        summary = build_dashboard_summary(raws, logs, now)

        assert summary["generated_at"] == "2025-05-07T14:30:00+08:00"
        # the record without a date or status is a pending booking made now,
        # so it also heads the arriving list
        assert summary["pending_count"] == 3
        assert summary["today"] == {"completed": 1, "repairing": 1, "confirmed": 1}
        assert [a["id"] for a in summary["arriving_today"]] == ["", "1", "6"]
        assert summary["clients"] == {"new": 2, "returning": 2}
        assert summary["logs"][0]["activity"] == "Admin logged in"

    def test_empty_inputs(self, now):
        summary = build_dashboard_summary([], [], now)

        assert summary["pending_count"] == 0
        assert summary["today"] == {"completed": 0, "repairing": 0, "confirmed": 0}
        assert summary["arriving_today"] == []
        assert summary["clients"] == {"new": 0, "returning": 0}
        assert summary["logs"] == []


def test_customer_history(raw_booking, now):
    """Test a customer's history and lifetime stats."""
    raws = [
        raw_booking(id="1", status="completed", reservationDate="2025-01-10T09:00:00+08:00"),
        raw_booking(id="2", status="repairing", reservationDate="2025-05-07T09:00:00+08:00"),
        raw_booking(id="3", status="completed", reservationDate="2025-03-10T09:00:00+08:00"),
        raw_booking(id="4", status="cancelled", reservationDate="2025-02-10T09:00:00+08:00"),
    ]

    history = customer_history(raws, now)

    assert history["stats"] == {"completed": 2, "ongoing": 1, "confirmed": 0}
    assert [b["id"] for b in history["bookings"]] == ["2", "3", "4", "1"]
    assert history["bookings"][0]["status"] == "REPAIRING"
    assert history["bookings"][0]["reservation_date"] == "2025-05-07T09:00:00+08:00"
    assert history["bookings"][0]["reservation_date_display"] == "05/07/2025"
