from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from instaclean import reports
from instaclean.errors import ValidationError

from conftest import booking_payload

NOW = datetime(2026, 10, 21, 15, 30)  # a Wednesday
STANDARD = SimpleNamespace(name="Standard Cleaning")
DEEP = SimpleNamespace(name="Deep Cleaning")


def booking(status, estimated, final=None, created=NOW, service=STANDARD, scheduled=None):
    return SimpleNamespace(
        status=status,
        estimated_price=estimated,
        final_price=final,
        created_at=created,
        scheduled_date=scheduled or created.date(),
        service=service,
    )


def test_revenue_uses_final_price_when_present():
    bookings = [
        booking("COMPLETED", 100),
        booking("COMPLETED", 99, final=150),
        booking("COMPLETED", 200),
        booking("PENDING", 300),
        booking("PENDING", 50),
    ]

    summary = reports.summarize(bookings)

    assert summary.revenue == 450
    assert summary.completed_count == 3
    assert summary.average_order_value == 150
    assert summary.total == 5
    assert summary.by_status["PENDING"] == 2
    assert summary.by_status["CANCELLED"] == 0


def test_average_is_zero_without_completed_bookings():
    summary = reports.summarize([booking("PENDING", 100)])
    assert summary.revenue == 0
    assert summary.average_order_value == 0


def test_service_breakdown_sorted_by_count():
    bookings = [
        booking("COMPLETED", 100, service=DEEP),
        booking("PENDING", 100, service=STANDARD),
        booking("CANCELLED", 100, service=STANDARD),
        booking("COMPLETED", 80, service=None),
    ]

    lines = reports.summarize(bookings).by_service

    assert [(line.name, line.count, line.revenue) for line in lines] == [
        ("Standard Cleaning", 2, 0),
        ("Deep Cleaning", 1, 100),
        ("Unknown", 1, 80),
    ]


def test_predicate_limits_the_fold():
    old = booking("COMPLETED", 500, created=NOW - timedelta(days=40))
    recent = booking("COMPLETED", 120, created=NOW - timedelta(days=2))

    summary = reports.summarize([old, recent], reports.created_between(NOW - timedelta(days=7)))

    assert summary.total == 1
    assert summary.revenue == 120


@pytest.mark.parametrize("name,expected", [
    ("today", datetime(2026, 10, 21)),
    ("week", datetime(2026, 10, 18)),
    ("month", datetime(2026, 10, 1)),
    ("year", datetime(2026, 1, 1)),
    ("all", datetime.min),
])
def test_range_start(name, expected):
    assert reports.range_start(name, NOW) == expected


def test_unknown_range_is_rejected():
    with pytest.raises(ValidationError):
        reports.range_start("decade", NOW)


def test_daily_counts_keeps_last_seven_days():
    bookings = [booking("PENDING", 10, created=NOW - timedelta(days=d)) for d in range(10)]
    bookings.append(booking("PENDING", 10, created=NOW))

    daily = reports.daily_counts(bookings)

    assert len(daily) == 7
    assert daily[-1] == {"date": "2026-10-21", "count": 2}
    assert daily[0]["date"] == "2026-10-15"


def test_dashboard_stats():
    bookings = [
        booking("PENDING", 100, scheduled=date(2026, 10, 21)),
        booking("COMPLETED", 100, final=90, created=NOW - timedelta(days=10)),
        booking("CONFIRMED", 100, scheduled=date(2026, 10, 30)),
    ]

    stats = reports.dashboard_stats(bookings, NOW)

    assert stats == {
        "totalBookings": 3,
        "pendingBookings": 1,
        "completedBookings": 1,
        "totalRevenue": 90.0,
        "todayBookings": 1,
        "weeklyBookings": 2,
    }


def test_report_endpoints_are_admin_only(client, admin_client, staff_client):
    created = client.post("/api/bookings", json=booking_payload()).get_json()
    admin_client.patch(f"/api/bookings/{created['id']}", json={"status": "CONFIRMED"})
    admin_client.patch(f"/api/bookings/{created['id']}", json={"status": "COMPLETED", "finalPrice": 110})
    client.post("/api/bookings", json=booking_payload(serviceId=2))

    report = admin_client.get("/api/reports?range=all").get_json()
    assert report["totalBookings"] == 2
    assert report["totalRevenue"] == 110
    assert report["averageOrderValue"] == 110
    assert report["statusBreakdown"]["PENDING"] == 1
    assert sum(day["count"] for day in report["dailyBookings"]) == 2

    stats = admin_client.get("/api/dashboard").get_json()
    assert stats["completedBookings"] == 1
    assert stats["weeklyBookings"] == 2

    assert staff_client.get("/api/reports").status_code == 403
    assert client.get("/api/dashboard").status_code == 401
    assert admin_client.get("/api/reports?range=decade").status_code == 400
