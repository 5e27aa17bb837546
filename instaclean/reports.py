"""Dashboard and report figures derived from booking rows."""
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from instaclean.errors import ValidationError
from instaclean.status import BookingStatus

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")
RANGES = ("today", "week", "month", "year", "all")


@dataclass
class ServiceLine:
    name: str
    count: int = 0
    revenue: Decimal = ZERO

    def to_dict(self):
        return {"name": self.name, "count": self.count, "revenue": float(self.revenue)}


@dataclass
class BookingSummary:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    revenue: Decimal = ZERO
    completed_count: int = 0
    average_order_value: Decimal = ZERO
    by_service: List[ServiceLine] = field(default_factory=list)

    def to_dict(self):
        return {
            "totalBookings": self.total,
            "completedBookings": self.completed_count,
            "pendingBookings": self.by_status.get(BookingStatus.PENDING.value, 0),
            "inProgressBookings": self.by_status.get(BookingStatus.IN_PROGRESS.value, 0),
            "totalRevenue": float(self.revenue),
            "averageOrderValue": float(self.average_order_value),
            "statusBreakdown": dict(self.by_status),
            "serviceBreakdown": [line.to_dict() for line in self.by_service],
        }


def billed_amount(booking) -> Decimal:
    price = booking.final_price if booking.final_price is not None else booking.estimated_price
    return Decimal(str(price or 0))


def _is_completed(booking) -> bool:
    return BookingStatus(booking.status) == BookingStatus.COMPLETED


def _service_name(booking) -> str:
    service = getattr(booking, "service", None)
    return getattr(service, "name", None) or "Unknown"


def created_between(start: Optional[datetime] = None, end: Optional[datetime] = None) -> Callable:
    def predicate(booking):
        created = booking.created_at
        if start is not None and created < start:
            return False
        if end is not None and created >= end:
            return False
        return True
    return predicate


def range_start(name: str, now: datetime) -> datetime:
    """Start of a named reporting window; weeks start on Sunday."""
    midnight = datetime(now.year, now.month, now.day)
    if name == "today":
        return midnight
    if name == "week":
        return midnight - timedelta(days=(now.weekday() + 1) % 7)
    if name == "month":
        return datetime(now.year, now.month, 1)
    if name == "year":
        return datetime(now.year, 1, 1)
    if name == "all":
        return datetime.min
    raise ValidationError(f"Unknown date range: {name}")


def summarize(bookings: Iterable, predicate: Optional[Callable] = None) -> BookingSummary:
    selected = [b for b in bookings if predicate is None or predicate(b)]

    by_status = OrderedDict((s.value, 0) for s in BookingStatus)
    lines: Dict[str, ServiceLine] = {}
    revenue = ZERO
    completed = 0

    for booking in selected:
        by_status[BookingStatus(booking.status).value] += 1
        name = _service_name(booking)
        line = lines.setdefault(name, ServiceLine(name))
        line.count += 1
        if _is_completed(booking):
            amount = billed_amount(booking)
            revenue += amount
            line.revenue += amount
            completed += 1

    average = (revenue / completed).quantize(CENTS) if completed else ZERO
    return BookingSummary(
        total=len(selected),
        by_status=dict(by_status),
        revenue=revenue,
        completed_count=completed,
        average_order_value=average,
        by_service=sorted(lines.values(), key=lambda line: -line.count),
    )


def daily_counts(bookings: Iterable, predicate: Optional[Callable] = None, days: int = 7):
    """Bookings created per calendar day, oldest first, last ``days`` days with data."""
    counts = Counter(
        b.created_at.date() for b in bookings if predicate is None or predicate(b)
    )
    return [{"date": d.isoformat(), "count": counts[d]} for d in sorted(counts)][-days:]


def dashboard_stats(bookings: Iterable, now: datetime) -> dict:
    bookings = list(bookings)
    summary = summarize(bookings)
    today: date = now.date()
    week_ago = now - timedelta(days=7)
    return {
        "totalBookings": summary.total,
        "pendingBookings": summary.by_status[BookingStatus.PENDING.value],
        "completedBookings": summary.completed_count,
        "totalRevenue": float(summary.revenue),
        "todayBookings": sum(1 for b in bookings if b.scheduled_date == today),
        "weeklyBookings": sum(1 for b in bookings if b.created_at >= week_ago),
    }


def build_report(bookings: Iterable, range_name: str, now: datetime) -> dict:
    predicate = created_between(range_start(range_name, now))
    bookings = list(bookings)
    report = summarize(bookings, predicate).to_dict()
    report["range"] = range_name
    report["dailyBookings"] = daily_counts(bookings, predicate)
    return report
