"""
Request Analytics Service
Volume, response-time and peak-hour statistics for the owner dashboard
"""
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from serviceqr.core.clock import as_utc, local_timezone, utcnow
from serviceqr.models import ServiceRequest, ServiceRequestStatus, ServiceRequestType, Table
from serviceqr.schemas.analytics import AnalyticsMetrics, DailyBucket, HourlyBucket
from serviceqr.services.restaurant_service import get_restaurant_by_slug

logger = logging.getLogger(__name__)

SUPPORTED_WINDOWS = (7, 30, 90)
PEAK_HOURS_LIMIT = 5
HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class RequestRecord:
    """The slice of a service request the aggregator needs."""
    type: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, call: ServiceRequest) -> "RequestRecord":
        return cls(
            type=call.type,
            status=call.status,
            created_at=as_utc(call.created_at),
            updated_at=as_utc(call.updated_at),
        )


def window_start(now: datetime, days: int, tz: tzinfo) -> datetime:
    """Local midnight ``days`` calendar days before today."""
    start_date = as_utc(now).astimezone(tz).date() - timedelta(days=days)
    return datetime.combine(start_date, time.min, tzinfo=tz)


def average_response_minutes(records: Iterable[RequestRecord]) -> float:
    """Mean minutes from creation to completion over done requests, one decimal."""
    durations = [
        (as_utc(r.updated_at) - as_utc(r.created_at)).total_seconds() / 60
        for r in records
        if r.status == ServiceRequestStatus.DONE.value and r.updated_at
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 1)


def hourly_volume(records: Iterable[RequestRecord], now: datetime, tz: tzinfo) -> List[HourlyBucket]:
    """24 one-hour buckets starting at the local hour 24 hours ago.

    Each bucket is labelled with its local clock hour, not its position.
    """
    anchor = (as_utc(now) - timedelta(hours=24)).astimezone(tz)
    start = anchor.replace(minute=0, second=0, microsecond=0).astimezone(timezone.utc)

    counts = [0] * 24
    for r in records:
        offset = as_utc(r.created_at) - start
        if offset < timedelta(0):
            continue
        index = int(offset // HOUR)
        if index < 24:
            counts[index] += 1

    return [
        HourlyBucket(hour=(start + i * HOUR).astimezone(tz).hour, count=counts[i])
        for i in range(24)
    ]


def daily_volume(records: Iterable[RequestRecord], start: datetime, now: datetime, tz: tzinfo) -> List[DailyBucket]:
    """One bucket per local calendar day from the window start through today."""
    first_day = start.astimezone(tz).date()
    today = as_utc(now).astimezone(tz).date()
    per_day = Counter(as_utc(r.created_at).astimezone(tz).date() for r in records)

    buckets = []
    day = first_day
    while day <= today:
        buckets.append(DailyBucket(date=day.isoformat(), count=per_day.get(day, 0)))
        day += timedelta(days=1)
    return buckets


def peak_hours(records: Iterable[RequestRecord], tz: tzinfo, limit: int = PEAK_HOURS_LIMIT) -> List[HourlyBucket]:
    """Busiest local clock hours over the whole window.

    Sorted by count descending; equal counts keep ascending hour order.
    """
    per_hour = Counter(as_utc(r.created_at).astimezone(tz).hour for r in records)
    ranked = sorted(per_hour.items(), key=lambda item: (-item[1], item[0]))
    return [HourlyBucket(hour=hour, count=count) for hour, count in ranked[:limit]]


def compute_metrics(
    records: Iterable[RequestRecord],
    days: int,
    now: datetime,
    tz: tzinfo,
) -> AnalyticsMetrics:
    """Aggregate a restaurant's requests for a ``days`` window ending at ``now``."""
    start = window_start(now, days, tz)
    in_window = [r for r in records if as_utc(r.created_at) >= start]

    by_type = Counter(r.type for r in in_window)
    by_status = Counter(r.status for r in in_window)

    return AnalyticsMetrics(
        total_requests=len(in_window),
        pending_requests=by_status.get(ServiceRequestStatus.PENDING.value, 0),
        completed_requests=by_status.get(ServiceRequestStatus.DONE.value, 0),
        average_response_time=average_response_minutes(in_window),
        request_by_type={t.value: by_type.get(t.value, 0) for t in ServiceRequestType},
        hourly_volume=hourly_volume(in_window, now, tz),
        daily_volume=daily_volume(in_window, start, now, tz),
        peak_hours=peak_hours(in_window, tz),
    )


def get_analytics_metrics(
    db: Session,
    restaurant_slug: str,
    days: int = 7,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[AnalyticsMetrics]:
    """Analytics for a restaurant, or None when the slug is unknown or the read fails.

    Recomputed from the database on every call.
    """
    restaurant = get_restaurant_by_slug(db, restaurant_slug)
    if restaurant is None:
        return None

    now = as_utc(now) or utcnow()
    tz = tz or local_timezone()
    start = window_start(now, days, tz).astimezone(timezone.utc)

    try:
        calls = (
            db.query(ServiceRequest)
            .join(Table, ServiceRequest.table_id == Table.id)
            .filter(
                Table.restaurant_id == restaurant.id,
                ServiceRequest.created_at >= start,
            )
            .order_by(ServiceRequest.created_at.asc())
            .all()
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error loading analytics for '{restaurant_slug}'")
        return None
    logger.debug(f"Analytics for '{restaurant_slug}': {len(calls)} requests over {days} days")
    return compute_metrics([RequestRecord.from_model(c) for c in calls], days, now, tz)


def hour_label(hour: int) -> str:
    """12-hour clock label: 0 -> '12 AM', 15 -> '3 PM'."""
    if hour == 0:
        return "12 AM"
    if hour == 12:
        return "12 PM"
    return f"{hour} AM" if hour < 12 else f"{hour - 12} PM"


def format_date_label(day: date, today: date) -> str:
    """'Today', 'Yesterday', or a short month-day label like 'Mar 4'."""
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day.strftime('%b')} {day.day}"
