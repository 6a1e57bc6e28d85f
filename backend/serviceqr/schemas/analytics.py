"""Analytics schemas."""

from typing import Dict, List

from pydantic import BaseModel


class HourlyBucket(BaseModel):
    hour: int  # local clock hour, 0-23
    count: int


class DailyBucket(BaseModel):
    date: str  # local calendar date, YYYY-MM-DD
    count: int


class AnalyticsMetrics(BaseModel):
    """Request volume and service statistics for one restaurant and window."""
    total_requests: int
    pending_requests: int
    completed_requests: int
    average_response_time: float  # minutes, one decimal
    request_by_type: Dict[str, int]
    hourly_volume: List[HourlyBucket]
    daily_volume: List[DailyBucket]
    peak_hours: List[HourlyBucket]
