"""Feedback schemas"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Dict, Optional
from datetime import datetime

from serviceqr.core.clock import as_utc


class FeedbackCreate(BaseModel):
    """Guest rating for a table, optionally after a specific request"""
    table_id: int
    service_request_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class FeedbackResponse(BaseModel):
    id: int
    table_id: int
    service_request_id: Optional[int]
    rating: int
    comment: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class FeedbackWithDetails(FeedbackResponse):
    table_number: str
    restaurant_id: int
    restaurant_name: str
    restaurant_slug: str
    service_type: Optional[str] = None


class FeedbackStats(BaseModel):
    total: int
    average: float
    distribution: Dict[int, int]
