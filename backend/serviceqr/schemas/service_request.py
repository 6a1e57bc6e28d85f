"""Service request schemas"""
from pydantic import BaseModel, ConfigDict, field_validator
from typing import List
from datetime import datetime

from serviceqr.core.clock import as_utc
from serviceqr.models.restaurant import ServiceRequestStatus, ServiceRequestType


class ServiceRequestCreate(BaseModel):
    table_id: int
    type: ServiceRequestType


class ServiceRequestStatusUpdate(BaseModel):
    status: ServiceRequestStatus


class ServiceRequestResponse(BaseModel):
    id: int
    table_id: int
    type: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class ServiceRequestWithDetails(ServiceRequestResponse):
    """Request joined with its table and restaurant, as the dashboard shows it."""
    table_number: str
    restaurant_id: int
    restaurant_name: str
    restaurant_slug: str


class PendingRequests(BaseModel):
    items: List[ServiceRequestWithDetails]
    total: int
