"""SQLAlchemy models."""

from serviceqr.models.restaurant import (
    Restaurant,
    Table,
    ServiceRequest,
    Feedback,
    ServiceRequestType,
    ServiceRequestStatus,
    REQUEST_TYPES,
    REQUEST_STATUSES,
)

__all__ = [
    "Restaurant",
    "Table",
    "ServiceRequest",
    "Feedback",
    "ServiceRequestType",
    "ServiceRequestStatus",
    "REQUEST_TYPES",
    "REQUEST_STATUSES",
]
