import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from serviceqr.core.clock import as_utc, utcnow
from serviceqr.core.responses import MutationResult, error_message
from serviceqr.models import (
    Restaurant,
    ServiceRequest,
    ServiceRequestStatus,
    Table,
    REQUEST_STATUSES,
    REQUEST_TYPES,
)
from serviceqr.schemas.service_request import ServiceRequestResponse, ServiceRequestWithDetails
from serviceqr.services.realtime import ChangeEvent, ChangeFeed, ChangeKind, change_feed, restaurant_channel

logger = logging.getLogger(__name__)


REQUEST_TYPE_INFO = {
    "waiter": {"icon": "👨‍🍳", "label": "Waiter", "color": "bg-blue-500"},
    "water": {"icon": "💧", "label": "Water", "color": "bg-cyan-500"},
    "bill": {"icon": "💳", "label": "Bill", "color": "bg-green-500"},
}
UNKNOWN_TYPE_INFO = {"icon": "📋", "label": "Request", "color": "bg-gray-500"}


def request_type_info(request_type: str) -> dict:
    """Display label, icon and color for a request type."""
    return REQUEST_TYPE_INFO.get(request_type, UNKNOWN_TYPE_INFO)


def format_relative_time(created_at: datetime, now: Optional[datetime] = None) -> str:
    """'Just now', '3 mins ago', '2 hours ago', '1 day ago'..."""
    now = as_utc(now) or utcnow()
    diff_mins = int((now - as_utc(created_at)).total_seconds() // 60)

    if diff_mins < 1:
        return "Just now"
    if diff_mins == 1:
        return "1 min ago"
    if diff_mins < 60:
        return f"{diff_mins} mins ago"

    diff_hours = diff_mins // 60
    if diff_hours == 1:
        return "1 hour ago"
    if diff_hours < 24:
        return f"{diff_hours} hours ago"

    diff_days = diff_hours // 24
    if diff_days == 1:
        return "1 day ago"
    return f"{diff_days} days ago"


def _as_value(value) -> str:
    return value.value if hasattr(value, "value") else value


class ServiceRequestService:
    def __init__(self, db: Session, feed: ChangeFeed = change_feed):
        self.db = db
        self.feed = feed

    def _details_query(self):
        return (
            self.db.query(ServiceRequest, Table, Restaurant)
            .join(Table, ServiceRequest.table_id == Table.id)
            .join(Restaurant, Table.restaurant_id == Restaurant.id)
        )

    def _publish(self, kind: ChangeKind, call: ServiceRequest, restaurant_id: int) -> None:
        """Announce a committed change on the owning restaurant's channel."""
        record = ServiceRequestResponse.model_validate(call).model_dump()
        self.feed.publish(restaurant_channel(restaurant_id), ChangeEvent(kind=kind, record=record))

    def create_request(self, table_id: int, request_type) -> MutationResult:
        """Create a pending request. Repeated taps create repeated rows."""
        request_type = _as_value(request_type)
        if request_type not in REQUEST_TYPES:
            return MutationResult.fail(f"Unknown request type '{request_type}'")

        try:
            table = self.db.query(Table).filter(Table.id == table_id).first()
            if table is None:
                return MutationResult.fail("Table not found")

            call = ServiceRequest(
                table_id=table.id,
                type=request_type,
                status=ServiceRequestStatus.PENDING,
            )
            self.db.add(call)
            self.db.commit()
            self.db.refresh(call)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Error creating service request")
            return MutationResult.fail(error_message(e))

        logger.info(f"Service request {call.id} ({call.type}) created for table {table.table_number}")
        self._publish(ChangeKind.INSERT, call, table.restaurant_id)
        return MutationResult.ok(ServiceRequestResponse.model_validate(call).model_dump())

    def update_status(self, request_id: int, status) -> MutationResult:
        """Move a request from pending to done.

        ``done`` is terminal: re-marking a finished request returns the stored
        record untouched, and reopening it fails. Setting ``pending`` on a
        pending request is likewise a no-op. Only a real transition writes
        and publishes an update event.
        """
        status = _as_value(status)
        if status not in REQUEST_STATUSES:
            return MutationResult.fail(f"Unknown status '{status}'")

        try:
            row = (
                self.db.query(ServiceRequest, Table.restaurant_id)
                .join(Table, ServiceRequest.table_id == Table.id)
                .filter(ServiceRequest.id == request_id)
                .first()
            )
            if row is None:
                return MutationResult.fail("Service request not found")

            call, restaurant_id = row
            if call.status == ServiceRequestStatus.DONE.value and status != call.status:
                return MutationResult.fail("Request already completed")
            if call.status == status:
                return MutationResult.ok(ServiceRequestResponse.model_validate(call).model_dump())

            call.status = status
            call.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(call)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Error updating service request {request_id}")
            return MutationResult.fail(error_message(e))

        logger.info(f"Service request {call.id} marked {call.status}")
        self._publish(ChangeKind.UPDATE, call, restaurant_id)
        return MutationResult.ok(ServiceRequestResponse.model_validate(call).model_dump())

    def get_pending_for_restaurant(self, restaurant_slug: str) -> List[ServiceRequestWithDetails]:
        """Pending requests of one restaurant, newest first."""
        rows = (
            self._details_query()
            .filter(
                Restaurant.slug == restaurant_slug,
                ServiceRequest.status == ServiceRequestStatus.PENDING.value,
            )
            .order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc())
            .all()
        )
        return [self._build_details(*row) for row in rows]

    def get_with_details(self, request_id: int) -> Optional[ServiceRequestWithDetails]:
        row = self._details_query().filter(ServiceRequest.id == request_id).first()
        if row is None:
            return None
        return self._build_details(*row)

    def _build_details(self, call: ServiceRequest, table: Table, restaurant: Restaurant) -> ServiceRequestWithDetails:
        return ServiceRequestWithDetails(
            id=call.id,
            table_id=call.table_id,
            type=call.type,
            status=call.status,
            created_at=call.created_at,
            updated_at=call.updated_at,
            table_number=table.table_number,
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            restaurant_slug=restaurant.slug,
        )
