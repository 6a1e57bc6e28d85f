"""Service request routes - guest calls and staff status updates."""

from fastapi import APIRouter, HTTPException, Request

from serviceqr.core.config import settings
from serviceqr.core.rate_limit import limiter
from serviceqr.core.responses import mutation_response
from serviceqr.db.session import DbSession
from serviceqr.schemas.service_request import (
    PendingRequests,
    ServiceRequestCreate,
    ServiceRequestStatusUpdate,
    ServiceRequestWithDetails,
)
from serviceqr.services.restaurant_service import get_restaurant_by_slug
from serviceqr.services.service_request_service import ServiceRequestService

router = APIRouter()


@router.post("/service-requests")
@limiter.limit(settings.guest_request_rate_limit)
def create_service_request(request: Request, payload: ServiceRequestCreate, db: DbSession):
    """Call a waiter, ask for water or the bill (public, per table)."""
    service = ServiceRequestService(db)
    return mutation_response(service.create_request(payload.table_id, payload.type))


@router.patch("/service-requests/{request_id}/status")
def update_service_request_status(request_id: int, payload: ServiceRequestStatusUpdate, db: DbSession):
    service = ServiceRequestService(db)
    return mutation_response(service.update_status(request_id, payload.status))


@router.get("/service-requests/{request_id}", response_model=ServiceRequestWithDetails)
def get_service_request(request_id: int, db: DbSession):
    details = ServiceRequestService(db).get_with_details(request_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Service request not found")
    return details


@router.get("/restaurants/{slug}/requests/pending", response_model=PendingRequests)
def get_pending_requests(slug: str, db: DbSession):
    """Initial dashboard list; live changes arrive over the WebSocket."""
    if get_restaurant_by_slug(db, slug) is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    items = ServiceRequestService(db).get_pending_for_restaurant(slug)
    return PendingRequests(items=items, total=len(items))
