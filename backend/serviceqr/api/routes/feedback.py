"""Guest feedback routes."""

from typing import List

from fastapi import APIRouter, HTTPException, Query, Request

from serviceqr.core.config import settings
from serviceqr.core.rate_limit import limiter
from serviceqr.core.responses import mutation_response
from serviceqr.db.session import DbSession
from serviceqr.schemas.feedback import FeedbackCreate, FeedbackStats, FeedbackWithDetails
from serviceqr.services.feedback_service import FeedbackService
from serviceqr.services.restaurant_service import get_restaurant_by_slug

router = APIRouter()


@router.post("/feedback")
@limiter.limit(settings.guest_request_rate_limit)
def submit_feedback(request: Request, payload: FeedbackCreate, db: DbSession):
    """Rate the service at a table (public)."""
    service = FeedbackService(db)
    return mutation_response(
        service.create_feedback(payload.table_id, payload.service_request_id, payload.rating, payload.comment)
    )


@router.get("/restaurants/{slug}/feedback", response_model=List[FeedbackWithDetails])
def list_feedback(slug: str, db: DbSession, limit: int = Query(50, ge=1, le=200)):
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return FeedbackService(db).get_by_restaurant(restaurant.id, limit=limit)


@router.get("/restaurants/{slug}/feedback/stats", response_model=FeedbackStats)
def get_feedback_stats(slug: str, db: DbSession):
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return FeedbackService(db).get_stats(restaurant.id)
