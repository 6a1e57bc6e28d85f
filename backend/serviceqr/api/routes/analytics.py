"""Owner analytics routes."""

from fastapi import APIRouter, HTTPException, Query

from serviceqr.db.session import DbSession
from serviceqr.schemas.analytics import AnalyticsMetrics
from serviceqr.services.analytics_service import SUPPORTED_WINDOWS, get_analytics_metrics

router = APIRouter()


@router.get("/analytics/{slug}", response_model=AnalyticsMetrics)
def get_analytics(slug: str, db: DbSession, days: int = Query(7, description="Window in days: 7, 30 or 90")):
    """Request volume, response time and peak hours for the last ``days`` days."""
    if days not in SUPPORTED_WINDOWS:
        raise HTTPException(
            status_code=422,
            detail=f"days must be one of {', '.join(str(d) for d in SUPPORTED_WINDOWS)}",
        )
    metrics = get_analytics_metrics(db, slug, days=days)
    if metrics is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return metrics
