"""API routes."""

import logging
from fastapi import APIRouter

logger = logging.getLogger(__name__)

from serviceqr.api.routes import (
    restaurants, tables, service_requests, feedback, analytics, dashboard,
)

api_router = APIRouter()

# Routers are mounted WITHOUT prefix: several modules share the
# /restaurants/{slug}/... namespace.
api_router.include_router(restaurants.router, tags=["restaurants", "theme"])
api_router.include_router(tables.router, tags=["tables"])
api_router.include_router(service_requests.router, tags=["service-requests"])
api_router.include_router(feedback.router, tags=["feedback"])
api_router.include_router(analytics.router, tags=["analytics"])
api_router.include_router(dashboard.router, tags=["dashboard"])

logger.debug(f"API router ready with {len(api_router.routes)} routes")
