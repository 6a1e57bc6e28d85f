"""FastAPI application entry point."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from serviceqr.core.rate_limit import limiter

from serviceqr.api.routes import api_router
from serviceqr.core.config import settings
from serviceqr.db.session import engine, SessionLocal, SessionFactory
from serviceqr.db.base import Base
from serviceqr.services.realtime import Subscription, change_feed, restaurant_channel
from serviceqr.services.restaurant_service import get_restaurant_by_slug
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

# Configure logging - use JSON format in production, human-readable in dev
root_logger = logging.getLogger()
root_logger.setLevel(getattr(logging, settings.log_level))
root_logger.handlers.clear()

if settings.debug:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
else:
    import json as _json
    import sys

    class JSONFormatter(logging.Formatter):
        def format(self, record):
            return _json.dumps({
                "ts": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
                "module": record.module,
                "line": record.lineno,
            })

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

root_logger.addHandler(handler)
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        # Skip logging for liveness checks
        if request.url.path in ["/health", "/"]:
            return await call_next(request)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        request_logger.info(
            f"Request: {request.method} {request.url.path} - Client: {client_ip}"
        )

        try:
            response = await call_next(request)
            process_time = time.time() - start_time

            log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
            request_logger.log(
                log_level,
                f"Response: {request.method} {request.url.path} - "
                f"Status: {response.status_code} - Time: {process_time:.3f}s - Client: {client_ip}"
            )

            return response
        except Exception as e:
            process_time = time.time() - start_time
            request_logger.error(
                f"Error: {request.method} {request.url.path} - "
                f"Exception: {str(e)} - Time: {process_time:.3f}s - Client: {client_ip}"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting ServiceQR")

    # Create tables if they don't exist (for SQLite dev)
    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created (SQLite mode)")

    yield

    logger.info(f"Shutting down ServiceQR ({change_feed.subscriber_count()} live subscribers)")


app = FastAPI(
    title="ServiceQR",
    description="QR table service: guest requests, staff dashboard, theming and analytics",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - MUST be added last so it runs first (Starlette LIFO order).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin"],
    max_age=600,  # Cache preflight for 10 minutes
)

# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/health/ready")
def readiness_check():
    """Readiness probe with database and change feed check."""
    checks = {
        "database": "unknown",
        "change_feed": "unknown",
    }

    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = "unhealthy"
    finally:
        if db:
            db.close()

    checks["change_feed"] = f"healthy ({change_feed.subscriber_count()} subscribers)"

    all_healthy = all(c.startswith("healthy") for c in checks.values())

    return {
        "status": "ready" if all_healthy else "degraded",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "ServiceQR API",
        "health": "/health",
    }


async def _forward_changes(websocket: WebSocket, subscription: Subscription):
    """Push every change on the subscription to the client as JSON."""
    while True:
        event = await subscription.get()
        await websocket.send_json(event.to_message())


async def _answer_pings(websocket: WebSocket):
    while True:
        data = await websocket.receive_text()
        if data == "ping":
            await websocket.send_text("pong")


async def _ws_loop(websocket: WebSocket, subscription: Subscription):
    """Run the receive loop and the change forwarder until either one stops.

    Returning ends the connection, so a failed forwarder disconnects the client.
    """
    receiver = asyncio.create_task(_answer_pings(websocket))
    forwarder = asyncio.create_task(_forward_changes(websocket, subscription))
    try:
        done, _ = await asyncio.wait({receiver, forwarder}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is None or isinstance(exc, WebSocketDisconnect):
                continue
            logger.error(f"WebSocket error in {subscription.channel}: {exc}", exc_info=exc)
    finally:
        receiver.cancel()
        forwarder.cancel()
        change_feed.unsubscribe(subscription)


def _restaurant_id_for(sessions: sessionmaker, slug: str):
    with sessions() as db:
        restaurant = get_restaurant_by_slug(db, slug)
        return restaurant.id if restaurant else None


@app.websocket("/ws/restaurants/{slug}/requests")
async def websocket_restaurant_requests(websocket: WebSocket, slug: str, sessions: SessionFactory):
    """Live inserts and updates of one restaurant's service requests."""
    # The session is closed before accept; no connection is held for the socket's lifetime
    restaurant_id = await run_in_threadpool(_restaurant_id_for, sessions, slug)
    if restaurant_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # Subscribe before accepting so no change is missed once the client is connected
    subscription = change_feed.subscribe(restaurant_channel(restaurant_id))
    if subscription is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    await websocket.accept()
    logger.debug(f"Dashboard connected for '{slug}'")
    await _ws_loop(websocket, subscription)
