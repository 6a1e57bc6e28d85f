"""
Staff dashboard state
Pending request list kept in sync with the change feed
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from starlette.concurrency import run_in_threadpool

from serviceqr.core.clock import Clock, as_utc, system_clock
from serviceqr.core.config import settings
from serviceqr.core.responses import MutationResult
from serviceqr.models import ServiceRequestStatus
from serviceqr.schemas.service_request import ServiceRequestWithDetails
from serviceqr.services.realtime import ChangeEvent, ChangeKind
from serviceqr.services.service_request_service import format_relative_time, request_type_info

logger = logging.getLogger(__name__)

DetailsFetcher = Callable[[int], Awaitable[Optional[ServiceRequestWithDetails]]]
DoneMarker = Callable[[int], Awaitable[MutationResult]]

URGENT_AFTER = timedelta(minutes=5)


class Notifier(Protocol):
    def play_tone(self) -> None:
        ...

    def notify(self, title: str, body: str) -> None:
        ...


class LoggingNotifier:
    """Notifier for headless use: records alerts in the log."""

    def play_tone(self) -> None:
        logger.debug("Notification tone")

    def notify(self, title: str, body: str) -> None:
        logger.info(f"{title}: {body}")


class StaffDashboard:
    """
    Live list of a restaurant's pending requests, newest first.

    Inserts are enriched through ``fetch_details`` before being shown and
    flagged "new" for ``highlight_seconds``. Updates to done remove the row.
    """

    def __init__(
        self,
        restaurant: Any,
        initial_requests: List[ServiceRequestWithDetails],
        fetch_details: DetailsFetcher,
        mark_done: DoneMarker,
        notifier: Optional[Notifier] = None,
        clock: Clock = system_clock,
        highlight_seconds: Optional[int] = None,
        sound_enabled: bool = True,
        notifications_enabled: bool = True,
    ):
        self.restaurant = restaurant
        self.requests: List[ServiceRequestWithDetails] = list(initial_requests)
        self.fetch_details = fetch_details
        self.mark_done = mark_done
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock
        self.highlight_seconds = (
            settings.new_request_highlight_seconds if highlight_seconds is None else highlight_seconds
        )
        self.sound_enabled = sound_enabled
        self.notifications_enabled = notifications_enabled

        self.loading: Dict[int, bool] = {}
        self.last_error: Optional[str] = None
        self._new_until: Dict[int, datetime] = {}

    @property
    def request_ids(self) -> List[int]:
        return [r.id for r in self.requests]

    def _remove(self, request_id: int) -> None:
        self.requests = [r for r in self.requests if r.id != request_id]
        self._new_until.pop(request_id, None)

    async def handle_event(self, event: ChangeEvent) -> None:
        request_id = event.record_id
        if request_id is None:
            return

        if event.kind == ChangeKind.UPDATE:
            if event.record.get("status") == ServiceRequestStatus.DONE.value:
                self._remove(request_id)
            return

        if event.kind != ChangeKind.INSERT or request_id in self.request_ids:
            return

        details = await self.fetch_details(request_id)
        # Also re-check ids: the same insert may have arrived during the fetch
        if details is None or details.id in self.request_ids:
            return
        if details.restaurant_id != self.restaurant.id:
            return

        self._announce(details)
        self.requests.insert(0, details)
        self._new_until[details.id] = self.clock.now() + timedelta(seconds=self.highlight_seconds)

    def _announce(self, details: ServiceRequestWithDetails) -> None:
        if self.sound_enabled:
            self.notifier.play_tone()
        if self.notifications_enabled:
            label = request_type_info(details.type)["label"]
            self.notifier.notify(
                f"New {label} Request",
                f"Table {details.table_number} - {format_relative_time(details.created_at, self.clock.now())}",
            )

    async def consume(self, queue: asyncio.Queue) -> None:
        """Apply queued change events until a None sentinel arrives."""
        while True:
            event = await queue.get()
            if event is None:
                break
            await self.handle_event(event)

    async def mark_as_done(self, request_id: int) -> MutationResult:
        self.loading[request_id] = True
        try:
            result = await self.mark_done(request_id)
        finally:
            self.loading[request_id] = False

        if result.success:
            self._remove(request_id)
            self.last_error = None
        else:
            self.last_error = result.error or "Failed to mark request as done"
            logger.warning(f"Could not mark request {request_id} as done: {self.last_error}")
        return result

    def is_new(self, request_id: int) -> bool:
        expires_at = self._new_until.get(request_id)
        if expires_at is None:
            return False
        if self.clock.now() >= expires_at:
            del self._new_until[request_id]
            return False
        return True

    def is_urgent(self, request: ServiceRequestWithDetails) -> bool:
        """Waiting longer than five minutes."""
        return self.clock.now() - as_utc(request.created_at) > URGENT_AFTER

    def rows(self) -> List[Dict[str, Any]]:
        """Display rows for the request cards."""
        now = self.clock.now()
        return [
            {
                "request": r,
                "type_info": request_type_info(r.type),
                "relative_time": format_relative_time(r.created_at, now),
                "is_new": self.is_new(r.id),
                "is_urgent": self.is_urgent(r),
                "is_loading": self.loading.get(r.id, False),
            }
            for r in self.requests
        ]


def service_callbacks(service):
    """Adapt a ServiceRequestService into (fetch_details, mark_done) coroutines."""

    async def fetch_details(request_id: int) -> Optional[ServiceRequestWithDetails]:
        return await run_in_threadpool(service.get_with_details, request_id)

    async def mark_done(request_id: int) -> MutationResult:
        return await run_in_threadpool(service.update_status, request_id, ServiceRequestStatus.DONE)

    return fetch_details, mark_done
