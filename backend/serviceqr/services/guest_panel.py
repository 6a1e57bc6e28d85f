"""
Guest request panel state
The three request buttons on a table page and their loading/success/error flags
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional

from starlette.concurrency import run_in_threadpool

from serviceqr.core.clock import Clock, system_clock
from serviceqr.core.config import settings
from serviceqr.core.responses import MutationResult
from serviceqr.models import ServiceRequestType

logger = logging.getLogger(__name__)

Submitter = Callable[[str], Awaitable[MutationResult]]

DEFAULT_ERROR = "Failed to create request"


@dataclass
class ButtonState:
    is_loading: bool = False
    is_success: bool = False
    error: Optional[str] = None
    expires_at: Optional[datetime] = None


class GuestRequestPanel:
    """
    Per-type button state for one table.

    A success or error flag stays visible for ``flash_seconds`` and is then
    cleared; expiry is checked against the clock whenever state is read.
    Taps are not de-duplicated.
    """

    def __init__(self, submit: Submitter, clock: Clock = system_clock, flash_seconds: Optional[int] = None):
        self.submit = submit
        self.clock = clock
        self.flash_seconds = settings.success_flash_seconds if flash_seconds is None else flash_seconds
        self._states: Dict[str, ButtonState] = {t.value: ButtonState() for t in ServiceRequestType}

    def state(self, request_type) -> ButtonState:
        """Current state of one button, with expired flags cleared."""
        key = ServiceRequestType(request_type).value
        current = self._states[key]
        if current.expires_at is not None and self.clock.now() >= current.expires_at:
            current = ButtonState(is_loading=current.is_loading)
            self._states[key] = current
        return replace(current)

    def states(self) -> Dict[str, ButtonState]:
        return {key: self.state(key) for key in self._states}

    async def request(self, request_type) -> MutationResult:
        key = ServiceRequestType(request_type).value
        self._states[key] = ButtonState(is_loading=True)

        try:
            result = await self.submit(key)
        except Exception:
            self._states[key] = ButtonState()
            raise

        expires_at = self.clock.now() + timedelta(seconds=self.flash_seconds)
        if result.success:
            self._states[key] = ButtonState(is_success=True, expires_at=expires_at)
        else:
            error = result.error or DEFAULT_ERROR
            logger.info(f"Guest {key} request failed: {error}")
            self._states[key] = ButtonState(error=error, expires_at=expires_at)
        return result


def service_submitter(service, table_id: int) -> Submitter:
    """Bind a ServiceRequestService to one table as a panel submitter."""

    async def submit(request_type: str) -> MutationResult:
        return await run_in_threadpool(service.create_request, table_id, request_type)

    return submit
