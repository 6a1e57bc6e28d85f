# Services module

from serviceqr.services.theme_engine import (
    ResolvedTheme,
    PageTheme,
    DEFAULT_THEME,
    resolve_theme,
    build_page_theme,
)
from serviceqr.services.realtime import (
    ChangeEvent,
    ChangeFeed,
    ChangeKind,
    change_feed,
)
from serviceqr.services.service_request_service import ServiceRequestService
from serviceqr.services.feedback_service import FeedbackService
from serviceqr.services.analytics_service import (
    compute_metrics,
    get_analytics_metrics,
)

__all__ = [
    # Theme
    "ResolvedTheme",
    "PageTheme",
    "DEFAULT_THEME",
    "resolve_theme",
    "build_page_theme",
    # Real-time
    "ChangeEvent",
    "ChangeFeed",
    "ChangeKind",
    "change_feed",
    # Data access
    "ServiceRequestService",
    "FeedbackService",
    # Analytics
    "compute_metrics",
    "get_analytics_metrics",
]
