"""
Store Event Logger

DESIGN DECISION: Every state change in the store is logged.
This provides:
1. Traceability of what the user did in a session
2. Debugging capability when local and remote data disagree

The logger is just another store observer: it subscribes to the
store like persistence and remote sync do, and never raises.
"""

from typing import Optional

import structlog

from daily_dime.models.events import StoreEvent, StoreEventType


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


# Session-level changes are logged at debug; record edits at info
_DEBUG_EVENTS = {StoreEventType.USER_CHANGED, StoreEventType.DATA_REPLACED}


class StoreEventLogger:
    """
    Logs store events to the structured local log.

    Usage:
        event_logger = StoreEventLogger()
        unsubscribe = store.subscribe(event_logger)
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("daily_dime.store.events")

    def __call__(self, event: StoreEvent) -> None:
        self.log(event)

    def log(self, event: StoreEvent) -> None:
        log_dict = event.to_log_dict()
        if event.event_type in _DEBUG_EVENTS:
            self._logger.debug("store_event", **log_dict)
        else:
            self._logger.info("store_event", **log_dict)
