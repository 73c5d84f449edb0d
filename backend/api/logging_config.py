"""
Structured logging for the game server.

Development gets colored console output, production one JSON object per line.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog


def _level_for(environment: str, override: Optional[str] = None) -> int:
    if override:
        return logging.getLevelName(override.upper())
    return logging.INFO if environment == "production" else logging.DEBUG


def configure_logging(environment: str = "development", level: Optional[str] = None):
    """Configure stdlib logging and structlog for ``environment``.

    ``level`` (e.g. ``"WARNING"``) overrides the environment default.
    """
    log_level = _level_for(environment, level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if environment == "production"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            # connection/session ids bound by the websocket endpoint
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger()


def get_logger(name: str = None):
    """Get a configured logger instance."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def bind_connection(connection_id: str, room_id: Optional[str] = None):
    """Attach a connection (and its room, once seated) to every log line of this task."""
    structlog.contextvars.bind_contextvars(connection_id=connection_id)
    if room_id:
        structlog.contextvars.bind_contextvars(room_id=room_id)


class ActivityLogger:
    """Audit trail of socket lifecycle events and inbound game messages."""

    def __init__(self):
        self.logger = get_logger("activity")

    def _log(self, event: str, **fields: Any):
        self.logger.info(event, timestamp=datetime.now(timezone.utc).isoformat(), **fields)

    def log_game_message(
        self,
        session_id: str,
        connection_id: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self._log("game_message", session_id=session_id, connection_id=connection_id,
                  message=message, details=details or {})

    def log_websocket_event(
        self,
        event_type: str,
        connection_id: str,
        session_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self._log("websocket_event", event_type=event_type, connection_id=connection_id,
                  session_id=session_id, details=details or {})


# Global activity logger instance
activity_logger = ActivityLogger()
