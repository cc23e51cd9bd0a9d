"""
Structured logging configuration for cargo-whereis.

Standard output carries the resolved location and nothing else, so every
logger here writes to stderr. Events are logged as an event name plus keyword
fields; with JSON logging enabled each record becomes one JSON object.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .error_handling import QUIET_LEVEL, get_error_handler

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventFormatter(logging.Formatter):
    """Plain-text formatter that appends event fields as key=value pairs."""

    def __init__(self, fmt: str = "%(levelname)s %(name)s: %(message)s"):
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        ]
        return f"{base} {' '.join(fields)}" if fields else base


class EventLogger:
    """Logs named events with keyword context."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self._setup_logger()

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(EventFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        self.logger.log(level, event_type, extra=kwargs)

    def info(self, event_type: str, **kwargs) -> None:
        self._log(logging.INFO, event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log(logging.DEBUG, event_type, **kwargs)


_metadata_logger = EventLogger("cargo_whereis.metadata")
_resolver_logger = EventLogger("cargo_whereis.resolver")
_render_logger = EventLogger("cargo_whereis.render")

_ALL_LOGGERS = (_metadata_logger, _resolver_logger, _render_logger)


def log_metadata_loaded(
    package_count: int, workspace_member_count: int, duration_ms: int
) -> None:
    """Log a successful `cargo metadata` run."""
    _metadata_logger.debug(
        "metadata_loaded",
        package_count=package_count,
        workspace_member_count=workspace_member_count,
        duration_ms=duration_ms,
    )


def log_crate_resolved(crate_name: str, kind: str, location: str) -> None:
    """Log where a crate was found."""
    _resolver_logger.info(
        "crate_resolved", crate=crate_name, kind=kind, location=location
    )


def log_render_fallback(location: str) -> None:
    """Log that a remote location was rendered as a URL because of --force."""
    _render_logger.info("render_fallback", location=location)


def configure_logging(
    log_level: str = "WARNING",
    enable_json: bool = False,
    log_format: Optional[str] = None,
) -> None:
    """Apply level and output format to every cargo-whereis logger."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter: logging.Formatter
    if enable_json:
        formatter = StructuredFormatter()
    elif log_format:
        formatter = EventFormatter(log_format)
    else:
        formatter = EventFormatter()

    for event_logger in _ALL_LOGGERS:
        event_logger.logger.setLevel(level)
        for handler in event_logger.logger.handlers:
            handler.setFormatter(formatter)

    get_error_handler().set_level(level if level <= logging.INFO else QUIET_LEVEL)
