"""
Error reporting for cargo-whereis.

Records failures as structured ErrorContext entries, logs them through a
logger that redacts credentials, and keeps per-category counts so a caller
(or a test) can see what went wrong without parsing log output.
"""

import logging
import re
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Error contexts are diagnostics; they stay off the error stream unless
# logging is lowered to INFO or below (e.g. by --verbose).
QUIET_LEVEL = logging.CRITICAL + 1


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Where in the lookup pipeline an error happened."""

    METADATA = "METADATA"
    RESOLUTION = "RESOLUTION"
    RENDERING = "RENDERING"
    FILESYSTEM = "FILESYSTEM"
    CONFIGURATION = "CONFIGURATION"


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    traceback_info: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)


# Registry and git URLs in cargo's output can embed tokens.
_SENSITIVE_PATTERNS = [
    (r"(https?://[^@\s/]+:)[^@\s/]+@", r"\1[REDACTED]@"),
    (r'token["\s]*[:=]["\s]*([a-zA-Z0-9_\-+=/.]{8,})', 'token="[REDACTED]"'),
    (r"Authorization:\s*\w+\s+([^\s]+)", "Authorization: [REDACTED]"),
]


class SecureLogger:
    """Logger wrapper that sanitizes sensitive information."""

    def __init__(self, name: str, level: int = logging.WARNING):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)
            self.logger.propagate = False

    @staticmethod
    def sanitize(message: str) -> str:
        sanitized = message
        for pattern, replacement in _SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
        return sanitized

    def _sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = {}
        for key, value in data.items():
            if isinstance(value, dict):
                sanitized[key] = self._sanitize_dict(value)
            elif isinstance(value, str):
                sanitized[key] = self.sanitize(value)
            else:
                sanitized[key] = value
        return sanitized

    def log_error_context(self, context: ErrorContext) -> None:
        """
        Log error context with appropriate level.

        Args:
            context: Error context to log
        """
        log_data: Dict[str, Any] = {
            "category": context.category.value,
            "module": context.module,
            "function": context.function,
            "details": self._sanitize_dict(context.details),
        }
        if context.exception:
            log_data["exception"] = type(context.exception).__name__
        if context.suggestions:
            log_data["suggestions"] = context.suggestions

        log_message = f"{self.sanitize(context.message)} | {log_data}"
        self.logger.log(getattr(logging, context.level.value), log_message)


class ErrorHandler:
    """
    Centralized error handler.

    Every failure the resolver or renderer raises is reported here first, so
    the log carries the category and suggested fixes while the exception
    itself carries only the user-facing message.
    """

    def __init__(
        self,
        logger_name: str = "cargo_whereis.errors",
        log_level: int = QUIET_LEVEL,
    ):
        self.logger = SecureLogger(logger_name, log_level)
        self.error_stats: Dict[str, int] = {}
        self.history: List[ErrorContext] = []

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """
        Record and log an error.

        Args:
            level: Error severity level
            category: Error category
            message: Error message
            module: Module where error occurred
            function: Function where error occurred
            exception: Optional exception object
            details: Additional error details
            suggestions: Suggested fixes

        Returns:
            ErrorContext: The created error context
        """
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            traceback_info=traceback.format_exc() if exception else None,
            suggestions=suggestions or [],
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1
        self.history.append(context)

        self.logger.log_error_context(context)
        return context

    def warning(self, category: ErrorCategory, message: str, module: str, function: str, **kwargs) -> ErrorContext:
        """Handle warning level error."""
        return self.handle_error(ErrorLevel.WARNING, category, message, module, function, **kwargs)

    def error(self, category: ErrorCategory, message: str, module: str, function: str, **kwargs) -> ErrorContext:
        """Handle error level error."""
        return self.handle_error(ErrorLevel.ERROR, category, message, module, function, **kwargs)

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_stats.copy()

    def reset_stats(self) -> None:
        """Reset error statistics and history."""
        self.error_stats.clear()
        self.history.clear()

    def set_level(self, level: int) -> None:
        self.logger.logger.setLevel(level)


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance.

    Returns:
        ErrorHandler: Global error handler
    """
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def log_metadata_error(
    message: str,
    function: str,
    manifest_path: Optional[str] = None,
    exception: Optional[Exception] = None,
) -> None:
    """Convenience function for logging `cargo metadata` failures."""
    details = {}
    if manifest_path is not None:
        details["manifest_path"] = manifest_path

    get_error_handler().error(
        ErrorCategory.METADATA,
        message,
        "metadata",
        function,
        details=details,
        exception=exception,
        suggestions=[
            "Check that cargo is installed and on PATH (or set CARGO_WHEREIS_CARGO)",
            "Run `cargo metadata --format-version 1` in the workspace to see the full error",
            "Pass --manifest-path if not running inside the workspace",
        ],
    )


def log_resolution_error(
    message: str,
    function: str,
    crate_name: str,
    exception: Optional[Exception] = None,
) -> None:
    """Convenience function for logging a crate that could not be located."""
    get_error_handler().warning(
        ErrorCategory.RESOLUTION,
        message,
        "resolver",
        function,
        details={"crate": crate_name},
        exception=exception,
        suggestions=[
            "Use the crate's canonical name, not a dependency alias",
            "Check `cargo tree` to confirm the crate is part of the build",
        ],
    )
