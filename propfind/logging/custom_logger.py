"""
Custom logger with domain levels: warning, info, request, error, slow, great.

Each level renders through its own formatter; keyword context passed to a
call is appended to the message and attached to the record as ``custom_data``.
"""
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any

from propfind.logging.log_levels import LogLevel
from propfind.logging.formatters import get_formatter_for_level

# Keys rendered by a level formatter instead of the trailing context block
_FORMATTED_KEYS = {"method", "path", "status_code", "duration", "threshold"}

_LEVEL_MAP = {
    LogLevel.WARNING: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.REQUEST: logging.INFO,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SLOW: logging.WARNING,
    LogLevel.GREAT: logging.INFO,
}


class CustomLogger:
    """
    Usage:
        logger = CustomLogger("propfind.services.receipts")
        logger.info("Receipt saved", receipt_id="PF-...")
        logger.error("Notification dispatch failed", request_id="...")
        logger.slow("Slow request", duration=2.4)
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: bool = False,
        **context: Any
    ) -> None:
        log_data = {
            "level": level.value,
            "module": self.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **context
        }
        if exc_info:
            log_data["traceback"] = self._get_clean_traceback()

        extra_context = {k: v for k, v in context.items() if k not in _FORMATTED_KEYS}
        rendered_context = ""
        if extra_context:
            rendered_context = " | " + " ".join(f"{k}={v}" for k, v in extra_context.items())

        record = logging.LogRecord(
            name=self.name,
            level=_LEVEL_MAP[level],
            pathname="",
            lineno=0,
            msg=message,
            args=(),
            exc_info=None
        )
        record.__dict__.update(context)
        record.context = rendered_context
        formatted_message = get_formatter_for_level(level).format(record)

        self.logger.log(
            _LEVEL_MAP[level],
            formatted_message,
            extra={"custom_data": log_data},
            exc_info=exc_info
        )

    def _get_clean_traceback(self) -> str:
        """Current traceback without blank lines, duplicates or site-packages frames."""
        seen = set()
        clean_lines = []
        for line in traceback.format_exc().split('\n'):
            if line.strip() and line not in seen and 'site-packages' not in line:
                seen.add(line)
                clean_lines.append(line)
        return '\n'.join(clean_lines)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, **context)

    def request(
        self,
        message: str,
        method: str,
        path: str,
        status_code: int,
        duration: float,
        **context: Any
    ) -> None:
        """
        HTTP request log, e.g.:

            logger.request("API request", method="POST",
                           path="/api/auth/login", status_code=200, duration=0.152)
        """
        self._log(
            LogLevel.REQUEST,
            message,
            method=method,
            path=path,
            status_code=status_code,
            duration=duration,
            **context
        )

    def error(
        self,
        message: str,
        exc_info: bool = True,
        **context: Any
    ) -> None:
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **context)

    def slow(
        self,
        message: str,
        duration: float,
        threshold: float = 1.0,
        **context: Any
    ) -> None:
        self._log(
            LogLevel.SLOW,
            message,
            duration=duration,
            threshold=threshold,
            **context
        )

    def great(self, message: str, **context: Any) -> None:
        """Positive milestones (a request approved, a user registered)."""
        self._log(LogLevel.GREAT, message, **context)


_loggers: Dict[str, CustomLogger] = {}


def get_logger(name: str) -> CustomLogger:
    """
    Usage:
        from propfind.logging import get_logger
        logger = get_logger(__name__)
    """
    if name not in _loggers:
        _loggers[name] = CustomLogger(name)
    return _loggers[name]
