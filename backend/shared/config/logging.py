"""
Logging for the POS services.

Every logger returned by get_logger() accepts keyword context:

    logger.info("Order paid", order_id=order.id, total_cents=240)

Production writes one JSON object per line; other environments get a
colored single-line format. The request id set by CorrelationIdMiddleware
is attached to every record.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "redis": logging.WARNING,
}


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "context", None) or {}


def _record_request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    return request_id if request_id and request_id != "-" else None


class StructuredFormatter(logging.Formatter):
    """One JSON document per record, for the log collector."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        request_id = _record_request_id(record)
        if request_id:
            entry["request_id"] = request_id
        context = _record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["at"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(entry, default=str, ensure_ascii=False)


class DevelopmentFormatter(logging.Formatter):
    """Colored console output."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{color}{clock} {record.levelname:<8}{self.RESET}"]

        request_id = _record_request_id(record)
        if request_id:
            parts.append(f"{self.DIM}{request_id[:8]}{self.RESET}")

        parts.append(f"{record.name}: {record.getMessage()}")

        context = _record_context(record)
        if context:
            parts.append(" ".join(f"{key}={value}" for key, value in context.items()))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class StructuredLogger(logging.Logger):
    """Logger whose level methods take arbitrary keyword context."""

    def _log(
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **context: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["context"] = context
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel,
        )


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """
    Install the stdout handler on the root logger.
    Called once from each service's lifespan.
    """
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    if settings.environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> StructuredLogger:
    """
    Usage:
        logger = get_logger(__name__)
        logger.warning("Stock check failed", product_id="bread", available=2)
        logger.error("Queue notification failed", topic="queue", exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore[return-value]


rest_api_logger = get_logger("rest_api")
orders_logger = get_logger("rest_api.orders")
ws_gateway_logger = get_logger("ws_gateway")
