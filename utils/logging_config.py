"""
Structured JSON Logging Configuration for the verification gateway.

Provides JSON-formatted logs with:
- timestamp (ISO 8601)
- level
- message
- logger name
- Extra context (request_id, vendor, operation, latency_ms, etc.)
"""
import asyncio
import functools
import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict

EXTRA_FIELDS = [
    "request_id",
    "vendor",
    "operation",
    "endpoint",
    "latency_ms",
    "status_code",
    "method",
    "path",
    "transaction_id",
]


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs JSON-structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info(..., extra={...})
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, use JSON formatting; else use plain text
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def log_execution_time(func):
    """
    Decorator to log function execution time.

    Logs at INFO level with function name and duration in milliseconds.
    Works with both synchronous and asynchronous functions.
    """
    logger = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{func.__name__} completed in {elapsed_ms:.2f}ms",
                extra={"latency_ms": round(elapsed_ms, 2)}
            )

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{func.__name__} completed in {elapsed_ms:.2f}ms",
                extra={"latency_ms": round(elapsed_ms, 2)}
            )

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper
