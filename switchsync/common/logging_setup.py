"""
Structured Logging Setup

Consistent logging configuration across all services.
Uses JSON format for structured logs by default.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

# LogRecord attributes that are not copied as extra fields
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "service",
    "message", "taskName",
))


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds service name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """
    Set up structured logging for a service.

    Args:
        service_name: Name of the service (e.g., "reconcile", "gateway.http")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True for production, False for dev)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"switchsync.{service_name}")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    Args:
        service_name: Name of the service

    Returns:
        Logger adapter with service name in all logs
    """
    log_level = os.environ.get("SWITCHSYNC_LOG_LEVEL", "INFO")
    json_format = os.environ.get("SWITCHSYNC_LOG_FORMAT", "json").lower() == "json"

    logger = setup_logging(service_name, log_level, json_format)
    return ServiceLoggerAdapter(logger, {"service": service_name})


def set_log_level(log_level: str) -> None:
    """Apply a level to every switchsync logger and its handlers"""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    for name in list(logging.Logger.manager.loggerDict):
        if name != "switchsync" and not name.startswith("switchsync."):
            continue
        logger = logging.getLogger(name)
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)


# Convenience loggers for common operations
def log_param_read(
    logger: logging.Logger,
    device_id: str,
    param: str,
    value: Any,
    success: bool = True,
) -> None:
    """Log a device parameter read"""
    if success:
        logger.debug(
            f"Read {device_id}.{param} = {value}",
            extra={"device": device_id, "param": param, "value": value},
        )
    else:
        logger.warning(
            f"Failed to read {device_id}.{param}",
            extra={"device": device_id, "param": param},
        )


def log_param_write(
    logger: logging.Logger,
    device_id: str,
    payload: dict[str, Any],
    success: bool = True,
) -> None:
    """Log a device parameter write"""
    if success:
        logger.info(
            f"Write {device_id} params={sorted(payload)}",
            extra={"device": device_id, "payload": payload},
        )
    else:
        logger.error(
            f"Failed to write {device_id} params={sorted(payload)}",
            extra={"device": device_id, "payload": payload},
        )


def log_reconcile_result(
    logger: logging.Logger,
    device_id: str,
    kind: str,
    change_count: int,
    execution_time_ms: float,
) -> None:
    """Log the outcome of one reconciliation"""
    log_method = logger.info if kind in ("already_converged", "applied") else logger.warning
    log_method(
        f"Reconcile {device_id}: {kind}, changes={change_count}, "
        f"exec={execution_time_ms:.0f}ms",
        extra={
            "device": device_id,
            "kind": kind,
            "change_count": change_count,
            "execution_time_ms": execution_time_ms,
        },
    )
