"""
Structured Logging

One JSON object per line on stdout. Every record carries the request id
of the HTTP request that produced it (when there is one); domain events
(booking created, sync completed, ...) also carry an `event` name and
the booking / integration they concern, so a log search on
`integration_id` shows the full sync history of a feed.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar

_request_id: ContextVar[str] = ContextVar("request_id", default="")

# Promoted to top-level keys of the JSON line when set on a record
CONTEXT_FIELDS = ("event", "booking_id", "integration_id", "apartment_type", "duration_ms")

NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "multipart")


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        request_id = _request_id.get()
        if request_id:
            entry["request_id"] = request_id

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        fields = getattr(record, "fields", None)
        if fields:
            entry["fields"] = fields

        if record.levelno >= logging.WARNING:
            entry["at"] = f"{record.module}.{record.funcName}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """
    Plain logger calls (info, warning, ...) work as usual. The named
    helpers below emit the domain events the engine reports on.
    """

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {}).update(self.extra)
        return msg, kwargs

    def event(self, level: int, name: str, msg: str, **fields):
        extra: Dict[str, Any] = {"event": name}
        for key in CONTEXT_FIELDS:
            if key in fields:
                extra[key] = fields.pop(key)
        if fields:
            extra["fields"] = fields
        self.log(level, msg, extra=extra)

    def booking_created(self, booking_id: str, apartment_type: str, status: str, total_price: Any):
        self.event(
            logging.INFO, "booking_created",
            f"Booking {booking_id} created for {apartment_type} ({status}, {total_price})",
            booking_id=booking_id,
            apartment_type=apartment_type,
            status=status,
            total_price=total_price
        )

    def booking_status_changed(self, booking_id: str, old_status: str, new_status: str):
        self.event(
            logging.INFO, "booking_status_changed",
            f"Booking {booking_id}: {old_status} -> {new_status}",
            booking_id=booking_id,
            old_status=old_status,
            new_status=new_status
        )

    def booking_rescheduled(self, booking_id: str, old_check_in: Any, new_check_in: Any, nights: int):
        self.event(
            logging.INFO, "booking_rescheduled",
            f"Booking {booking_id} moved {old_check_in} -> {new_check_in} ({nights} nights)",
            booking_id=booking_id,
            old_check_in=old_check_in,
            new_check_in=new_check_in,
            nights=nights
        )

    def sync_completed(self, integration_id: str, added: int, removed: int, updated: int, duration_ms: float):
        self.event(
            logging.INFO, "sync_completed",
            f"Integration {integration_id} synced: +{added} -{removed} ~{updated}",
            integration_id=integration_id,
            duration_ms=duration_ms,
            added=added,
            removed=removed,
            updated=updated
        )

    def sync_failed(self, integration_id: str, error: str, duration_ms: float):
        self.event(
            logging.WARNING, "sync_failed",
            f"Integration {integration_id} sync failed: {error}",
            integration_id=integration_id,
            duration_ms=duration_ms
        )

    def api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self.event(
            level, "api_request",
            f"{method} {path} {status_code}",
            duration_ms=duration_ms,
            method=method,
            path=path,
            status_code=status_code
        )


def _build_handler(level: int, json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
    return handler


def setup_logging(level: str = "INFO", json_format: bool = True, include_uvicorn: bool = True) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        json_format: JSON lines (production) or plain text (local runs)
        include_uvicorn: route uvicorn's own loggers through the same handler
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    handler = _build_handler(log_level, json_format)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers = [handler]

    if include_uvicorn:
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            uvicorn_logger = logging.getLogger(name)
            uvicorn_logger.handlers = [handler]
            uvicorn_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, **context) -> StructuredLogger:
    """Structured logger for a module; `context` is added to every record"""
    return StructuredLogger(logging.getLogger(name), context)


def set_request_context(request_id: Optional[str]):
    _request_id.set(request_id or "")


def clear_request_context():
    _request_id.set("")
