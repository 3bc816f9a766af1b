"""Structured JSON logging helpers for booking workflow events."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON with the booking workflow fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "workflow_step": getattr(record, "workflow_step", "unknown"),
            "patient_name": mask_patient_name(getattr(record, "patient_name", "")),
            "request_id": getattr(record, "request_id", None),
            "status": getattr(record, "status", record.levelname.lower()),
        }

        error_code = getattr(record, "error_code", None)
        error_message = getattr(record, "error_message", None)
        if error_code is not None:
            payload["error_code"] = error_code
        if error_message is not None:
            payload["error_message"] = error_message

        message = record.getMessage()
        if message:
            payload["message"] = message

        return json.dumps(payload, ensure_ascii=False)


def mask_patient_name(name: str) -> str:
    """Keep the initial of each name part and star out the rest.

    Keeping the initials lets operators line up the events of one booking
    attempt in the logs without the logs holding patient identity.
    """
    if not name:
        return ""
    return " ".join(_mask_part(part) for part in name.split())


def _mask_part(part: str) -> str:
    if len(part) <= 1:
        return "*"
    return f"{part[0]}{'*' * (len(part) - 1)}"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure process-wide plain-text logging for server and CLI runs."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_structured_logger(name: str = "booking_bridge.workflow") -> logging.Logger:
    """Return a logger configured to emit JSON records."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_booking_event(
    logger: logging.Logger,
    *,
    workflow_step: str,
    patient_name: str,
    request_id: str,
    status: str,
    message: str = "",
    error_code: str | None = None,
    error_message: str | None = None,
    level: int = logging.INFO,
) -> None:
    """Emit a structured booking workflow event."""
    extra: dict[str, Any] = {
        "workflow_step": workflow_step,
        "patient_name": patient_name,
        "request_id": request_id,
        "status": status,
        "error_code": error_code,
        "error_message": error_message,
    }
    logger.log(level, message, extra=extra)
