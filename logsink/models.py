"""Inbound log record and route descriptor models."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogRecord:
    container: str        # originating entity name
    labels: dict = field(default_factory=dict)
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "stdout"
    data: Any = ""        # text line, or a dict/list for structured payloads


@dataclass(frozen=True)
class Route:
    address: str = ""
    options: dict = field(default_factory=dict)
    adapter: str = "file"


def _parse_time(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    try:
        # fromisoformat does not accept a bare "Z" before 3.11
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def record_from_dict(d) -> LogRecord | None:
    """Build a LogRecord from a decoded JSON object.

    Accepts ``time`` or ``timestamp`` for the time and ``data`` or ``line`` for
    the payload. Returns None if the input is not usable.
    """
    if not isinstance(d, dict):
        logger.debug("Skipping non-object record: %r", d)
        return None

    raw_time = d.get("time", d.get("timestamp"))
    if raw_time is None:
        ts = datetime.now(timezone.utc)
    else:
        ts = _parse_time(raw_time)
        if ts is None:
            logger.debug("Skipping record with bad time: %r", raw_time)
            return None

    labels = d.get("labels") or {}
    return LogRecord(
        container=str(d.get("container", "")),
        labels=labels,
        time=ts,
        source=str(d.get("source", "stdout")),
        data=d.get("data", d.get("line", "")),
    )
