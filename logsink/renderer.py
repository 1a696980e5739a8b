"""Render log records into newline-delimited JSON lines."""

import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

STRUCTURED = "structured"
ESCAPED = "escaped"


class RenderError(Exception):
    """Raised when a record cannot be rendered at all."""


def to_json(value) -> str:
    """JSON-encode value, falling back to ``null`` on failure."""
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as e:
        logger.warning("error marshalling to JSON: %s", e)
        return "null"


def format_timestamp(dt: datetime) -> str:
    """Format as YYYY-MM-DDTHH:MM:SS followed by Z (UTC) or +hhmm."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    base = dt.strftime("%Y-%m-%dT%H:%M:%S")
    if not dt.utcoffset():
        return base + "Z"
    return base + dt.strftime("%z")


class Renderer:
    """Turns one record into one JSON line.

    The escaped shape always encodes the payload as a JSON string. The
    structured shape embeds a text payload verbatim so nested JSON stays
    parseable downstream.
    """

    def __init__(self, structured: bool = False):
        self._structured = structured

    @classmethod
    def from_config(cls, config) -> "Renderer":
        return cls(structured=config.structured_data)

    @property
    def shape(self) -> str:
        return STRUCTURED if self._structured else ESCAPED

    def _line_field(self, data) -> str:
        if not self._structured:
            if data is None:
                data = ""
            elif not isinstance(data, str):
                data = to_json(data)
                if data == "null":
                    return "null"
            return to_json(data)
        if data is None or data == "":
            return "null"
        if isinstance(data, str):
            return data
        return to_json(data)

    def render(self, record) -> bytes:
        try:
            ts = record.time
            container = record.container
            source = record.source
        except AttributeError as e:
            raise RenderError(f"unusable record: {e}") from e
        if not isinstance(ts, datetime):
            raise RenderError(f"record time is not a datetime: {ts!r}")

        line = (
            '{"container": ' + to_json(str(container))
            + ', "labels": ' + to_json(getattr(record, "labels", None))
            + ', "timestamp": "' + format_timestamp(ts) + '"'
            + ', "source": ' + to_json(str(source))
            + ', "line": ' + self._line_field(getattr(record, "data", None))
            + "}\n"
        )
        # a verbatim structured payload may still carry lone surrogates
        return line.encode("utf-8", errors="backslashreplace")
