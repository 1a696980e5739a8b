"""Rotation and retention decisions. No filesystem access here."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FileEntry:
    name: str
    mtime: float
    is_regular: bool = True


def should_rotate(current_size: int, max_size: int) -> bool:
    """Rotate once the accumulated size strictly exceeds the threshold."""
    return current_size > max_size


def format_rfc3339(when: datetime) -> str:
    ts = when.isoformat(timespec="seconds")
    if ts.endswith("+00:00"):
        ts = ts[:-6] + "Z"
    return ts


def rotated_filename(basename: str, when: datetime) -> str:
    """Archive name for a file rotated at ``when``: basename.<RFC3339>."""
    return f"{basename}.{format_rfc3339(when)}"


def select_prune_candidates(entries, basename: str, keep_count: int) -> list[str]:
    """Return names to delete, oldest first.

    Every regular file whose name contains basename is a match, including the
    live file. The keep_count most recently modified matches survive.
    """
    matches = [e for e in entries if e.is_regular and basename in e.name]
    if len(matches) <= keep_count:
        return []
    # on mtime ties the live file sorts last, archives by name
    matches.sort(key=lambda e: (e.mtime, e.name == basename, e.name))
    return [e.name for e in matches[:len(matches) - keep_count]]
