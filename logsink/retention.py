"""Count-based retention: delete the oldest files for a sink."""

import logging
import os

from logsink.policy import FileEntry, select_prune_candidates

logger = logging.getLogger(__name__)


def list_entries(log_dir: str) -> list[FileEntry]:
    """Snapshot the directory. Raises OSError if it cannot be listed."""
    entries = []
    with os.scandir(log_dir) as it:
        for entry in it:
            try:
                is_regular = entry.is_file(follow_symlinks=False)
                mtime = entry.stat(follow_symlinks=False).st_mtime
            except OSError as e:
                # removed between listing and stat
                logger.debug("Skipping %s: %s", entry.name, e)
                continue
            entries.append(FileEntry(entry.name, mtime, is_regular))
    return entries


def prune_logs(log_dir: str, basename: str, keep_count: int) -> list[str]:
    """Delete all but the keep_count most recently modified matching files.

    Returns deleted filenames. A failed delete is logged and skipped.
    """
    candidates = select_prune_candidates(list_entries(log_dir), basename, keep_count)
    deleted = []
    for name in candidates:
        try:
            os.remove(os.path.join(log_dir, name))
        except OSError as e:
            logger.error("Failed to prune %s: %s", name, e)
            continue
        deleted.append(name)
    if deleted:
        logger.info("Pruned %d file(s): %s", len(deleted), ", ".join(deleted))
    return deleted
