"""Owns the single open output file for a sink: create, write, rotate."""

import logging
import os
from datetime import datetime

from logsink.policy import rotated_filename

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class LogFileManager:
    """One open handle at ``log_dir/filename``, plus a byte counter.

    ``size`` is the number of bytes successfully written to the current file
    since it was created. Rotation never changes ``path``; it renames the
    previous contents aside and creates a fresh file in its place.
    """

    def __init__(self, log_dir: str, filename: str, time_func=None):
        self._log_dir = log_dir
        self._filename = filename
        self._path = os.path.join(log_dir, filename)
        self._time_func = time_func or _local_now
        self._file = None
        self.size = 0
        self.rotations = 0

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def exists(self) -> bool:
        return os.path.exists(self._path)

    def _create(self, mode="wb"):
        os.makedirs(self._log_dir, exist_ok=True)
        self._file = open(self._path, mode)
        self.size = 0

    def ensure_open(self):
        """Create the file if no handle is open or the file vanished from disk."""
        if self._file is not None and self.exists():
            return
        if self._file is not None:
            logger.warning("Log file %s was removed, recreating", self._path)
            try:
                self._file.close()
            except OSError as e:
                logger.debug("Closing stale handle failed: %s", e)
            self._file = None
        # append: a file left behind by a failed rotation is not truncated
        self._create("ab")
        self.size = os.fstat(self._file.fileno()).st_size

    def write(self, data: bytes) -> int:
        """Append data to the open file. Raises OSError on failure."""
        if self._file is None:
            raise OSError(f"log file {self._path} is not open")
        n = self._file.write(data)
        self._file.flush()
        self.size += n
        return n

    def _archive_path(self) -> str:
        target = os.path.join(self._log_dir, rotated_filename(self._filename, self._time_func()))
        candidate, n = target, 0
        while os.path.exists(candidate):
            n += 1
            candidate = f"{target}.{n}"
        return candidate

    def rotate(self) -> str | None:
        """Close, rename aside, create fresh. Returns the archive path, if any.

        Steps run strictly in that order; the first failure raises OSError
        and the remaining steps are skipped.
        """
        if self._file is not None:
            fp, self._file = self._file, None
            fp.close()

        archived = None
        if self.exists():
            archived = self._archive_path()
            os.rename(self._path, archived)
            logger.info("Renamed existing log file to %s", archived)

        self._create()
        self.rotations += 1
        logger.info("Created new log file %s", self._path)
        return archived

    def close(self):
        if self._file is not None:
            fp, self._file = self._file, None
            fp.close()
