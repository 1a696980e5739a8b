"""FileSink: drains a record stream into a rotating set of JSONL files."""

import enum
import logging
import queue
from threading import Thread

from logsink.config import SinkConfig, config_from_route
from logsink.files import LogFileManager
from logsink.policy import should_rotate
from logsink.renderer import Renderer, RenderError
from logsink.retention import prune_logs

logger = logging.getLogger(__name__)

# Put on a sink queue by the producer to close the channel.
CLOSED = object()


class SinkState(enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class SinkStartupError(Exception):
    """The initial rotation failed, so the sink never started."""


class FileSink:
    """Single-owner consumer: render, write, account, rotate, prune.

    Only the thread calling stream() may touch the sink; there is no locking.
    """

    def __init__(self, config: SinkConfig, renderer: Renderer | None = None, time_func=None):
        self._config = config
        self._renderer = renderer or Renderer.from_config(config)
        self._files = LogFileManager(config.log_dir, config.filename, time_func=time_func)
        self.records_written = 0
        self.bytes_written = 0
        self.write_errors = 0
        self.render_errors = 0
        self.pruned_files = 0

        try:
            self._files.rotate()
        except OSError as e:
            self.state = SinkState.STOPPED
            raise SinkStartupError(f"initial rotation of {self._files.path} failed: {e}") from e
        self.state = SinkState.RUNNING

    @property
    def config(self) -> SinkConfig:
        return self._config

    @property
    def files(self) -> LogFileManager:
        return self._files

    @property
    def rotations(self) -> int:
        return self._files.rotations

    def handle(self, record) -> bool:
        """Process one record. Returns True if it reached the file."""
        if self.state is not SinkState.RUNNING:
            raise RuntimeError("sink is stopped")

        try:
            data = self._renderer.render(record)
        except RenderError as e:
            self.render_errors += 1
            logger.error("Dropping record that failed to render: %s", e)
            return False

        try:
            if self._config.check_log_file:
                self._files.ensure_open()
            n = self._files.write(data)
        except OSError as e:
            self.write_errors += 1
            logger.error("Write to %s failed: %s", self._files.path, e)
            return False

        self.records_written += 1
        self.bytes_written += n

        if should_rotate(self._files.size, self._config.max_file_size):
            self._rotate()
        return True

    def _rotate(self):
        try:
            archived = self._files.rotate()
        except OSError as e:
            logger.error("Rotation of %s failed: %s", self._files.path, e)
            return
        logger.info("Rotated %s -> %s", self._files.path, archived)

        if self._config.max_file_count is None:
            return
        try:
            deleted = prune_logs(self._config.log_dir, self._config.filename,
                                 self._config.max_file_count)
        except OSError as e:
            logger.error("Pruning %s failed: %s", self._config.log_dir, e)
            return
        self.pruned_files += len(deleted)

    def stream(self, records):
        """Drain records in order until the iterable is exhausted."""
        for record in records:
            self.handle(record)
        self.state = SinkState.STOPPED
        logger.info("Stream for %s closed after %d record(s)", self._files.path, self.records_written)

    def stats(self) -> dict:
        return {
            "records_written": self.records_written,
            "bytes_written": self.bytes_written,
            "write_errors": self.write_errors,
            "render_errors": self.render_errors,
            "rotations": self.rotations,
            "pruned_files": self.pruned_files,
            "current_size": self._files.size,
        }


def new_file_adapter(route, environ=None, renderer: Renderer | None = None) -> FileSink:
    """Build a FileSink from a route descriptor."""
    config = config_from_route(route, environ)
    logger.info(
        "File sink: path=%s, max_size=%d, max_count=%s, shape=%s, check_file=%s",
        config.path, config.max_file_size, config.max_file_count,
        "structured" if config.structured_data else "escaped", config.check_log_file,
    )
    return FileSink(config, renderer=renderer)


def drain(q: queue.Queue):
    """Yield records from q until the producer puts CLOSED."""
    while True:
        item = q.get()
        if item is CLOSED:
            return
        yield item


class SinkWorker(Thread):
    """The one worker thread that owns a FileSink."""

    def __init__(self, sink: FileSink, q: queue.Queue | None = None):
        super().__init__(daemon=True, name=f"sink-{sink.config.filename}")
        self._sink = sink
        self._queue = q if q is not None else queue.Queue()

    @property
    def sink(self) -> FileSink:
        return self._sink

    def put(self, record):
        self._queue.put(record)

    def close(self):
        """Producer side: close the channel so the worker drains and exits."""
        self._queue.put(CLOSED)

    def run(self):
        self._sink.stream(drain(self._queue))
