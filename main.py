#!/usr/bin/env python3
"""File sink: reads JSON log records from stdin and persists them to rotating files."""

import argparse
import json
import logging
import signal
import sys

from logsink.config import ConfigError, load_routes
from logsink.models import Route, record_from_dict
from logsink.sink import SinkStartupError, SinkWorker, new_file_adapter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [file-sink] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rotating JSONL file sink")
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML file with a 'routes' list",
    )
    parser.add_argument(
        "--address", default="",
        help="Base filename when no config file is given (default: default.log)",
    )
    parser.add_argument(
        "--option", action="append", default=[], metavar="KEY=VALUE",
        help="Route option, e.g. maxfilesize=1048576 (repeatable)",
    )
    return parser


def _parse_options(pairs: list[str]) -> dict:
    options = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ConfigError(f"option {pair!r} is not KEY=VALUE")
        options[key.strip()] = value.strip()
    return options


def main(argv=None) -> int:
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    args = build_cli_parser().parse_args(argv)
    try:
        routes = load_routes(args.config) or [
            Route(address=args.address, options=_parse_options(args.option))
        ]
    except ConfigError as e:
        logger.error("Failed to start: %s", e)
        return 1

    workers = []
    try:
        for route in routes:
            workers.append(SinkWorker(new_file_adapter(route)))
    except SinkStartupError as e:
        logger.error("Failed to start: %s", e)
        for worker in workers:
            worker.sink.files.close()
        return 1

    for worker in workers:
        worker.start()
    logger.info("File sink running with %d route(s)", len(workers))

    skipped = 0
    try:
        for line in sys.stdin:
            if not _running:
                break
            line = line.strip()
            if not line:
                continue
            try:
                record = record_from_dict(json.loads(line))
            except json.JSONDecodeError as e:
                logger.debug("Bad input line: %s", e)
                record = None
            if record is None:
                skipped += 1
                continue
            for worker in workers:
                worker.put(record)
    except KeyboardInterrupt:
        pass

    logger.info("Shutting down...")
    for worker in workers:
        worker.close()
    for worker in workers:
        worker.join(timeout=10)
        logger.info("Stats for %s: %s", worker.sink.files.path, worker.sink.stats())
    if skipped:
        logger.info("Skipped %d unparseable input line(s)", skipped)
    return 0


if __name__ == "__main__":
    sys.exit(main())
