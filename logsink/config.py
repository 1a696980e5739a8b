"""Configuration module: frozen sink config resolved from a route and the environment."""

import logging
import os
from dataclasses import dataclass

import yaml

from logsink.models import Route

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = "/var/log/"
DEFAULT_FILENAME = "default.log"
DEFAULT_MAX_FILE_SIZE = 1024 * 1024 * 100  # 100 MiB


class ConfigError(ValueError):
    """Raised when sink configuration cannot be used."""


def _parse_positive_int(value) -> int | None:
    """Return value as a positive int, or None if it is not one."""
    if value is None or value == "":
        return None
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


@dataclass(frozen=True)
class SinkConfig:
    log_dir: str = DEFAULT_LOG_DIR
    filename: str = DEFAULT_FILENAME
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_file_count: int | None = None   # None = unbounded retention
    structured_data: bool = False
    check_log_file: bool = False

    @property
    def path(self) -> str:
        return os.path.join(self.log_dir, self.filename)


def config_from_route(route: Route, environ=None) -> SinkConfig:
    """Resolve a SinkConfig from a route descriptor.

    Unparseable ``maxfilesize``/``maxfilecount`` values fall back to their
    defaults without error. Any non-empty ``CHECK_LOG_FILE`` enables the
    per-write existence check.
    """
    env = os.environ if environ is None else environ
    options = route.options or {}

    max_size = _parse_positive_int(options.get("maxfilesize"))
    if max_size is None:
        if options.get("maxfilesize"):
            logger.warning("Ignoring invalid maxfilesize %r", options["maxfilesize"])
        max_size = SinkConfig.max_file_size

    max_count = _parse_positive_int(options.get("maxfilecount"))
    if max_count is None and options.get("maxfilecount"):
        logger.warning("Ignoring invalid maxfilecount %r", options["maxfilecount"])

    return SinkConfig(
        log_dir=env.get("LOG_DIR") or SinkConfig.log_dir,
        filename=route.address or SinkConfig.filename,
        max_file_size=max_size,
        max_file_count=max_count,
        structured_data=options.get("structured_data") == "true",
        check_log_file=env.get("CHECK_LOG_FILE", "") != "",
    )


def load_routes(path: str | None) -> list[Route]:
    """Load route descriptors from a YAML file. Returns empty list if no path.

    Expected shape::

        routes:
          - address: app.log
            options:
              maxfilesize: "1048576"
              maxfilecount: "5"
    """
    if not path:
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return []
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("routes", []), list):
        raise ConfigError(f"{path}: expected a mapping with a 'routes' list")

    routes = []
    for i, entry in enumerate(data.get("routes", [])):
        if not isinstance(entry, dict):
            raise ConfigError(f"{path}: route #{i} is not a mapping")
        options = entry.get("options") or {}
        if not isinstance(options, dict):
            raise ConfigError(f"{path}: route #{i} options must be a mapping")
        routes.append(Route(
            address=str(entry.get("address") or ""),
            # option values are strings on the wire, YAML may hand us ints/bools
            options={str(k): _option_str(v) for k, v in options.items()},
            adapter=str(entry.get("adapter", "file")),
        ))
    logger.info("Loaded %d route(s) from %s", len(routes), path)
    return routes


def _option_str(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
