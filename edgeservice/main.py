"""Command-line entry point of the edge inspection service."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

from edgeservice.config import get_config, load_global_config
from edgeservice.http_server import HttpServer
from edgeservice.inspection import DEFAULT_AI_HOST, DEFAULT_AI_PORT, Inspector
from edgeservice.validation import executable_dir

DEFAULT_REST_PORT = 18080
LOG_FILE = "edgeservice.log"
LOG_MAX_BYTES = 20 * 1024 * 1024
LOG_BACKUPS = 5

log = logging.getLogger(__name__)


def init_logging(log_dir) -> RotatingFileHandler | None:
    """Send log records to a rotating file in *log_dir*; None if that fails."""
    try:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            directory / LOG_FILE,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as exc:
        print(f"Log init failed: {exc}", file=sys.stderr)
        return None
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s.%(msecs)03d] [thread %(thread)d] [%(levelname)s] %(message)s",
            "%Y-%m-%d %H:%M:%S",
        )
    )
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    return handler


def parse_args(argv) -> str | None:
    """Return the path given after the first '-c', or None."""
    args = list(argv)
    for position, arg in enumerate(args[:-1]):
        if arg == "-c":
            return args[position + 1]
    return None


def _config_int(conf: Mapping[str, Any], key: str, default: int) -> int:
    if key not in conf:
        return default
    value = conf[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"configuration value {key!r} must be a number")
    return int(value)


def main(argv=None) -> int:
    """Run the service with the configuration named by '-c'."""
    program = sys.argv[0] if sys.argv and sys.argv[0] else "edgeservice"
    if argv is None:
        argv = sys.argv[1:]
    base = executable_dir()
    init_logging(base / "log")

    config_path = parse_args(argv)
    if config_path is None:
        print(f"用法: {program} -c <config_path>", file=sys.stderr)
        return 1

    load_global_config(config_path)
    conf = get_config()
    rest_port = _config_int(conf, "rest_port", DEFAULT_REST_PORT)
    inspector = Inspector(
        base / "ffmpeg",
        base / "snapshot",
        conf.get("ai_service_host", DEFAULT_AI_HOST),
        _config_int(conf, "ai_service_port", DEFAULT_AI_PORT),
    )
    inspector.start_worker()
    server = HttpServer(rest_port, inspector)
    try:
        server.start()
    except KeyboardInterrupt:
        log.info("[edgeservice] interrupted, shutting down")
    finally:
        inspector.stop_worker()
    return 0


if __name__ == "__main__":
    sys.exit(main())