"""Logging configuration for the server process."""

import logging
import sys
from pathlib import Path

from .config import ServerConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(config: ServerConfig) -> logging.Logger:
    """
    Install log handlers on the root logger.

    Records go to stderr, because stdout carries the MCP stdio transport,
    and additionally to ``config.log_file`` when one is set.
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(config.log_level)
    return root
