"""File logging for the curses client (the screen owns stdout)."""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "chat_app"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_file: Path | str, *, debug: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    path = Path(log_file).expanduser()
    if not any(
        isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path.resolve()
        for handler in logger.handlers
    ):
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    # Unhandled asyncio warnings would otherwise reach stderr underneath curses.
    logging.getLogger("asyncio").setLevel(logging.ERROR)
    return logger
