"""Logging configuration for the CLI and long-running sweeper."""

from __future__ import annotations

import logging
import logging.handlers

from ims.infrastructure.settings import Settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_STREAM_HANDLER = "ims-stream"
_FILE_HANDLER = "ims-file"


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the ``ims`` logger: stderr always, rotating file when configured."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(_FORMAT)

    logger = logging.getLogger("ims")
    logger.setLevel(level)
    existing = {h.get_name() for h in logger.handlers}

    # avoid duplicate handlers when called twice
    if _STREAM_HANDLER not in existing:
        stream = logging.StreamHandler()
        stream.set_name(_STREAM_HANDLER)
        stream.setFormatter(formatter)
        logger.addHandler(stream)

    if settings.log_file is not None and _FILE_HANDLER not in existing:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            settings.log_file, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.set_name(_FILE_HANDLER)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
