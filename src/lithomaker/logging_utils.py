"""
Logging helpers.

The library only creates module loggers; entry points (CLI, web UI) call
:func:`setup_logging` once to attach handlers to the root logger.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

ENV_LOG_LEVEL = "LITHOMAKER_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_log_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = str(level).strip().upper()
    if not value:
        return logging.INFO
    return int(getattr(logging, value, logging.INFO))


def setup_logging(
    log_level: Union[str, int] = "WARNING",
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure the root logger.

    A stderr handler is always attached; a UTF-8 file handler is added when
    ``log_file`` is given. The ``LITHOMAKER_LOG_LEVEL`` environment variable
    overrides ``log_level``. Calling this again does not add duplicate
    handlers.

    Returns:
        The root logger
    """
    root = logging.getLogger()
    level = parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    root.setLevel(level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    has_stream = any(
        type(h) is logging.StreamHandler for h in root.handlers
    )
    if not has_stream:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    if log_file is not None:
        log_path = Path(log_file).resolve()
        has_file = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_path
            for h in root.handlers
        )
        if not has_file:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    for handler in root.handlers:
        handler.setLevel(level)

    logging.captureWarnings(True)
    return root
