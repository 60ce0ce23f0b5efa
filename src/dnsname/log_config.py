from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    level: Optional[str] = None,
) -> None:
    """Configure logging for the entire application.

    ``verbose`` forces DEBUG; otherwise ``level`` (a level name) is used,
    falling back to INFO.
    """
    root_logger = logging.getLogger()

    # Remove any existing handlers to avoid duplication
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName(level.upper()) if level else logging.INFO
    root_logger.setLevel(log_level)

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logger = logging.getLogger("dnsname")
    logger.setLevel(log_level)

    if verbose:
        logger.debug("Verbose logging enabled")
