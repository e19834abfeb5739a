"""
Logging setup for catalog-health.

Library modules only create module loggers; applications call
setup_logging() once to get console output and, optionally, a rotating
log file.
"""

import logging
import logging.handlers
from pathlib import Path

APP_LOGGER = "catalog_health"


def setup_logging(
    level: int = logging.INFO,
    log_dir: "str | Path | None" = None,
    app_name: str = APP_LOGGER,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Console log level
        log_dir: Directory for a rotating log file (warnings and up). No file
                 logging when None.
        app_name: Logger to configure

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path / f"{app_name}.log",
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.WARNING)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
