"""Logging configuration for the app."""

from __future__ import annotations

import logging

from .config import AppConfig

APP_LOGGER_NAME = "course_studio"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
FILE_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(module)s:%(lineno)d | "
    "%(funcName)s | %(message)s"
)


def parse_module_levels(raw: str) -> dict[str, str]:
    """Parse ``"domain=INFO,integrations=DEBUG"`` into logger suffix -> level.

    Entries without ``=`` or with an unknown level name are ignored.
    """
    levels: dict[str, str] = {}
    for item in (raw or "").split(","):
        name, sep, level = item.partition("=")
        name = name.strip().strip(".")
        level = level.strip().upper()
        if not sep or not name or not isinstance(logging.getLevelName(level), int):
            continue
        levels[name] = level
    return levels


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


def setup_logging(config: AppConfig) -> logging.Logger:
    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    _reset_handlers(logger)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
    file_handler.setLevel(config.file_log_level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    # Module loggers (course_studio.domain.*, ...) propagate here; their own
    # level only narrows what reaches the handlers.
    for suffix, level in parse_module_levels(config.log_module_levels).items():
        logging.getLogger(f"{APP_LOGGER_NAME}.{suffix}").setLevel(level)

    logging.captureWarnings(True)
    warnings_logger = logging.getLogger("py.warnings")
    warnings_logger.setLevel(logging.DEBUG)
    warnings_logger.propagate = False
    _reset_handlers(warnings_logger)
    warnings_logger.addHandler(file_handler)
    return logger
