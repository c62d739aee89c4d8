# certpathbuilder/utils/logger.py

"""
Centralized logger configuration for certpathbuilder.

Provides a `get_logger(name: str)` function. On first request, it:
  - Configures a StreamHandler to stderr
  - Sets a default formatter: "YYYY-MM-DD HH:MM:SS LEVEL [logger_name] message"
  - Defaults to INFO level (can be overridden via CERTPATHBUILDER_LOG or set_level)
"""

import logging
import os

from certpathbuilder.utils.settings import ENV_LOG_LEVEL

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_BASE_NAME = "certpathbuilder"
_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _level_from_env() -> int:
    env_level = os.getenv(ENV_LOG_LEVEL, "").upper()
    if env_level in _VALID_LEVELS:
        return getattr(logging, env_level)
    return logging.INFO


def get_logger(name: str = None) -> logging.Logger:
    """
    Return a logger named `certpathbuilder.<name>`. On first use, configures
    a StreamHandler with a default format. Honors the CERTPATHBUILDER_LOG
    environment variable if set to a valid level (DEBUG/INFO/WARNING/ERROR).
    """
    if name and (name == _BASE_NAME or name.startswith(_BASE_NAME + ".")):
        logger_name = name
    else:
        logger_name = f"{_BASE_NAME}.{name}" if name else _BASE_NAME
    logger = logging.getLogger(logger_name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())

        # Prevent double-logging: do not propagate to root
        logger.propagate = False

    return logger


def set_level(level: str) -> None:
    """
    Apply `level` (e.g. "DEBUG") to every certpathbuilder logger created so far.
    Unknown level names are ignored.
    """
    level = (level or "").upper()
    if level not in _VALID_LEVELS:
        return
    value = getattr(logging, level)
    for logger_name, logger in logging.Logger.manager.loggerDict.items():
        if logger_name.startswith(_BASE_NAME) and isinstance(logger, logging.Logger):
            logger.setLevel(value)
