# ============================================
#   PairLink - Central logger
# ============================================

import os
import logging
from logging.handlers import TimedRotatingFileHandler

from pairlink.config import LOG_DIR, LOG_FILE, LOG_LEVEL, LOG_TO_FILE


# --------------------------------------------
#   Logger identity (overrideable by env)
# --------------------------------------------

# Global app logger name
ROOT_LOGGER_NAME = os.getenv("PAIRLINK_LOGGER_NAME", "pairlink")


def _build_handler() -> logging.Handler:
    if LOG_TO_FILE:
        os.makedirs(LOG_DIR, exist_ok=True)
        return TimedRotatingFileHandler(
            LOG_FILE,
            when="midnight",
            backupCount=30,
            encoding="utf-8",
            utc=False,
        )
    return logging.StreamHandler()


def _configure_root_logger() -> logging.Logger:
    """
    Configure the root PairLink logger once (idempotent).
    Daily rotating file (30 days kept) when LOG_TO_FILE is set,
    stderr otherwise.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Prevent duplicate handlers on hot reload / multiple imports
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    handler = _build_handler()
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False  # prevent double logging to root

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """
    Return a child logger for a given module name.
    Example: get_logger("lifecycle") → pairlink.lifecycle
    """
    root = _configure_root_logger()
    return root.getChild(module_name)


def log_info(module: str, message: str):
    get_logger(module).info(message)


def log_warning(module: str, message: str):
    get_logger(module).warning(message)


def log_exception(module: str, message: str):
    """
    Log an exception with traceback. To be used inside except blocks.
    """
    get_logger(module).exception(message)
