"""
Logger utilities with context-aware logger selection.

This module provides:
1. setup_logger() - Function to create configured logger instances
2. Context-aware logging that lets the shared data layer (request cache,
   backend gateway, repositories) automatically log to the logger of the
   component that called it

Usage:
    # Setting up a basic logger:
    from sellexa.utils.logger import setup_logger
    my_logger = setup_logger("my_component", logging.INFO, "my_component.log")

    # In a component entry point (context-aware):
    from sellexa.utils.logger import set_app_context, AppLogger
    with set_app_context(AppLogger.CHAT):
        # All data layer calls will use the chat logger
        result = await chat_api.get_messages(thread_id)

    # In shared infrastructure:
    from sellexa.utils.logger import get_current_logger
    logger = get_current_logger()
    logger.info("This logs to the calling component's logger")
"""

import logging
import sys
import os
from logging.handlers import RotatingFileHandler
from contextvars import ContextVar
from enum import Enum
from typing import Optional

from sellexa.config import LOG_DIR, LOG_LEVEL

# Create logs directory if it doesn't exist
if not os.path.exists(LOG_DIR):
    os.makedirs(LOG_DIR)


def setup_logger(name: str = "sellexa", log_level: int = logging.INFO, log_file: str = None):
    """
    Sets up a logger with both console and file handlers.

    Args:
        name (str): The name of the logger.
        log_level (int): The logging level (default: logging.INFO).
        log_file (str): Optional custom log filename (without path). If not provided, defaults to "{name}.log".

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Check if handlers are already added to avoid duplicate logs
    if not logger.handlers:
        if log_file is None:
            log_file = f"{name}.log"

        app_log_file = os.path.join(LOG_DIR, log_file)
        error_log_file = os.path.join(LOG_DIR, f"{os.path.splitext(log_file)[0]}_error.log")

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        file_handler = RotatingFileHandler(
            app_log_file, maxBytes=10*1024*1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        error_file_handler = RotatingFileHandler(
            error_log_file, maxBytes=10*1024*1024, backupCount=5, encoding="utf-8"
        )
        error_file_handler.setFormatter(formatter)
        error_file_handler.setLevel(logging.ERROR)
        logger.addHandler(error_file_handler)

    return logger


# Default logger instance
logger = setup_logger(log_level=getattr(logging, LOG_LEVEL, logging.INFO))


# ============================================================================
# Context-Aware Logging
# ============================================================================

class AppLogger(Enum):
    """Enum of available component loggers."""
    STORES = "stores"
    CHAT = "chat"
    GATEWAY = "gateway"
    REALTIME = "realtime"
    DEFAULT = "sellexa"


# Context variable to track current component logger
_current_app_logger: ContextVar[AppLogger] = ContextVar('current_app_logger', default=AppLogger.DEFAULT)


def get_current_logger() -> logging.Logger:
    """
    Get the logger for the current component context.

    Shared infrastructure (request cache, gateway, repositories) calls this so
    that its output lands in the log of whichever component is driving it.

    Returns:
        logging.Logger: The logger instance for the current context
    """
    app_logger_type = _current_app_logger.get()

    # Import loggers lazily to avoid circular imports
    if app_logger_type == AppLogger.STORES:
        from sellexa.stores import get_stores_logger
        return get_stores_logger()

    elif app_logger_type == AppLogger.CHAT:
        from sellexa.hooks import get_chat_logger
        return get_chat_logger()

    elif app_logger_type == AppLogger.GATEWAY:
        from sellexa.data.supabase import get_gateway_logger
        return get_gateway_logger()

    elif app_logger_type == AppLogger.REALTIME:
        from sellexa.realtime import get_realtime_logger
        return get_realtime_logger()

    else:
        return logger


class set_app_context:
    """
    Context manager to set the current component logger context.

    Usage:
        with set_app_context(AppLogger.STORES):
            # All get_current_logger() calls will return the stores logger
            await products_store.fetch_feed_products()
    """

    def __init__(self, app_logger: AppLogger):
        self.app_logger = app_logger
        self.token: Optional[object] = None

    def __enter__(self):
        self.token = _current_app_logger.set(self.app_logger)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            _current_app_logger.reset(self.token)
        return False
