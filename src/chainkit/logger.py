# File: src/chainkit/logger.py

import logging
import sys
from logging import StreamHandler

# --- Log Levels ---
# DEBUG: Stage-by-stage tracing of sequences and map branches.
# INFO: Confirmation that things are working as expected.
# WARNING: Something unexpected happened but the call went on.
# ERROR: A step failed and the failure was wrapped for the caller.

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

class LoggerBot:
    """A centralized logger for every runnable in the package."""
    _logger = None

    @staticmethod
    def get_logger(level=None):
        if LoggerBot._logger is None:
            if level is None:
                from .config import get_settings
                level = get_settings().log_level

            LoggerBot._logger = logging.getLogger("chainkit")
            LoggerBot._logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))

            formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

            # Clear existing handlers to prevent duplicate logs
            if LoggerBot._logger.hasHandlers():
                LoggerBot._logger.handlers.clear()

            console_handler = StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            LoggerBot._logger.addHandler(console_handler)

            LoggerBot._logger.debug("LoggerBot initialized.")

        return LoggerBot._logger

    @staticmethod
    def set_level(level: str):
        """Change the level of the shared logger at runtime."""
        LoggerBot.get_logger().setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))
