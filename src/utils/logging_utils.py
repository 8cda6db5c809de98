"""
Encoding-Safe Logging Utility

Provides logging configuration with Unicode handling for consoles that
cannot render emoji (notification texts contain them), substituting
ASCII alternatives where needed.
"""

import logging
import os
import platform
import sys
from typing import Optional, Union


class SafeFormatter(logging.Formatter):
    """
    Log formatter with encoding-safe character substitution.

    Replaces Unicode symbols with ASCII alternatives when the environment
    has limited encoding support, so log output never fails to encode.
    """

    SYMBOL_MAP = {
        "🎉": "[*]",
        "✓": "OK",
        "✅": "[SUCCESS]",
        "⚠": "!",
        "❌": "x",
        "→": "->",
        "←": "<-",
        "•": "*",
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None,
                 style: str = '%', validate: bool = True):
        super().__init__(fmt, datefmt, style, validate)
        self.is_windows = platform.system() == "Windows"
        self.force_ascii = os.environ.get("FORCE_ASCII_LOGGING", "0").lower() in ("1", "true", "yes")
        self.limited_encoding = self._has_limited_encoding()

    def _has_limited_encoding(self) -> bool:
        """
        Detect if the current environment has limited encoding support.

        Returns:
            bool: True if environment has limited encoding support
        """
        if self.force_ascii:
            return True

        if self.is_windows:
            if "WT_SESSION" in os.environ:
                return False
            if os.environ.get("PYTHONIOENCODING", "").lower() == "utf-8":
                return False
            return True

        encoding = (getattr(sys.stderr, "encoding", None) or "").lower()
        return bool(encoding) and "utf" not in encoding

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)

        if self.limited_encoding:
            for unicode_char, ascii_char in self.SYMBOL_MAP.items():
                formatted_message = formatted_message.replace(unicode_char, ascii_char)
            formatted_message = formatted_message.encode("ascii", errors="replace").decode("ascii")

        return formatted_message


def configure_safe_logging(
    name: Optional[str] = None,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_str: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging with encoding-safe formatting.

    Args:
        name: Logger name (defaults to root logger if None)
        level: Logging level, as a number or a name such as "INFO"
        log_file: Optional log file path
        format_str: Custom format string for log messages

    Returns:
        logging.Logger: Configured logger instance
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear any existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    if format_str is None:
        format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    formatter = SafeFormatter(format_str)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to create log file handler: {str(e)}")

    # Keep third-party HTTP clients at warning level
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    return logger
