"""
Centralized logging configuration for bleview.

Library modules only call logging.getLogger(__name__); the CLI calls
setup_logging() once. Emoji prefixes are kept for visual scanning.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EMOJI_PREFIXES = ("⚠️", "❌", "💥", "✅", "🔴", "📡")


class EmojiFormatter(logging.Formatter):
    """Formatter that prefixes warnings and errors with an emoji."""

    LEVEL_EMOJIS = {
        logging.WARNING: "⚠️ ",
        logging.ERROR: "❌ ",
        logging.CRITICAL: "💥 ",
    }

    def format(self, record: logging.LogRecord) -> str:
        emoji = self.LEVEL_EMOJIS.get(record.levelno, "")
        if emoji and not record.getMessage().strip().startswith(EMOJI_PREFIXES):
            record = logging.makeLogRecord(record.__dict__)
            record.msg = f"{emoji}{record.msg}"
        return super().format(record)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        verbose: Enable DEBUG level logging (default: INFO)
        log_file: Optional file path for log output
    """
    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(EmojiFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # bleak is chatty at DEBUG
    logging.getLogger("bleak").setLevel(logging.INFO if verbose else logging.WARNING)
