import logging
import os

from rich.logging import RichHandler

# aiosqlite logs every statement it proxies at DEBUG
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


def _log_level() -> int:
    if os.getenv("DEBUG"):
        return logging.DEBUG
    levels = logging.getLevelNamesMapping()
    return levels.get(os.getenv("SHOP_LOG_LEVEL", "INFO").upper(), logging.INFO)


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output.

    Level is DEBUG when the DEBUG env var is set, otherwise SHOP_LOG_LEVEL
    (default INFO).
    """
    if name is None:
        name = "shop"
    logger = logging.getLogger(name)
    log_level = _log_level()
    logger.setLevel(log_level)

    if not logger.handlers:
        formatter = CenteredFormatter("[%(name)s]  %(message)s")

        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with RichHandler.")

    return logger
