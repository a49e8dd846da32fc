"""Logging configuration."""
import logging

from rich.logging import RichHandler

LOGGER_NAME = "signalpulse"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level="INFO", log_file=None):
    """Configure the ``signalpulse`` logger tree with rich console and optional file output."""
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(numeric_level)

    if not root.handlers:
        root.addHandler(RichHandler(level=numeric_level, rich_tracebacks=True, markup=False,
                                    show_path=False))

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root.addHandler(file_handler)

    return root
