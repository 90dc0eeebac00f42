"""Log utilities."""

import logging
from rich.logging import RichHandler

FORMAT = "%(message)s"
DATE_FORMAT = "[%X]"


def get_logger(name: str, level: int = logging.DEBUG) -> logging.Logger:
    """Retrieve logger with the provided name."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = [RichHandler()]
    logger.propagate = False
    return logger


def configure_root_logger(verbose: bool = False, color_log: bool = True) -> None:
    """Configure the root logger used by modules without own handler."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[RichHandler(markup=False, rich_tracebacks=color_log)],
        force=True,
    )
