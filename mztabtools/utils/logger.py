"""
Logger configuration for mztabtools.
"""

import logging

LOG_FORMAT = "[%(asctime)s] %(levelname).1s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger the same way for every command."""
    logging.basicConfig(
        level=logging.INFO,
        datefmt=LOG_DATE_FORMAT,
        format=LOG_FORMAT,
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
