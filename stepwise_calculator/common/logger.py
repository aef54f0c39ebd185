"""Shared logger of the calculator package."""
import logging


LOGGER_NAME = "stepwise_calculator"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

logger = logging.getLogger(LOGGER_NAME)

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def configure_logging(level: str = "WARNING") -> None:
    """
    Attach the stderr handler to the package logger and set its level.

    Calling it again only changes the level.

    :param str level: Logging level name
    """
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
    logger.setLevel(level)
