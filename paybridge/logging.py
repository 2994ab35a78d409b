"""Stdout logging for the service; uvicorn's loggers follow the paybridge level."""
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_ALIGNED_LOGGERS = ("paybridge", "uvicorn", "uvicorn.error", "uvicorn.access")


def setup_logging(level: int | str = logging.INFO, fmt: str = LOG_FORMAT) -> None:
    logging.basicConfig(level=level, format=fmt, stream=sys.stdout, force=True)
    for name in _ALIGNED_LOGGERS:
        logging.getLogger(name).setLevel(level)
