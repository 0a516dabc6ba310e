"""Log level control for the kafka_threadpool loggers."""

import logging
from enum import Enum


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


def set_log_level(lvl: str | LogLevel) -> None:
    """Set the level of every ``kafka_threadpool`` logger."""
    if isinstance(lvl, str):
        try:
            lvl = LogLevel(lvl.lower())
        except ValueError:
            raise ValueError(
                f"Got unknown log level string '{lvl}'. Valid options are 'debug', 'info', 'warn', 'error'."
            ) from None

    match lvl:
        case LogLevel.DEBUG:
            logging.getLogger("kafka_threadpool").setLevel(logging.DEBUG)
        case LogLevel.INFO:
            logging.getLogger("kafka_threadpool").setLevel(logging.INFO)
        case LogLevel.WARN:
            logging.getLogger("kafka_threadpool").setLevel(logging.WARNING)
        case LogLevel.ERROR:
            logging.getLogger("kafka_threadpool").setLevel(logging.ERROR)
        case _:
            logging.getLogger("kafka_threadpool").setLevel(logging.WARNING)
