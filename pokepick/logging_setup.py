"""Logging configuration for pokepick."""
import logging
import threading
from typing import Optional, Union

_LOGGER_NAME = 'pokepick'
_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
_CONFIGURED = False
_LOCK = threading.Lock()


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Install a stream handler on the package logger once and return it."""
    global _CONFIGURED
    with _LOCK:
        logger = logging.getLogger(_LOGGER_NAME)
        if not _CONFIGURED:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(handler)
            logger.propagate = False
            _CONFIGURED = True
        if level is not None:
            logger.setLevel(level if isinstance(level, int) else logging.getLevelName(str(level).upper()))
        elif logger.level == logging.NOTSET:
            logger.setLevel(logging.INFO)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return `name` as a child of the package logger."""
    configure_logging()
    if not name or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    if not name.startswith(_LOGGER_NAME + '.'):
        name = f'{_LOGGER_NAME}.{name}'
    return logging.getLogger(name)
