"""
Logging setup for the relay.

Usage:
    from .log import get_logger
    logger = get_logger(__name__)

Environment variables:
    RELAY_LOG_LEVEL - DEBUG | INFO | WARNING | ERROR | CRITICAL (default: INFO)
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s %(levelname)s [%(threadName)s] %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%dT%H:%M:%S%z'

_is_configured = False


def _coerce_level(level: Optional[str]) -> int:
    if not level:
        return logging.INFO
    return {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL,
    }.get(str(level).strip().upper(), logging.INFO)


def configure_logging(level: Optional[str] = None, force: bool = False) -> None:
    """Install a single stdout handler on the root logger.

    Safe to call multiple times; pass force=True to reconfigure.
    """
    global _is_configured
    if _is_configured and not force:
        return

    effective_level = _coerce_level(level or os.environ.get('RELAY_LOG_LEVEL'))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(effective_level)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(effective_level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)

    _is_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger, ensuring base configuration exists."""
    if not _is_configured:
        configure_logging()
    return logging.getLogger(name or 'alarm_relay')
