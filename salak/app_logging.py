"""JSON logs on stderr for the SALAK service."""
import logging
from typing import Iterable

from pythonjsonlogger import jsonlogger

QUIET_LOGGERS = ("urllib3", "sqlalchemy.engine")
"""Chatty libraries held at WARNING whatever the service level is."""


def setup_logger(level: str = "INFO", quiet: Iterable[str] = QUIET_LOGGERS) -> logging.Handler:
    """Send all records through one JSON handler on the root logger.

    Calling it again replaces the handler it installed before, so building
    several apps in one process does not duplicate every line.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_salak", False):
            root.removeHandler(handler)

    log_handler = logging.StreamHandler()
    log_handler._salak = True
    log_handler.setFormatter(jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'},
    ))
    root.addHandler(log_handler)
    root.setLevel(level.upper())

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
    return log_handler
