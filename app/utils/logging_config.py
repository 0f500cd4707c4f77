"""
Logging setup.

Plain stdlib logging with a single stream handler. Every record carries the
current request id (or '-') so that lines from one request can be grouped.
"""
import logging
import os
import sys

from flask import g, has_app_context

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] [req:%(request_id)s] %(message)s'


class RequestIdFilter(logging.Filter):
    """Attach g.request_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = '-'
        if has_app_context():
            request_id = g.get('request_id', '-')
        record.request_id = request_id
        return True


def setup_logging(level: str = None) -> None:
    """Configure root logging once; safe to call repeatedly."""
    level = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    root = logging.getLogger()

    if not any(getattr(h, '_rewards_handler', False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler._rewards_handler = True
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RequestIdFilter())
        root.addHandler(handler)

    root.setLevel(level)

    # SQL echo is noisy at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
