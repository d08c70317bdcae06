# pos_backend/log.py
"""Logging configuration for the POS backend."""

import logging
import sys

import structlog


def configure_logging(level='INFO', json=False):
    """Route stdlib and structlog output through one renderer.

    Called once by the application factory; calling it again simply
    reconfigures.
    """
    level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(format='%(message)s', stream=sys.stderr, level=level, force=True)

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Suppress noisy library loggers
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy').setLevel(logging.WARNING)
