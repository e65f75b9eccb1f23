"""structlog setup shared by the API, the cache layer and the provider fetchers.

Anything bound with ``structlog.contextvars`` (the request id bound by
``RequestIDMiddleware``) is merged into every event, so fetcher, cache and
retry logs emitted while serving a batch can be tied back to its request.
"""
import logging
import sys

import structlog

from .config import AppSettings


def _renderer(level: int):
    if level == logging.DEBUG:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer(sort_keys=True)


def init_logging(settings: AppSettings) -> structlog.BoundLogger:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # httpx logs every upstream call at INFO, including API keys in the query string
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(level),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger().bind(service=settings.app_name, env=settings.app_env)
