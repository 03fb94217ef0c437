import logging

import structlog


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Install the structlog pipeline used by every module of the service."""
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        # capture_logs() in tests only sees loggers that are not cached
        cache_logger_on_first_use=False,
    )
