"""structlog setup for the service entry point."""

import logging

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog console output.

    Args:
        verbose: Emit debug events (every executed trade) when True
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
