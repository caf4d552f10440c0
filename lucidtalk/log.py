import logging

import structlog


def setup_logging(level: str = "WARNING"):
    """
    Route structlog through the standard library with a flat console format.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("lucidtalk")
    package_logger.handlers = [handler]
    package_logger.propagate = False
    package_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    return structlog.get_logger("lucidtalk")
