import logging
import sys

from storefront.core.config import settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
APP_LOGGER = "storefront"


def _app_logger() -> logging.Logger:
    logger = logging.getLogger(APP_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child of the ``storefront`` logger, e.g. ``storefront.cache``.
    Only the parent owns a handler, so every module shares one output stream.
    """
    _app_logger()
    return logging.getLogger(f"{APP_LOGGER}.{name}")


def configure_logging():
    """
    Configure application-wide logging to prevent duplicates.
    """
    _app_logger()

    # Request lines are logged by LoggingMiddleware
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("fastapi").setLevel(logging.WARNING)
    if not settings.database.echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
