# app/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from app.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

NOISY_LOGGERS = [
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "httpx",
    "uvicorn.access",
]


def setup_logging(verbose=True):
    """Configure application logging"""
    settings = get_settings()

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if not verbose:
        # Silence noisy loggers
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
