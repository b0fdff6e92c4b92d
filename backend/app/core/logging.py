"""Logging configuration shared by the API process and scripts."""

from __future__ import annotations

import logging
import logging.config

from app.core.config import get_settings
from app.security.logging_filters import SensitiveFilter


def configure_logging(level: str | None = None) -> None:
    """Install console logging with correlation ids and redaction."""

    settings = get_settings()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "correlation_id": {
                    "()": "asgi_correlation_id.CorrelationIdFilter",
                    "uuid_length": 32,
                    "default_value": "-",
                },
                "sensitive": {"()": SensitiveFilter},
            },
            "formatters": {
                "console": {
                    "format": "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "filters": ["correlation_id", "sensitive"],
                    "formatter": "console",
                },
            },
            "loggers": {
                "app": {"level": level or settings.log_level, "propagate": True},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
            "root": {"handlers": ["console"], "level": level or settings.log_level},
        }
    )

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        target = logging.getLogger(logger_name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


__all__ = ["configure_logging"]
