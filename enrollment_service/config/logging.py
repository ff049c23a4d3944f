import logging
import logging.config
from typing import Any


def setup_logging(level: str = "INFO") -> dict[str, Any]:
    """Configure logging for the application."""
    level = level.upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
        },
        "loggers": {
            # SQL echo is controlled by DEBUG, keep the engine quiet otherwise
            "sqlalchemy.engine": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["console"]},
    }

    logging.config.dictConfig(config)
    return config
