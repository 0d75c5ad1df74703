"""
School Auth — Logging configuration
"""
import logging
import logging.config
import sys


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure console logging for the service and the ASGI server.

    Args:
        log_level: Level applied to the root and school_auth loggers.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                    "level": log_level,
                },
            },
            "loggers": {
                "": {"handlers": ["console"], "level": log_level},
                "school_auth": {"handlers": ["console"], "level": log_level, "propagate": False},
                "uvicorn": {"handlers": ["console"], "level": "INFO", "propagate": False},
                "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
            },
        }
    )
    logging.getLogger("school_auth").info("Logging initialized at level %s", log_level)
