"""
Console logging for the command line entry point.
Library modules only create `logging.getLogger(__name__)`; hosts decide handlers.
"""
import logging
import logging.config
from typing import Any, Dict

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
}


def setup_logging(level: str = "WARNING", format_style: str = "simple") -> None:
    """
    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_style: 'simple' or 'detailed'
    """
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": FORMATS.get(format_style, FORMATS["simple"]),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                # stdout is reserved for results (--json output)
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "honestfit": {"level": level, "handlers": ["console"], "propagate": False},
            # SDK request logs are noise at INFO
            "httpx": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)
