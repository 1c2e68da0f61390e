"""
logging_config.py — Centralized Logging Configuration for the Storefront Service

Modules log through standard library loggers, either `logging.getLogger(__name__)`
or the `get_logger()` helper below; both share the root configuration.
`setup_logging()` is called once by the application factory.

Features:
    • Console output on stdout (container friendly), optional log file
    • Process ID tagging for multi-worker deployments
    • Reduced verbosity for the HTTP client libraries (httpx, httpcore)
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s'


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configures the global logging system for the application.

    Args:
        level (str): Root log level name, e.g. "INFO" or "DEBUG".
        log_file (str, optional): When set, records are also appended to this file.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Request lines from the remote API client are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name):
    """
    Returns a logger for a module or component name (usually `__name__`).
    """
    return logging.getLogger(name)
