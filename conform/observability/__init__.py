"""
Observability Layer.

- Logger setup (logger.py)
"""

from conform.observability.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
