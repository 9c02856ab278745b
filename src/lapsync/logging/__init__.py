"""Logging utilities for lapsync."""

from lapsync.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
