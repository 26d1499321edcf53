"""Logging configuration."""

from .setup import EventLogHandler, setup_logging

__all__ = ["EventLogHandler", "setup_logging"]
