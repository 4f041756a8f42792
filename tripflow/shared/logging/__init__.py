"""Logging configuration and utilities."""

from tripflow.shared.logging.config import setup_logging, log_state_transition, StructuredFormatter
from tripflow.shared.logging.event_logger import (
    SessionEventLogger,
    get_or_create_logger,
    remove_logger,
    summarize_event_log,
)

__all__ = [
    "setup_logging",
    "log_state_transition",
    "StructuredFormatter",
    "SessionEventLogger",
    "get_or_create_logger",
    "remove_logger",
    "summarize_event_log",
]
