"""Utility modules."""
from .logger import configure_logging, get_logger, set_sender_context
from .exceptions import (
    GroupLedgerError,
    ConfigError,
    StoreError,
    RetryableError,
    StoreBusyError
)
from .retry import call_with_retry

__all__ = [
    "configure_logging",
    "get_logger",
    "set_sender_context",
    "GroupLedgerError",
    "ConfigError",
    "StoreError",
    "RetryableError",
    "StoreBusyError",
    "call_with_retry"
]
