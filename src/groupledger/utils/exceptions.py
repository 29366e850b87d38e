"""Custom exception classes for GroupLedger."""


class GroupLedgerError(Exception):
    """Base exception for GroupLedger."""
    pass


class ConfigError(GroupLedgerError):
    """Configuration-related errors."""
    pass


class StoreError(GroupLedgerError):
    """Workbook store errors."""
    pass


# Retryable errors
class RetryableError(GroupLedgerError):
    """Base class for errors that should trigger retry."""
    pass


class StoreBusyError(RetryableError, StoreError):
    """Workbook file is locked or busy and the write can be retried."""
    pass
