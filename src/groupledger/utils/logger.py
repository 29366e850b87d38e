"""Logging infrastructure with sender context."""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

LOGGER_NAME = "groupledger"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [sender:%(sender)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SenderContextFilter(logging.Filter):
    """Add the sender of the message being processed to log records."""
    
    def __init__(self):
        super().__init__()
        self.sender: Optional[str] = None
    
    def filter(self, record):
        """Add sender to record."""
        record.sender = self.sender or "system"
        return True


class GroupLedgerLogger:
    """Centralized logging manager."""
    
    def __init__(
        self,
        log_level: str = "INFO",
        log_file: Optional[Path] = None,
        max_file_size_mb: int = 10,
        backup_count: int = 5
    ):
        self.log_file = Path(log_file) if log_file else None
        self.sender_filter = SenderContextFilter()
        
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        self.logger.propagate = False
        
        # Remove existing handlers
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(self.sender_filter)
        self.logger.addHandler(console_handler)
        
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_file,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(self.sender_filter)
            self.logger.addHandler(file_handler)
    
    def set_sender_context(self, sender: Optional[str]):
        """Set current sender context for logging."""
        self.sender_filter.sender = sender
    
    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[GroupLedgerLogger] = None


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5
) -> logging.Logger:
    """(Re)configure the global logger, replacing any existing handlers."""
    global _logger_instance
    _logger_instance = GroupLedgerLogger(log_level, log_file, max_file_size_mb, backup_count)
    return _logger_instance.get_logger()


def get_logger() -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = GroupLedgerLogger()
    return _logger_instance.get_logger()


def set_sender_context(sender: Optional[str]):
    """Set sender context for logging."""
    if _logger_instance:
        _logger_instance.set_sender_context(sender)
