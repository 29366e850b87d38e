"""GroupLedger - chat-group spending tracker."""

__version__ = "1.0.0"
