"""Extraction module - amounts, items and spending classification from chat text."""
from .matchers import ItemMatcher, NumberMatcher, format_amount, normalize_amount
from .models import AmountCandidate, ExtractedItem, ExtractionResult, MessageFact, MessageInsights
from .processor import MessageProcessor, categorize, sanitize_sender

__all__ = [
    "ItemMatcher",
    "NumberMatcher",
    "format_amount",
    "normalize_amount",
    "AmountCandidate",
    "ExtractedItem",
    "ExtractionResult",
    "MessageFact",
    "MessageInsights",
    "MessageProcessor",
    "categorize",
    "sanitize_sender",
]
