"""Pattern matchers and amount normalization."""
import re
from decimal import Decimal, InvalidOperation
from typing import Iterator, Optional

from .models import AmountCandidate

_NON_NUMERIC = re.compile(r"[^\d.-]", re.ASCII)
_LEADING_DECIMAL = re.compile(r"-?(?:\d+\.?\d*|\.\d+)", re.ASCII)

# Largest accepted amount; workbook cells hold floats
MAX_AMOUNT = Decimal("1000000000000")


def format_amount(value: Decimal) -> str:
    """Render a decimal without trailing zeros or exponent ("25.50" -> "25.5", "1E+2" -> "100")."""
    return format(value.normalize(), "f")


def normalize_amount(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a raw amount string.
    
    Currency symbols and words are dropped. When several dots remain only the
    first two dot-delimited segments are kept ("1.2.3" -> "1.2"), and parsing is
    lenient: the longest leading decimal wins ("12-3" -> "12").
    
    Returns:
        Canonical decimal string, or None if unparseable, not positive or above MAX_AMOUNT
    """
    if raw is None:
        return None
    
    cleaned = _NON_NUMERIC.sub("", str(raw))
    parts = cleaned.split(".")
    if len(parts) > 2:
        cleaned = f"{parts[0]}.{parts[1]}"
    
    match = _LEADING_DECIMAL.match(cleaned)
    if not match:
        return None
    
    try:
        value = Decimal(match.group(0))
    except InvalidOperation:
        return None
    
    if not value.is_finite() or value <= 0 or value > MAX_AMOUNT:
        return None
    
    return format_amount(value)


class ItemMatcher:
    """Matches "<label> <amount>" phrases. Group 1 is the label, group 2 the amount."""
    
    def __init__(self, pattern: str):
        self.regex = re.compile(pattern, re.IGNORECASE | re.ASCII)
    
    def candidates(self, text: str) -> Iterator[AmountCandidate]:
        for match in self.regex.finditer(text):
            yield AmountCandidate(raw=match.group(2), label=match.group(1))
    
    def __repr__(self) -> str:
        return f"ItemMatcher({self.regex.pattern!r})"


class NumberMatcher:
    """Matches standalone amounts; the whole match is the raw amount."""
    
    def __init__(self, pattern: str):
        self.regex = re.compile(pattern, re.IGNORECASE | re.ASCII)
    
    def candidates(self, text: str) -> Iterator[AmountCandidate]:
        for match in self.regex.finditer(text):
            yield AmountCandidate(raw=match.group(0))
    
    def __repr__(self) -> str:
        return f"NumberMatcher({self.regex.pattern!r})"
