"""Data models for message extraction."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass
class AmountCandidate:
    """A raw amount found by a matcher, with the label when the matcher captures one."""
    raw: str
    label: Optional[str] = None


@dataclass
class ExtractedItem:
    """An "item amount" pair such as "lunch 4.50"."""
    label: str
    amount: str  # normalized decimal string
    original: str


@dataclass
class ExtractionResult:
    """Numbers and items extracted from one message body."""
    numbers: List[str] = field(default_factory=list)
    items: List[ExtractedItem] = field(default_factory=list)


@dataclass
class MessageFact:
    """A processed message, ready to be logged to the ledger."""
    timestamp: str
    sender: str
    text: str
    numbers: List[str]
    items: List[ExtractedItem]
    is_spending_related: bool
    month: str
    year: str
    
    @property
    def amounts(self) -> List[Decimal]:
        return [Decimal(number) for number in self.numbers]


@dataclass
class MessageInsights:
    """Display-only summary of a processed message."""
    has_amount: bool
    amount_count: int
    total_amount: Decimal
    is_high_value: bool
    category: str
