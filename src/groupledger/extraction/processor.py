"""Turns raw chat messages into structured spending facts."""
import re
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Set

from .matchers import ItemMatcher, NumberMatcher, normalize_amount
from .models import ExtractedItem, ExtractionResult, MessageFact, MessageInsights
from groupledger.config.settings import (
    DEFAULT_ITEM_PATTERNS,
    DEFAULT_NUMBER_PATTERNS,
    DEFAULT_SPENDING_KEYWORDS
)
from groupledger.utils.logger import get_logger

logger = get_logger()

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# First match wins, in this order.
CATEGORY_RULES = (
    ("Food & Dining", ("food", "restaurant", "meal")),
    ("Transportation", ("gas", "fuel", "petrol")),
    ("Housing", ("rent", "mortgage", "housing")),
    ("Utilities", ("bill", "utility", "electric")),
    ("Shopping", ("shopping", "clothes", "store")),
    ("Entertainment", ("entertainment", "movie", "game")),
)
DEFAULT_CATEGORY = "Other"

SIGNIFICANT_MIN = Decimal("1")
SIGNIFICANT_MAX = Decimal("10000")
DEFAULT_HIGH_VALUE_THRESHOLD = Decimal("1000")


def sanitize_sender(raw: str) -> str:
    """Strip a leading "+", any "@domain" suffix and characters other than word, space or hyphen."""
    name = re.sub(r"^\+", "", raw or "")
    name = re.sub(r"@.*$", "", name, flags=re.DOTALL)
    name = re.sub(r"[^\w\s-]", "", name)
    return name.strip()


def categorize(text: str) -> str:
    """Return the first spending category whose keywords appear in the text."""
    lowered = text.lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


class MessageProcessor:
    """Extracts amounts and "item amount" pairs from message bodies."""
    
    def __init__(
        self,
        item_patterns: Optional[Iterable[str]] = None,
        number_patterns: Optional[Iterable[str]] = None,
        spending_keywords: Optional[Iterable[str]] = None,
        high_value_threshold: Decimal = DEFAULT_HIGH_VALUE_THRESHOLD
    ):
        """
        Initialize processor.
        
        Args:
            item_patterns: Regexes for "label amount" phrases, highest priority first
            number_patterns: Regexes for standalone amounts
            spending_keywords: Words that mark a message as spending-related
            high_value_threshold: Total above which a message is high value
        """
        self.item_matchers = [
            ItemMatcher(p) for p in (DEFAULT_ITEM_PATTERNS if item_patterns is None else item_patterns)
        ]
        self.number_matchers = [
            NumberMatcher(p) for p in (DEFAULT_NUMBER_PATTERNS if number_patterns is None else number_patterns)
        ]
        self.spending_keywords = [
            k.lower() for k in (DEFAULT_SPENDING_KEYWORDS if spending_keywords is None else spending_keywords)
        ]
        self.high_value_threshold = Decimal(str(high_value_threshold))
    
    @classmethod
    def from_settings(cls, settings) -> "MessageProcessor":
        return cls(
            item_patterns=settings.item_patterns,
            number_patterns=settings.number_patterns,
            spending_keywords=settings.spending_keywords,
            high_value_threshold=settings.high_value_threshold
        )
    
    def process_message(self, text: str, sender: str, timestamp: datetime) -> Optional[MessageFact]:
        """
        Build a MessageFact for one inbound message.
        
        Returns:
            MessageFact, or None if the message could not be processed
        """
        try:
            extracted = self.extract(text)
            
            return MessageFact(
                timestamp=timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                sender=sanitize_sender(sender),
                text=text.strip(),
                numbers=extracted.numbers,
                items=extracted.items,
                is_spending_related=self.is_spending_related(text),
                month=MONTH_NAMES[timestamp.month - 1],
                year=f"{timestamp.year:04d}"
            )
        except Exception as e:
            logger.error(f"Error processing message: {e}", exc_info=True)
            return None
    
    def extract(self, text: str) -> ExtractionResult:
        """
        Extract unique amounts and item pairs.
        
        Item patterns run first so labelled amounts keep their label; the bare
        number pass then scans the whole text again and only adds amounts not
        already seen.
        """
        result = ExtractionResult()
        seen: Set[str] = set()
        
        for matcher in self.item_matchers:
            for candidate in matcher.candidates(text):
                amount = normalize_amount(candidate.raw)
                if amount is None or amount in seen:
                    continue
                
                label = candidate.label.lower().strip()
                seen.add(amount)
                result.numbers.append(amount)
                result.items.append(ExtractedItem(
                    label=label,
                    amount=amount,
                    original=f"{label} {candidate.raw}"
                ))
        
        for amount in self._bare_numbers(text):
            if amount not in seen:
                seen.add(amount)
                result.numbers.append(amount)
        
        return result
    
    def _bare_numbers(self, text: str) -> List[str]:
        numbers = []
        for matcher in self.number_matchers:
            for candidate in matcher.candidates(text):
                amount = normalize_amount(candidate.raw)
                if amount is not None and amount not in numbers:
                    numbers.append(amount)
        return numbers
    
    def is_spending_related(self, text: str) -> bool:
        """Keyword present, or any standalone amount between 1 and 10000."""
        lowered = text.lower()
        if any(keyword in lowered for keyword in self.spending_keywords):
            return True
        
        return any(
            SIGNIFICANT_MIN <= Decimal(amount) <= SIGNIFICANT_MAX
            for amount in self._bare_numbers(text)
        )
    
    def categorize(self, text: str) -> str:
        return categorize(text)
    
    def get_spending_insights(self, fact: MessageFact) -> MessageInsights:
        """Summarize a processed message for display."""
        total = sum(fact.amounts, Decimal("0"))
        
        return MessageInsights(
            has_amount=bool(fact.numbers),
            amount_count=len(fact.numbers),
            total_amount=total,
            is_high_value=total > self.high_value_threshold,
            category=categorize(fact.text)
        )
