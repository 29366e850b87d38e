"""Tests for message extraction and classification."""
import unittest
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

from groupledger.extraction import MessageProcessor, categorize, normalize_amount, sanitize_sender


class TestNormalizeAmount(unittest.TestCase):
    """Test amount normalization."""
    
    def test_canonical_rendering(self):
        self.assertEqual(normalize_amount("25.50"), "25.5")
        self.assertEqual(normalize_amount("100"), "100")
        self.assertEqual(normalize_amount("100.00"), "100")
        self.assertEqual(normalize_amount("3.25"), "3.25")
    
    def test_strips_currency_text(self):
        self.assertEqual(normalize_amount("$25.50"), "25.5")
        self.assertEqual(normalize_amount("12 dollars"), "12")
        self.assertEqual(normalize_amount("$1,234.56"), "1234.56")
    
    def test_multiple_dots_keep_first_two_segments(self):
        self.assertEqual(normalize_amount("1.2.3"), "1.2")
        self.assertEqual(normalize_amount("10.50.99"), "10.5")
    
    def test_rejects_non_positive_and_garbage(self):
        self.assertIsNone(normalize_amount("0"))
        self.assertIsNone(normalize_amount("0.00"))
        self.assertIsNone(normalize_amount("-5"))
        self.assertIsNone(normalize_amount("abc"))
        self.assertIsNone(normalize_amount(""))
        self.assertIsNone(normalize_amount(None))
    
    def test_lenient_leading_number(self):
        self.assertEqual(normalize_amount("12-3"), "12")
    
    def test_rejects_amounts_above_limit(self):
        self.assertEqual(normalize_amount("1000000000000"), "1000000000000")
        self.assertIsNone(normalize_amount("1000000000001"))
        self.assertIsNone(normalize_amount("1" + "0" * 400))
    
    def test_only_ascii_digits_are_amounts(self):
        self.assertIsNone(normalize_amount("\u0663\u0660"))
    
    def test_idempotent(self):
        for raw in ["25.50", "$3.25", "100.00", "7", "1.2.3", "0.75 USD"]:
            once = normalize_amount(raw)
            self.assertEqual(normalize_amount(once), once)


class TestExtraction(unittest.TestCase):
    """Test number and item extraction."""
    
    def setUp(self):
        """Set up test fixtures."""
        self.processor = MessageProcessor()
    
    def test_dollar_amount_with_keyword(self):
        text = "I spent $25.50 on lunch"
        result = self.processor.extract(text)
        
        self.assertEqual(result.numbers, ["25.5"])
        self.assertTrue(self.processor.is_spending_related(text))
        self.assertEqual(categorize(text), "Other")
    
    def test_item_pairs(self):
        text = "Coffee 3.25 and sandwich 8.75"
        result = self.processor.extract(text)
        
        self.assertEqual(result.numbers, ["3.25", "8.75"])
        self.assertEqual([(i.label, i.amount) for i in result.items], [("coffee", "3.25"), ("sandwich", "8.75")])
        self.assertEqual(result.items[0].original, "coffee 3.25")
        self.assertTrue(self.processor.is_spending_related(text))
    
    def test_plain_message(self):
        text = "Just a regular message"
        result = self.processor.extract(text)
        
        self.assertEqual(result.numbers, [])
        self.assertEqual(result.items, [])
        self.assertFalse(self.processor.is_spending_related(text))
    
    def test_currency_word_items(self):
        result = self.processor.extract("taxi 12 euros, tip 2 pounds")
        
        self.assertEqual(result.numbers, ["12", "2"])
        self.assertEqual([i.label for i in result.items], ["taxi", "tip"])
    
    def test_duplicate_values_are_collapsed(self):
        result = self.processor.extract("paid 10 and 10.00 again, 10 dollars")
        
        self.assertEqual(result.numbers, ["10"])
        self.assertEqual(len(result.items), 1)
    
    def test_oversized_amount_is_dropped(self):
        result = self.processor.extract("spent 1" + "0" * 400)
        
        self.assertEqual(result.numbers, [])
        self.assertEqual(result.items, [])
    
    def test_non_ascii_digits_are_ignored(self):
        result = self.processor.extract("paid \u0663\u0660 for taxi")
        
        self.assertEqual(result.numbers, [])
        self.assertEqual(result.items, [])
    
    def test_bare_numbers_follow_items(self):
        result = self.processor.extract("$40 for groceries, lunch 12.50")
        
        self.assertEqual(result.numbers, ["12.5", "40"])
        self.assertEqual([i.label for i in result.items], ["lunch"])
    
    def test_invariants_hold(self):
        messages = [
            "lunch 4.50 coffee 3.25 lunch 4.5",
            "rent $1200 and 1200 dollars, fee 15",
            "1.2.3 and 4.56.7 then 8",
            "Spent 5, 10, 15 and 20 today",
        ]
        for text in messages:
            result = self.processor.extract(text)
            values = [Decimal(n) for n in result.numbers]
            self.assertEqual(len(values), len(set(values)), text)
            for item in result.items:
                self.assertIn(item.amount, result.numbers, text)
    
    def test_custom_patterns(self):
        processor = MessageProcessor(
            item_patterns=[r"(\w+)=(\d+)"],
            number_patterns=[],
            spending_keywords=["owed"]
        )
        result = processor.extract("pizza=18 soda 2")
        
        self.assertEqual(result.numbers, ["18"])
        self.assertEqual(result.items[0].label, "pizza")
        self.assertTrue(processor.is_spending_related("I owed him"))


class TestClassification(unittest.TestCase):
    """Test spending relatedness and categories."""
    
    def setUp(self):
        """Set up test fixtures."""
        self.processor = MessageProcessor()
    
    def test_keyword_alone_is_enough(self):
        self.assertTrue(self.processor.is_spending_related("Who paid for this?"))
    
    def test_significant_number_range(self):
        self.assertTrue(self.processor.is_spending_related("see you at 10000"))
        self.assertTrue(self.processor.is_spending_related("meet at 1"))
        self.assertFalse(self.processor.is_spending_related("population is 20000"))
        self.assertFalse(self.processor.is_spending_related("about 0.50 each"))
    
    def test_category_precedence(self):
        self.assertEqual(categorize("gas station food"), "Food & Dining")
        self.assertEqual(categorize("filled up fuel"), "Transportation")
        self.assertEqual(categorize("Monthly RENT"), "Housing")
        self.assertEqual(categorize("electric bill"), "Utilities")
        self.assertEqual(categorize("new clothes"), "Shopping")
        self.assertEqual(categorize("movie night"), "Entertainment")
        self.assertEqual(categorize("lunch with friends"), "Other")
    
    def test_sanitize_sender(self):
        self.assertEqual(sanitize_sender("+15551234567@c.us"), "15551234567")
        self.assertEqual(sanitize_sender("John (Work)!"), "John Work")
        self.assertEqual(sanitize_sender("  Mary-Ann  "), "Mary-Ann")


class TestProcessMessage(unittest.TestCase):
    """Test building message facts and insights."""
    
    def setUp(self):
        """Set up test fixtures."""
        self.processor = MessageProcessor()
        self.timestamp = datetime(2025, 3, 14, 9, 5, 7)
    
    def test_process_message(self):
        fact = self.processor.process_message("  lunch 4.50  ", "+Alice@c.us", self.timestamp)
        
        self.assertEqual(fact.timestamp, "2025-03-14 09:05:07")
        self.assertEqual(fact.sender, "Alice")
        self.assertEqual(fact.text, "lunch 4.50")
        self.assertEqual(fact.numbers, ["4.5"])
        self.assertEqual(fact.month, "March")
        self.assertEqual(fact.year, "2025")
        self.assertTrue(fact.is_spending_related)
    
    def test_extraction_error_returns_none(self):
        with patch.object(self.processor, "extract", side_effect=RuntimeError("boom")):
            self.assertIsNone(self.processor.process_message("lunch 4.50", "Alice", self.timestamp))
    
    def test_insights(self):
        fact = self.processor.process_message("rent 1200 and fee 50", "Bob", self.timestamp)
        insights = self.processor.get_spending_insights(fact)
        
        self.assertTrue(insights.has_amount)
        self.assertEqual(insights.amount_count, 2)
        self.assertEqual(insights.total_amount, Decimal("1250"))
        self.assertTrue(insights.is_high_value)
        self.assertEqual(insights.category, "Housing")
    
    def test_insights_without_amounts(self):
        fact = self.processor.process_message("hello there", "Bob", self.timestamp)
        insights = self.processor.get_spending_insights(fact)
        
        self.assertFalse(insights.has_amount)
        self.assertEqual(insights.total_amount, Decimal("0"))
        self.assertFalse(insights.is_high_value)


if __name__ == "__main__":
    unittest.main()
