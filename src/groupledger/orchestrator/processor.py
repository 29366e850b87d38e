"""Message pipeline: transport event -> extraction -> ledger."""
from datetime import datetime
from typing import Optional

from .models import InboundEvent
from groupledger.extraction.models import MessageFact, MessageInsights
from groupledger.extraction.processor import MessageProcessor
from groupledger.ledger.store import LedgerStore
from groupledger.utils.logger import get_logger, set_sender_context

logger = get_logger()

RULE = "─" * 50


class PipelineCoordinator:
    """Processes one inbound message at a time: extract, append, aggregate."""

    def __init__(
        self,
        processor: MessageProcessor,
        store: LedgerStore,
        target_conversation_id: str,
        enable_spending_analysis: bool = True
    ):
        self.processor = processor
        self.store = store
        self.target_conversation_id = target_conversation_id
        self.enable_spending_analysis = enable_spending_analysis

    def handle_event(self, event: InboundEvent) -> Optional[MessageInsights]:
        """Route a transport event; only the target conversation is processed."""
        return self.on_message(
            text=event.text,
            sender=event.sender,
            timestamp=event.timestamp or datetime.now(),
            is_from_target_channel=event.conversation_id == self.target_conversation_id,
            is_system_message=event.is_status
        )

    def on_message(
        self,
        text: str,
        sender: str,
        timestamp: datetime,
        is_from_target_channel: bool = True,
        is_system_message: bool = False
    ) -> Optional[MessageInsights]:
        """
        Process one message.

        Returns:
            Display insights, or None when the message was ignored or failed
        """
        if not is_from_target_channel or is_system_message:
            return None

        try:
            logger.info(f"New message from {sender or 'Unknown'}: {text}")

            fact = self.processor.process_message(text, sender, timestamp)
            if fact is None:
                logger.warning("Message could not be processed, skipping")
                return None

            set_sender_context(fact.sender)
            self.store.append_message(fact)

            if fact.numbers and self.enable_spending_analysis:
                self.store.record_spending(fact.amounts, fact.month, fact.year, fact.sender)

            insights = self.processor.get_spending_insights(fact)
            if insights.has_amount:
                self.display_message_insights(fact, insights)
            return insights

        except Exception as e:
            logger.error(f"Error handling message: {e}", exc_info=True)
            return None
        finally:
            set_sender_context(None)

    def display_message_insights(self, fact: MessageFact, insights: MessageInsights) -> None:
        lines = [
            "Spending Analysis:",
            f"   Sender: {fact.sender}",
            f"   Amount: ${insights.total_amount:.2f}",
            f"   Category: {insights.category}",
            f"   High Value: {'Yes' if insights.is_high_value else 'No'}",
            f"   Numbers Found: {insights.amount_count}",
        ]
        if fact.items:
            lines.append("   Items Detected:")
            lines.extend(f"     • {item.label}: ${item.amount}" for item in fact.items)
        lines.append(RULE)
        logger.info("\n".join(lines))

    def display_spending_summary(self) -> None:
        summary = self.store.summary()
        if summary is None:
            logger.info("No spending data available yet. Start sending messages with amounts!")
            return

        lines = [
            "Current Spending Summary:",
            f"   Total Months Tracked: {summary.total_months}",
            f"   Total Spent: ${summary.total_spent:.2f}",
            f"   Average Monthly Spending: ${summary.average_monthly_spending:.2f}",
        ]
        highest = summary.highest_month
        if highest and highest.total > 0:
            lines.append(f"   Highest Month: {highest.month} {highest.year} - ${highest.total:.2f}")

        lines.append("   Recent Months:")
        lines.extend(
            f"     {m.month} {m.year}: ${m.total:.2f} ({m.transactions} transactions)"
            for m in summary.recent_months
        )
        lines.append(RULE)
        logger.info("\n".join(lines))
