"""Application context shared by the event loop and the status server."""
from dataclasses import dataclass

from .processor import PipelineCoordinator
from groupledger.config.settings import AppSettings
from groupledger.extraction.processor import MessageProcessor
from groupledger.ledger.store import LedgerStore


@dataclass
class AppContext:
    """Everything built once at startup; passed explicitly to handlers."""
    settings: AppSettings
    store: LedgerStore
    processor: MessageProcessor
    coordinator: PipelineCoordinator
    connected: bool = False

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "AppContext":
        store = LedgerStore.from_settings(settings)
        processor = MessageProcessor.from_settings(settings)
        coordinator = PipelineCoordinator(
            processor=processor,
            store=store,
            target_conversation_id=settings.target_conversation_id,
            enable_spending_analysis=bool(settings.enable_spending_analysis)
        )
        return cls(settings=settings, store=store, processor=processor, coordinator=coordinator)

    def start(self) -> None:
        """Load the ledger from disk."""
        self.store.load()
