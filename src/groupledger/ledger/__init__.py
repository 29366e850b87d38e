"""Ledger module - workbook-backed message log and spending aggregates."""
from .models import (
    IndividualAggregate,
    MonthlyAggregate,
    MonthTotal,
    PersonShare,
    SpendingSummary
)
from .store import LedgerStore
from .workbook import WorkbookFile

__all__ = [
    "IndividualAggregate",
    "MonthlyAggregate",
    "MonthTotal",
    "PersonShare",
    "SpendingSummary",
    "LedgerStore",
    "WorkbookFile",
]
