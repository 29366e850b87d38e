"""Workbook-backed spending ledger with additive monthly and per-person aggregation."""
import threading
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    INDIVIDUAL_HEADERS,
    MESSAGE_HEADERS,
    MONTHLY_HEADERS,
    ZERO,
    IndividualAggregate,
    MonthlyAggregate,
    MonthTotal,
    PersonShare,
    SpendingSummary
)
from .workbook import WorkbookFile
from groupledger.extraction.matchers import MAX_AMOUNT
from groupledger.extraction.models import MessageFact
from groupledger.utils.exceptions import StoreBusyError, StoreError
from groupledger.utils.logger import get_logger
from groupledger.utils.retry import call_with_retry

logger = get_logger()

RECENT_MONTHS = 3


class LedgerStore:
    """Holds the Messages, Spending Analysis and Individual Spending tables."""

    def __init__(
        self,
        workbook_path: Path,
        messages_sheet: str = "Messages",
        spending_sheet: str = "Spending Analysis",
        individual_sheet: str = "Individual Spending",
        max_attempts: int = 3,
        retry_delay: float = 1.0
    ):
        self.workbook = WorkbookFile(workbook_path)
        self.messages_sheet = messages_sheet
        self.spending_sheet = spending_sheet
        self.individual_sheet = individual_sheet
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

        self._lock = threading.RLock()
        self._messages: List[List[Any]] = []
        self._monthly: Dict[Tuple[str, str], MonthlyAggregate] = {}
        self._individual: Dict[Tuple[str, str, str], IndividualAggregate] = {}
        self._loaded = False
        self._read_only = False

    @classmethod
    def from_settings(cls, settings) -> "LedgerStore":
        return cls(
            workbook_path=Path(settings.workbook_path),
            messages_sheet=settings.messages_sheet,
            spending_sheet=settings.spending_sheet,
            individual_sheet=settings.individual_sheet,
            max_attempts=int(settings.retry_max_attempts),
            retry_delay=float(settings.retry_delay_seconds)
        )

    @property
    def path(self) -> Path:
        return self.workbook.path

    def load(self) -> None:
        """Load the workbook if present, otherwise start empty tables and write them out."""
        if self._loaded:
            return

        if not self.workbook.exists():
            logger.info(f"Creating new workbook at {self.path}")
            self._loaded = True
            self.persist()
            return

        try:
            tables = self.workbook.read()
        except StoreError as e:
            self._loaded = True
            try:
                moved_to = self.workbook.quarantine()
            except OSError as move_error:
                logger.error(
                    f"{e}. Could not move it aside ({move_error}); "
                    f"starting with empty tables and leaving the file untouched"
                )
                self._read_only = True
                return
            logger.error(f"{e}. Moved it to {moved_to} and starting with empty tables")
            self.persist()
            return

        with self._lock:
            self._messages = [list(row) for row in tables.get(self.messages_sheet, [])]
            self._monthly = self._parse_rows(
                tables.get(self.spending_sheet, []), MonthlyAggregate.from_row, self.spending_sheet
            )
            self._individual = self._parse_rows(
                tables.get(self.individual_sheet, []), IndividualAggregate.from_row, self.individual_sheet
            )
            self._loaded = True

        logger.info(
            f"Loaded workbook {self.path}: {len(self._messages)} messages, "
            f"{len(self._monthly)} months, {len(self._individual)} individual rows"
        )

    @staticmethod
    def _parse_rows(rows: Iterable[Sequence[Any]], parse, sheet_name: str) -> Dict[tuple, Any]:
        """Parse aggregate rows into a keyed map, skipping malformed rows."""
        parsed = {}
        for index, row in enumerate(rows, start=2):
            try:
                record = parse(row)
            except (ValueError, InvalidOperation, OverflowError) as e:
                logger.warning(f"Skipping malformed row {index} in '{sheet_name}': {e}")
                continue
            if record.key in parsed:
                logger.warning(f"Duplicate key {record.key} at row {index} in '{sheet_name}', keeping first")
                continue
            parsed[record.key] = record
        return parsed

    def append_message(self, fact: MessageFact) -> bool:
        """Append one row to the Messages table and persist."""
        row = [
            fact.timestamp,
            fact.sender,
            fact.text,
            ", ".join(fact.numbers),
            "; ".join(f"{item.label}: ${item.amount}" for item in fact.items),
            "Yes" if fact.is_spending_related else "No",
            fact.month,
            fact.year,
        ]

        with self._lock:
            self._messages.append(row)

        saved = self.persist()
        logger.info(f"Added message from {fact.sender} to workbook")
        return saved

    def record_spending(self, amounts: Iterable[Any], month: str, year: str, person: str) -> bool:
        """
        Fold amounts into the monthly and individual aggregates, then persist.

        The monthly row is updated first; percentages for every person in that
        month are then recomputed against the new monthly total.
        """
        values = self._positive_amounts(amounts)
        if not values:
            logger.debug(f"No positive amounts to record for {person} in {month} {year}")
            return True

        with self._lock:
            monthly = self._monthly.get((month, year))
            if monthly is None:
                monthly = MonthlyAggregate(month=month, year=year)
                self._monthly[monthly.key] = monthly
            monthly.add(values)

            individual = self._individual.get((month, year, person))
            if individual is None:
                individual = IndividualAggregate(month=month, year=year, person=person)
                self._individual[individual.key] = individual
            individual.add(values)

            for record in self._individual.values():
                if record.month == month and record.year == year:
                    record.refresh_percentage(monthly.total_spent)

        logger.info(f"Updated spending analysis for {month} {year}")
        logger.info(f"Updated individual spending for {person} in {month} {year}")
        return self.persist()

    @staticmethod
    def _positive_amounts(amounts: Iterable[Any]) -> List[Decimal]:
        values = []
        for amount in amounts:
            try:
                value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
            except InvalidOperation:
                logger.warning(f"Ignoring non-numeric amount: {amount!r}")
                continue
            if not value.is_finite() or value <= 0:
                continue
            if value > MAX_AMOUNT:
                logger.warning(f"Ignoring amount above {MAX_AMOUNT}: {amount!r}")
                continue
            values.append(value)
        return values

    def persist(self) -> bool:
        """
        Rewrite the whole workbook, retrying while the file is busy.

        Returns:
            True if the workbook was written. Failures are logged, never raised;
            the in-memory tables stay authoritative until the next successful write.
        """
        if self._read_only:
            logger.warning(f"Not writing {self.path}: it could not be read or moved aside")
            return False

        with self._lock:
            tables = {
                self.messages_sheet: (MESSAGE_HEADERS, [list(row) for row in self._messages]),
                self.spending_sheet: (MONTHLY_HEADERS, [m.to_row() for m in self._monthly.values()]),
                self.individual_sheet: (INDIVIDUAL_HEADERS, [i.to_row() for i in self._individual.values()]),
            }

        try:
            call_with_retry(
                self.workbook.write,
                tables,
                max_attempts=self.max_attempts,
                delay=self.retry_delay,
                retryable_exceptions=(StoreBusyError,)
            )
            return True
        except StoreError as e:
            logger.error(f"Error saving workbook: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error saving workbook: {e}", exc_info=True)
            return False

    def monthly_total(self, month: str, year: str) -> Decimal:
        with self._lock:
            monthly = self._monthly.get((month, year))
            return monthly.total_spent if monthly else ZERO

    def get_monthly(self, month: str, year: str) -> Optional[MonthlyAggregate]:
        with self._lock:
            monthly = self._monthly.get((month, year))
            return replace(monthly) if monthly else None

    def get_individual(self, month: str, year: str, person: str) -> Optional[IndividualAggregate]:
        with self._lock:
            individual = self._individual.get((month, year, person))
            return replace(individual) if individual else None

    def monthly_rows(self) -> List[MonthlyAggregate]:
        with self._lock:
            return [replace(m) for m in self._monthly.values()]

    def individual_rows(self) -> List[IndividualAggregate]:
        with self._lock:
            return [replace(i) for i in self._individual.values()]

    def message_rows(self) -> List[List[Any]]:
        with self._lock:
            return [list(row) for row in self._messages]

    def summary(self) -> Optional[SpendingSummary]:
        """Roll up the monthly table; None when nothing has been recorded yet."""
        try:
            months = self.monthly_rows()
            if not months:
                return None

            totals = [
                MonthTotal(m.month, m.year, m.total_spent, m.transaction_count) for m in months
            ]
            total_spent = sum((t.total for t in totals), ZERO)

            highest = totals[0]
            for candidate in totals[1:]:
                if candidate.total > highest.total:
                    highest = candidate

            return SpendingSummary(
                total_months=len(totals),
                total_spent=total_spent,
                average_monthly_spending=total_spent / len(totals),
                highest_month=highest,
                recent_months=totals[-RECENT_MONTHS:],
                individual_spending=self._individual_summary()
            )
        except Exception as e:
            logger.error(f"Error getting spending summary: {e}", exc_info=True)
            return None

    def _individual_summary(self) -> Dict[str, List[PersonShare]]:
        grouped: Dict[str, List[PersonShare]] = {}
        for record in self.individual_rows():
            grouped.setdefault(f"{record.month} {record.year}", []).append(
                PersonShare(record.person, record.total_spent, record.percentage)
            )
        return grouped
