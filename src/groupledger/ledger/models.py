"""Data models for the spending ledger."""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence, Tuple

MONTHLY_HEADERS = [
    "Month", "Year", "Total Spent", "Number of Transactions",
    "Average Transaction", "Highest Transaction", "Lowest Transaction",
]
INDIVIDUAL_HEADERS = [
    "Month", "Year", "Person", "Total Spent", "Number of Transactions", "Percentage of Total",
]
MESSAGE_HEADERS = [
    "Timestamp", "Sender", "Message", "Extracted Numbers", "Extracted Items",
    "Is Spending Related", "Month", "Year",
]

ZERO = Decimal("0")
CENT = Decimal("0.01")


def cell_text(value: Any) -> str:
    """Read a key cell as text; whole floats come back from spreadsheets as "2025.0"."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def cell_decimal(value: Any) -> Decimal:
    """Read a numeric cell. Raises ValueError for non-numeric or non-finite content."""
    if value is None or value == "":
        return ZERO
    try:
        number = Decimal(str(value).replace(",", "").strip())
    except Exception as e:
        raise ValueError(f"Not a number: {value!r}") from e
    if not number.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return number


@dataclass
class MonthlyAggregate:
    """Running spending statistics for one month."""
    month: str
    year: str
    total_spent: Decimal = ZERO
    transaction_count: int = 0
    highest_transaction: Decimal = ZERO
    lowest_transaction: Decimal = ZERO
    
    @property
    def key(self) -> Tuple[str, str]:
        return (self.month, self.year)
    
    @property
    def average_transaction(self) -> Decimal:
        if self.transaction_count == 0:
            return ZERO
        return self.total_spent / self.transaction_count
    
    def add(self, amounts: Sequence[Decimal]) -> None:
        """Fold a batch of positive amounts into the running totals."""
        if not amounts:
            return
        
        if self.transaction_count == 0:
            self.highest_transaction = max(amounts)
            self.lowest_transaction = min(amounts)
        else:
            self.highest_transaction = max(self.highest_transaction, max(amounts))
            self.lowest_transaction = min(self.lowest_transaction, min(amounts))
        
        self.total_spent += sum(amounts, ZERO)
        self.transaction_count += len(amounts)
    
    def to_row(self) -> List[Any]:
        return [
            self.month,
            self.year,
            float(self.total_spent),
            self.transaction_count,
            float(self.average_transaction),
            float(self.highest_transaction),
            float(self.lowest_transaction),
        ]
    
    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "MonthlyAggregate":
        """Parse a Spending Analysis row. The stored average is derived, so it is ignored."""
        if len(row) < 7:
            raise ValueError(f"Expected 7 columns, got {len(row)}")
        
        month, year = cell_text(row[0]), cell_text(row[1])
        if not month or not year:
            raise ValueError("Missing month or year")
        if row[2] is None or row[3] is None:
            raise ValueError("Missing total or transaction count")
        
        return cls(
            month=month,
            year=year,
            total_spent=cell_decimal(row[2]),
            transaction_count=int(cell_decimal(row[3])),
            highest_transaction=cell_decimal(row[5]),
            lowest_transaction=cell_decimal(row[6]),
        )


@dataclass
class IndividualAggregate:
    """Running spending statistics for one person within one month."""
    month: str
    year: str
    person: str
    total_spent: Decimal = ZERO
    transaction_count: int = 0
    percentage: Decimal = ZERO
    
    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.month, self.year, self.person)
    
    def add(self, amounts: Sequence[Decimal]) -> None:
        self.total_spent += sum(amounts, ZERO)
        self.transaction_count += len(amounts)
    
    def refresh_percentage(self, monthly_total: Decimal) -> None:
        """Share of the monthly total, rounded to 2 decimal places."""
        if monthly_total > 0:
            share = self.total_spent / monthly_total * 100
            self.percentage = share.quantize(CENT, rounding=ROUND_HALF_UP)
        else:
            self.percentage = ZERO
    
    def to_row(self) -> List[Any]:
        return [
            self.month,
            self.year,
            self.person,
            float(self.total_spent),
            self.transaction_count,
            float(self.percentage),
        ]
    
    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "IndividualAggregate":
        if len(row) < 6:
            raise ValueError(f"Expected 6 columns, got {len(row)}")
        
        month, year, person = cell_text(row[0]), cell_text(row[1]), cell_text(row[2])
        if not month or not year:
            raise ValueError("Missing month or year")
        if row[3] is None or row[4] is None:
            raise ValueError("Missing total or transaction count")
        
        return cls(
            month=month,
            year=year,
            person=person,
            total_spent=cell_decimal(row[3]),
            transaction_count=int(cell_decimal(row[4])),
            percentage=cell_decimal(row[5]),
        )


@dataclass
class MonthTotal:
    """One month in a spending summary."""
    month: str
    year: str
    total: Decimal
    transactions: int = 0
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "total": float(self.total),
            "transactions": self.transactions,
        }


@dataclass
class PersonShare:
    """One person's spending within a month."""
    person: str
    amount: Decimal
    percentage: Decimal
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "person": self.person,
            "amount": float(self.amount),
            "percentage": float(self.percentage),
        }


@dataclass
class SpendingSummary:
    """Rollup of the monthly and individual spending tables."""
    total_months: int
    total_spent: Decimal
    average_monthly_spending: Decimal
    highest_month: Optional[MonthTotal]
    recent_months: List[MonthTotal] = field(default_factory=list)
    individual_spending: Dict[str, List[PersonShare]] = field(default_factory=dict)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_months": self.total_months,
            "total_spent": float(self.total_spent),
            "average_monthly_spending": float(self.average_monthly_spending),
            "highest_month": self.highest_month.to_dict() if self.highest_month else None,
            "recent_months": [m.to_dict() for m in self.recent_months],
            "individual_spending": {
                key: [share.to_dict() for share in shares]
                for key, shares in self.individual_spending.items()
            },
        }
