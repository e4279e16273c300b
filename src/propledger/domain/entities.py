"""Domain model entities for propledger.

These are pure data classes representing business concepts, independent of
database schema. Storage implementations map their rows onto these, so the
engine never touches ORM objects or sessions directly.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from typing import Optional

from propledger.utils.periods import YearMonth


class CategoryKind(str, Enum):
    """Category kind; decides the sign convention and report bucket."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class PropertyStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    WATCHLIST = "watchlist"


class TransactionSource(str, Enum):
    MANUAL = "manual"
    RECURRING = "recurring"
    IMPORT = "import"


@dataclass(frozen=True)
class Property:
    """Rental property domain entity."""

    id: int
    name: str
    status: PropertyStatus
    purchase_price_cents: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity with hierarchical structure."""

    id: int
    name: str
    kind: CategoryKind
    parent_id: Optional[int]
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger entry. ``amount_cents`` is signed; ``deleted_at`` marks a soft delete."""

    id: int
    property_id: int
    category_id: int
    date: date
    amount_cents: int
    memo: Optional[str]
    source: TransactionSource
    statement_month: Optional[YearMonth]
    deleted_at: Optional[datetime]
    created_at: datetime

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class AnnualCategoryAmount:
    """Lump sum known only at annual granularity for one property and category."""

    id: int
    property_id: int
    year: int
    category_id: int
    amount_cents: int
    ownership_ref: Optional[str]
    note: Optional[str]


@dataclass(frozen=True)
class RecurringDefinition:
    """Template for an obligation that recurs once per calendar month."""

    id: int
    property_id: int
    category_id: int
    amount_cents: int
    memo: Optional[str]
    day_of_month: int
    start_month: YearMonth
    end_month: Optional[YearMonth]
    is_active: bool
    created_at: datetime

    def applies_to(self, month: YearMonth) -> bool:
        """True when ``month`` lies inside the definition's active window."""
        if month < self.start_month:
            return False
        if self.end_month is not None and month > self.end_month:
            return False
        return True


@dataclass(frozen=True)
class RecurringPosting:
    """Idempotency record: (definition, month) was materialized as a ledger transaction."""

    id: int
    recurring_definition_id: int
    month: YearMonth
    ledger_transaction_id: int
    created_at: datetime


@dataclass(frozen=True)
class ScheduledItem:
    """A recurring definition due in a given month."""

    definition: RecurringDefinition
    month: YearMonth
    due_date: date
    already_posted: bool
    posting: Optional[RecurringPosting] = None


@dataclass(frozen=True)
class SkippedItem:
    """A scheduled item that was not posted, with the reason code."""

    definition_id: int
    reason: str


@dataclass(frozen=True)
class PostingResult:
    """Outcome of posting one property's recurring items for one month."""

    property_id: int
    month: YearMonth
    created_transaction_ids: tuple[int, ...] = ()
    skipped: tuple[SkippedItem, ...] = ()

    @property
    def posted_count(self) -> int:
        return len(self.created_transaction_ids)


@dataclass(frozen=True)
class CatchUpResult:
    """Outcome of posting every month from the earliest definition start."""

    property_id: int
    through_month: YearMonth
    months: tuple[PostingResult, ...] = field(default_factory=tuple)

    @property
    def posted_count(self) -> int:
        return sum(result.posted_count for result in self.months)


@dataclass(frozen=True)
class CategoryTotalRow:
    """One row of a hierarchical category report."""

    category_id: int
    name: str
    kind: CategoryKind
    depth: int
    amount_cents: int
