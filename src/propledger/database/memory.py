"""In-memory database implementation.

Holds domain entities in dictionaries behind one lock. It honors the same
contract as the SQLAlchemy implementation (uniqueness of postings and annual
keys, soft delete, storage-not-ready before ``initialize_schema``) and is
used by tests and by callers embedding the engine without a database.
"""

import threading
from dataclasses import replace
from datetime import date, datetime, UTC
from itertools import count
from typing import Iterable, Optional

from propledger.database.base import Database
from propledger.domain.entities import (
    AnnualCategoryAmount,
    Category,
    CategoryKind,
    Property,
    PropertyStatus,
    RecurringDefinition,
    RecurringPosting,
    Transaction,
    TransactionSource,
)
from propledger.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageUnavailableError,
    category_not_found,
    duplicate_posting,
    recurring_definition_not_found,
    transaction_not_found,
)
from propledger.utils.periods import YearMonth


def _now() -> datetime:
    return datetime.now(UTC)


class InMemoryDatabase(Database):
    """Dictionary-backed implementation of Database interface."""

    def __init__(self):
        self._lock = threading.RLock()
        self._ready = False
        self._ids = count(1)
        self._properties: dict[int, Property] = {}
        self._categories: dict[int, Category] = {}
        self._transactions: dict[int, Transaction] = {}
        self._annual: dict[int, AnnualCategoryAmount] = {}
        self._definitions: dict[int, RecurringDefinition] = {}
        self._postings: dict[tuple[int, YearMonth], RecurringPosting] = {}

    def _check_ready(self) -> None:
        if not self._ready:
            raise StorageUnavailableError("Storage is not provisioned; run 'propledger init-db'")

    def _next_id(self) -> int:
        return next(self._ids)

    def connect(self) -> None:
        """Connect to the database."""
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        self._ready = True

    # Property operations
    def create_property(
        self,
        name: str,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        purchase_price_cents: Optional[int] = None,
    ) -> int:
        with self._lock:
            self._check_ready()
            if any(p.name == name for p in self._properties.values()):
                raise ConflictError(f"Property '{name}' already exists")
            property_id = self._next_id()
            self._properties[property_id] = Property(
                id=property_id,
                name=name,
                status=PropertyStatus(status),
                purchase_price_cents=purchase_price_cents,
                created_at=_now(),
            )
            return property_id

    def get_property(self, property_id: int) -> Optional[Property]:
        with self._lock:
            self._check_ready()
            return self._properties.get(property_id)

    def list_properties(self, status: Optional[PropertyStatus] = None) -> list[Property]:
        with self._lock:
            self._check_ready()
            rows = [p for p in self._properties.values() if status is None or p.status == status]
            return sorted(rows, key=lambda p: p.name)

    # Category operations
    def create_category(
        self,
        name: str,
        kind: CategoryKind = CategoryKind.EXPENSE,
        parent_id: Optional[int] = None,
        active: bool = True,
    ) -> int:
        with self._lock:
            self._check_ready()
            if parent_id is not None and parent_id not in self._categories:
                raise ConflictError(f"Parent category {parent_id} does not exist")
            category_id = self._next_id()
            self._categories[category_id] = Category(
                id=category_id,
                name=name,
                kind=CategoryKind(kind),
                parent_id=parent_id,
                active=active,
                created_at=_now(),
            )
            return category_id

    def get_category(self, category_id: int) -> Optional[Category]:
        with self._lock:
            self._check_ready()
            return self._categories.get(category_id)

    def get_category_by_path(self, path: str) -> Optional[Category]:
        parts = [p.strip() for p in path.split(">")]
        with self._lock:
            self._check_ready()
            current: Optional[Category] = None
            for part in parts:
                parent_id = current.id if current is not None else None
                matches = sorted(
                    (c for c in self._categories.values() if c.name == part and c.parent_id == parent_id),
                    key=lambda c: c.id,
                )
                if not matches:
                    return None
                current = matches[0]
            return current

    def list_categories(self, kinds: Optional[Iterable[CategoryKind]] = None) -> list[Category]:
        allowed = {CategoryKind(k) for k in kinds} if kinds is not None else None
        with self._lock:
            self._check_ready()
            rows = [c for c in self._categories.values() if allowed is None or c.kind in allowed]
            return sorted(rows, key=lambda c: (c.name, c.id))

    def set_category_active(self, category_id: int, active: bool) -> None:
        with self._lock:
            self._check_ready()
            category = self._categories.get(category_id)
            if category is None:
                raise NotFoundError(category_not_found(category_id), reason="category_not_found")
            self._categories[category_id] = replace(category, active=active)

    # Transaction operations
    def create_transaction(
        self,
        property_id: int,
        category_id: int,
        date: date,
        amount_cents: int,
        memo: Optional[str] = None,
        source: TransactionSource = TransactionSource.MANUAL,
        statement_month: Optional[YearMonth] = None,
    ) -> int:
        with self._lock:
            self._check_ready()
            return self._insert_transaction(
                property_id, category_id, date, amount_cents, memo, TransactionSource(source), statement_month
            )

    def _insert_transaction(
        self,
        property_id: int,
        category_id: int,
        txn_date: date,
        amount_cents: int,
        memo: Optional[str],
        source: TransactionSource,
        statement_month: Optional[YearMonth],
    ) -> int:
        if property_id not in self._properties or category_id not in self._categories:
            raise ConflictError("Transaction references a missing property or category")
        transaction_id = self._next_id()
        self._transactions[transaction_id] = Transaction(
            id=transaction_id,
            property_id=property_id,
            category_id=category_id,
            date=txn_date,
            amount_cents=amount_cents,
            memo=memo,
            source=source,
            statement_month=statement_month,
            deleted_at=None,
            created_at=_now(),
        )
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with self._lock:
            self._check_ready()
            return self._transactions.get(transaction_id)

    def get_transactions(self, transaction_ids: Iterable[int]) -> dict[int, Transaction]:
        with self._lock:
            self._check_ready()
            return {tid: self._transactions[tid] for tid in set(transaction_ids) if tid in self._transactions}

    def _require_transaction(self, transaction_id: int) -> Transaction:
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id), reason="transaction_not_found")
        return transaction

    def soft_delete_transaction(self, transaction_id: int) -> None:
        with self._lock:
            self._check_ready()
            transaction = self._require_transaction(transaction_id)
            if transaction.deleted_at is None:
                self._transactions[transaction_id] = replace(transaction, deleted_at=_now())

    def restore_transaction(self, transaction_id: int) -> None:
        with self._lock:
            self._check_ready()
            transaction = self._require_transaction(transaction_id)
            self._transactions[transaction_id] = replace(transaction, deleted_at=None)

    @staticmethod
    def _newest_first(rows: list[Transaction]) -> list[Transaction]:
        return sorted(rows, key=lambda t: (t.date, t.id), reverse=True)

    def list_transactions(
        self,
        property_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_ids: Optional[Iterable[int]] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        allowed = set(category_ids) if category_ids is not None else None
        with self._lock:
            self._check_ready()
            rows = [
                t
                for t in self._transactions.values()
                if (property_id is None or t.property_id == property_id)
                and (start_date is None or t.date >= start_date)
                and (end_date is None or t.date <= end_date)
                and (allowed is None or t.category_id in allowed)
                and (include_deleted or not t.is_deleted)
            ]
            return self._newest_first(rows)

    def list_accrual_transactions(
        self,
        statement_months: Iterable[YearMonth],
        start_date: date,
        end_date: date,
        property_id: Optional[int] = None,
        category_ids: Optional[Iterable[int]] = None,
    ) -> list[Transaction]:
        months = set(statement_months)
        allowed = set(category_ids) if category_ids is not None else None

        def attributed(t: Transaction) -> bool:
            if t.statement_month is not None:
                return t.statement_month in months
            return start_date <= t.date <= end_date

        with self._lock:
            self._check_ready()
            rows = [
                t
                for t in self._transactions.values()
                if not t.is_deleted
                and attributed(t)
                and (property_id is None or t.property_id == property_id)
                and (allowed is None or t.category_id in allowed)
            ]
            return self._newest_first(rows)

    # Annual amount operations
    def upsert_annual_amount(
        self,
        property_id: int,
        year: int,
        category_id: int,
        amount_cents: int,
        ownership_ref: Optional[str] = None,
        note: Optional[str] = None,
    ) -> int:
        owner = ownership_ref or None
        with self._lock:
            self._check_ready()
            for row in self._annual.values():
                if (row.property_id, row.year, row.category_id, row.ownership_ref) == (
                    property_id,
                    year,
                    category_id,
                    owner,
                ):
                    self._annual[row.id] = replace(row, amount_cents=amount_cents, note=note)
                    return row.id
            row_id = self._next_id()
            self._annual[row_id] = AnnualCategoryAmount(
                id=row_id,
                property_id=property_id,
                year=year,
                category_id=category_id,
                amount_cents=amount_cents,
                ownership_ref=owner,
                note=note,
            )
            return row_id

    def list_annual_amounts(
        self,
        property_id: Optional[int] = None,
        years: Optional[Iterable[int]] = None,
        category_ids: Optional[Iterable[int]] = None,
    ) -> list[AnnualCategoryAmount]:
        year_set = set(years) if years is not None else None
        allowed = set(category_ids) if category_ids is not None else None
        with self._lock:
            self._check_ready()
            rows = [
                r
                for r in self._annual.values()
                if (property_id is None or r.property_id == property_id)
                and (year_set is None or r.year in year_set)
                and (allowed is None or r.category_id in allowed)
            ]
            return sorted(rows, key=lambda r: (r.year, r.id))

    # Recurring definition operations
    def create_recurring_definition(
        self,
        property_id: int,
        category_id: int,
        amount_cents: int,
        day_of_month: int,
        start_month: YearMonth,
        end_month: Optional[YearMonth] = None,
        memo: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        with self._lock:
            self._check_ready()
            definition_id = self._next_id()
            self._definitions[definition_id] = RecurringDefinition(
                id=definition_id,
                property_id=property_id,
                category_id=category_id,
                amount_cents=amount_cents,
                memo=memo,
                day_of_month=day_of_month,
                start_month=start_month,
                end_month=end_month,
                is_active=is_active,
                created_at=_now(),
            )
            return definition_id

    def _require_definition(self, definition_id: int) -> RecurringDefinition:
        definition = self._definitions.get(definition_id)
        if definition is None:
            raise NotFoundError(
                recurring_definition_not_found(definition_id), reason="recurring_definition_not_found"
            )
        return definition

    def get_recurring_definition(self, definition_id: int) -> Optional[RecurringDefinition]:
        with self._lock:
            self._check_ready()
            return self._definitions.get(definition_id)

    def update_recurring_definition(
        self,
        definition_id: int,
        category_id: int,
        amount_cents: int,
        day_of_month: int,
        start_month: YearMonth,
        end_month: Optional[YearMonth],
        memo: Optional[str],
        is_active: bool,
    ) -> None:
        with self._lock:
            self._check_ready()
            definition = self._require_definition(definition_id)
            self._definitions[definition_id] = replace(
                definition,
                category_id=category_id,
                amount_cents=amount_cents,
                day_of_month=day_of_month,
                start_month=start_month,
                end_month=end_month,
                memo=memo,
                is_active=is_active,
            )

    def delete_recurring_definition(self, definition_id: int) -> None:
        with self._lock:
            self._check_ready()
            self._require_definition(definition_id)
            del self._definitions[definition_id]
            for key in [k for k in self._postings if k[0] == definition_id]:
                del self._postings[key]

    def list_recurring_definitions(
        self,
        property_id: Optional[int] = None,
        active_only: bool = False,
    ) -> list[RecurringDefinition]:
        with self._lock:
            self._check_ready()
            rows = [
                d
                for d in self._definitions.values()
                if (property_id is None or d.property_id == property_id) and (d.is_active or not active_only)
            ]
            return sorted(rows, key=lambda d: (d.day_of_month, d.created_at, d.id))

    # Recurring posting operations
    def get_recurring_posting(self, definition_id: int, month: YearMonth) -> Optional[RecurringPosting]:
        with self._lock:
            self._check_ready()
            return self._postings.get((definition_id, month))

    def list_recurring_postings(
        self,
        definition_ids: Iterable[int],
        months: Optional[Iterable[YearMonth]] = None,
    ) -> list[RecurringPosting]:
        ids = set(definition_ids)
        month_set = set(months) if months is not None else None
        with self._lock:
            self._check_ready()
            rows = [
                p
                for (definition_id, month), p in self._postings.items()
                if definition_id in ids and (month_set is None or month in month_set)
            ]
            return sorted(rows, key=lambda p: (p.month, p.id))

    def post_recurring_transaction(
        self,
        definition_id: int,
        month: YearMonth,
        property_id: int,
        category_id: int,
        date: date,
        amount_cents: int,
        memo: Optional[str],
        replaces_transaction_id: Optional[int] = None,
    ) -> int:
        key = (definition_id, month)
        with self._lock:
            self._check_ready()
            existing = self._postings.get(key)
            if replaces_transaction_id is None:
                if existing is not None:
                    raise ConflictError(duplicate_posting(definition_id, str(month)), reason="already_posted")
            elif existing is None or existing.ledger_transaction_id != replaces_transaction_id:
                raise ConflictError(duplicate_posting(definition_id, str(month)), reason="already_posted")

            transaction_id = self._insert_transaction(
                property_id, category_id, date, amount_cents, memo, TransactionSource.RECURRING, month
            )
            if existing is None:
                self._postings[key] = RecurringPosting(
                    id=self._next_id(),
                    recurring_definition_id=definition_id,
                    month=month,
                    ledger_transaction_id=transaction_id,
                    created_at=_now(),
                )
            else:
                self._postings[key] = replace(existing, ledger_transaction_id=transaction_id)
            return transaction_id
