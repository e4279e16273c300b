"""Transaction and annual amount domain service."""

from datetime import date
from typing import Optional

from propledger.database.base import Database
from propledger.domain.entities import (
    AnnualCategoryAmount,
    CategoryKind,
    Transaction,
    TransactionSource,
)
from propledger.domain.errors import (
    NotFoundError,
    ValidationError,
    category_not_found,
    property_not_found,
    transaction_not_found,
)
from propledger.utils.periods import MAX_YEAR, MIN_YEAR, YearMonth


class TransactionService:
    """Service for ledger transactions and annual lump sums."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_references(self, property_id: int, category_id: int):
        if self.db.get_property(property_id) is None:
            raise NotFoundError(property_not_found(property_id), reason="property_not_found")
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id), reason="category_not_found")
        return category

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
        """Create a ledger transaction.

        The amount is stored as given; sign conventions are applied when
        reports read it.

        Args:
            property_id: Property ID
            category_id: Category ID
            date: Transaction date
            amount_cents: Signed amount in cents
            memo: Optional memo
            source: Where the transaction came from
            statement_month: Optional accrual month

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount is not an integer
            NotFoundError: If the property or category doesn't exist
        """
        if not isinstance(amount_cents, int) or isinstance(amount_cents, bool):
            raise ValidationError(f"Amount must be integer cents, got {amount_cents!r}", reason="invalid_amount")
        self._check_references(property_id, category_id)
        return self.db.create_transaction(
            property_id=property_id,
            category_id=category_id,
            date=date,
            amount_cents=amount_cents,
            memo=(memo or "").strip() or None,
            source=source,
            statement_month=statement_month,
        )

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get transaction by ID, deleted or not.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id), reason="transaction_not_found")
        return txn

    def list_transactions(
        self,
        property_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        return self.db.list_transactions(
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            include_deleted=include_deleted,
        )

    def delete_transaction(self, transaction_id: int) -> None:
        """Soft-delete a transaction. A recurring month it belonged to becomes re-postable."""
        self.get_transaction(transaction_id)
        self.db.soft_delete_transaction(transaction_id)

    def restore_transaction(self, transaction_id: int) -> None:
        """Undo a soft delete."""
        self.get_transaction(transaction_id)
        self.db.restore_transaction(transaction_id)

    # Annual amounts
    def set_annual_amount(
        self,
        property_id: int,
        year: int,
        category_id: int,
        amount_cents: int,
        ownership_ref: Optional[str] = None,
        note: Optional[str] = None,
    ) -> int:
        """Create or replace an annual lump sum.

        Args:
            property_id: Property ID
            year: Calendar year
            category_id: Income or expense category ID
            amount_cents: Signed annual amount in cents
            ownership_ref: Optional ownership reference; part of the key
            note: Optional note

        Returns:
            Annual amount row ID

        Raises:
            ValidationError: If the year or amount is invalid, or the category is a transfer
            NotFoundError: If the property or category doesn't exist
        """
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValidationError(f"Year {year} is outside {MIN_YEAR}..{MAX_YEAR}", reason="invalid_year")
        if not isinstance(amount_cents, int) or isinstance(amount_cents, bool):
            raise ValidationError(f"Amount must be integer cents, got {amount_cents!r}", reason="invalid_amount")
        category = self._check_references(property_id, category_id)
        if category.kind == CategoryKind.TRANSFER:
            raise ValidationError(
                f"Annual amounts cannot use transfer category '{category.name}'", reason="transfer_not_allowed"
            )
        return self.db.upsert_annual_amount(
            property_id=property_id,
            year=year,
            category_id=category_id,
            amount_cents=amount_cents,
            ownership_ref=(ownership_ref or "").strip() or None,
            note=note,
        )

    def list_annual_amounts(
        self,
        property_id: Optional[int] = None,
        years: Optional[list[int]] = None,
    ) -> list[AnnualCategoryAmount]:
        return self.db.list_annual_amounts(property_id=property_id, years=years)
