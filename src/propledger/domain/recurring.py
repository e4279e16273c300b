"""Recurring schedule engine and recurring definition management."""

from typing import Optional, Union

from propledger.database.base import Database
from propledger.domain.entities import RecurringDefinition, RecurringPosting, ScheduledItem, Transaction
from propledger.domain.errors import (
    NotFoundError,
    ValidationError,
    category_not_found,
    property_not_found,
    recurring_definition_not_found,
)
from propledger.utils.periods import MAX_DUE_DAY, PeriodError, YearMonth

MonthInput = Union[YearMonth, str, None]


def posting_is_live(posting: Optional[RecurringPosting], transactions: dict[int, Transaction]) -> bool:
    """True when a posting exists and its ledger transaction exists and is not deleted."""
    if posting is None:
        return False
    transaction = transactions.get(posting.ledger_transaction_id)
    return transaction is not None and not transaction.is_deleted


def _coerce_month(value: MonthInput) -> Optional[YearMonth]:
    if value is None or isinstance(value, YearMonth):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return YearMonth.parse(value)
    except PeriodError as e:
        raise ValidationError(str(e), reason=e.reason) from e


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class RecurringService:
    """Service for recurring definitions and their monthly schedule."""

    def __init__(self, db: Database):
        """Initialize recurring service.

        Args:
            db: Database instance
        """
        self.db = db

    # Schedule
    def scheduled_for_month(
        self,
        property_id: int,
        month: YearMonth,
        include_inactive: bool = False,
    ) -> list[ScheduledItem]:
        """Definitions due for a property in a month.

        A definition is due when ``month`` lies in its start/end window and it
        is active. ``already_posted`` is only true when the posting record
        points at a live (existing, not soft-deleted) ledger transaction.

        Args:
            property_id: Property ID
            month: Calendar month
            include_inactive: If True, inactive definitions are listed too.
                Meant for historical views; posting never sets it.

        Returns:
            Scheduled items ordered by due day, then definition creation
        """
        definitions = [
            d
            for d in self.db.list_recurring_definitions(property_id=property_id, active_only=not include_inactive)
            if d.applies_to(month)
        ]
        if not definitions:
            return []

        postings = {
            p.recurring_definition_id: p
            for p in self.db.list_recurring_postings([d.id for d in definitions], months=[month])
        }
        transactions = self.db.get_transactions(p.ledger_transaction_id for p in postings.values())

        return [
            ScheduledItem(
                definition=definition,
                month=month,
                due_date=month.day(definition.day_of_month),
                already_posted=posting_is_live(postings.get(definition.id), transactions),
                posting=postings.get(definition.id),
            )
            for definition in definitions
        ]

    def earliest_active_start(self, property_id: int) -> Optional[YearMonth]:
        """Earliest start month among a property's active definitions."""
        starts = [d.start_month for d in self.db.list_recurring_definitions(property_id=property_id, active_only=True)]
        return min(starts) if starts else None

    # Definition management
    def _validate(
        self,
        property_id: int,
        category_id: Optional[int],
        amount_cents: Optional[int],
        day_of_month: Optional[int],
        start_month: MonthInput,
        end_month: MonthInput,
    ) -> tuple[YearMonth, Optional[YearMonth]]:
        if category_id is None:
            raise ValidationError("Category is required", reason="missing_category")
        if amount_cents is None:
            raise ValidationError("Amount is required", reason="missing_amount")
        if not _is_int(amount_cents) or amount_cents <= 0:
            raise ValidationError(
                f"Amount must be a positive number of cents, got {amount_cents!r}", reason="invalid_amount"
            )
        start = _coerce_month(start_month)
        if start is None:
            raise ValidationError("Start month is required", reason="missing_start_month")
        end = _coerce_month(end_month)
        if not _is_int(day_of_month) or not 1 <= day_of_month <= MAX_DUE_DAY:
            raise ValidationError(
                f"Day of month must be between 1 and {MAX_DUE_DAY}, got {day_of_month!r}",
                reason="invalid_day_of_month",
            )
        if end is not None and end < start:
            raise ValidationError(f"End month {end} is before start month {start}", reason="end_before_start")

        if self.db.get_property(property_id) is None:
            raise NotFoundError(property_not_found(property_id), reason="property_not_found")
        if self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id), reason="category_not_found")
        return start, end

    def create_definition(
        self,
        property_id: int,
        category_id: Optional[int],
        amount_cents: Optional[int],
        day_of_month: Optional[int],
        start_month: MonthInput,
        end_month: MonthInput = None,
        memo: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        """Create a recurring definition.

        Args:
            property_id: Property ID
            category_id: Category ID
            amount_cents: Monthly amount as a positive number of cents; the
                ledger sign comes from the category kind at posting time
            day_of_month: Due day, 1..28
            start_month: First month (inclusive), ``YearMonth`` or ``YYYY-MM``
            end_month: Optional last month (inclusive)
            memo: Optional memo
            is_active: Whether the definition is posted

        Returns:
            Definition ID

        Raises:
            ValidationError: If any field is missing or invalid
            NotFoundError: If the property or category doesn't exist
        """
        start, end = self._validate(property_id, category_id, amount_cents, day_of_month, start_month, end_month)
        return self.db.create_recurring_definition(
            property_id=property_id,
            category_id=category_id,
            amount_cents=amount_cents,
            day_of_month=day_of_month,
            start_month=start,
            end_month=end,
            memo=(memo or "").strip() or None,
            is_active=is_active,
        )

    def get_definition(self, definition_id: int) -> RecurringDefinition:
        """Get a definition.

        Raises:
            NotFoundError: If the definition doesn't exist
        """
        definition = self.db.get_recurring_definition(definition_id)
        if definition is None:
            raise NotFoundError(
                recurring_definition_not_found(definition_id), reason="recurring_definition_not_found"
            )
        return definition

    def update_definition(
        self,
        definition_id: int,
        category_id: Optional[int],
        amount_cents: Optional[int],
        day_of_month: Optional[int],
        start_month: MonthInput,
        end_month: MonthInput = None,
        memo: Optional[str] = None,
        is_active: bool = True,
    ) -> None:
        """Replace a definition's editable fields, validated like ``create_definition``.

        Months already posted keep their ledger transactions.
        """
        existing = self.get_definition(definition_id)
        start, end = self._validate(
            existing.property_id, category_id, amount_cents, day_of_month, start_month, end_month
        )
        self.db.update_recurring_definition(
            definition_id=definition_id,
            category_id=category_id,
            amount_cents=amount_cents,
            day_of_month=day_of_month,
            start_month=start,
            end_month=end,
            memo=(memo or "").strip() or None,
            is_active=is_active,
        )

    def set_active(self, definition_id: int, active: bool) -> None:
        existing = self.get_definition(definition_id)
        self.db.update_recurring_definition(
            definition_id=definition_id,
            category_id=existing.category_id,
            amount_cents=existing.amount_cents,
            day_of_month=existing.day_of_month,
            start_month=existing.start_month,
            end_month=existing.end_month,
            memo=existing.memo,
            is_active=active,
        )

    def delete_definition(self, definition_id: int) -> None:
        """Delete a definition and its posting records; ledger transactions stay."""
        self.get_definition(definition_id)
        self.db.delete_recurring_definition(definition_id)

    def list_definitions(self, property_id: Optional[int] = None, active_only: bool = False) -> list[RecurringDefinition]:
        return self.db.list_recurring_definitions(property_id=property_id, active_only=active_only)
