"""Posting service: materializes due recurring items into ledger transactions."""

import logging
from typing import Optional

from propledger.database.base import Database
from propledger.domain.entities import (
    CatchUpResult,
    Category,
    PostingResult,
    ScheduledItem,
    SkippedItem,
)
from propledger.domain.errors import ConflictError, NotFoundError, property_not_found
from propledger.domain.recurring import RecurringService
from propledger.domain.signs import expected_sign
from propledger.utils.periods import MAX_DUE_DAY, YearMonth

logger = logging.getLogger(__name__)

MEMO_PREFIX = "Recurring: "


def posting_memo(memo: Optional[str], category: Category) -> str:
    """Ledger memo for a posted item: the definition memo, else the category name."""
    text = (memo or "").strip()
    return f"{MEMO_PREFIX}{text or category.name}"


class PostingService:
    """Posts recurring definitions exactly once per (definition, month).

    Every item is written in its own storage transaction, so an interrupted
    batch or catch-up keeps everything already posted, and a retry only
    posts what is still missing.
    """

    def __init__(self, db: Database, schedule: Optional[RecurringService] = None):
        """Initialize posting service.

        Args:
            db: Database instance
            schedule: Schedule engine (defaults to one over ``db``)
        """
        self.db = db
        self.schedule = schedule or RecurringService(db)

    def _require_property(self, property_id: int) -> None:
        if self.db.get_property(property_id) is None:
            raise NotFoundError(property_not_found(property_id), reason="property_not_found")

    def post_for_month(self, property_id: int, month: YearMonth) -> PostingResult:
        """Post every due, not yet posted, recurring item of a property for a month.

        Args:
            property_id: Property ID
            month: Calendar month

        Returns:
            PostingResult with the created transaction IDs and skipped items

        Raises:
            NotFoundError: If the property doesn't exist (nothing is written)
            StorageUnavailableError: If storage is not provisioned
        """
        self._require_property(property_id)
        return self._post_month(property_id, month)

    def _post_month(self, property_id: int, month: YearMonth) -> PostingResult:
        created: list[int] = []
        skipped: list[SkippedItem] = []

        for item in self.schedule.scheduled_for_month(property_id, month):
            if item.already_posted:
                continue
            transaction_id, reason = self._post_item(property_id, item)
            if transaction_id is not None:
                created.append(transaction_id)
            else:
                skipped.append(SkippedItem(definition_id=item.definition.id, reason=reason))

        if created or skipped:
            logger.info(
                "recurring_posted property=%s month=%s created=%d skipped=%d",
                property_id,
                month,
                len(created),
                len(skipped),
            )
        return PostingResult(
            property_id=property_id,
            month=month,
            created_transaction_ids=tuple(created),
            skipped=tuple(skipped),
        )

    def _post_item(self, property_id: int, item: ScheduledItem) -> tuple[Optional[int], str]:
        definition = item.definition
        month = item.month

        category = self.db.get_category(definition.category_id)
        if category is None:
            logger.warning(
                "recurring_skipped definition=%s month=%s reason=category_not_found category=%s",
                definition.id,
                month,
                definition.category_id,
            )
            return None, "category_not_found"
        if definition.amount_cents <= 0 or not 1 <= definition.day_of_month <= MAX_DUE_DAY:
            logger.warning(
                "recurring_skipped definition=%s month=%s reason=invalid_definition", definition.id, month
            )
            return None, "invalid_definition"

        # Re-check right before writing; another caller may have posted meanwhile
        replaces_transaction_id = None
        current = self.db.get_recurring_posting(definition.id, month)
        if current is not None:
            transaction = self.db.get_transaction(current.ledger_transaction_id)
            if transaction is not None and not transaction.is_deleted:
                logger.info("recurring_race definition=%s month=%s already posted", definition.id, month)
                return None, "already_posted"
            replaces_transaction_id = current.ledger_transaction_id

        try:
            transaction_id = self.db.post_recurring_transaction(
                definition_id=definition.id,
                month=month,
                property_id=property_id,
                category_id=category.id,
                date=item.due_date,
                amount_cents=expected_sign(category.kind, definition.amount_cents),
                memo=posting_memo(definition.memo, category),
                replaces_transaction_id=replaces_transaction_id,
            )
        except ConflictError:
            logger.info("recurring_race definition=%s month=%s lost to a concurrent writer", definition.id, month)
            return None, "already_posted"
        return transaction_id, ""

    def post_catch_up(self, property_id: int, through_month: YearMonth) -> CatchUpResult:
        """Post every month from the earliest active definition start through ``through_month``.

        Returns an empty result when the property has no active definitions
        or the earliest start lies after ``through_month``.

        Raises:
            NotFoundError: If the property doesn't exist
        """
        self._require_property(property_id)
        earliest = self.schedule.earliest_active_start(property_id)
        if earliest is None:
            return CatchUpResult(property_id=property_id, through_month=through_month)

        results = tuple(
            self._post_month(property_id, month) for month in YearMonth.range_inclusive(earliest, through_month)
        )
        result = CatchUpResult(property_id=property_id, through_month=through_month, months=results)
        logger.info(
            "recurring_catch_up property=%s from=%s through=%s months=%d created=%d",
            property_id,
            earliest,
            through_month,
            len(results),
            result.posted_count,
        )
        return result
