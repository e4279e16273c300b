"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic: months travel as ``YYYY-MM``
strings and enums as their values in the database, and as ``YearMonth`` and
enum members in the domain.
"""

from typing import Optional

from propledger.domain import entities as domain
from propledger.database.models import (
    AnnualCategoryAmount as ORMAnnualCategoryAmount,
    Category as ORMCategory,
    Property as ORMProperty,
    RecurringDefinition as ORMRecurringDefinition,
    RecurringPosting as ORMRecurringPosting,
    Transaction as ORMTransaction,
)
from propledger.utils.periods import YearMonth


def month_to_db(month: Optional[YearMonth]) -> Optional[str]:
    """Convert a domain month to its column value."""
    return str(month) if month is not None else None


def month_from_db(value: Optional[str]) -> Optional[YearMonth]:
    """Convert a month column value to a domain month."""
    return YearMonth.parse(value) if value else None


def property_to_domain(orm_property: ORMProperty) -> domain.Property:
    """Convert SQLAlchemy Property model to domain Property entity."""
    return domain.Property(
        id=orm_property.id,
        name=orm_property.name,
        status=domain.PropertyStatus(orm_property.status),
        purchase_price_cents=orm_property.purchase_price_cents,
        created_at=orm_property.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        kind=domain.CategoryKind(orm_category.kind),
        parent_id=orm_category.parent_id,
        active=orm_category.active,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        property_id=orm_transaction.property_id,
        category_id=orm_transaction.category_id,
        date=orm_transaction.date,
        amount_cents=orm_transaction.amount_cents,
        memo=orm_transaction.memo,
        source=domain.TransactionSource(orm_transaction.source),
        statement_month=month_from_db(orm_transaction.statement_month),
        deleted_at=orm_transaction.deleted_at,
        created_at=orm_transaction.created_at,
    )


def annual_amount_to_domain(orm_row: ORMAnnualCategoryAmount) -> domain.AnnualCategoryAmount:
    """Convert SQLAlchemy AnnualCategoryAmount model to domain entity."""
    return domain.AnnualCategoryAmount(
        id=orm_row.id,
        property_id=orm_row.property_id,
        year=orm_row.year,
        category_id=orm_row.category_id,
        amount_cents=orm_row.amount_cents,
        ownership_ref=orm_row.ownership_ref or None,
        note=orm_row.note,
    )


def recurring_definition_to_domain(orm_definition: ORMRecurringDefinition) -> domain.RecurringDefinition:
    """Convert SQLAlchemy RecurringDefinition model to domain entity."""
    return domain.RecurringDefinition(
        id=orm_definition.id,
        property_id=orm_definition.property_id,
        category_id=orm_definition.category_id,
        amount_cents=orm_definition.amount_cents,
        memo=orm_definition.memo,
        day_of_month=orm_definition.day_of_month,
        start_month=YearMonth.parse(orm_definition.start_month),
        end_month=month_from_db(orm_definition.end_month),
        is_active=orm_definition.is_active,
        created_at=orm_definition.created_at,
    )


def recurring_posting_to_domain(orm_posting: ORMRecurringPosting) -> domain.RecurringPosting:
    """Convert SQLAlchemy RecurringPosting model to domain entity."""
    return domain.RecurringPosting(
        id=orm_posting.id,
        recurring_definition_id=orm_posting.recurring_definition_id,
        month=YearMonth.parse(orm_posting.month),
        ledger_transaction_id=orm_posting.ledger_transaction_id,
        created_at=orm_posting.created_at,
    )
