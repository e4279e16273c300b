"""Domain layer for propledger.

Services live in their own modules (``propledger.domain.posting`` and so on)
and take a ``Database``; the names below have no storage dependency.
"""

from propledger.domain.category_tree import CategoryTreeIndex
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
    DomainError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from propledger.domain.proration import prorate
from propledger.domain.signs import SignPolicy, SignPolicyMode

__all__ = [
    "AnnualCategoryAmount",
    "Category",
    "CategoryKind",
    "CategoryTreeIndex",
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "Property",
    "PropertyStatus",
    "RecurringDefinition",
    "RecurringPosting",
    "SignPolicy",
    "SignPolicyMode",
    "StorageUnavailableError",
    "Transaction",
    "TransactionSource",
    "ValidationError",
    "prorate",
]
