"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. ``reason`` is a short,
    stable code callers can branch on without parsing the message.
    """

    default_reason = "domain_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason or self.default_reason


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    default_reason = "validation_error"


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""

    default_reason = "not_found"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    default_reason = "conflict"


class StorageUnavailableError(DomainError):
    """Underlying storage is not provisioned (tables missing, schema not created)."""

    default_reason = "storage_unavailable"


def property_not_found(property_id: int) -> str:
    """Return message for missing property."""
    return f"Property {property_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def category_path_not_found(path: str) -> str:
    """Return message for missing category by path."""
    return f"Category '{path}' not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger transaction."""
    return f"Transaction {transaction_id} not found"


def recurring_definition_not_found(definition_id: int) -> str:
    """Return message for missing recurring definition."""
    return f"Recurring definition {definition_id} not found"


def duplicate_posting(definition_id: int, month: str) -> str:
    """Return message when a (definition, month) posting already exists."""
    return f"Recurring definition {definition_id} is already posted for {month}"


def sign_mismatch(source: str, kind: str, amount_cents: int) -> str:
    """Return message for an amount whose sign contradicts its category kind."""
    return f"{source}: amount {amount_cents} has the wrong sign for a {kind} category"
