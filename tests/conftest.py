"""Shared pytest fixtures for propledger tests."""

import tempfile
import os
from datetime import date
import pytest

from propledger.database.factories import create_sqlite_database
from propledger.database.memory import InMemoryDatabase
from propledger.domain.category import CategoryService
from propledger.domain.entities import CategoryKind
from propledger.domain.posting import PostingService
from propledger.domain.property import PropertyService
from propledger.domain.recurring import RecurringService
from propledger.domain.reports import ReportService
from propledger.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary SQLite database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def memory_db():
    """Create an in-memory database with the schema in place."""
    db = InMemoryDatabase()
    db.initialize_schema()
    return db


@pytest.fixture(params=["sqlite", "memory"])
def db(request):
    """Run a test once against each storage implementation."""
    return request.getfixturevalue("temp_db" if request.param == "sqlite" else "memory_db")


@pytest.fixture
def property_service(db):
    return PropertyService(db)


@pytest.fixture
def category_service(db):
    return CategoryService(db)


@pytest.fixture
def transaction_service(db):
    return TransactionService(db)


@pytest.fixture
def recurring_service(db):
    return RecurringService(db)


@pytest.fixture
def posting_service(db):
    return PostingService(db)


@pytest.fixture
def report_service(db):
    return ReportService(db)


@pytest.fixture
def sample_property(property_service):
    """Create a sample property for testing."""
    property_id = property_service.create_property(name="Maple St", purchase_price_cents=25_000_000)
    return property_service.get_property(property_id)


@pytest.fixture
def sample_categories(category_service):
    """Create a small category tree and return IDs keyed by path.

    Income
      Rent
    Expenses
      Utilities
        Electric
        Water
      Property Tax
      Insurance
    Owner Transfers (transfer)
    """
    tree = [
        ("Income", CategoryKind.INCOME, None),
        ("Rent", CategoryKind.INCOME, "Income"),
        ("Expenses", CategoryKind.EXPENSE, None),
        ("Utilities", CategoryKind.EXPENSE, "Expenses"),
        ("Electric", CategoryKind.EXPENSE, "Expenses > Utilities"),
        ("Water", CategoryKind.EXPENSE, "Expenses > Utilities"),
        ("Property Tax", CategoryKind.EXPENSE, "Expenses"),
        ("Insurance", CategoryKind.EXPENSE, "Expenses"),
        ("Owner Transfers", CategoryKind.TRANSFER, None),
    ]

    category_ids = {}
    for name, kind, parent_path in tree:
        category_id = category_service.create_category(name=name, kind=kind, parent_path=parent_path)
        path = f"{parent_path} > {name}" if parent_path else name
        category_ids[path] = category_id
    return category_ids


@pytest.fixture
def reference_day():
    """Fixed day used by tests that would otherwise depend on the clock."""
    return date(2024, 6, 15)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
