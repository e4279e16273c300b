"""Tests for the Database contract, run against every implementation."""

import pytest
from datetime import date, datetime

from propledger.database.factories import create_database, create_sqlite_database
from propledger.database.memory import InMemoryDatabase
from propledger.database.sqlalchemy_db import SQLAlchemyDatabase
from propledger.domain import entities
from propledger.domain.entities import CategoryKind, PropertyStatus, TransactionSource
from propledger.domain.errors import ConflictError, NotFoundError, StorageUnavailableError
from propledger.utils.periods import YearMonth


@pytest.fixture
def refs(db):
    """A property and an expense category."""
    property_id = db.create_property(name="Maple St")
    category_id = db.create_category(name="Insurance", kind=CategoryKind.EXPENSE)
    return property_id, category_id


class TestProperties:
    """Property storage."""

    def test_get_property_returns_domain_model(self, db):
        property_id = db.create_property(name="Maple St", status=PropertyStatus.WATCHLIST, purchase_price_cents=100)
        prop = db.get_property(property_id)

        assert isinstance(prop, entities.Property)
        assert prop.id == property_id
        assert prop.status == PropertyStatus.WATCHLIST
        assert prop.purchase_price_cents == 100
        assert isinstance(prop.created_at, datetime)

    def test_missing_property_is_none(self, db):
        assert db.get_property(9999) is None

    def test_list_properties_by_name_and_status(self, db):
        db.create_property(name="Oak Ave", status=PropertyStatus.SOLD)
        db.create_property(name="Birch Rd")
        assert [p.name for p in db.list_properties()] == ["Birch Rd", "Oak Ave"]
        assert [p.name for p in db.list_properties(status=PropertyStatus.SOLD)] == ["Oak Ave"]

    def test_duplicate_name_conflicts(self, db):
        db.create_property(name="Maple St")
        with pytest.raises(ConflictError):
            db.create_property(name="Maple St")
        # The store stays usable after the rejected write
        assert len(db.list_properties()) == 1


class TestCategories:
    """Category storage."""

    def test_get_category_by_path(self, db):
        root_id = db.create_category(name="Expenses")
        child_id = db.create_category(name="Utilities", parent_id=root_id)

        category = db.get_category_by_path("Expenses > Utilities")
        assert isinstance(category, entities.Category)
        assert category.id == child_id
        assert db.get_category_by_path("Expenses>Utilities").id == child_id
        assert db.get_category_by_path("Utilities") is None
        assert db.get_category_by_path("Expenses > Water") is None

    def test_list_categories_by_kind(self, db):
        db.create_category(name="Rent", kind=CategoryKind.INCOME)
        db.create_category(name="Tax", kind=CategoryKind.EXPENSE)
        db.create_category(name="Draw", kind=CategoryKind.TRANSFER)

        assert len(db.list_categories()) == 3
        names = [c.name for c in db.list_categories(kinds=[CategoryKind.INCOME, CategoryKind.TRANSFER])]
        assert sorted(names) == ["Draw", "Rent"]

    def test_set_category_active(self, db):
        category_id = db.create_category(name="Tax")
        db.set_category_active(category_id, False)
        assert db.get_category(category_id).active is False
        db.set_category_active(category_id, True)
        assert db.get_category(category_id).active is True


class TestTransactions:
    """Ledger transaction storage."""

    def test_round_trip(self, db, refs):
        property_id, category_id = refs
        txn_id = db.create_transaction(
            property_id=property_id,
            category_id=category_id,
            date=date(2024, 1, 15),
            amount_cents=-12345,
            memo="Premium",
            statement_month=YearMonth(2023, 12),
        )
        txn = db.get_transaction(txn_id)

        assert isinstance(txn, entities.Transaction)
        assert txn.date == date(2024, 1, 15)
        assert txn.amount_cents == -12345
        assert txn.source == TransactionSource.MANUAL
        assert txn.statement_month == YearMonth(2023, 12)
        assert txn.deleted_at is None

    def test_list_filters_and_order(self, db, refs):
        property_id, category_id = refs
        other_category = db.create_category(name="Tax")
        db.create_transaction(property_id, category_id, date(2024, 1, 1), -100)
        db.create_transaction(property_id, category_id, date(2024, 2, 1), -200)
        db.create_transaction(property_id, other_category, date(2024, 3, 1), -300)

        assert [t.amount_cents for t in db.list_transactions()] == [-300, -200, -100]
        in_range = db.list_transactions(start_date=date(2024, 1, 15), end_date=date(2024, 2, 28))
        assert [t.amount_cents for t in in_range] == [-200]
        by_category = db.list_transactions(category_ids=[other_category])
        assert [t.amount_cents for t in by_category] == [-300]

    def test_soft_delete_and_restore(self, db, refs):
        property_id, category_id = refs
        txn_id = db.create_transaction(property_id, category_id, date(2024, 1, 1), -100)

        db.soft_delete_transaction(txn_id)
        assert db.get_transaction(txn_id).is_deleted
        assert db.list_transactions() == []
        assert len(db.list_transactions(include_deleted=True)) == 1

        db.restore_transaction(txn_id)
        assert not db.get_transaction(txn_id).is_deleted

    def test_soft_delete_missing(self, db):
        with pytest.raises(NotFoundError):
            db.soft_delete_transaction(9999)

    def test_get_transactions_includes_deleted(self, db, refs):
        property_id, category_id = refs
        first = db.create_transaction(property_id, category_id, date(2024, 1, 1), -100)
        second = db.create_transaction(property_id, category_id, date(2024, 1, 2), -200)
        db.soft_delete_transaction(second)

        found = db.get_transactions([first, second, 9999])
        assert set(found) == {first, second}
        assert db.get_transactions([]) == {}

    def test_accrual_selection(self, db, refs):
        property_id, category_id = refs
        db.create_transaction(property_id, category_id, date(2024, 2, 2), -100, statement_month=YearMonth(2024, 1))
        db.create_transaction(property_id, category_id, date(2024, 1, 20), -200)
        db.create_transaction(property_id, category_id, date(2024, 1, 25), -400, statement_month=YearMonth(2023, 12))

        rows = db.list_accrual_transactions(
            statement_months=[YearMonth(2024, 1)],
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
        )
        assert sorted(t.amount_cents for t in rows) == [-200, -100]


class TestAnnualAmounts:
    """Annual amount storage."""

    def test_upsert_replaces_same_key(self, db, refs):
        property_id, category_id = refs
        first = db.upsert_annual_amount(property_id, 2024, category_id, -1000)
        second = db.upsert_annual_amount(property_id, 2024, category_id, -2000, note="revised")

        assert first == second
        [row] = db.list_annual_amounts(property_id=property_id)
        assert isinstance(row, entities.AnnualCategoryAmount)
        assert row.amount_cents == -2000
        assert row.note == "revised"
        assert row.ownership_ref is None

    def test_ownership_is_part_of_the_key(self, db, refs):
        property_id, category_id = refs
        db.upsert_annual_amount(property_id, 2024, category_id, -1000)
        db.upsert_annual_amount(property_id, 2024, category_id, -500, ownership_ref="LLC-1")
        assert len(db.list_annual_amounts(property_id=property_id)) == 2

    def test_filters(self, db, refs):
        property_id, category_id = refs
        db.upsert_annual_amount(property_id, 2023, category_id, -1000)
        db.upsert_annual_amount(property_id, 2024, category_id, -2000)
        assert [r.year for r in db.list_annual_amounts(years=[2024])] == [2024]
        assert db.list_annual_amounts(category_ids=[9999]) == []


class TestRecurringStorage:
    """Recurring definitions and postings."""

    def test_definition_round_trip(self, db, refs):
        property_id, category_id = refs
        definition_id = db.create_recurring_definition(
            property_id=property_id,
            category_id=category_id,
            amount_cents=50000,
            day_of_month=15,
            start_month=YearMonth(2024, 6),
            end_month=YearMonth(2025, 5),
            memo="Policy",
        )
        definition = db.get_recurring_definition(definition_id)

        assert isinstance(definition, entities.RecurringDefinition)
        assert definition.start_month == YearMonth(2024, 6)
        assert definition.end_month == YearMonth(2025, 5)
        assert definition.is_active

    def test_posting_and_listing(self, db, refs):
        property_id, category_id = refs
        definition_id = db.create_recurring_definition(property_id, category_id, 50000, 1, YearMonth(2024, 6))
        txn_id = db.post_recurring_transaction(
            definition_id=definition_id,
            month=YearMonth(2024, 6),
            property_id=property_id,
            category_id=category_id,
            date=date(2024, 6, 1),
            amount_cents=-50000,
            memo="Recurring: Insurance",
        )

        posting = db.get_recurring_posting(definition_id, YearMonth(2024, 6))
        assert isinstance(posting, entities.RecurringPosting)
        assert posting.ledger_transaction_id == txn_id
        assert db.get_recurring_posting(definition_id, YearMonth(2024, 7)) is None
        assert db.get_transaction(txn_id).source == TransactionSource.RECURRING

        assert len(db.list_recurring_postings([definition_id])) == 1
        assert db.list_recurring_postings([definition_id], months=[YearMonth(2024, 7)]) == []

    def test_delete_definition_keeps_ledger_rows(self, db, refs):
        property_id, category_id = refs
        definition_id = db.create_recurring_definition(property_id, category_id, 50000, 1, YearMonth(2024, 6))
        txn_id = db.post_recurring_transaction(
            definition_id, YearMonth(2024, 6), property_id, category_id, date(2024, 6, 1), -50000, None
        )

        db.delete_recurring_definition(definition_id)
        assert db.get_recurring_definition(definition_id) is None
        assert db.list_recurring_postings([definition_id]) == []
        assert db.get_transaction(txn_id) is not None


class TestStorageReadiness:
    """Behavior before the schema exists."""

    def test_memory_database_requires_schema(self):
        db = InMemoryDatabase()
        with pytest.raises(StorageUnavailableError):
            db.list_properties()
        db.initialize_schema()
        assert db.list_properties() == []

    def test_sqlite_database_requires_schema(self, tmp_path):
        db = create_sqlite_database(database_path=str(tmp_path / "empty.db"))
        try:
            with pytest.raises(StorageUnavailableError) as exc_info:
                db.list_properties()
            assert exc_info.value.reason == "storage_unavailable"

            db.initialize_schema()
            assert db.list_properties() == []
        finally:
            db.disconnect()


class TestFactories:
    """Database factory functions."""

    def test_create_sqlite_database_uses_env(self, tmp_path, monkeypatch):
        db_path = str(tmp_path / "env.db")
        monkeypatch.setenv("PROPLEDGER_DB_PATH", db_path)
        db = create_sqlite_database()
        assert isinstance(db, SQLAlchemyDatabase)
        assert db.database_path == db_path
        db.disconnect()

    def test_database_url_wins_over_path(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PROPLEDGER_DATABASE_URL", raising=False)
        url = f"sqlite:///{tmp_path / 'url.db'}"
        db = create_database(database_url=url, database_path=str(tmp_path / "path.db"))
        assert db.database_url == url
        db.disconnect()

    def test_database_url_from_env(self, tmp_path, monkeypatch):
        url = f"sqlite:///{tmp_path / 'env-url.db'}"
        monkeypatch.setenv("PROPLEDGER_DATABASE_URL", url)
        db = create_database(database_path=str(tmp_path / "path.db"))
        assert db.database_url == url
        db.disconnect()
