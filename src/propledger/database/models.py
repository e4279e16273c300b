"""SQLAlchemy models for propledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Property(Base):
    """Rental property model."""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    status = Column(String, nullable=False, default="active")
    purchase_price_cents = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="property")
    recurring_definitions = relationship("RecurringDefinition", back_populates="property")


class Category(Base):
    """Category model with hierarchical structure."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="expense")
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], backref="children")
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Ledger transaction model. Amounts are signed integer cents."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    memo = Column(String, nullable=True)
    source = Column(String, nullable=False, default="manual")
    statement_month = Column(String(7), nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_transactions_property_date", "property_id", "date"),
        Index("ix_transactions_property_category_date", "property_id", "category_id", "date"),
        Index("ix_transactions_statement_month", "statement_month"),
    )

    # Relationships
    property = relationship("Property", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class AnnualCategoryAmount(Base):
    """Annual lump sum per property, year, category and ownership reference.

    ``ownership_ref`` is stored as an empty string when absent so the unique
    constraint also covers rows without an ownership reference.
    """

    __tablename__ = "annual_category_amounts"

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    year = Column(Integer, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    ownership_ref = Column(String, nullable=False, default="")
    amount_cents = Column(Integer, nullable=False)
    note = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "property_id", "year", "category_id", "ownership_ref", name="uq_annual_property_year_category_owner"
        ),
    )


class RecurringDefinition(Base):
    """Monthly recurring obligation model."""

    __tablename__ = "recurring_definitions"

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    memo = Column(String, nullable=True)
    day_of_month = Column(Integer, nullable=False)
    start_month = Column(String(7), nullable=False)
    end_month = Column(String(7), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    property = relationship("Property", back_populates="recurring_definitions")
    postings = relationship(
        "RecurringPosting", back_populates="definition", cascade="all, delete-orphan"
    )


class RecurringPosting(Base):
    """One row per (definition, month) that has been materialized."""

    __tablename__ = "recurring_postings"

    id = Column(Integer, primary_key=True)
    recurring_definition_id = Column(Integer, ForeignKey("recurring_definitions.id"), nullable=False)
    month = Column(String(7), nullable=False)
    ledger_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Unique constraint is the idempotency guarantee for posting
    __table_args__ = (
        UniqueConstraint("recurring_definition_id", "month", name="uq_posting_definition_month"),
    )

    # Relationships
    definition = relationship("RecurringDefinition", back_populates="postings")


def _enable_sqlite_pragmas(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine, enabling foreign keys on SQLite."""
    engine = create_engine(database_url, echo=False)
    if database_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_pragmas)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    return sessionmaker(bind=engine, expire_on_commit=False)
