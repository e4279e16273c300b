"""Database layer for propledger."""

from propledger.database.base import Database
from propledger.database.factories import create_database, create_sqlite_database
from propledger.database.memory import InMemoryDatabase

__all__ = ["Database", "InMemoryDatabase", "create_database", "create_sqlite_database"]
