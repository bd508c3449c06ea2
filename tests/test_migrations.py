"""Tests for the Alembic migration of the credential store.

Runs the migration against an in-memory SQLite database and compares the
resulting schema with OAuthConnection.__table__, so hand-written migration
columns, indexes and constraints cannot drift from the model.
"""

import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from tokenvault.models import OAuthConnection

MIGRATION_PATH = (
    Path(__file__).parent.parent
    / "alembic"
    / "versions"
    / "20261017_0001_001_create_oauth_connections.py"
)
TABLE = OAuthConnection.__table__


def load_migration():
    spec = importlib.util.spec_from_file_location("create_oauth_connections", MIGRATION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def migrated_connection():
    """Yield a connection to a SQLite database with the migration applied."""
    migration = load_migration()
    engine = sa.create_engine("sqlite://")

    with engine.begin() as connection:
        with Operations.context(MigrationContext.configure(connection)):
            migration.upgrade()
        yield connection

    engine.dispose()


class TestCreateOAuthConnectionsMigration:
    """Tests comparing the migrated schema with the ORM model."""

    def test_p1_columns_match_model(self, migrated_connection):
        """[P1] Migration creates exactly the model's columns."""
        columns = sa.inspect(migrated_connection).get_columns("oauth_connections")

        assert {column["name"] for column in columns} == {column.name for column in TABLE.columns}

    def test_p1_nullability_matches_model(self, migrated_connection):
        """[P1] Every column has the same nullability as the model."""
        columns = sa.inspect(migrated_connection).get_columns("oauth_connections")

        migrated = {column["name"]: column["nullable"] for column in columns}
        expected = {
            column.name: column.nullable for column in TABLE.columns if not column.primary_key
        }
        assert {name: migrated[name] for name in expected} == expected

    def test_p1_unique_constraints_match_model(self, migrated_connection):
        """[P1] The per-account unique constraint has the model's name and columns."""
        constraints = sa.inspect(migrated_connection).get_unique_constraints("oauth_connections")

        migrated = {c["name"]: tuple(c["column_names"]) for c in constraints}
        expected = {
            c.name: tuple(column.name for column in c.columns)
            for c in TABLE.constraints
            if isinstance(c, sa.UniqueConstraint)
        }
        assert migrated == expected

    def test_p1_indexes_match_model(self, migrated_connection):
        """[P1] Migration creates the model's indexes."""
        indexes = sa.inspect(migrated_connection).get_indexes("oauth_connections")

        migrated = {index["name"]: tuple(index["column_names"]) for index in indexes}
        expected = {
            index.name: tuple(column.name for column in index.columns) for index in TABLE.indexes
        }
        assert migrated == expected

    def test_p2_check_constraints_match_model(self, migrated_connection):
        """[P2] Check constraint names match the model."""
        constraints = sa.inspect(migrated_connection).get_check_constraints("oauth_connections")

        expected = {
            c.name for c in TABLE.constraints if isinstance(c, sa.CheckConstraint)
        }
        assert {c["name"] for c in constraints} == expected

    def test_p2_downgrade_drops_table(self, migrated_connection):
        """[P2] Downgrade removes the table and its indexes."""
        with Operations.context(MigrationContext.configure(migrated_connection)):
            load_migration().downgrade()

        assert "oauth_connections" not in sa.inspect(migrated_connection).get_table_names()
