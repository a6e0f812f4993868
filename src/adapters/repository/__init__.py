"""Repository adapters - Database implementations."""

from .postgres import AccountRecord, PostgresUserDirectory, run_migrations

__all__ = ["AccountRecord", "PostgresUserDirectory", "run_migrations"]
