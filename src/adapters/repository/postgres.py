"""
PostgreSQL user directory adapter - Implements UserDirectory protocol.

This module provides the PostgreSQL implementation of the domain's
user directory port using psycopg3 with raw SQL.

Emails are stored lower-cased and compared lower-cased, so lookups are
case-insensitive. The (realm, email) unique constraint is the final
arbiter when two registrations for the same email race past validation.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from psycopg import Connection, errors
from psycopg_pool import ConnectionPool

from src.domain.exceptions import EmailAlreadyInUse, UsernameAlreadyInUse
from src.domain.models import RegistrationSubmission, RequiredAction, Tier

logger = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "accounts_realm_email_key"


@dataclass(frozen=True)
class AccountRecord:
    """Persisted account row."""

    id: int
    realm: str
    username: str
    email: str


class PostgresUserDirectory:
    """
    Implements UserDirectory protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.

    A directory opened with transaction() is bound to one connection and
    leaves committing to that transaction; an unbound directory commits
    each statement on its own pooled connection.
    """

    def __init__(self, pool: ConnectionPool, connection: Connection | None = None) -> None:
        """
        Initialize directory with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            connection: Connection already inside a transaction, if any
        """
        self._pool = pool
        self._conn = connection

    @contextmanager
    def transaction(self) -> Iterator["PostgresUserDirectory"]:
        """
        Run a unit of work on a single connection.

        Everything done through the yielded directory commits together
        when the block exits normally and rolls back if it raises.
        """
        if self._conn is not None:
            with self._conn.transaction():
                yield self
            return
        with self._pool.connection() as conn, conn.transaction():
            yield PostgresUserDirectory(self._pool, conn)

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        if self._conn is not None:
            yield self._conn
            return
        with self._pool.connection() as conn:
            yield conn
            conn.commit()

    def find_by_email(self, email: str, realm: str) -> AccountRecord | None:
        sql = """
            SELECT id, realm, username, email
            FROM accounts
            WHERE realm = %s AND email = %s
        """
        with self._connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (realm, email.strip().lower()))
            row = cursor.fetchone()
        return AccountRecord(*row) if row is not None else None

    def find_by_attribute(self, name: str, value: str, realm: str) -> AccountRecord | None:
        """Look up an account in a realm by a single-valued attribute."""
        sql = """
            SELECT a.id, a.realm, a.username, a.email
            FROM accounts a
            JOIN account_attributes attr ON attr.account_id = a.id
            WHERE a.realm = %s AND attr.name = %s AND attr.value = %s
            LIMIT 1
        """
        with self._connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (realm, name, value))
            row = cursor.fetchone()
        return AccountRecord(*row) if row is not None else None

    def create_account(self, submission: RegistrationSubmission, realm: str) -> AccountRecord:
        """
        Insert the account for an accepted submission.

        Raises:
            EmailAlreadyInUse: If a concurrent registration claimed the email first
            UsernameAlreadyInUse: If the username is taken in the realm
        """
        sql = """
            INSERT INTO accounts
                (realm, username, email, first_name, last_name, affiliation, rank, organization)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id, realm, username, email
        """
        email = submission.email.strip().lower()
        params = (
            realm,
            submission.username,
            email,
            submission.first_name,
            submission.last_name,
            submission.affiliation,
            submission.rank,
            submission.organization,
        )
        try:
            with self._connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
        except errors.UniqueViolation as e:
            if e.diag.constraint_name == EMAIL_CONSTRAINT:
                raise EmailAlreadyInUse(email) from e
            raise UsernameAlreadyInUse(submission.username) from e

        logger.info("Created account %s in realm %s", submission.username, realm)
        return AccountRecord(*row)

    def join_group(self, account: AccountRecord, tier: Tier) -> None:
        sql = """
            INSERT INTO account_groups (account_id, tier)
            VALUES (%s, %s)
            ON CONFLICT DO NOTHING
        """
        self._execute(sql, (account.id, tier.value))

    def set_attribute(self, account: AccountRecord, key: str, value: str) -> None:
        sql = """
            INSERT INTO account_attributes (account_id, name, value)
            VALUES (%s, %s, %s)
            ON CONFLICT (account_id, name) DO UPDATE SET value = EXCLUDED.value
        """
        self._execute(sql, (account.id, key, value))

    def add_required_action(self, account: AccountRecord, action: RequiredAction) -> None:
        sql = """
            INSERT INTO account_required_actions (account_id, action)
            VALUES (%s, %s)
            ON CONFLICT DO NOTHING
        """
        self._execute(sql, (account.id, action.value))

    def _execute(self, sql: str, params: tuple) -> None:
        with self._connection() as conn:
            conn.execute(sql, params)


def run_migrations(pool: ConnectionPool) -> None:
    """
    Apply every SQL file under migrations/ in filename order.

    Files must be idempotent; they are re-run on every startup.

    Raises:
        RuntimeError: If a migration fails
    """
    migrations_dir = Path(__file__).resolve().parents[3] / "migrations"
    if not migrations_dir.is_dir():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    for sql_file in sorted(migrations_dir.glob("*.sql")):
        logger.info("Applying migration %s", sql_file.name)
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
        except Exception as e:
            logger.error("Migration %s failed: %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
