"""Database repository for account and contact-message data."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, ContactMessage, Role
from .domain.contracts import RegisterInput
from .domain.errors import DuplicateAccountError

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS accounts (
        account_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL,
        role TEXT NOT NULL,
        is_verified BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS accounts_email_role_idx ON accounts (email, role)",
    """
    CREATE TABLE IF NOT EXISTS contact_messages (
        message_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        message TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
)

_ACCOUNT_COLUMNS = "account_id, name, email, password, role, is_verified, created_at"


class AccountRepository:
    """Postgres-backed account persistence.

    Email uniqueness is enforced by the ``accounts.email`` unique key, so two
    concurrent inserts for the same address resolve to one row and one
    :class:`DuplicateAccountError`.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def ensure_schema(self) -> None:
        """Create the tables this repository relies on when they are missing."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                for statement in SCHEMA_STATEMENTS:
                    cur.execute(statement)
            conn.commit()

    def create_account(self, payload: RegisterInput) -> Account:
        """Insert an unverified account; raise ``DuplicateAccountError`` on an existing email."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, name, email, password, role, is_verified, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, FALSE, %s, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (
                            account_id,
                            payload.name,
                            payload.email,
                            payload.password,
                            payload.role.value,
                            now,
                            now,
                        ),
                    )
                    record = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as exc:
            logger.info("unique email constraint rejected insert for %s", payload.email)
            raise DuplicateAccountError(payload.email) from exc
        return self._map_account(record)

    def find_by_email(self, email: str) -> Account | None:
        """Return the account stored under the normalised email or ``None``."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s",
                    (email,),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_account(row)

    def find_by_email_and_role(self, email: str, role: Role) -> Account | None:
        """Return the account matching both email and role exactly or ``None``."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s AND role = %s",
                    (email, role.value),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_account(row)

    def mark_verified(self, account: Account) -> tuple[Account, bool]:
        """Persist ``is_verified = TRUE``.

        Returns the stored account and whether this call flipped the flag. Only
        one of several concurrent callers sees ``True``; the rest get the row
        as already verified.
        """
        changed = True
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    UPDATE accounts
                    SET is_verified = TRUE, updated_at = %s
                    WHERE account_id = %s AND is_verified = FALSE
                    RETURNING {_ACCOUNT_COLUMNS}
                    """,
                    (datetime.now(timezone.utc), account.account_id),
                )
                row = cur.fetchone()
                if not row:
                    changed = False
                    cur.execute(
                        f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE account_id = %s",
                        (account.account_id,),
                    )
                    row = cur.fetchone()
            conn.commit()
        if not row:
            raise LookupError(f"account {account.account_id} disappeared during verification")
        return self._map_account(row), changed

    def create_contact_message(self, name: str, email: str, message: str) -> ContactMessage:
        """Append a contact-form submission."""
        record = ContactMessage(
            message_id=str(uuid.uuid4()),
            name=name,
            email=email,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO contact_messages (message_id, name, email, message, created_at)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (record.message_id, record.name, record.email, record.message, record.created_at),
                )
            conn.commit()
        return record

    def _map_account(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            name=row[1],
            email=row[2],
            password=row[3],
            role=Role(row[4]),
            is_verified=row[5],
            created_at=row[6],
        )
