"""Repository tests against a scripted stand-in for the psycopg connection pool."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from psycopg import errors

from account_service.domain.account import Account, Role
from account_service.domain.contracts import RegisterInput
from account_service.domain.errors import DuplicateAccountError
from account_service.repository import SCHEMA_STATEMENTS, AccountRepository

CREATED = datetime(2024, 5, 1, tzinfo=timezone.utc)


class FakeCursor:
    def __init__(self, connection: "FakeConnection") -> None:
        self._connection = connection

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def execute(self, query: str, params=None) -> None:
        self._connection.executed.append((" ".join(query.split()), params))
        if self._connection.error is not None:
            raise self._connection.error

    def fetchone(self):
        if not self._connection.rows:
            return None
        return self._connection.rows.pop(0)


class FakeConnection:
    def __init__(self) -> None:
        self.executed: list[tuple[str, tuple | None]] = []
        self.rows: list[tuple] = []
        self.error: Exception | None = None
        self.commits = 0

    def cursor(self, row_factory=None) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()

    @contextmanager
    def connection(self):
        yield self.conn


def account_row(is_verified: bool = False, role: str = "customer") -> tuple:
    return ("acc-1", "Alice", "alice@x.com", "secret1", role, is_verified, CREATED)


@pytest.fixture
def pool() -> FakePool:
    return FakePool()


@pytest.fixture
def repository(pool) -> AccountRepository:
    return AccountRepository(pool)


def test_ensure_schema_creates_tables(repository, pool):
    repository.ensure_schema()
    assert len(pool.conn.executed) == len(SCHEMA_STATEMENTS)
    assert "email TEXT NOT NULL UNIQUE" in pool.conn.executed[0][0]
    assert pool.conn.commits == 1


def test_create_account_inserts_unverified_row(repository, pool):
    pool.conn.rows.append(account_row())
    account = repository.create_account(
        RegisterInput(name="Alice", email="alice@x.com", password="secret1", role=Role.customer)
    )
    assert account == Account(
        account_id="acc-1",
        name="Alice",
        email="alice@x.com",
        password="secret1",
        role=Role.customer,
        created_at=CREATED,
        is_verified=False,
    )
    query, params = pool.conn.executed[0]
    assert query.startswith("INSERT INTO accounts")
    assert params[1:5] == ("Alice", "alice@x.com", "secret1", "customer")
    assert pool.conn.commits == 1


def test_create_account_maps_unique_violation(repository, pool):
    pool.conn.error = errors.UniqueViolation("duplicate key value violates unique constraint")
    with pytest.raises(DuplicateAccountError) as excinfo:
        repository.create_account(
            RegisterInput(name="Alice", email="alice@x.com", password="secret1", role=Role.customer)
        )
    assert excinfo.value.email == "alice@x.com"
    assert pool.conn.commits == 0


def test_find_by_email(repository, pool):
    assert repository.find_by_email("alice@x.com") is None
    pool.conn.rows.append(account_row())
    assert repository.find_by_email("alice@x.com").account_id == "acc-1"
    assert pool.conn.executed[-1][1] == ("alice@x.com",)


def test_find_by_email_and_role_filters_on_role_value(repository, pool):
    pool.conn.rows.append(account_row(role="manager"))
    account = repository.find_by_email_and_role("alice@x.com", Role.manager)
    assert account.role is Role.manager
    query, params = pool.conn.executed[0]
    assert "WHERE email = %s AND role = %s" in query
    assert params == ("alice@x.com", "manager")


def test_mark_verified_returns_updated_account(repository, pool):
    pool.conn.rows.append(account_row(is_verified=True))
    stale = repository._map_account(account_row())
    account, changed = repository.mark_verified(stale)
    assert account.is_verified is True
    assert changed is True
    assert len(pool.conn.executed) == 1
    query, params = pool.conn.executed[0]
    assert query.startswith("UPDATE accounts SET is_verified = TRUE")
    assert "AND is_verified = FALSE" in query
    assert params[1] == "acc-1"


def test_mark_verified_reports_row_verified_elsewhere(repository, pool):
    pool.conn.rows.extend([None, account_row(is_verified=True)])
    account, changed = repository.mark_verified(repository._map_account(account_row()))
    assert account.is_verified is True
    assert changed is False
    query, params = pool.conn.executed[1]
    assert query.startswith("SELECT account_id")
    assert params == ("acc-1",)
    assert pool.conn.commits == 1


def test_mark_verified_missing_row_raises(repository, pool):
    with pytest.raises(LookupError):
        repository.mark_verified(repository._map_account(account_row()))
    assert len(pool.conn.executed) == 2


def test_create_contact_message(repository, pool):
    record = repository.create_contact_message("Carol", "carol@x.com", "Hello")
    assert record.message_id
    query, params = pool.conn.executed[0]
    assert query.startswith("INSERT INTO contact_messages")
    assert params[1:4] == ("Carol", "carol@x.com", "Hello")
    assert pool.conn.commits == 1
