from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from account_service.api import routes
from account_service.delivery.emailjs import DeliveryResult, EmailParameters
from account_service.domain.account import Account, ContactMessage, Role
from account_service.domain.contracts import RegisterInput
from account_service.domain.errors import DuplicateAccountError
from account_service.domain.service import AccountService


class FakeRepository:
    """In-memory repository mimicking the Postgres unique email key."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.contact_messages: list[ContactMessage] = []
        self.mark_verified_calls = 0
        self._lock = threading.Lock()

    def create_account(self, payload: RegisterInput) -> Account:
        with self._lock:
            if payload.email in self.accounts:
                raise DuplicateAccountError(payload.email)
            account = Account(
                account_id=str(uuid.uuid4()),
                name=payload.name,
                email=payload.email,
                password=payload.password,
                role=payload.role,
                created_at=datetime.now(timezone.utc),
            )
            self.accounts[payload.email] = account
            return account

    def find_by_email(self, email: str) -> Account | None:
        return self.accounts.get(email)

    def find_by_email_and_role(self, email: str, role: Role) -> Account | None:
        account = self.accounts.get(email)
        if account is None or account.role != role:
            return None
        return account

    def mark_verified(self, account: Account) -> tuple[Account, bool]:
        with self._lock:
            self.mark_verified_calls += 1
            stored = self.accounts[account.email]
            changed = not stored.is_verified
            stored.is_verified = True
            return stored, changed

    def create_contact_message(self, name: str, email: str, message: str) -> ContactMessage:
        record = ContactMessage(
            message_id=str(uuid.uuid4()),
            name=name,
            email=email,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        self.contact_messages.append(record)
        return record


class FakeDispatcher:
    """Records dispatched emails and answers with a preset result."""

    def __init__(self, result: DeliveryResult | None = None) -> None:
        self.sent: list[EmailParameters] = []
        self.result = result or DeliveryResult(success=True, response="OK", attempts=1)

    def send(self, params: EmailParameters) -> DeliveryResult:
        self.sent.append(params)
        return self.result


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def service(repository, dispatcher) -> AccountService:
    return AccountService(repository, dispatcher)


@pytest.fixture
def api_client(service):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    app.state.account_service = service

    with TestClient(app) as client:
        yield client
