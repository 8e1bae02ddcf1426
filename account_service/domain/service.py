"""Account workflows: registration, login, email verification and contact relay."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .account import Account, ContactMessage
from .contracts import (
    normalize_email,
    validate_contact,
    validate_login,
    validate_registration,
    validate_verification_email,
)
from .errors import DuplicateAccountError, ErrorKind, Failure
from ..delivery.emailjs import EmailDispatcher, EmailParameters
from ..repository import AccountRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RegistrationResult:
    """A created account plus the outcome of its verification email."""

    account: Account
    email_sent: bool
    email_error: str | None = None


@dataclass(slots=True)
class VerificationResult:
    """Terminal state of a successful verification visit."""

    account: Account
    already_verified: bool


class AccountService:
    """Account workflows backed by Postgres storage and EmailJS delivery.

    Business outcomes are returned as values; a :class:`Failure` carries the
    error kind the HTTP layer turns into a status code. Only unexpected
    exceptions propagate.
    """

    def __init__(self, repository: AccountRepository, dispatcher: EmailDispatcher) -> None:
        """Store dependencies used to orchestrate persistence and delivery."""
        self._repository = repository
        self._dispatcher = dispatcher

    def register(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        role: str | None,
    ) -> RegistrationResult | Failure:
        """Create an unverified account and send its verification email.

        A failed email does not undo the registration; the result reports
        ``email_sent=False`` together with the delivery error instead.
        """
        payload = validate_registration(name, email, password, role)
        if isinstance(payload, Failure):
            logger.info("registration rejected: %s", payload.message)
            return payload

        if self._repository.find_by_email(payload.email) is not None:
            logger.info("registration rejected: %s already registered", payload.email)
            return Failure(ErrorKind.conflict, "Email already registered")

        try:
            account = self._repository.create_account(payload)
        except DuplicateAccountError:
            logger.info("registration lost insert race for %s", payload.email)
            return Failure(ErrorKind.conflict, "Email already registered")
        logger.info("account %s created for %s", account.account_id, account.email)

        delivery = self._dispatcher.send(
            EmailParameters(
                sender_name=account.name,
                sender_email=account.email,
                recipient_email=account.email,
            )
        )
        if delivery.success:
            logger.info("verification email sent to %s", account.email)
        else:
            logger.warning("verification email to %s failed: %s", account.email, delivery.error_message)

        return RegistrationResult(
            account=account,
            email_sent=delivery.success,
            email_error=delivery.error_message,
        )

    def login(
        self,
        email: str | None,
        password: str | None,
        role: str | None,
    ) -> Account | Failure:
        """Authenticate by (email, role); verification is checked before the password."""
        credentials = validate_login(email, password, role)
        if isinstance(credentials, Failure):
            logger.info("login rejected: %s", credentials.message)
            return credentials

        account = self._repository.find_by_email_and_role(credentials.email, credentials.role)
        if account is None:
            logger.info("login failed: no %s account for %s", credentials.role.value, credentials.email)
            return Failure(ErrorKind.not_found, "User not found")

        if not account.is_verified:
            logger.info("login failed: %s has not verified their email", account.email)
            return Failure(ErrorKind.forbidden, "Please verify your email address before logging in")

        if account.password != credentials.password:
            logger.info("login failed: invalid password for %s", account.email)
            return Failure(ErrorKind.unauthorized, "Invalid password")

        logger.info("login succeeded for %s as %s", account.email, account.role.value)
        return account

    def verify_email(self, email: str | None) -> VerificationResult | Failure:
        """Mark the account behind a verification link as verified.

        Visiting the same link again reports ``already_verified`` and writes nothing.
        """
        normalized = validate_verification_email(email)
        if isinstance(normalized, Failure):
            logger.info("verification rejected: %s", normalized.message)
            return normalized

        account = self._repository.find_by_email(normalized)
        if account is None:
            logger.info("no account found to verify for %s", normalized)
            return Failure(ErrorKind.not_found, "No account found with this email address.")

        if account.is_verified:
            logger.info("account %s already verified", account.email)
            return VerificationResult(account=account, already_verified=True)

        account, changed = self._repository.mark_verified(account)
        if not changed:
            logger.info("account %s verified by a concurrent request", account.email)
            return VerificationResult(account=account, already_verified=True)
        logger.info("account %s verified", account.email)
        return VerificationResult(account=account, already_verified=False)

    def lookup(self, email: str) -> Account | None:
        """Diagnostic lookup by email, used by the test-verify route."""
        return self._repository.find_by_email(normalize_email(email))

    def submit_contact(
        self,
        name: str | None,
        email: str | None,
        message: str | None,
    ) -> ContactMessage | Failure:
        """Store a contact-form message and relay it to the configured inbox."""
        payload = validate_contact(name, email, message)
        if isinstance(payload, Failure):
            logger.info("contact submission rejected: %s", payload.message)
            return payload

        record = self._repository.create_contact_message(payload.name, payload.email, payload.message)
        logger.info("contact message %s stored", record.message_id)

        delivery = self._dispatcher.send(
            EmailParameters(
                sender_name=payload.name,
                sender_email=payload.email,
                message=payload.message,
            )
        )
        if not delivery.success:
            logger.warning("contact email for %s failed: %s", record.message_id, delivery.error_message)
            return Failure(delivery.error_kind or ErrorKind.transport, delivery.error_message or "Email delivery failed")
        return record
