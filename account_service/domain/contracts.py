"""Domain-level request contracts and the validation that produces them."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .account import Role
from .errors import ErrorKind, Failure

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

_ROLE_NAMES = ", ".join(role.value for role in Role)


@dataclass(slots=True)
class RegisterInput:
    """Validated inputs required to create an account."""

    name: str
    email: str
    password: str
    role: Role


@dataclass(slots=True)
class LoginInput:
    """Validated credentials used to resolve and authenticate an account."""

    email: str
    password: str
    role: Role


@dataclass(slots=True)
class ContactInput:
    """Validated contact-form submission."""

    name: str
    email: str
    message: str


def normalize_email(email: str) -> str:
    return email.lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def _parse_role(role: str) -> Role | None:
    try:
        return Role(role)
    except ValueError:
        return None


def _invalid(message: str) -> Failure:
    return Failure(ErrorKind.validation, message)


def validate_registration(
    name: str | None,
    email: str | None,
    password: str | None,
    role: str | None,
) -> RegisterInput | Failure:
    """Check registration fields in order: presence, email shape, role, password length."""
    if not name or not email or not password or not role:
        return _invalid("All fields are required: name, email, password, role")
    if not is_valid_email(email):
        return _invalid("Invalid email format")
    parsed_role = _parse_role(role)
    if parsed_role is None:
        return _invalid(f"Invalid role. Must be one of: {_ROLE_NAMES}")
    if len(password) < MIN_PASSWORD_LENGTH:
        return _invalid(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return RegisterInput(name=name, email=normalize_email(email), password=password, role=parsed_role)


def validate_login(
    email: str | None,
    password: str | None,
    role: str | None,
) -> LoginInput | Failure:
    """Check login fields with the same email and role rules as registration."""
    if not email or not password or not role:
        return _invalid("All fields are required: email, password, role")
    if not is_valid_email(email):
        return _invalid("Invalid email format")
    parsed_role = _parse_role(role)
    if parsed_role is None:
        return _invalid(f"Invalid role. Must be one of: {_ROLE_NAMES}")
    return LoginInput(email=normalize_email(email), password=password, role=parsed_role)


def validate_verification_email(email: str | None) -> str | Failure:
    """Return the normalised email carried by a verification link."""
    if not email:
        return _invalid("Email parameter is required.")
    if not is_valid_email(email):
        return _invalid("Invalid email format.")
    return normalize_email(email)


def validate_contact(
    name: str | None,
    email: str | None,
    message: str | None,
) -> ContactInput | Failure:
    if not name or not email or not message:
        return _invalid("All fields are required.")
    if not is_valid_email(email):
        return _invalid("Invalid email address.")
    return ContactInput(name=name, email=email, message=message)
