from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    customer = "customer"
    admin = "admin"
    manager = "manager"
    worker = "worker"


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered user identity.

    ``email`` is stored lower-cased and is unique across the store. ``is_verified``
    only ever moves from ``False`` to ``True``.
    """

    account_id: str
    name: str
    email: str
    password: str
    role: Role
    created_at: datetime
    is_verified: bool = False


@dataclass(slots=True)
class ContactMessage:
    """Append-only record of a contact-form submission."""

    message_id: str
    name: str
    email: str
    message: str
    created_at: datetime
