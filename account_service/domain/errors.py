"""Error taxonomy shared by the workflows and the HTTP boundary."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    validation = "validation"
    conflict = "conflict"
    not_found = "not_found"
    forbidden = "forbidden"
    unauthorized = "unauthorized"
    configuration = "configuration"
    transport = "transport"
    unexpected = "unexpected"


@dataclass(frozen=True, slots=True)
class Failure:
    """Business outcome that ended a workflow without success."""

    kind: ErrorKind
    message: str


class DuplicateAccountError(Exception):
    """Raised by the store when the unique email key rejects an insert."""

    def __init__(self, email: str) -> None:
        super().__init__(f"account already exists for {email}")
        self.email = email
