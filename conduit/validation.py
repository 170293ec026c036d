"""
Composable field validators for account data.

Each validator returns a ``ValidationResult``: either ``OK`` or a mapping of
field name to a list of human-readable messages.  ``chain`` merges several
results so that registration can report every violation in one response
instead of stopping at the first.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import email_validator

from conduit.errors import ValidationError


@dataclass(frozen=True)
class ValidationResult:
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def error(cls, field_name: str, message: str) -> "ValidationResult":
        return cls({field_name: [message]})

    def raise_for_errors(self) -> None:
        """Raise ``ValidationError`` carrying the per-field messages, if any."""
        if not self.ok:
            raise ValidationError({k: list(v) for k, v in self.errors.items()})


OK = ValidationResult()


def chain(results: Iterable[ValidationResult]) -> ValidationResult:
    """
    Merge *results* in order.

    All ``OK`` gives ``OK``.  Otherwise each field's messages are the
    concatenation, in input order, of that field's messages across every
    erroring input.  Fields that no input mentions stay absent.
    """
    merged: dict[str, list[str]] = {}
    for result in results:
        for name, messages in result.errors.items():
            merged.setdefault(name, []).extend(messages)
    return ValidationResult(merged) if merged else OK


def validate_username(username: str, taken: Iterable[str]) -> ValidationResult:
    if len(username) < 3:
        return ValidationResult.error("username", "username must have at least 3 characters")
    if username in set(taken):
        return ValidationResult.error("username", "username already taken")
    return OK


def validate_email(email: str, taken: Iterable[str]) -> ValidationResult:
    if len(email) == 0:
        return ValidationResult.error("email", "email can't be empty")
    if email in set(taken):
        return ValidationResult.error("email", "email already taken")
    if not is_valid_email(email):
        return ValidationResult.error("email", "enter a valid email")
    return OK


def validate_password(password: str) -> ValidationResult:
    if len(password) < 3:
        return ValidationResult.error("password", "password must have at least 3 characters")
    return OK


def is_valid_email(email: str) -> bool:
    """Syntax-only check; no DNS lookups."""
    try:
        email_validator.validate_email(email, check_deliverability=False)
    except email_validator.EmailNotValidError:
        return False
    return True
