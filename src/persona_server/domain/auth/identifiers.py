"""Normalization and policy helpers for account identifiers and emails."""

from __future__ import annotations

import re

_IDENTIFIER_PATTERN = re.compile(r"[a-zA-Z0-9_]+")


class InvalidIdentifierError(ValueError):
    """Raised when an account identifier contains characters outside `[a-zA-Z0-9_]`."""

    def __init__(self, *, identifier: str) -> None:
        super().__init__("invalid identifier")
        self.identifier = identifier


def normalize_identifier(*, identifier: str) -> str:
    """Validate one account identifier and return its case-folded form."""

    if _IDENTIFIER_PATTERN.fullmatch(identifier) is None:
        raise InvalidIdentifierError(identifier=identifier)
    return identifier.lower()


def normalize_email(*, email: str) -> str:
    """Normalize one account email and reject blank values."""

    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("email cannot be blank")
    return normalized


def build_account_url(*, identifier: str) -> str:
    """Return the public URL path of one account."""

    return f"/users/{identifier}/"
