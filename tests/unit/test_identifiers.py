from __future__ import annotations

import pytest

from persona_server.domain.auth.identifiers import (
    InvalidIdentifierError,
    build_account_url,
    normalize_email,
    normalize_identifier,
)


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [("alice", "alice"), ("Alice_01", "alice_01"), ("___", "___"), ("X", "x")],
)
def test_normalize_identifier_accepts_word_characters(identifier: str, expected: str) -> None:
    assert normalize_identifier(identifier=identifier) == expected


@pytest.mark.parametrize("identifier", ["bad id!", "a.b", "a-b", "", " alice", "alice@x"])
def test_normalize_identifier_rejects_other_characters(identifier: str) -> None:
    with pytest.raises(InvalidIdentifierError, match="invalid identifier") as exc_info:
        normalize_identifier(identifier=identifier)
    assert exc_info.value.identifier == identifier


def test_normalize_email_trims_and_lowercases() -> None:
    assert normalize_email(email="  Alice@Example.ORG ") == "alice@example.org"


def test_normalize_email_rejects_blank() -> None:
    with pytest.raises(ValueError, match="email cannot be blank"):
        normalize_email(email="   ")


def test_account_url_matches_public_user_path() -> None:
    assert build_account_url(identifier="alice") == "/users/alice/"
