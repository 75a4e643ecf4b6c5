from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from persona_server.application.ports.token_issuer_port import TokenSigningError
from persona_server.infrastructure.security.key_provider import SigningKeyPair
from persona_server.infrastructure.security.token_service import (
    TOKEN_ALGORITHM,
    AlgorithmMismatchError,
    InvalidTokenSignatureError,
    JwtTokenIssuer,
    JwtTokenVerifier,
    MalformedTokenError,
    TokenExpiredError,
    TokenNotYetValidError,
    TokenVerificationError,
)

ISSUED_AT = datetime(2026, 10, 19, 8, 30, 0, tzinfo=UTC)


def _b64url(payload: dict[str, object]) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _issue(key_pair: SigningKeyPair, *, identity: str = "alice") -> str:
    issuer = JwtTokenIssuer(private_key=key_pair.private_key, now=lambda: ISSUED_AT)
    return issuer.issue(identity).token


def _verifier(key_pair: SigningKeyPair, *, at: datetime) -> JwtTokenVerifier:
    return JwtTokenVerifier(public_key=key_pair.public_key, now=lambda: at)


def test_issue_builds_fixed_validity_window(signing_key_pair: SigningKeyPair) -> None:
    issuer = JwtTokenIssuer(
        private_key=signing_key_pair.private_key,
        now=lambda: ISSUED_AT + timedelta(microseconds=750),
    )

    issued = issuer.issue("alice")

    assert issued.audience == "alice"
    assert issued.issued_at == ISSUED_AT
    assert issued.not_before == ISSUED_AT + timedelta(seconds=5)
    assert issued.expires_at == ISSUED_AT + timedelta(minutes=5)
    assert jwt.get_unverified_header(issued.token)["alg"] == "RS512"
    claims = jwt.decode(
        issued.token,
        signing_key_pair.public_key,
        algorithms=["RS512"],
        audience="alice",
        options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
    )
    assert claims == {
        "aud": "alice",
        "iat": int(ISSUED_AT.timestamp()),
        "nbf": int(ISSUED_AT.timestamp()) + 5,
        "exp": int(ISSUED_AT.timestamp()) + 300,
    }


def test_issue_wraps_signing_failures() -> None:
    issuer = JwtTokenIssuer(private_key=object(), now=lambda: ISSUED_AT)  # type: ignore[arg-type]

    with pytest.raises(TokenSigningError, match="failed to sign token"):
        issuer.issue("alice")


@pytest.mark.parametrize(
    "offset",
    [timedelta(seconds=5), timedelta(seconds=6), timedelta(minutes=5) - timedelta(seconds=1)],
)
def test_verify_accepts_tokens_inside_window(
    signing_key_pair: SigningKeyPair,
    offset: timedelta,
) -> None:
    token = _issue(signing_key_pair)

    claims = _verifier(signing_key_pair, at=ISSUED_AT + offset).verify(token)

    assert claims.audience == "alice"
    assert claims.issued_at == ISSUED_AT
    assert claims.not_before == ISSUED_AT + timedelta(seconds=5)
    assert claims.expires_at == ISSUED_AT + timedelta(minutes=5)


@pytest.mark.parametrize(
    "offset",
    [timedelta(0), timedelta(seconds=4, microseconds=999_999)],
)
def test_verify_rejects_tokens_before_not_before(
    signing_key_pair: SigningKeyPair,
    offset: timedelta,
) -> None:
    token = _issue(signing_key_pair)

    with pytest.raises(TokenNotYetValidError):
        _verifier(signing_key_pair, at=ISSUED_AT + offset).verify(token)


@pytest.mark.parametrize("offset", [timedelta(minutes=5), timedelta(hours=1)])
def test_verify_rejects_tokens_at_or_after_expiry(
    signing_key_pair: SigningKeyPair,
    offset: timedelta,
) -> None:
    token = _issue(signing_key_pair)

    with pytest.raises(TokenExpiredError):
        _verifier(signing_key_pair, at=ISSUED_AT + offset).verify(token)


def test_verify_rejects_token_signed_with_other_key(
    signing_key_pair: SigningKeyPair,
    other_signing_key_pair: SigningKeyPair,
) -> None:
    token = _issue(other_signing_key_pair)

    with pytest.raises(InvalidTokenSignatureError):
        _verifier(signing_key_pair, at=ISSUED_AT + timedelta(seconds=10)).verify(token)


@pytest.mark.parametrize("algorithm", ["RS256", "HS512", "none", "PS512"])
def test_verify_rejects_altered_algorithm_header_with_valid_signature(
    signing_key_pair: SigningKeyPair,
    algorithm: str,
) -> None:
    _, payload, signature = _issue(signing_key_pair).split(".")
    forged = ".".join((_b64url({"alg": algorithm, "typ": "JWT"}), payload, signature))

    with pytest.raises(AlgorithmMismatchError, match=algorithm):
        _verifier(signing_key_pair, at=ISSUED_AT + timedelta(seconds=10)).verify(forged)


def test_verify_rejects_symmetric_token_before_using_key(signing_key_pair: SigningKeyPair) -> None:
    token = jwt.encode(
        {"aud": "alice", "iat": 0, "nbf": 0, "exp": 2_000_000_000},
        "shared-secret",
        algorithm="HS512",
    )

    with pytest.raises(AlgorithmMismatchError):
        _verifier(signing_key_pair, at=ISSUED_AT).verify(token)


def test_verify_rejects_unsigned_token(signing_key_pair: SigningKeyPair) -> None:
    payload = {"aud": "alice", "iat": 0, "nbf": 0, "exp": 2_000_000_000}
    token = f"{_b64url({'alg': 'none'})}.{_b64url(payload)}."

    with pytest.raises(AlgorithmMismatchError):
        _verifier(signing_key_pair, at=ISSUED_AT).verify(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_verify_rejects_unparseable_tokens(signing_key_pair: SigningKeyPair, token: str) -> None:
    with pytest.raises(MalformedTokenError):
        _verifier(signing_key_pair, at=ISSUED_AT).verify(token)


@pytest.mark.parametrize(
    "claims",
    [
        {"aud": "alice", "iat": 0, "exp": 2_000_000_000},
        {"iat": 0, "nbf": 0, "exp": 2_000_000_000},
        {"aud": ["alice"], "iat": 0, "nbf": 0, "exp": 2_000_000_000},
        {"aud": "alice", "iat": 0, "nbf": "soon", "exp": 2_000_000_000},
    ],
)
def test_verify_rejects_tokens_with_missing_or_invalid_claims(
    signing_key_pair: SigningKeyPair,
    claims: dict[str, object],
) -> None:
    token = jwt.encode(claims, signing_key_pair.private_key, algorithm=TOKEN_ALGORITHM)

    with pytest.raises(MalformedTokenError):
        _verifier(signing_key_pair, at=ISSUED_AT).verify(token)


def test_verification_errors_are_permission_errors() -> None:
    for error in (
        MalformedTokenError,
        AlgorithmMismatchError,
        InvalidTokenSignatureError,
        TokenNotYetValidError,
        TokenExpiredError,
    ):
        assert issubclass(error, TokenVerificationError)
    assert issubclass(TokenVerificationError, PermissionError)
