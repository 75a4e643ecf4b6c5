"""RS512 JWT bearer token issuance and verification."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from persona_server.application.ports.token_issuer_port import (
    IssuedToken,
    TokenIssuerPort,
    TokenSigningError,
)

TOKEN_ALGORITHM = "RS512"
TOKEN_NOT_BEFORE_DELAY = timedelta(seconds=5)
TOKEN_TTL = timedelta(minutes=5)
_REQUIRED_CLAIMS = ("aud", "iat", "nbf", "exp")


class TokenVerificationError(PermissionError):
    """Base error for presented tokens that must not authorize a request."""


class MalformedTokenError(TokenVerificationError):
    """Raised when a token cannot be parsed or lacks required claims."""


class AlgorithmMismatchError(TokenVerificationError):
    """Raised when a token declares any signing algorithm other than RS512."""

    def __init__(self, *, algorithm: object) -> None:
        super().__init__(f"unexpected signing algorithm: {algorithm!r}")
        self.algorithm = algorithm


class InvalidTokenSignatureError(TokenVerificationError):
    """Raised when a token signature does not verify against the public key."""


class TokenNotYetValidError(TokenVerificationError):
    """Raised when a token is presented before its `nbf` time."""


class TokenExpiredError(TokenVerificationError):
    """Raised when a token is presented at or after its `exp` time."""


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of one accepted bearer token."""

    audience: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class JwtTokenIssuer(TokenIssuerPort):
    """Mint short-lived RS512 tokens whose audience is the authenticated identity."""

    def __init__(
        self,
        *,
        private_key: rsa.RSAPrivateKey,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._private_key = private_key
        self._now = now or _utc_now

    def issue(self, identity: str) -> IssuedToken:
        # JWT NumericDate has whole-second resolution.
        issued_at = self._now().astimezone(UTC).replace(microsecond=0)
        not_before = issued_at + TOKEN_NOT_BEFORE_DELAY
        expires_at = issued_at + TOKEN_TTL
        claims = {
            "aud": identity,
            "iat": int(issued_at.timestamp()),
            "nbf": int(not_before.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        try:
            token = jwt.encode(claims, self._private_key, algorithm=TOKEN_ALGORITHM)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise TokenSigningError("failed to sign token") from exc

        return IssuedToken(
            token=token,
            audience=identity,
            issued_at=issued_at,
            not_before=not_before,
            expires_at=expires_at,
        )


class JwtTokenVerifier:
    """Validate presented tokens stage by stage, rejecting at the first failure.

    Stages run in a fixed order: parse, algorithm check, signature check and
    validity window check. The algorithm is checked against the header before
    the public key is used, so tokens declaring `none`, an HMAC scheme or any
    other RSA digest are never accepted.
    """

    def __init__(
        self,
        *,
        public_key: rsa.RSAPublicKey,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._public_key = public_key
        self._now = now or _utc_now

    def verify(self, token: str) -> TokenClaims:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError("token cannot be parsed") from exc

        algorithm = header.get("alg")
        if algorithm != TOKEN_ALGORITHM:
            raise AlgorithmMismatchError(algorithm=algorithm)

        try:
            payload = jwt.decode(
                token,
                self._public_key,
                algorithms=[TOKEN_ALGORITHM],
                options={
                    "verify_signature": True,
                    "verify_aud": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_exp": False,
                    "require": list(_REQUIRED_CLAIMS),
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidTokenSignatureError("token signature mismatch") from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError("token cannot be decoded") from exc

        claims = _to_token_claims(payload)
        now = self._now()
        if now < claims.not_before:
            raise TokenNotYetValidError("token is not valid yet")
        if now >= claims.expires_at:
            raise TokenExpiredError("token has expired")
        return claims


def _to_token_claims(payload: Mapping[str, Any]) -> TokenClaims:
    audience = payload["aud"]
    if not isinstance(audience, str) or not audience:
        raise MalformedTokenError("audience claim must be a non-empty string")
    return TokenClaims(
        audience=audience,
        issued_at=_numeric_date(payload, "iat"),
        not_before=_numeric_date(payload, "nbf"),
        expires_at=_numeric_date(payload, "exp"),
    )


def _numeric_date(payload: Mapping[str, Any], claim: str) -> datetime:
    value = payload[claim]
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MalformedTokenError(f"{claim} claim must be a numeric date")
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedTokenError(f"{claim} claim is out of range") from exc
