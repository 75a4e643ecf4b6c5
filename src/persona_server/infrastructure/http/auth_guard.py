"""Auth header parsing and bearer-token guard for protected endpoints."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from persona_server.infrastructure.security.token_service import (
    JwtTokenVerifier,
    TokenClaims,
    TokenVerificationError,
)

logger = logging.getLogger(__name__)


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when bearer token header or signed token is invalid."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract token from standard `Authorization: Bearer <token>` header."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("invalid bearer token header")

    return parts[1]


class BearerTokenGuard:
    """Resolve the authenticated identity of a request from its bearer token."""

    def __init__(self, *, token_verifier: JwtTokenVerifier) -> None:
        self._token_verifier = token_verifier

    def require_identity(self, *, authorization_header: str | None) -> TokenClaims:
        """Verify the presented token and return its claims."""

        token = extract_bearer_token(authorization_header)
        try:
            return self._token_verifier.verify(token)
        except TokenVerificationError as exc:
            logger.info("bearer_token_rejected reason=%s", type(exc).__name__)
            raise InvalidAuthTokenError("invalid token") from exc

    async def __call__(self, request: Request) -> TokenClaims:
        """FastAPI dependency attaching verified claims to `request.state.identity`."""

        try:
            claims = self.require_identity(
                authorization_header=request.headers.get("authorization"),
            )
        except MissingAuthTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except InvalidAuthTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc

        request.state.identity = claims.audience
        return claims
