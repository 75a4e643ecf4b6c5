"""api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from persona_server.application.services.auth_service import AuthService
from persona_server.config.settings import Settings, load_settings
from persona_server.infrastructure.db.account_repository import SqlAlchemyAccountRepository
from persona_server.infrastructure.db.session import create_session_factory
from persona_server.infrastructure.http.auth_guard import BearerTokenGuard
from persona_server.infrastructure.http.auth_router import build_auth_router
from persona_server.infrastructure.logging import configure_logging
from persona_server.infrastructure.security.key_provider import (
    SigningKeyPair,
    load_signing_key_pair,
)
from persona_server.infrastructure.security.password_hasher import Argon2PasswordHasher
from persona_server.infrastructure.security.token_service import (
    JwtTokenIssuer,
    JwtTokenVerifier,
)

logger = logging.getLogger(__name__)


def build_auth_service(database_url: str, *, key_pair: SigningKeyPair) -> AuthService:
    """Build authentication service with SQLAlchemy-backed account storage."""

    session_factory = create_session_factory(database_url)
    return AuthService(
        accounts=SqlAlchemyAccountRepository(session_factory),
        password_hasher=Argon2PasswordHasher(),
        token_issuer=JwtTokenIssuer(private_key=key_pair.private_key),
    )


def create_app(
    *,
    auth_service: AuthService | None = None,
    token_verifier: JwtTokenVerifier | None = None,
    key_pair: SigningKeyPair | None = None,
    database_url: str | None = None,
) -> FastAPI:
    """Create FastAPI app for login, registration and bearer-protected routes.

    Signing keys are loaded eagerly here so a missing or malformed key file
    fails process startup instead of the first login.
    """

    needs_keys = auth_service is None or token_verifier is None
    settings: Settings | None = None
    if (needs_keys and key_pair is None) or (auth_service is None and database_url is None):
        settings = load_settings()
        configure_logging(level=settings.log_level)

    if needs_keys and key_pair is None:
        assert settings is not None
        key_pair = load_signing_key_pair(
            private_key_path=settings.jwt_private_key_path,
            public_key_path=settings.jwt_public_key_path,
        )

    if auth_service is None:
        if database_url is None:
            assert settings is not None
            database_url = settings.database_url
        assert key_pair is not None
        auth_service = build_auth_service(database_url, key_pair=key_pair)
    if token_verifier is None:
        assert key_pair is not None
        token_verifier = JwtTokenVerifier(public_key=key_pair.public_key)

    app = FastAPI()
    app.include_router(
        build_auth_router(
            auth_service=auth_service,
            auth_guard=BearerTokenGuard(token_verifier=token_verifier),
        )
    )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "storage_failure method=%s path=%s error=%s",
            request.method,
            request.url.path,
            exc,
        )
        return JSONResponse(status_code=500, content={"detail": "internal error"})

    return app


def run_asgi_server(*, host: str, port: int) -> None:
    """Run the API as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run api runtime process."""

    settings = load_settings()
    run_asgi_server(host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
