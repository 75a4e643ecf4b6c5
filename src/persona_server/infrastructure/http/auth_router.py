"""FastAPI router for login, registration and token identity endpoints."""

from __future__ import annotations

from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError

from persona_server.application.dto.auth_models import (
    IdentityResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from persona_server.application.services.auth_service import (
    AccountConflictError,
    AuthInternalError,
    AuthService,
    LoginOutcome,
)
from persona_server.domain.auth.identifiers import InvalidIdentifierError
from persona_server.infrastructure.http.auth_guard import BearerTokenGuard
from persona_server.infrastructure.security.token_service import TokenClaims

AUTH_PREFIX = "/api/v1/auth"
_ModelT = TypeVar("_ModelT", bound=BaseModel)


def build_auth_router(*, auth_service: AuthService, auth_guard: BearerTokenGuard) -> APIRouter:
    """Build router exposing login, registration and identity endpoints."""

    router = APIRouter(prefix=AUTH_PREFIX, tags=["auth"])

    @router.post("/signature", response_model=LoginResponse)
    async def login(request: Request) -> LoginResponse:
        payload = _parse_body(LoginRequest, await request.body())
        try:
            result = await auth_service.login(
                identifier=payload.identifier,
                password=payload.password,
            )
        except AuthInternalError as exc:
            raise HTTPException(status_code=500, detail="internal error") from exc

        if result.outcome is not LoginOutcome.SUCCESS or result.token is None:
            raise HTTPException(status_code=401, detail="invalid credentials")
        return LoginResponse(token=result.token.token)

    @router.post("/new", response_model=RegisterResponse, status_code=201)
    async def register(request: Request) -> RegisterResponse:
        payload = _parse_body(RegisterRequest, await request.body())
        try:
            result = await auth_service.register(
                identifier=payload.identifier,
                email=payload.email,
                password=payload.password,
                display_name=payload.display_name,
            )
        except InvalidIdentifierError as exc:
            raise HTTPException(status_code=400, detail="invalid userid") from exc
        except AccountConflictError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="invalid request") from exc

        return RegisterResponse(account_url=result.account_url)

    @router.get("/identity", response_model=IdentityResponse)
    async def identity(claims: TokenClaims = Depends(auth_guard)) -> IdentityResponse:  # noqa: B008
        return IdentityResponse(identifier=claims.audience, expires_at=claims.expires_at)

    return router


def _parse_body(model: type[_ModelT], raw_body: bytes) -> _ModelT:
    """Validate a raw JSON body, mapping schema errors to HTTP 400."""

    try:
        return model.model_validate_json(raw_body)
    except ValidationError as error:
        raise HTTPException(status_code=400, detail="invalid request") from error
