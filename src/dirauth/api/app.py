"""FastAPI application exposing the introspection endpoint."""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dirauth import __version__
from dirauth.api.schemas import IntrospectRequest, IntrospectResponse
from dirauth.auth.orchestrator import Authenticator, create_authenticator
from dirauth.core.types import AuthResponse, ErrorCode
from dirauth.logging import configure_logging
from dirauth.settings import Settings

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1")


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


@router.post("/introspect", response_model=IntrospectResponse)
def introspect(body: IntrospectRequest, request: Request) -> JSONResponse:
    """
    Verify a username/password pair against the directory.

    Runs in the threadpool: the handshake blocks on network I/O and backoff.
    """
    response = get_authenticator(request).authenticate(body.to_auth_request())
    return _render(response)


def invalid_request_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unparseable or mistyped bodies as invalid_request rather than 422."""
    logger.info("invalid_request_body", path=request.url.path, errors=len(exc.errors()))
    return _render(AuthResponse.failure(
        HTTPStatus.BAD_REQUEST,
        ErrorCode.INVALID_REQUEST,
        "username and password required",
    ))


def _render(response: AuthResponse) -> JSONResponse:
    payload = IntrospectResponse.from_auth_response(response)
    return JSONResponse(
        status_code=response.status.value,
        content=payload.model_dump(by_alias=True, exclude_none=True),
    )


def create_app(
    authenticator: Optional[Authenticator] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        authenticator: Pre-built authenticator (tests); built from settings otherwise
        settings: Environment settings; loaded from ``LDAP_*`` variables if omitted
    """
    if authenticator is None:
        settings = settings or Settings()
        configure_logging(settings.log_level, json=settings.log_json)
        authenticator = create_authenticator(settings.to_directory_config())

    app = FastAPI(title="dirauth", version=__version__)
    app.state.authenticator = authenticator
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, invalid_request_body)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    logger.info("app_created", version=__version__)
    return app
