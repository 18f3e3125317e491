"""
dirauth Handshake

One bind/search/bind attempt against a single directory server.

Phases:
1. Bind as the service account
2. Search the base DN for the user entry (escaped username in the filter)
3. Bind as the user's DN with the caller's password, on a second connection

The attempt never raises. Its outcome is returned as a value:
- Success(AuthResponse): the user is authenticated
- Failure(HandshakeFailure): REJECTED (terminal, carries the response to
  return), TRANSIENT (retry or move on) or UNEXPECTED (abandon the server)
"""

from __future__ import annotations

from enum import Enum, auto
from http import HTTPStatus
from typing import Any, Optional

import attrs
import structlog
from returns.result import Failure, Result, Success

from dirauth.config import DirectoryConfig
from dirauth.core.exceptions import DirectoryError
from dirauth.core.types import AuthResponse, ErrorCode, ServerAddress
from dirauth.ldap.connection import DirectoryConnector
from dirauth.ldap.diagnostics import code_name, is_authentication_failure, map_diagnostic
from dirauth.ldap.filter import render_filter

logger = structlog.get_logger()


class FailureKind(Enum):
    """How the orchestrator must react to a failed attempt."""

    REJECTED = auto()  # terminal: return the response as-is
    TRANSIENT = auto()  # back off and retry, then next server
    UNEXPECTED = auto()  # next server, no retry


@attrs.define(frozen=True, slots=True)
class HandshakeFailure:
    """
    A failed handshake attempt.

    Attributes:
        kind: Failure classification
        response: Caller-facing response (REJECTED only)
        result_code: LDAP result code (TRANSIENT only)
        message: Diagnostic detail for logs
    """

    kind: FailureKind
    response: Optional[AuthResponse] = None
    result_code: Optional[int] = None
    message: str = ""

    @classmethod
    def rejected(
        cls, error: ErrorCode, message: str
    ) -> HandshakeFailure:
        return cls(
            kind=FailureKind.REJECTED,
            response=AuthResponse.failure(HTTPStatus.UNAUTHORIZED, error, message),
            message=message,
        )

    @classmethod
    def transient(cls, result_code: int, message: str) -> HandshakeFailure:
        return cls(kind=FailureKind.TRANSIENT, result_code=result_code, message=message)

    @classmethod
    def unexpected(cls, message: str) -> HandshakeFailure:
        return cls(kind=FailureKind.UNEXPECTED, message=message)


HandshakeOutcome = Result[AuthResponse, HandshakeFailure]


@attrs.define
class Handshake:
    """
    Runs the two-phase handshake with the configured service account.

    Both connections are opened and closed within a single attempt.
    """

    config: DirectoryConfig
    connector: DirectoryConnector

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def attempt(
        self,
        server: ServerAddress,
        username: str,
        password: str,
    ) -> HandshakeOutcome:
        """
        Verify credentials against one server.

        Args:
            server: Directory server to contact
            username: Username as supplied by the caller
            password: Caller's password

        Returns:
            Success(AuthResponse) or Failure(HandshakeFailure)
        """
        log = self._logger.bind(server=str(server), username=username)

        try:
            return self._run(server, username, password, log)

        except DirectoryError as e:
            log.warning(
                "directory_error",
                result_code=code_name(e.result_code),
                error=e.message,
            )
            if is_authentication_failure(e.result_code):
                return Failure(HandshakeFailure.rejected(
                    ErrorCode.LDAP_BIND_FAILED,
                    map_diagnostic(e.result_code, e.diagnostic_message),
                ))
            return Failure(HandshakeFailure.transient(e.result_code, e.message))

        except Exception as e:
            log.error("unexpected_handshake_error", error=str(e), error_type=type(e).__name__)
            return Failure(HandshakeFailure.unexpected(str(e)))

    def _run(
        self,
        server: ServerAddress,
        username: str,
        password: str,
        log: Any,
    ) -> HandshakeOutcome:
        with self.connector.open(server) as conn:
            # Phase 1: service account
            service_bind = conn.bind(
                self.config.service_bind_dn,
                self.config.service_bind_password,
            )
            if not service_bind.success:
                log.warning(
                    "service_bind_failed",
                    result_code=code_name(service_bind.result_code),
                    diagnostic=service_bind.diagnostic_message,
                )
                raise DirectoryError(
                    service_bind.result_code,
                    service_bind.diagnostic_message,
                    message=f"service bind failed: {service_bind.diagnostic_message}",
                )

            # Phase 2: locate the user entry
            search_filter = render_filter(self.config.user_search_filter, username)
            entries = conn.search(self.config.base_dn, search_filter)
            if not entries:
                log.info("user_not_found", filter=search_filter)
                return Failure(HandshakeFailure.rejected(
                    ErrorCode.USER_NOT_FOUND, "User not found"
                ))
            user_dn = entries[0]

            # Phase 3: verify the password
            with self.connector.open(server) as user_conn:
                user_bind = user_conn.bind(user_dn, password)

        if user_bind.success:
            log.info("user_authenticated", user_dn=user_dn)
            return Success(AuthResponse.ok(str(server)))

        log.info(
            "user_bind_rejected",
            user_dn=user_dn,
            result_code=code_name(user_bind.result_code),
        )
        return Failure(HandshakeFailure.rejected(
            ErrorCode.INVALID_CREDENTIALS,
            map_diagnostic(user_bind.result_code, user_bind.diagnostic_message),
        ))
