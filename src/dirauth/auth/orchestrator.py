"""
dirauth Authentication Orchestrator

Top-level state machine for a single introspection call.

States:
1. VALIDATE  - username/password present, domain determined
2. DISCOVER  - candidate servers from the discovery cache
3. HANDSHAKE - per server, up to 1 + max_retries attempts
4. EXHAUSTED - every server failed transiently

Failure policy:
- Authentication-category failures (bad credentials, account state,
  missing entry) end the call immediately; no retry, no next server
- Transient failures back off (base * 2^(attempt-1)) and retry the same
  server, then move to the next one
- Unexpected failures move to the next server without retry
- A cancelled backoff ends the call with ``interrupted``

A search that finds no entry ends the whole call with ``user_not_found``;
the remaining servers are assumed to be replicas and are not consulted.
"""

from __future__ import annotations

import threading
from enum import Enum, auto
from http import HTTPStatus
from typing import Any, Callable, Optional

import attrs
import structlog
from returns.result import Success

from dirauth.auth.backoff import CancellableDelay, RetryContext
from dirauth.auth.handshake import FailureKind, Handshake
from dirauth.config import DirectoryConfig
from dirauth.core.types import AuthRequest, AuthResponse, ErrorCode, ServerAddress
from dirauth.discovery.cache import TTLCache
from dirauth.discovery.domain import DomainDiscovery
from dirauth.ldap.connection import DirectoryConnector, Ldap3Connector

logger = structlog.get_logger()


class AuthState(Enum):
    """Orchestrator state for one call."""

    VALIDATE = auto()
    DISCOVER = auto()
    HANDSHAKE = auto()
    EXHAUSTED = auto()


DelayFactory = Callable[[Optional[threading.Event]], CancellableDelay]


@attrs.define
class Authenticator:
    """
    Verifies credentials against the directory servers of a domain.

    Holds no per-call state; safe to share between worker threads.

    Example:
        auth = create_authenticator(DirectoryConfig(base_dn="dc=corp,dc=example"))
        response = auth.authenticate(
            AuthRequest(username="alice@corp.example", password="secret")
        )
        if response.authenticated:
            print(f"Verified by {response.server}")
    """

    config: DirectoryConfig
    discovery: DomainDiscovery
    connector: DirectoryConnector
    delay_factory: DelayFactory = CancellableDelay.for_token

    _handshake: Handshake = attrs.field(init=False)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def __attrs_post_init__(self) -> None:
        self._handshake = Handshake(config=self.config, connector=self.connector)

    def authenticate(
        self,
        request: AuthRequest,
        cancel: Optional[threading.Event] = None,
    ) -> AuthResponse:
        """
        Authenticate a username/password pair.

        Args:
            request: Credentials and optional domain
            cancel: Event that interrupts a pending backoff when set

        Returns:
            AuthResponse; never raises for directory or DNS failures
        """
        state = AuthState.VALIDATE
        if not request.username or not request.password:
            return AuthResponse.failure(
                HTTPStatus.BAD_REQUEST,
                ErrorCode.INVALID_REQUEST,
                "username and password required",
            )

        domain = request.resolve_domain()
        if domain is None:
            return AuthResponse.failure(
                HTTPStatus.BAD_REQUEST,
                ErrorCode.INVALID_DOMAIN,
                "could not determine domain",
            )

        log = self._logger.bind(username=request.username, domain=domain)
        log.info("authenticate_start", state=state.name)

        state = AuthState.DISCOVER
        servers = self.discovery.resolve(domain)
        if not servers:
            return AuthResponse.failure(
                HTTPStatus.SERVICE_UNAVAILABLE,
                ErrorCode.NO_SERVERS,
                f"No LDAP servers discovered for domain: {domain}",
            )

        state = AuthState.HANDSHAKE
        delay = self.delay_factory(cancel)
        for server in servers:
            log.debug("trying_server", state=state.name, server=str(server))
            response = self._try_server(server, request, delay, log)
            if response is not None:
                log.info(
                    "authenticate_done",
                    server=str(server),
                    authenticated=response.authenticated,
                    error=str(response.error) if response.error else None,
                )
                return response

        state = AuthState.EXHAUSTED
        log.warning("all_servers_failed", state=state.name, servers=len(servers))
        return AuthResponse.failure(
            HTTPStatus.SERVICE_UNAVAILABLE,
            ErrorCode.ALL_UNREACHABLE,
            "All LDAP servers unreachable or failed",
        )

    def _try_server(
        self,
        server: ServerAddress,
        request: AuthRequest,
        delay: CancellableDelay,
        log: Any,
    ) -> Optional[AuthResponse]:
        """
        Run the attempt loop for one server.

        Returns:
            The final response, or None to continue with the next server
        """
        retry = RetryContext(
            server=server,
            max_retries=self.config.max_retries_per_server,
            backoff_base_ms=self.config.backoff_base_ms,
        )

        while not retry.exhausted:
            outcome = self._handshake.attempt(server, request.username, request.password)
            if isinstance(outcome, Success):
                return outcome.unwrap()

            failure = outcome.failure()
            if failure.kind is FailureKind.REJECTED:
                return failure.response

            if failure.kind is FailureKind.UNEXPECTED:
                log.warning("server_abandoned", server=str(server), error=failure.message)
                return None

            retry.record_failure()
            log.warning(
                "transient_failure",
                server=str(server),
                attempt=retry.attempt,
                error=failure.message,
            )
            if retry.exhausted:
                log.info("max_retries_reached", server=str(server))
                return None

            if not delay.wait(retry.next_delay()):
                log.warning("backoff_interrupted", server=str(server))
                return AuthResponse.failure(
                    HTTPStatus.INTERNAL_SERVER_ERROR,
                    ErrorCode.INTERRUPTED,
                    "Interrupted during retry backoff",
                )

        return None


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def create_authenticator(
    config: DirectoryConfig,
    connector: Optional[DirectoryConnector] = None,
    discovery: Optional[DomainDiscovery] = None,
) -> Authenticator:
    """
    Create an authenticator wired to ldap3 and DNS discovery.

    Args:
        config: Directory configuration
        connector: Override the ldap3 connector (tests)
        discovery: Override the discovery component (tests, shared caches)

    Returns:
        Configured Authenticator
    """
    if connector is None:
        connector = Ldap3Connector(
            connect_timeout_ms=config.connect_timeout_ms,
            read_timeout_ms=config.read_timeout_ms,
            use_ssl=config.use_ssl,
        )
    if discovery is None:
        discovery = DomainDiscovery(
            cache=TTLCache(
                ttl_seconds=config.discovery_ttl_seconds,
                max_entries=config.discovery_max_entries,
            )
        )

    return Authenticator(config=config, discovery=discovery, connector=connector)
