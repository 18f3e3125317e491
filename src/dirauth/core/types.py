"""
dirauth Core Types

Value types shared by the discovery cache, the orchestrator and the HTTP
surface.

Design Principles:
- Immutable: All types use frozen attrs for safety
- Validated: Type constraints enforced at construction
- Secret-aware: Passwords never appear in repr or logs
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, Optional

import attrs
from attrs import field, validators

from dirauth.core.exceptions import InvariantViolation

DEFAULT_LDAP_PORT = 389


# =============================================================================
# ENUMS
# =============================================================================


class ErrorCode(str, Enum):
    """Machine-readable error codes surfaced in the ``error`` field."""

    INVALID_REQUEST = "invalid_request"
    INVALID_DOMAIN = "invalid_domain"
    NO_SERVERS = "no_servers"
    USER_NOT_FOUND = "user_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    LDAP_BIND_FAILED = "ldap_bind_failed"
    INTERRUPTED = "interrupted"
    ALL_UNREACHABLE = "all_unreachable"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# ADDRESS TYPES
# =============================================================================


def _valid_port(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if not 0 < value < 65536:
        raise ValueError(f"{attribute.name} must be in 1..65535, got {value}")


@attrs.define(frozen=True, slots=True)
class ServerAddress:
    """
    Directory server address.

    Format: host[:port] (e.g., dc1.corp.example:389)

    INVARIANT: host is non-empty, port in 1..65535
    """

    host: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    port: int = field(
        default=DEFAULT_LDAP_PORT,
        validator=[validators.instance_of(int), _valid_port],
    )

    @classmethod
    def from_string(cls, value: str) -> ServerAddress:
        """
        Parse an address from its string form.

        Examples:
            "dc1.corp.example" -> ServerAddress("dc1.corp.example", 389)
            "dc1.corp.example:636" -> ServerAddress("dc1.corp.example", 636)
        """
        value = value.strip()
        if ":" not in value:
            return cls(host=value)

        host, _, port = value.rpartition(":")
        try:
            return cls(host=host, port=int(port))
        except ValueError as e:
            raise ValueError(f"Invalid server address: {value!r}") from e

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


# =============================================================================
# REQUEST / RESPONSE
# =============================================================================


@attrs.define(frozen=True, slots=True)
class AuthRequest:
    """
    Credentials to verify.

    Attributes:
        username: "user@domain", "DOMAIN\\user" or a bare account name
        password: Caller-supplied password (never logged)
        domain: Explicit domain; derived from username when absent
    """

    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    domain: Optional[str] = None

    def resolve_domain(self) -> Optional[str]:
        """
        Return the lowercased domain for this request.

        An explicit domain wins, even a blank one (discovery then finds no
        servers). Otherwise the username is parsed as ``user@domain`` or
        ``DOMAIN\\user``. Returns None when neither pattern matches.
        """
        if self.domain is not None:
            return self.domain.strip().lower()
        return domain_from_username(self.username or "")


def domain_from_username(username: str) -> Optional[str]:
    """Extract the domain part of a qualified username, lowercased."""
    if "@" in username:
        domain = username.split("@")[1]
    elif "\\" in username:
        domain = username.split("\\")[0]
    else:
        return None
    return domain.strip().lower() or None


@attrs.define(frozen=True, slots=True)
class AuthResponse:
    """
    Result of an introspection call.

    Attributes:
        status: HTTP-style status of the outcome
        authenticated: Whether the credentials were verified
        error: Machine-readable error code (if failure)
        error_message: Human-readable detail (if failure)
        server: Server that verified the credentials (if success)

    INVARIANT: exactly one of {authenticated, error set} holds
    """

    status: HTTPStatus = field(validator=validators.instance_of(HTTPStatus))
    authenticated: bool = False
    error: Optional[ErrorCode] = None
    error_message: Optional[str] = None
    server: Optional[str] = None

    def __attrs_post_init__(self) -> None:
        if self.authenticated == (self.error is not None):
            raise InvariantViolation(
                "Response must be either authenticated or carry an error"
            )

    @classmethod
    def ok(cls, server: str) -> AuthResponse:
        """Create a successful authentication response."""
        return cls(status=HTTPStatus.OK, authenticated=True, server=server)

    @classmethod
    def failure(
        cls, status: HTTPStatus, error: ErrorCode, message: str
    ) -> AuthResponse:
        """Create a failed authentication response."""
        return cls(status=status, error=error, error_message=message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the wire form, omitting absent fields."""
        body: Dict[str, Any] = {
            "status": self.status.name,
            "authenticated": self.authenticated,
        }
        if self.error is not None:
            body["error"] = self.error.value
        if self.error_message is not None:
            body["errorMessage"] = self.error_message
        if self.server is not None:
            body["server"] = self.server
        return body
