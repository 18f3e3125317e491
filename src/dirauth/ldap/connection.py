"""
dirauth Directory Connector

Connect/bind/search primitives over the ldap3 library.

Every call to ``open`` produces a fresh connection that is closed when the
context manager exits; connections are never pooled or reused. All ldap3
failures are translated into ``DirectoryError`` carrying an LDAP result
code so the caller can classify them without knowing about ldap3.

Exception mapping:
- LDAPSocketOpenError -> CONNECT_ERROR
- LDAPSessionTerminatedByServerError -> SERVER_DOWN
- LDAPResponseTimeoutError / LDAPSocketReceiveError -> TIMEOUT
- LDAPOperationResult -> its own result code
- any other LDAPException -> LOCAL_ERROR
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

import attrs
import structlog
from ldap3 import NONE, SUBTREE, Connection, Server
from ldap3.core.exceptions import (
    LDAPException,
    LDAPOperationResult,
    LDAPResponseTimeoutError,
    LDAPSessionTerminatedByServerError,
    LDAPSocketOpenError,
    LDAPSocketReceiveError,
)

from dirauth.core.exceptions import DirectoryError
from dirauth.core.types import ServerAddress
from dirauth.ldap.diagnostics import ResultCode

logger = structlog.get_logger()


# =============================================================================
# RESULTS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class BindResult:
    """Outcome of a bind that completed at the protocol level."""

    result_code: int
    diagnostic_message: str = ""

    @property
    def success(self) -> bool:
        return self.result_code == ResultCode.SUCCESS


# =============================================================================
# INTERFACES
# =============================================================================


class DirectorySession(ABC):
    """An open connection to one directory server."""

    @abstractmethod
    def bind(self, dn: str, password: str) -> BindResult:
        """
        Simple bind as ``dn``.

        Returns a BindResult for any response from the server, including a
        rejected bind. Raises DirectoryError when no response is obtained.
        """
        ...

    @abstractmethod
    def search(self, base_dn: str, search_filter: str) -> List[str]:
        """Subtree search; returns the DNs of matching entries."""
        ...


class DirectoryConnector(ABC):
    """Factory for directory sessions."""

    @abstractmethod
    def open(self, address: ServerAddress) -> Any:
        """Context manager yielding a connected DirectorySession."""
        ...


# =============================================================================
# LDAP3 IMPLEMENTATION
# =============================================================================


def translate_ldap_error(error: LDAPException) -> DirectoryError:
    """Convert an ldap3 exception into a DirectoryError."""
    if isinstance(error, LDAPOperationResult):
        code = error.result if error.result is not None else ResultCode.OTHER
        return DirectoryError(int(code), error.message or str(error))
    if isinstance(error, LDAPSocketOpenError):
        return DirectoryError(ResultCode.CONNECT_ERROR, str(error))
    if isinstance(error, LDAPSessionTerminatedByServerError):
        return DirectoryError(ResultCode.SERVER_DOWN, str(error))
    if isinstance(error, (LDAPResponseTimeoutError, LDAPSocketReceiveError)):
        return DirectoryError(ResultCode.TIMEOUT, str(error))
    return DirectoryError(ResultCode.LOCAL_ERROR, str(error))


@attrs.define
class Ldap3Session(DirectorySession):
    """DirectorySession backed by an ldap3 Connection."""

    server: Server
    receive_timeout: float

    _connection: Optional[Connection] = None
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def bind(self, dn: str, password: str) -> BindResult:
        self._connection = Connection(
            self.server,
            user=dn,
            password=password,
            receive_timeout=self.receive_timeout,
            raise_exceptions=False,
            read_only=True,
        )
        try:
            self._connection.bind()
        except LDAPException as e:
            raise translate_ldap_error(e) from e

        result = self._connection.result or {}
        return BindResult(
            result_code=int(result.get("result", ResultCode.OTHER)),
            diagnostic_message=result.get("message") or "",
        )

    def search(self, base_dn: str, search_filter: str) -> List[str]:
        if self._connection is None or not self._connection.bound:
            raise DirectoryError(ResultCode.OPERATIONS_ERROR, "search before bind")

        try:
            self._connection.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
            )
        except LDAPException as e:
            raise translate_ldap_error(e) from e

        result = self._connection.result or {}
        code = int(result.get("result", ResultCode.OTHER))
        if code != ResultCode.SUCCESS:
            raise DirectoryError(code, result.get("message") or "")

        return [
            entry["dn"]
            for entry in self._connection.response or []
            if entry.get("type") == "searchResEntry"
        ]

    def close(self) -> None:
        """Unbind and release the socket."""
        if self._connection is None:
            return
        try:
            self._connection.unbind()
        except LDAPException as e:
            self._logger.debug("ldap_unbind_failed", error=str(e))
        self._connection = None


@attrs.define
class Ldap3Connector(DirectoryConnector):
    """
    Opens ldap3 sessions with the configured timeouts.

    Attributes:
        connect_timeout_ms: TCP connect timeout in milliseconds
        read_timeout_ms: Response timeout in milliseconds
        use_ssl: Connect with LDAPS instead of plain LDAP
    """

    connect_timeout_ms: int = 3000
    read_timeout_ms: int = 5000
    use_ssl: bool = False

    @contextmanager
    def open(self, address: ServerAddress) -> Iterator[Ldap3Session]:
        server = Server(
            address.host,
            port=address.port,
            use_ssl=self.use_ssl,
            get_info=NONE,
            connect_timeout=self.connect_timeout_ms / 1000.0,
        )
        session = Ldap3Session(
            server=server,
            receive_timeout=self.read_timeout_ms / 1000.0,
        )
        logger.debug("ldap_session_opened", server=str(address))
        try:
            yield session
        finally:
            session.close()
