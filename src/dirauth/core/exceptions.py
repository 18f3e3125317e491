"""
dirauth Exception Types

Custom exceptions for directory authentication errors.
"""

from typing import Optional


class DirAuthError(Exception):
    """Base exception for all dirauth errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class DirectoryError(DirAuthError):
    """
    Directory operation failed.

    Raised by the directory connector for every transport or protocol
    failure (connect, bind, search). Carries the LDAP result code and the
    raw diagnostic message returned by the server, if any.
    """

    def __init__(
        self,
        code: int,
        diagnostic_message: str = "",
        message: Optional[str] = None,
    ) -> None:
        if message is None:
            message = diagnostic_message or f"LDAP result code {code}"
        super().__init__(message, code)
        self.diagnostic_message = diagnostic_message

    @property
    def result_code(self) -> int:
        return self.code if self.code is not None else 0


class ConfigurationError(DirAuthError):
    """
    Invalid service configuration.

    Raised when settings cannot be turned into a usable directory
    configuration (e.g. a search filter without a {0} placeholder).
    """

    pass


class InvariantViolation(DirAuthError):
    """
    A data model invariant was violated.

    Indicates a bug: the code attempted to build a value that can never
    be valid, such as a response that is both authenticated and failed.
    """

    pass
