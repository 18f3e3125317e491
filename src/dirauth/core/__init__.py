"""
dirauth Core Module

Foundational types shared by every component.

Components:
- types: Request/response and address value types
- exceptions: Custom exception types
"""

from dirauth.core.types import (
    AuthRequest,
    AuthResponse,
    ErrorCode,
    ServerAddress,
)
from dirauth.core.exceptions import (
    DirAuthError,
    DirectoryError,
    ConfigurationError,
    InvariantViolation,
)

__all__ = [
    # Types
    "AuthRequest",
    "AuthResponse",
    "ErrorCode",
    "ServerAddress",
    # Exceptions
    "DirAuthError",
    "DirectoryError",
    "ConfigurationError",
    "InvariantViolation",
]
