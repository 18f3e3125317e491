"""
dirauth LDAP Module

Components:
- filter: Search filter escaping (RFC 4515)
- diagnostics: Result codes and AD diagnostic translation
- connection: ldap3-backed connect/bind/search primitives
"""

from dirauth.ldap.filter import escape_filter_value, render_filter
from dirauth.ldap.diagnostics import (
    ResultCode,
    is_authentication_failure,
    map_diagnostic,
)
from dirauth.ldap.connection import (
    BindResult,
    DirectoryConnector,
    DirectorySession,
    Ldap3Connector,
)

__all__ = [
    "escape_filter_value",
    "render_filter",
    "ResultCode",
    "is_authentication_failure",
    "map_diagnostic",
    "BindResult",
    "DirectoryConnector",
    "DirectorySession",
    "Ldap3Connector",
]
