"""
dirauth Diagnostic Mapper

Translates LDAP result codes and Active Directory diagnostic strings into
stable, caller-facing messages.

AD reports the reason for a failed bind inside the diagnostic message of an
invalidCredentials (49) result, e.g.:

    80090308: LdapErr: DSID-0C09042A, comment: AcceptSecurityContext error,
    data 52e, v3839

The hex value after ``data`` is a Win32 error code identifying the account
state. Unrecognised subcodes fall back to the raw diagnostic text.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional, Tuple


# =============================================================================
# RESULT CODES
# =============================================================================


class ResultCode(IntEnum):
    """
    LDAP result codes.

    0-80 are server result codes from RFC 4511 section 4.1.9. Values from 81
    upwards are client-side codes used by LDAP SDKs for conditions detected
    locally (no response from the server).
    """

    SUCCESS = 0
    OPERATIONS_ERROR = 1
    PROTOCOL_ERROR = 2
    TIME_LIMIT_EXCEEDED = 3
    SIZE_LIMIT_EXCEEDED = 4
    AUTH_METHOD_NOT_SUPPORTED = 7
    STRONGER_AUTH_REQUIRED = 8
    REFERRAL = 10
    ADMIN_LIMIT_EXCEEDED = 11
    UNAVAILABLE_CRITICAL_EXTENSION = 12
    CONFIDENTIALITY_REQUIRED = 13
    SASL_BIND_IN_PROGRESS = 14
    NO_SUCH_ATTRIBUTE = 16
    NO_SUCH_OBJECT = 32
    ALIAS_PROBLEM = 33
    INVALID_DN_SYNTAX = 34
    INAPPROPRIATE_AUTHENTICATION = 48
    INVALID_CREDENTIALS = 49
    INSUFFICIENT_ACCESS_RIGHTS = 50
    BUSY = 51
    UNAVAILABLE = 52
    UNWILLING_TO_PERFORM = 53
    LOOP_DETECT = 54
    OTHER = 80

    # Client-side
    SERVER_DOWN = 81
    LOCAL_ERROR = 82
    ENCODING_ERROR = 83
    DECODING_ERROR = 84
    TIMEOUT = 85
    AUTH_UNKNOWN = 86
    FILTER_ERROR = 87
    USER_CANCELED = 88
    PARAM_ERROR = 89
    NO_MEMORY = 90
    CONNECT_ERROR = 91

    @property
    def display_name(self) -> str:
        """camelCase name as used in LDAP diagnostics (e.g. ``invalidCredentials``)."""
        head, *rest = self.name.lower().split("_")
        return head + "".join(part.capitalize() for part in rest)


# Result codes that indicate the credentials or the account are at fault.
# Never retried, never cause fallback to another server.
AUTHENTICATION_CODES = frozenset({
    ResultCode.INVALID_CREDENTIALS,
    ResultCode.INSUFFICIENT_ACCESS_RIGHTS,
    ResultCode.NO_SUCH_OBJECT,
})

UNREACHABLE_CODES = frozenset({
    ResultCode.CONNECT_ERROR,
    ResultCode.SERVER_DOWN,
})


def code_name(code: int) -> str:
    """Display name of a result code, tolerant of unknown values."""
    try:
        return ResultCode(code).display_name
    except ValueError:
        return f"unknown({code})"


def is_authentication_failure(code: int) -> bool:
    """True for result codes that must be surfaced without retry."""
    return code in AUTHENTICATION_CODES


# =============================================================================
# ACTIVE DIRECTORY SUBCODES
# =============================================================================


# Checked in order; the first substring found wins
AD_DIAGNOSTIC_PHRASES: Tuple[Tuple[str, str], ...] = (
    ("data 525", "user not found (525)"),
    ("data 52e", "invalid credentials (52e)"),
    ("data 530", "not permitted to logon at this time (530)"),
    ("data 531", "not permitted to logon at this workstation (531)"),
    ("data 532", "password expired (532)"),
    ("data 533", "account disabled (533)"),
    ("data 701", "account expired (701)"),
    ("data 775", "account locked (775)"),
)


def parse_ad_diagnostic(diagnostic: Optional[str]) -> Optional[str]:
    """
    Extract the account-state phrase from an AD diagnostic message.

    Returns:
        The stable phrase for a recognised subcode, the raw diagnostic for
        an unrecognised one, or None when there is no diagnostic at all.
    """
    if not diagnostic:
        return None

    lower = diagnostic.lower()
    for needle, phrase in AD_DIAGNOSTIC_PHRASES:
        if needle in lower:
            return phrase
    return diagnostic


# =============================================================================
# MAPPING
# =============================================================================


def map_diagnostic(result_code: int, diagnostic_message: Optional[str]) -> str:
    """
    Translate a result code and diagnostic into a caller-facing message.

    Args:
        result_code: LDAP result code of the failed operation
        diagnostic_message: Raw diagnostic text from the server (may be None)

    Returns:
        Stable human-readable description
    """
    raw = diagnostic_message or ""

    if result_code == ResultCode.INVALID_CREDENTIALS:
        detail = parse_ad_diagnostic(diagnostic_message)
        return "Invalid credentials" + (f": {detail}" if detail else "")

    if result_code in UNREACHABLE_CODES:
        return f"LDAP server unreachable: {raw}"

    if result_code == ResultCode.NO_SUCH_OBJECT:
        return "User not found"

    return f"{code_name(result_code)} - {raw}"
