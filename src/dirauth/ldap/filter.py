"""
LDAP search filter escaping.

RFC 4515 section 3: the characters ``\\ * ( )`` and NUL must be written as
a backslash followed by their two-digit hex value when they appear in an
assertion value.
"""

from __future__ import annotations

PLACEHOLDER = "{0}"

_ESCAPES = {
    "\\": "\\5c",
    "*": "\\2a",
    "(": "\\28",
    ")": "\\29",
    "\x00": "\\00",
}

_TRANSLATION = str.maketrans(_ESCAPES)


def escape_filter_value(value: str) -> str:
    """
    Escape an untrusted value for use inside a search filter.

    Examples:
        "jdoe" -> "jdoe"
        "a*b" -> "a\\2ab"
        "x)(uid=*" -> "x\\29\\28uid=\\2a"
    """
    return value.translate(_TRANSLATION)


def render_filter(template: str, value: str) -> str:
    """Substitute the escaped value for every ``{0}`` in the template."""
    return template.replace(PLACEHOLDER, escape_filter_value(value))
