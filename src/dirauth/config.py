"""
dirauth Configuration

Immutable configuration consumed by the authentication core.
"""

from __future__ import annotations

from typing import Any

import attrs
from attrs import field, validators

from dirauth.core.exceptions import ConfigurationError
from dirauth.ldap.filter import PLACEHOLDER


def _has_placeholder(instance: Any, attribute: attrs.Attribute, value: str) -> None:
    if PLACEHOLDER not in value:
        raise ConfigurationError(
            f"{attribute.name} must contain a {PLACEHOLDER} placeholder: {value!r}"
        )


def _positive(instance: Any, attribute: attrs.Attribute, value: float) -> None:
    if value <= 0:
        raise ConfigurationError(f"{attribute.name} must be positive, got {value}")


@attrs.define(frozen=True, slots=True)
class DirectoryConfig:
    """
    Directory authentication configuration.

    Attributes:
        service_bind_dn: DN of the service account used for user searches
        service_bind_password: Service account password
        base_dn: Search base for user entries
        user_search_filter: Filter template; {0} is replaced by the escaped username
        connect_timeout_ms: TCP connect timeout per connection
        read_timeout_ms: Response timeout per operation
        use_ssl: Use LDAPS
        max_retries_per_server: Retries after the first attempt on transient errors
        backoff_base_ms: First backoff delay; doubles on each retry
        discovery_ttl_seconds: Lifetime of a discovery cache entry
        discovery_max_entries: Discovery cache capacity
    """

    service_bind_dn: str = "cn=svc,dc=example,dc=com"
    service_bind_password: str = field(default="change-this", repr=False)
    base_dn: str = "dc=example,dc=com"
    user_search_filter: str = field(
        default="(sAMAccountName={0})",
        validator=[validators.instance_of(str), _has_placeholder],
    )
    connect_timeout_ms: int = field(default=3000, validator=_positive)
    read_timeout_ms: int = field(default=5000, validator=_positive)
    use_ssl: bool = False
    max_retries_per_server: int = field(default=2, validator=validators.ge(0))
    backoff_base_ms: int = field(default=200, validator=validators.ge(0))
    discovery_ttl_seconds: float = field(default=3600.0, validator=_positive)
    discovery_max_entries: int = field(default=1000, validator=_positive)
