"""
dirauth Domain Discovery

Resolves a domain name to the ordered list of directory servers to try.

Lookup order:
1. Unexpired cache entry (no I/O)
2. DNS SRV records for _ldap._tcp.<domain>
3. The domain itself as a pseudo-server (port 389)

Resolution failures never propagate: they are logged and degrade to the
fallback list, which is cached like any other result.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import attrs
import dns.exception
import structlog

from dirauth.core.types import ServerAddress
from dirauth.discovery.cache import TTLCache
from dirauth.discovery.srv import SrvResolver, srv_name

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_MAX_ENTRIES = 1000


@attrs.define
class DomainDiscovery:
    """
    Server discovery with a time-bounded cache.

    Constructed once per process and shared by all requests.

    Example:
        discovery = DomainDiscovery()
        servers = discovery.resolve("corp.example")
        # [ServerAddress(host='dc1.corp.example', port=389), ...]
    """

    resolver: SrvResolver = attrs.Factory(SrvResolver)
    cache: TTLCache[str, Tuple[ServerAddress, ...]] = attrs.Factory(
        lambda: TTLCache(
            ttl_seconds=DEFAULT_TTL_SECONDS,
            max_entries=DEFAULT_MAX_ENTRIES,
        )
    )

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def resolve(self, domain: Optional[str]) -> List[ServerAddress]:
        """
        Return candidate servers for domain, most preferred first.

        Args:
            domain: Domain name (case-insensitive)

        Returns:
            Non-empty list for any non-blank domain; empty list for a
            blank or missing domain (nothing is cached in that case)
        """
        if domain is None or not domain.strip():
            return []

        key = domain.strip().lower()
        return list(self.cache.get_or_compute(key, lambda: self._discover(key)))

    def _discover(self, domain: str) -> Tuple[ServerAddress, ...]:
        try:
            records = self.resolver.lookup(domain)
        except (dns.exception.DNSException, OSError) as e:
            self._logger.warning(
                "dns_srv_lookup_failed",
                name=srv_name(domain),
                error=str(e) or type(e).__name__,
            )
            records = []

        if records:
            servers = tuple(record.to_address() for record in records)
            self._logger.info(
                "servers_discovered",
                domain=domain,
                servers=[str(s) for s in servers],
            )
            return servers

        self._logger.info("no_srv_records_using_domain", domain=domain)
        return (ServerAddress(host=domain),)

    def invalidate(self, domain: str) -> bool:
        """Drop the cached entry for domain so the next resolve re-queries DNS."""
        return self.cache.invalidate(domain.strip().lower())
