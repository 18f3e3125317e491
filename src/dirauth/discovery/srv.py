"""
DNS SRV lookup for directory servers.

Queries ``_ldap._tcp.<domain>`` (RFC 2782) with dnspython. Records are
returned in the order the resolver produced them unless priority sorting
is requested explicitly.
"""

from __future__ import annotations

from typing import Any, List, Optional

import attrs
import dns.resolver
import structlog

from dirauth.core.types import ServerAddress

logger = structlog.get_logger()

LDAP_SRV_PREFIX = "_ldap._tcp."


@attrs.define(frozen=True, slots=True)
class SrvRecord:
    """A parsed SRV record: priority weight port target."""

    priority: int
    weight: int
    port: int
    target: str

    @classmethod
    def from_rdata(cls, rdata: Any) -> SrvRecord:
        """Build from a dnspython SRV rdata; strips the trailing root dot."""
        return cls(
            priority=int(rdata.priority),
            weight=int(rdata.weight),
            port=int(rdata.port),
            target=str(rdata.target).rstrip("."),
        )

    def to_address(self) -> ServerAddress:
        return ServerAddress(host=self.target, port=self.port)


def srv_name(domain: str) -> str:
    return f"{LDAP_SRV_PREFIX}{domain}"


@attrs.define
class SrvResolver:
    """
    Resolves LDAP SRV records for a domain.

    Attributes:
        resolver: dnspython resolver (system configuration by default)
        lifetime: Total time budget for one query, in seconds
        sort_by_priority: Order records by priority/weight per RFC 2782
            instead of keeping resolver order
    """

    resolver: Optional[dns.resolver.Resolver] = None
    lifetime: float = 5.0
    sort_by_priority: bool = False

    def lookup(self, domain: str) -> List[SrvRecord]:
        """
        Query SRV records for ``_ldap._tcp.<domain>``.

        Raises:
            dns.exception.DNSException: resolution failed (NXDOMAIN, no
                answer, timeout, no nameservers, ...)
        """
        resolver = self.resolver or dns.resolver.get_default_resolver()
        answers = resolver.resolve(srv_name(domain), "SRV", lifetime=self.lifetime)

        records = []
        for rdata in answers:
            record = SrvRecord.from_rdata(rdata)
            if not record.target or record.port <= 0:
                # "." target means the service is explicitly unavailable
                logger.debug("srv_record_skipped", domain=domain, record=str(rdata))
                continue
            records.append(record)

        if self.sort_by_priority:
            records.sort(key=lambda r: (r.priority, -r.weight))

        return records
