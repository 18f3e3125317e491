"""
dirauth Discovery Module

Domain to directory-server resolution.

Components:
- cache: Thread-safe TTL/LRU cache
- srv: DNS SRV lookup for _ldap._tcp.<domain>
- domain: DomainDiscovery, cached resolution with fallback
"""

from dirauth.discovery.cache import TTLCache
from dirauth.discovery.srv import SrvRecord, SrvResolver
from dirauth.discovery.domain import DomainDiscovery

__all__ = [
    "TTLCache",
    "SrvRecord",
    "SrvResolver",
    "DomainDiscovery",
]
