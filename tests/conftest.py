"""
Pytest configuration and shared fixtures for dirauth tests.

Directory and DNS access are replaced by in-process fakes so tests never
touch the network.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import attrs
import dns.resolver
import pytest

from dirauth.auth.orchestrator import Authenticator
from dirauth.config import DirectoryConfig
from dirauth.core.exceptions import DirectoryError
from dirauth.core.types import ServerAddress
from dirauth.discovery.cache import TTLCache
from dirauth.discovery.domain import DomainDiscovery
from dirauth.discovery.srv import SrvRecord
from dirauth.ldap.connection import BindResult, DirectoryConnector, DirectorySession
from dirauth.ldap.diagnostics import ResultCode


SERVICE_DN = "CN=svc-auth,OU=Service,DC=corp,DC=example"
SERVICE_PASSWORD = "svc-secret"
BASE_DN = "DC=corp,DC=example"
ALICE_DN = "CN=Alice,OU=Users,DC=corp,DC=example"
ALICE_PASSWORD = "Al1ce-P@ss"

AD_BAD_PASSWORD = (
    "80090308: LdapErr: DSID-0C09042A, comment: AcceptSecurityContext error, "
    "data 52e, v3839"
)
AD_PASSWORD_EXPIRED = (
    "80090308: LdapErr: DSID-0C09042A, comment: AcceptSecurityContext error, "
    "data 532, v3839"
)


# =============================================================================
# FAKE DIRECTORY
# =============================================================================


@attrs.define
class FakeServer:
    """
    Scripted behaviour of one directory server.

    Attributes:
        errors: Raised on connect, one per attempt, consumed in order
        always_error: Raised on every connect once ``errors`` is empty
        service_bind: Result of the service-account bind
        entries: DNs returned by every search
        passwords: Valid password per DN for the user bind
        reject_diagnostic: Diagnostic returned with a rejected user bind
        search_error: Raised by search
    """

    errors: List[Exception] = attrs.Factory(list)
    always_error: Optional[Exception] = None
    service_bind: BindResult = BindResult(ResultCode.SUCCESS)
    entries: List[str] = attrs.Factory(lambda: [ALICE_DN])
    passwords: Dict[str, str] = attrs.Factory(lambda: {ALICE_DN: ALICE_PASSWORD})
    reject_diagnostic: str = AD_BAD_PASSWORD
    search_error: Optional[Exception] = None


@attrs.define
class FakeSession(DirectorySession):
    server: FakeServer
    directory: "FakeDirectory"
    address: ServerAddress

    def bind(self, dn: str, password: str) -> BindResult:
        self.directory.binds.append((str(self.address), dn))
        if dn == SERVICE_DN:
            return self.server.service_bind
        if self.server.passwords.get(dn) == password:
            return BindResult(ResultCode.SUCCESS)
        return BindResult(ResultCode.INVALID_CREDENTIALS, self.server.reject_diagnostic)

    def search(self, base_dn: str, search_filter: str) -> List[str]:
        self.directory.searches.append((str(self.address), base_dn, search_filter))
        if self.server.search_error is not None:
            raise self.server.search_error
        return list(self.server.entries)


@attrs.define
class FakeDirectory(DirectoryConnector):
    """Connector over a set of FakeServers keyed by host."""

    servers: Dict[str, FakeServer] = attrs.Factory(dict)
    opens: List[str] = attrs.Factory(list)
    closes: int = 0
    binds: List[tuple] = attrs.Factory(list)
    searches: List[tuple] = attrs.Factory(list)

    @contextmanager
    def open(self, address: ServerAddress) -> Iterator[FakeSession]:
        self.opens.append(str(address))
        server = self.servers.get(address.host)
        if server is None:
            raise DirectoryError(ResultCode.CONNECT_ERROR, f"unknown host {address.host}")
        if server.errors:
            raise server.errors.pop(0)
        if server.always_error is not None:
            raise server.always_error
        try:
            yield FakeSession(server=server, directory=self, address=address)
        finally:
            self.closes += 1


# =============================================================================
# FAKE DNS
# =============================================================================


@attrs.define
class FakeSrvResolver:
    """Stands in for SrvResolver; records every lookup."""

    records: Dict[str, List[SrvRecord]] = attrs.Factory(dict)
    error: Optional[Exception] = None
    lookups: List[str] = attrs.Factory(list)

    def lookup(self, domain: str) -> List[SrvRecord]:
        self.lookups.append(domain)
        if self.error is not None:
            raise self.error
        if domain not in self.records:
            raise dns.resolver.NXDOMAIN()
        return list(self.records[domain])


@attrs.define
class FakeClock:
    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# FAKE DELAY
# =============================================================================


@attrs.define
class RecordingDelay:
    """Delay that returns immediately and remembers what was requested."""

    delays: List[float] = attrs.Factory(list)
    interrupt_after: Optional[int] = None

    def wait(self, seconds: float) -> bool:
        self.delays.append(seconds)
        if self.interrupt_after is not None and len(self.delays) > self.interrupt_after:
            return False
        return True


# =============================================================================
# FIXTURES
# =============================================================================


def srv(target: str, port: int = 389, priority: int = 0, weight: int = 100) -> SrvRecord:
    """Helper to create an SRV record."""
    return SrvRecord(priority=priority, weight=weight, port=port, target=target)


def connect_error(host: str = "dc") -> DirectoryError:
    return DirectoryError(ResultCode.CONNECT_ERROR, f"Connection refused: {host}")


@pytest.fixture
def directory_config() -> DirectoryConfig:
    return DirectoryConfig(
        service_bind_dn=SERVICE_DN,
        service_bind_password=SERVICE_PASSWORD,
        base_dn=BASE_DN,
        user_search_filter="(userPrincipalName={0})",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def srv_resolver() -> FakeSrvResolver:
    return FakeSrvResolver(
        records={"corp.example": [srv("dc1.corp.example"), srv("dc2.corp.example")]}
    )


@pytest.fixture
def discovery(srv_resolver: FakeSrvResolver, clock: FakeClock) -> DomainDiscovery:
    return DomainDiscovery(
        resolver=srv_resolver,
        cache=TTLCache(ttl_seconds=3600, max_entries=1000, clock=clock),
    )


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory(
        servers={
            "dc1.corp.example": FakeServer(),
            "dc2.corp.example": FakeServer(),
        }
    )


@pytest.fixture
def recording_delay() -> RecordingDelay:
    return RecordingDelay()


@pytest.fixture
def authenticator(
    directory_config: DirectoryConfig,
    discovery: DomainDiscovery,
    fake_directory: FakeDirectory,
    recording_delay: RecordingDelay,
) -> Authenticator:
    return Authenticator(
        config=directory_config,
        discovery=discovery,
        connector=fake_directory,
        delay_factory=lambda cancel: recording_delay,
    )


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring a real directory server"
    )
