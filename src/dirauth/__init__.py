"""
dirauth - Directory Credential Introspection

Verifies username/password pairs against Active Directory / LDAP on behalf
of other services, so they never hold directory credentials themselves.

Flow:
- Discover the domain's directory servers via DNS SRV (cached for 1 hour)
- Bind as a service account and search for the user's DN
- Bind as that DN with the caller's password
- Retry transient failures with exponential backoff, then try the next server

Example Usage:
    from dirauth import AuthRequest, DirectoryConfig, create_authenticator

    config = DirectoryConfig(
        service_bind_dn="CN=svc-auth,OU=Service,DC=corp,DC=example",
        service_bind_password="secret",
        base_dn="DC=corp,DC=example",
    )
    auth = create_authenticator(config)

    response = auth.authenticate(
        AuthRequest(username="alice@corp.example", password="secret"),
    )
    if response.authenticated:
        print(f"Authenticated by {response.server}")
"""

__version__ = "0.1.0"

from dirauth.core.types import AuthRequest, AuthResponse, ErrorCode, ServerAddress
from dirauth.config import DirectoryConfig
from dirauth.auth.orchestrator import Authenticator, create_authenticator

__all__ = [
    # Main API
    "Authenticator",
    "create_authenticator",
    "DirectoryConfig",
    # Types
    "AuthRequest",
    "AuthResponse",
    "ErrorCode",
    "ServerAddress",
    # Metadata
    "__version__",
]
