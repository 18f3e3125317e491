#!/usr/bin/env python3
"""
Directory Credential Introspection Example

Demonstrates the building blocks behind POST /api/v1/introspect:

1. Search filter escaping
2. Diagnostic message mapping for Active Directory bind failures
3. Domain discovery via DNS SRV records (with fallback)
4. A full authentication against a live directory

Step 4 runs only when LDAP_SERVICE_BIND_DN and INTROSPECT_USERNAME /
INTROSPECT_PASSWORD are set in the environment.
"""

import os

from dirauth import AuthRequest, create_authenticator
from dirauth.discovery import DomainDiscovery
from dirauth.ldap import ResultCode, escape_filter_value, map_diagnostic, render_filter
from dirauth.logging import configure_logging
from dirauth.settings import Settings


def main():
    """Walk through the introspection pipeline."""

    configure_logging("WARNING")

    print("=" * 70)
    print("dirauth - Directory Credential Introspection")
    print("=" * 70)
    print()

    # ==========================================================================
    # EXAMPLE 1: Filter Escaping
    # ==========================================================================
    print("1. Filter Escaping")
    print("-" * 40)

    for value in ("jdoe", "a*b", "x)(uid=*", "CORP\\jdoe"):
        print(f"   {value!r:>14} -> {escape_filter_value(value)!r}")
    print(f"   Rendered: {render_filter('(sAMAccountName={0})', '*)(objectClass=*')}")
    print()

    # ==========================================================================
    # EXAMPLE 2: Diagnostic Mapping
    # ==========================================================================
    print("2. Diagnostic Mapping")
    print("-" * 40)

    samples = [
        (ResultCode.INVALID_CREDENTIALS, "AcceptSecurityContext error, data 52e, v3839"),
        (ResultCode.INVALID_CREDENTIALS, "AcceptSecurityContext error, data 775, v3839"),
        (ResultCode.CONNECT_ERROR, "Connection refused"),
        (ResultCode.NO_SUCH_OBJECT, "0000208D: NameErr"),
        (ResultCode.BUSY, "server busy"),
    ]
    for code, diagnostic in samples:
        print(f"   {code.name:<20} {map_diagnostic(code, diagnostic)}")
    print()

    # ==========================================================================
    # EXAMPLE 3: Domain Discovery
    # ==========================================================================
    print("3. Domain Discovery")
    print("-" * 40)

    domain = os.environ.get("INTROSPECT_DOMAIN", "example.com")
    discovery = DomainDiscovery()
    servers = discovery.resolve(domain)
    print(f"   Domain: {domain}")
    for server in servers:
        print(f"   Server: {server}")
    discovery.resolve(domain)
    print(f"   Cache: {discovery.cache.get_stats()}")
    print()

    # ==========================================================================
    # EXAMPLE 4: Authentication
    # ==========================================================================
    print("4. Authentication")
    print("-" * 40)

    username = os.environ.get("INTROSPECT_USERNAME")
    password = os.environ.get("INTROSPECT_PASSWORD")
    if not (os.environ.get("LDAP_SERVICE_BIND_DN") and username and password):
        print("   Skipped: set LDAP_SERVICE_BIND_DN, INTROSPECT_USERNAME and")
        print("   INTROSPECT_PASSWORD to authenticate against a live directory.")
        return

    authenticator = create_authenticator(Settings().to_directory_config())
    response = authenticator.authenticate(
        AuthRequest(username=username, password=password, domain=os.environ.get("INTROSPECT_DOMAIN"))
    )
    for key, value in response.to_dict().items():
        print(f"   {key}: {value}")


if __name__ == "__main__":
    main()
