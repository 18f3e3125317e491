"""
dirauth Authentication Module

Components:
- orchestrator: Authenticator, the per-call state machine
- handshake: Single-server bind/search/bind attempt
- backoff: Retry counters and cancellable delays
"""

from dirauth.auth.orchestrator import Authenticator, create_authenticator
from dirauth.auth.handshake import FailureKind, Handshake, HandshakeFailure
from dirauth.auth.backoff import CancellableDelay, RetryContext

__all__ = [
    "Authenticator",
    "create_authenticator",
    "FailureKind",
    "Handshake",
    "HandshakeFailure",
    "CancellableDelay",
    "RetryContext",
]
