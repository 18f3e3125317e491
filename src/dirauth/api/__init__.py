"""
dirauth HTTP surface

POST /api/v1/introspect maps a JSON body onto an AuthRequest and
serializes the AuthResponse, mirroring its status on the HTTP status line.
"""

from dirauth.api.app import create_app

__all__ = [
    "create_app",
]
