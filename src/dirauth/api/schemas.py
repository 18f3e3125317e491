"""Request / response schemas for the introspection endpoint."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dirauth.core.types import AuthRequest, AuthResponse


class IntrospectRequest(BaseModel):
    # Missing fields are reported as invalid_request by the authenticator,
    # not rejected by validation.
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    domain: Optional[str] = None

    def to_auth_request(self) -> AuthRequest:
        return AuthRequest(
            username=self.username,
            password=self.password,
            domain=self.domain,
        )


class IntrospectResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    authenticated: bool
    error: Optional[str] = None
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    server: Optional[str] = None

    @classmethod
    def from_auth_response(cls, response: AuthResponse) -> IntrospectResponse:
        return cls.model_validate(response.to_dict())
