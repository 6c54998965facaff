# schemas/auth.py

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field


class AuthBase(BaseModel):
    id: str = Field(..., description="Auth profile identifier")
    name: str = Field(default="", description="Auth profile display name")
    enabled: bool = Field(default=True, description="Disabled profiles are never applied")
    domain_filters: List[str] = Field(
        default_factory=list,
        description="Hosts the profile applies to; empty means every host",
    )
    expiry_date: Optional[datetime] = Field(
        default=None, description="Profile is ignored once this instant has passed"
    )
    base64_encode: bool = Field(
        default=False, description="Base64-encode the credential value before sending"
    )


class ApiKeyAuth(AuthBase):
    type: Literal["api_key"] = "api_key"
    key: str
    value: str
    send_in: Literal["header", "query"] = "header"
    prefix: Optional[str] = None


class BasicAuth(AuthBase):
    type: Literal["basic"] = "basic"
    username: str
    password: str = ""


class DigestAuth(AuthBase):
    type: Literal["digest"] = "digest"
    username: str
    password: str = ""


class OAuth2RefreshAuth(AuthBase):
    type: Literal["oauth2_refresh"] = "oauth2_refresh"
    token_url: str
    client_id: str
    client_secret: Optional[str] = None
    refresh_token: str
    scope: Optional[str] = None
    access_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None


Auth = Annotated[
    Union[ApiKeyAuth, BasicAuth, DigestAuth, OAuth2RefreshAuth],
    Field(discriminator="type"),
]
