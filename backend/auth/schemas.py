# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Responses are emitted in camelCase; snake_case names are still accepted so
# ORM rows and keyword construction validate directly.
_CAMEL_OUT = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
)


# -- Requests --------------------------------------------------------------


class LoginRequest(BaseModel):
    login_code: str = Field(
        validation_alias=AliasChoices("loginCode", "login_code"),
        min_length=1,
        max_length=32,
    )
    password: str = Field(min_length=1, max_length=256)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(
        validation_alias=AliasChoices("currentPassword", "current_password"),
        min_length=1,
        max_length=256,
    )
    new_password: str = Field(
        validation_alias=AliasChoices("newPassword", "new_password"),
        min_length=1,
        max_length=256,
    )


# -- Responses -------------------------------------------------------------


class UserInfo(BaseModel):
    """Canonical user profile – never carries password material."""

    id: int
    login_code: str
    role_id: int
    role_name: Optional[str] = None
    area_id: Optional[int] = None
    area_name: Optional[str] = None
    permission_bitmask: int
    capabilities: list[str]
    last_access_at: Optional[datetime] = None

    model_config = _CAMEL_OUT


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserInfo

    model_config = _CAMEL_OUT


class CheckResponse(BaseModel):
    success: bool = True
    user: UserInfo
    expires_in: int  # seconds left on the presented token
    needs_renewal: bool

    model_config = _CAMEL_OUT


class SuccessResponse(BaseModel):
    success: bool = True


class SessionInfo(BaseModel):
    id: int
    origin_address: Optional[str] = None
    created_at: datetime
    current: bool = False

    model_config = _CAMEL_OUT


class SessionsResponse(BaseModel):
    success: bool = True
    sessions: list[SessionInfo]

    model_config = _CAMEL_OUT


class SessionsClosedResponse(BaseModel):
    success: bool = True
    closed: int  # number of sessions closed

    model_config = _CAMEL_OUT
