import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field

from formpulse.schemas.common import CamelModel

Role = Literal["owner", "admin", "member"]


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class SignupRequest(CamelModel):
    email: str = Field(..., min_length=5, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    org_name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(CamelModel):
    email: str
    password: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"


class UserProfileResponse(CamelModel):
    uid: uuid.UUID
    email: str
    org_id: uuid.UUID
    org_name: str
    role: Role
    created_at: datetime


class AuthSession(CamelModel):
    """The authenticated caller, passed explicitly into request handlers."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    email: str
    org_id: uuid.UUID
    org_name: str
    role: Role
