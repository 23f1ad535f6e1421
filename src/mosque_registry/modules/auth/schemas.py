"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class SuperAdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    last_login_at: datetime | None


class SuperAdminLoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    super_admin: SuperAdminResponse


class AdminLoginResponse(BaseModel):
    """
    Admin login response.

    Approved admins get a full token pair. Every other status gets a short
    limited access token and no refresh token.
    """

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    limited: bool
    admin_id: str
    status: str
    message: str | None = None
