"""Request and response bodies for /api/auth."""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator


class _Credentials(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        # Emails are unique case-insensitively
        return v.strip().lower()


class UserRegister(_Credentials):
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class UserLogin(_Credentials):
    password: str


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    """Public profile; never includes the password hash."""

    uuid: str
    name: str
    email: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
