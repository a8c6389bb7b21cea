"""Auth schemas: OTP request/verify, password login, session response."""
from pydantic import BaseModel, EmailStr, field_validator
from clubhub.models.user import UserRole

PASSWORD_MIN_LENGTH = 6


class SendCodeRequest(BaseModel):
    email: EmailStr


class SendCodeResponse(BaseModel):
    ok: bool = True
    message: str
    code: str | None = None  # only in dev fallback mode


class VerifyRequest(BaseModel):
    email: EmailStr
    code: str
    password: str | None = None
    confirm: str | None = None

    @field_validator("code", mode="before")
    @classmethod
    def code_as_string(cls, v):
        if isinstance(v, int):
            return str(v)
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SessionUser(BaseModel):
    email: str
    role: UserRole | None = None


class AuthResponse(BaseModel):
    ok: bool = True
    token: str
    user: SessionUser
