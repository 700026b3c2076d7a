from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# Request schemas
class SendOtpRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("otp", mode="before")
    @classmethod
    def coerce_otp(cls, v: Any) -> Any:
        # Some clients send the code as a JSON number
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v


# Response schemas
class MessageResponse(BaseModel):
    message: str


class SessionUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None


class VerifyOtpResponse(BaseModel):
    message: str = "Logged in"
    user: SessionUser


class LogoutResponse(BaseModel):
    ok: bool = True
    message: str = "Logged out"


class SessionClaims(BaseModel):
    """Identity recovered from a valid session cookie"""
    sub: int
    email: str
