from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str
    display_name: Optional[str] = None
    needs_name: bool = False


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    access_token: Optional[str] = None
    message: str


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    needs_name: bool
