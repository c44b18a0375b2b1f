from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date


class RegisterRequest(BaseModel):
    # Uniqueness, password strength and joining date are checked by the service
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., max_length=255)
    password_confirmation: str = Field(..., max_length=255)
    department: Optional[str] = Field(None, max_length=100)
    employee_id: str = Field(..., min_length=1, max_length=50)
    joining_date: Optional[date] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str
