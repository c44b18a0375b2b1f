from fastapi import APIRouter, Depends, Request, status
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from leave_api.core.clock import Clock, get_clock
from leave_api.core.database import get_db
from leave_api.core.dependencies import get_current_user
from leave_api.core.error_handling import handle_endpoint_errors
from leave_api.models.user import User
from leave_api.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    LogoutRequest,
)
from leave_api.schemas.common import Envelope
from leave_api.schemas.user import UserResponse, UserData
from leave_api.services.auth_service import login, issue_tokens, refresh_access_token, logout
from leave_api.services.user_service import register_user

router = APIRouter()


def _client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    return ip, user_agent[:500] if user_agent else None


@router.post("/register", response_model=Envelope[TokenResponse], status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="register", failure_message="Registration failed")
async def register_endpoint(
    data: RegisterRequest,
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db),
):
    """Register a new employee account."""
    user = await register_user(db, data, clock)
    access_token, refresh_token = await issue_tokens(db, user)
    return Envelope(
        message="Registration successful",
        data=TokenResponse(access_token=access_token, refresh_token=refresh_token),
    )


@router.post("/login", response_model=Envelope[TokenResponse])
@handle_endpoint_errors(operation_name="login", failure_message="Login failed")
async def login_endpoint(
    login_data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password."""
    ip, user_agent = _client_info(request)
    user, access_token, refresh_token = await login(db, login_data, ip=ip, user_agent=user_agent)
    return Envelope(
        message="Login successful",
        data=TokenResponse(access_token=access_token, refresh_token=refresh_token),
    )


@router.post("/refresh", response_model=Envelope[TokenResponse])
@handle_endpoint_errors(operation_name="refresh_token", failure_message="Token refresh failed")
async def refresh_token_endpoint(
    refresh_data: RefreshTokenRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Refresh access token and rotate refresh token."""
    ip, user_agent = _client_info(request)
    access_token, refresh_token = await refresh_access_token(
        db,
        refresh_data.refresh_token,
        ip=ip,
        user_agent=user_agent,
    )
    return Envelope(data=TokenResponse(access_token=access_token, refresh_token=refresh_token))


@router.post("/logout", response_model=Envelope[None])
@handle_endpoint_errors(operation_name="logout", failure_message="Logout failed")
async def logout_endpoint(
    logout_data: LogoutRequest,
    db: AsyncSession = Depends(get_db),
):
    """Logout and revoke refresh token."""
    await logout(db, logout_data.refresh_token)
    return Envelope(message="Logged out successfully")


@router.get("/me", response_model=Envelope[UserData])
@handle_endpoint_errors(operation_name="get_current_user", failure_message="Failed to fetch user")
async def me_endpoint(
    current_user: User = Depends(get_current_user),
):
    """Get current user information."""
    return Envelope(data=UserData(user=UserResponse.model_validate(current_user)))
