from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import HTTPException, status
import logging
import uuid

from leave_api.models.user import User
from leave_api.models.session import Session
from leave_api.core.security import (
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    normalize_email,
    hash_refresh_token,
    verify_refresh_token_hash,
)
from leave_api.core.config import settings
from leave_api.schemas.auth import LoginRequest

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _issue_access_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role.value})


def _new_session(user: User, ip: Optional[str], user_agent: Optional[str]) -> tuple[Session, str]:
    refresh_token = create_refresh_token({"sub": str(user.id)})
    session = Session(
        id=uuid.uuid4(),
        user_id=user.id,
        refresh_token_hash=hash_refresh_token(refresh_token),
        expires_at=_utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ip=ip,
        user_agent=user_agent,
    )
    return session, refresh_token


def _refresh_subject(refresh_token: str) -> Optional[uuid.UUID]:
    payload = decode_token(refresh_token)
    if payload is None or payload.get("type") != "refresh":
        return None
    try:
        return uuid.UUID(payload.get("sub") or "")
    except ValueError:
        return None


async def login(
    db: AsyncSession,
    request: LoginRequest,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[User, str, str]:
    """Authenticate user and create session."""
    normalized_email = normalize_email(request.email)

    result = await db.execute(
        select(User).where(User.email == normalized_email)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(request.password, user.password_hash):
        logger.warning(f"Failed login attempt for {normalized_email[:3]}***")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    session, refresh_token = _new_session(user, ip, user_agent)
    db.add(session)
    await db.commit()

    return user, _issue_access_token(user), refresh_token


async def issue_tokens(
    db: AsyncSession,
    user: User,
) -> tuple[str, str]:
    """Open a session for a freshly registered user."""
    session, refresh_token = _new_session(user, None, None)
    db.add(session)
    await db.commit()
    return _issue_access_token(user), refresh_token


async def refresh_access_token(
    db: AsyncSession,
    refresh_token: str,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[str, str]:
    """Refresh access token and rotate refresh token."""
    user_id = _refresh_subject(refresh_token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    result = await db.execute(
        select(Session).where(
            Session.user_id == user_id,
            Session.revoked_at.is_(None),
            Session.expires_at > _utcnow(),
        )
    )
    sessions = result.scalars().all()

    matching_session = next(
        (s for s in sessions if verify_refresh_token_hash(refresh_token, s.refresh_token_hash)),
        None,
    )

    if not matching_session:
        # Token reuse detected - revoke all sessions
        for session in sessions:
            session.revoked_at = _utcnow()
        await db.commit()
        logger.warning(f"Refresh token reuse for user {user_id}; all sessions revoked")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or reused refresh token. All sessions revoked.",
        )

    matching_session.revoked_at = _utcnow()
    await db.flush()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    new_session, new_refresh_token = _new_session(user, ip, user_agent)
    db.add(new_session)
    await db.commit()

    return _issue_access_token(user), new_refresh_token


async def logout(
    db: AsyncSession,
    refresh_token: str,
) -> None:
    """Revoke a session."""
    user_id = _refresh_subject(refresh_token)
    if user_id is None:
        return

    result = await db.execute(
        select(Session).where(
            Session.user_id == user_id,
            Session.revoked_at.is_(None),
        )
    )
    for session in result.scalars().all():
        if verify_refresh_token_hash(refresh_token, session.refresh_token_hash):
            session.revoked_at = _utcnow()
            await db.commit()
            return
