"""Authentication service: bcrypt passwords and DB-backed session tokens.

This is the identity provider boundary: it turns a session cookie into an
authenticated user id plus a role claim. The lifecycle engine trusts the role
as given.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import bcrypt
from fastapi import Request, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.config import get_settings
from urbancare.lifecycle.roles import Actor, Role, parse_role
from urbancare.models.user import User, UserSession

SESSION_COOKIE_NAME = "session_token"


@dataclass
class AuthContext:
    user_id: str
    role: Role
    email: str
    full_name: str
    department: str | None = None

    @property
    def actor(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role)


def session_max_age_days() -> int:
    return get_settings().auth.session_max_age_days


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _hash_token(token: str) -> str:
    """SHA-256 hash of a session token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def context_for(user: User) -> AuthContext:
    return AuthContext(
        user_id=user.id,
        role=parse_role(user.role),
        email=user.email,
        full_name=user.full_name,
        department=user.department,
    )


async def create_session(user: User, db: AsyncSession, ip_address: str = "") -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    expires_at = datetime.now(timezone.utc) + timedelta(days=session_max_age_days())

    session = UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=expires_at,
        ip_address=ip_address,
    )
    db.add(session)
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Look up session by token hash, return User if valid."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalars().first()
    if not session:
        return None

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        return None
    return user


async def remove_session(token: str, db: AsyncSession) -> None:
    """Delete a session by token."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == _hash_token(token))
    )
    session = result.scalars().first()
    if session:
        await db.delete(session)
        await db.commit()


async def get_current_user(request: Request, db: AsyncSession) -> AuthContext:
    """Read session cookie, validate, return AuthContext or raise 401."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await validate_session(token, db)
    if not user:
        raise HTTPException(status_code=401, detail="Session expired")

    return context_for(user)


async def get_optional_user(request: Request, db: AsyncSession) -> AuthContext | None:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    user = await validate_session(token, db)
    return context_for(user) if user else None
