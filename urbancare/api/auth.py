"""Auth API: register, login, logout, current user."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.db import crud
from urbancare.db.engine import get_db
from urbancare.dependencies import require_auth
from urbancare.schemas import LoginRequest, RegisterRequest, UserRead
from urbancare.services.accounts import register_citizen
from urbancare.services.auth import (
    AuthContext, SESSION_COOKIE_NAME, create_session, remove_session,
    session_max_age_days, verify_password,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _with_session_cookie(content: dict, token: str, status_code: int = 200) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    response.set_cookie(
        SESSION_COOKIE_NAME, token,
        httponly=True, samesite="lax",
        max_age=86400 * session_max_age_days(),
    )
    return response


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Citizen self-registration. Signs the new user in."""
    user = await register_citizen(db, body.email, body.password, full_name=body.full_name)
    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip)
    return _with_session_cookie(
        {"ok": True, "user_id": user.id, "role": user.role}, token, status_code=201,
    )


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await crud.get_user_by_email(db, body.email.strip().lower())

    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        return JSONResponse(status_code=401, content={"detail": "Invalid credentials"})

    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip)
    await crud.update_user(db, user, last_login_at=datetime.now(timezone.utc))

    return _with_session_cookie({"ok": True, "user_id": user.id, "role": user.role}, token)


@router.post("/logout")
async def logout(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        await remove_session(token, db)
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=UserRead)
async def get_me(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_user(db, auth.user_id)
