"""Dashboard API: authority and worker rollups, public success stories."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.db.engine import get_db
from urbancare.dependencies import require_role
from urbancare.lifecycle.roles import Role
from urbancare.schemas import SuccessStory
from urbancare.services import dashboard
from urbancare.services.auth import AuthContext

router = APIRouter(tags=["dashboard"])


@router.get("/api/dashboard/authority")
async def authority_dashboard(
    auth: AuthContext = Depends(require_role(Role.authority)),
    db: AsyncSession = Depends(get_db),
):
    return await dashboard.authority_stats(db, auth.user_id)


@router.get("/api/dashboard/worker")
async def worker_dashboard(
    auth: AuthContext = Depends(require_role(Role.worker)),
    db: AsyncSession = Depends(get_db),
):
    return await dashboard.worker_stats(db, auth.user_id)


@router.get("/api/success-stories", response_model=list[SuccessStory])
async def success_stories(
    limit: int = Query(default=3, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
):
    return await dashboard.success_stories(db, limit=limit)
