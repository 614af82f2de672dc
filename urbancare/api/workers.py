"""Field worker API: provisioning and task lists."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.db import crud
from urbancare.db.engine import get_db
from urbancare.dependencies import require_auth, require_role
from urbancare.lifecycle.roles import Role
from urbancare.schemas import UserRead, WorkerCreate, WorkerTaskRead
from urbancare.services import issues as svc
from urbancare.services.accounts import create_account, deactivate_worker
from urbancare.services.auth import AuthContext

router = APIRouter(prefix="/api/workers", tags=["workers"])


@router.get("", response_model=list[UserRead])
async def list_workers(
    department: str | None = None,
    include_inactive: bool = False,
    auth: AuthContext = Depends(require_role(Role.authority)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_workers(db, department=department, active_only=not include_inactive)


@router.post("", status_code=201, response_model=UserRead)
async def create_worker(
    body: WorkerCreate,
    auth: AuthContext = Depends(require_role(Role.authority)),
    db: AsyncSession = Depends(get_db),
):
    return await create_account(
        db,
        body.email,
        body.password,
        Role.worker,
        full_name=body.full_name,
        department=body.department,
        employee_id=body.employee_id,
        phone_number=body.phone_number,
    )


@router.delete("/{worker_id}", response_model=UserRead)
async def remove_worker(
    worker_id: str,
    auth: AuthContext = Depends(require_role(Role.authority)),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a worker. Their history stays; they can no longer be assigned."""
    worker = await crud.get_user(db, worker_id)
    if not worker or worker.role != Role.worker.value:
        raise HTTPException(404, "Worker not found")
    return await deactivate_worker(db, worker)


@router.get("/me/tasks", response_model=list[WorkerTaskRead])
async def my_tasks(
    include_closed: bool = False,
    auth: AuthContext = Depends(require_role(Role.worker)),
    db: AsyncSession = Depends(get_db),
):
    tasks = await svc.list_worker_tasks(db, auth.user_id, include_closed=include_closed)
    return [WorkerTaskRead.model_validate(t) for t in tasks]


@router.get("/me/tasks/{issue_id}", response_model=WorkerTaskRead)
async def my_task(
    issue_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return WorkerTaskRead.model_validate(await svc.get_worker_task(db, issue_id, auth.actor))


@router.get("/{worker_id}/tasks", response_model=list[WorkerTaskRead])
async def worker_tasks(
    worker_id: str,
    include_closed: bool = False,
    auth: AuthContext = Depends(require_role(Role.authority)),
    db: AsyncSession = Depends(get_db),
):
    tasks = await svc.list_worker_tasks(db, worker_id, include_closed=include_closed)
    return [WorkerTaskRead.model_validate(t) for t in tasks]
