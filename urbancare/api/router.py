"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from urbancare.api.auth import router as auth_router
from urbancare.api.issues import router as issues_router
from urbancare.api.workers import router as workers_router
from urbancare.api.dashboard import router as dashboard_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(issues_router)
api_router.include_router(workers_router)
api_router.include_router(dashboard_router)
