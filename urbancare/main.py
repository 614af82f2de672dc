"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from urbancare.api.router import api_router
from urbancare.config import get_settings
from urbancare.db.engine import create_all, engine
from urbancare.errors import (
    InvalidTransition, IssueLifecycleError, NotFound, TransientError,
    Unauthenticated, Unauthorized, ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    ValidationError: 422,
    Unauthenticated: 401,
    Unauthorized: 403,
    NotFound: 404,
    InvalidTransition: 409,
    TransientError: 503,
}


def status_code_for(exc: IssueLifecycleError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await create_all()
    yield
    await engine.dispose()


app = FastAPI(
    title="UrbanCare",
    description="Civic issue reporting with an authority and field-worker resolution workflow.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(IssueLifecycleError)
async def lifecycle_error_handler(request: Request, exc: IssueLifecycleError):
    status = status_code_for(exc)
    headers = {"Retry-After": "1"} if exc.retryable else None
    if status >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)


app.include_router(api_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
