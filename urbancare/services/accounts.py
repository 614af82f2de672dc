"""Account creation for citizens, field workers and authorities."""

from __future__ import annotations

import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.config import get_settings
from urbancare.db import crud
from urbancare.errors import ValidationError
from urbancare.lifecycle.roles import Role, parse_role
from urbancare.models.user import User
from urbancare.services.auth import hash_password

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_credentials(email: str, password: str) -> str:
    email = (email or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("A valid email address is required")
    min_len = get_settings().auth.min_password_length
    if len(password or "") < min_len:
        raise ValidationError(f"Password must be at least {min_len} characters")
    return email


async def create_account(
    db: AsyncSession,
    email: str,
    password: str,
    role: Role | str = Role.citizen,
    full_name: str = "",
    department: str | None = None,
    employee_id: str | None = None,
    phone_number: str = "",
) -> User:
    """Create a user of any role. Workers must have an employee id and department."""
    role = parse_role(role)
    email = _validate_credentials(email, password)

    if await crud.get_user_by_email(db, email):
        raise ValidationError(f"An account already exists for {email}")

    if role is Role.worker:
        if not employee_id or not department:
            raise ValidationError("Workers need an employee_id and a department")

    user = await crud.create_user(
        db,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        full_name=full_name.strip() or email.split("@")[0],
        department=department,
        employee_id=employee_id,
        phone_number=phone_number,
    )
    logger.info("Created %s account %s (%s)", role.value, user.id, email)
    return user


async def register_citizen(db: AsyncSession, email: str, password: str, full_name: str = "") -> User:
    """Self-service sign-up is limited to citizens; staff accounts are provisioned."""
    return await create_account(db, email, password, Role.citizen, full_name=full_name)


async def deactivate_worker(db: AsyncSession, worker: User) -> User:
    return await crud.update_user(db, worker, is_active=False)
