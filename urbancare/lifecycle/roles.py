"""Roles and the acting identity passed into every lifecycle operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from urbancare.errors import Unauthenticated, ValidationError


class Role(str, Enum):
    citizen = "citizen"
    worker = "worker"
    authority = "authority"


def parse_role(value: str | Role) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown role: {value!r}") from None


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Role

    @property
    def is_authority(self) -> bool:
        return self.role is Role.authority

    @property
    def is_worker(self) -> bool:
        return self.role is Role.worker


def require_actor(actor: Actor | None) -> Actor:
    if actor is None or not actor.user_id:
        raise Unauthenticated("Sign in required")
    return actor
