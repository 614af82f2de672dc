from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class UserRead(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    department: str | None = None
    employee_id: str | None = None
    phone_number: str = ""
    is_active: bool = True
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkerCreate(BaseModel):
    email: str
    password: str
    full_name: str
    employee_id: str
    department: str
    phone_number: str = ""
