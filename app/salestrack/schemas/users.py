from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

UserRole = Literal["owner", "admin", "branch_manager", "auditor", "sales_person"]
AssignableRole = Literal["admin", "branch_manager", "auditor", "sales_person"]


class UserCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "kwame@example.com",
                "full_name": "Kwame Boateng",
                "role": "sales_person",
                "branch_id": "2b0d7a44-0b7c-4a53-8d1e-8f0a3a3b0c11",
            }
        }
    }

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    role: AssignableRole
    branch_id: UUID | None = None


class UserUpdateRequest(BaseModel):
    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: AssignableRole | None = None
    branch_id: UUID | None = None


class UserItem(BaseModel):
    id: str
    email: EmailStr
    full_name: str
    role: UserRole | str
    branch_id: str | None = None
    branch_name: str | None = None
    is_active: bool
    must_change_password: bool
    deactivated_at: datetime | None = None
    deactivated_by: str | None = None
    created_at: datetime
    updated_at: datetime


class UserResponse(BaseModel):
    user: UserItem
    trace_id: str


class UserListResponse(BaseModel):
    users: list[UserItem]
    trace_id: str


class UserCreatedResponse(BaseModel):
    user: UserItem
    temporary_password: str
    trace_id: str


class PasswordRegeneratedResponse(BaseModel):
    user_id: str
    temporary_password: str
    trace_id: str
