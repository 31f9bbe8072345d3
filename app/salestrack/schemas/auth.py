from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"email": "owner@example.com", "password": "Passw0rd123"},
                {
                    "email": "owner@example.com",
                    "password": "Passw0rd123",
                    "organization_id": "4f7f2c5e-9cfd-4efa-a575-2a0ad38df4e8",
                },
            ]
        }
    }

    email: EmailStr
    password: str = Field(..., min_length=1)
    organization_id: UUID | None = None


class TokenResponse(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "access_token": "<jwt>",
                "token_type": "bearer",
                "must_change_password": True,
                "organization_id": "4f7f2c5e-9cfd-4efa-a575-2a0ad38df4e8",
                "trace_id": "trace-123",
            }
        }
    }

    access_token: str
    token_type: str = "bearer"
    must_change_password: bool
    organization_id: str
    trace_id: str


class OAuth2TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"current_password": "OldPass123", "new_password": "NewPass4567"},
                {"new_password": "NewPass4567", "first_time_reset": True},
            ]
        }
    }

    current_password: str | None = None
    new_password: str
    first_time_reset: bool = False


class ChangePasswordResponse(BaseModel):
    ok: bool
    message: str
    requires_logout: bool
    access_token: str | None = None
    token_type: str | None = None
    trace_id: str


class SwitchOrganizationRequest(BaseModel):
    organization_id: UUID


class OrganizationMembershipItem(BaseModel):
    id: str
    name: str
    currency: str
    membership_role: str


class MeResponse(BaseModel):
    id: str
    email: EmailStr
    full_name: str
    role: str
    branch_id: str | None = None
    is_active: bool
    must_change_password: bool
    organization_id: str
    organizations: list[OrganizationMembershipItem]
    trace_id: str
