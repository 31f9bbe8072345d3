from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class OwnerOrganizationInput(BaseModel):
    id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    currency: str | None = Field(default=None, max_length=10)


class OwnerUserInput(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str | None = Field(
        default=None,
        min_length=8,
        description="Optional initial password; a temporary one is generated when omitted.",
    )


class CreateOwnerRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "organization": {"name": "Kumasi Traders", "email": "hello@kumasi.example", "currency": "GH₵"},
                "user": {"first_name": "Ama", "last_name": "Mensah", "email": "ama@kumasi.example"},
            }
        }
    }

    organization: OwnerOrganizationInput
    user: OwnerUserInput


class CreateOwnerResponse(BaseModel):
    organization_id: str
    organization_name: str
    user_id: str
    email: EmailStr
    role: str
    temporary_password: str | None = None
    must_change_password: bool
    trace_id: str
