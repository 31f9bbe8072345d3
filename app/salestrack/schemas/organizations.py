from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.salestrack.schemas.auth import OrganizationMembershipItem


class OrganizationItem(BaseModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    logo_url: str | None = None
    description: str | None = None
    currency: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class OrganizationResponse(BaseModel):
    organization: OrganizationItem
    trace_id: str


class OrganizationListResponse(BaseModel):
    organizations: list[OrganizationMembershipItem]
    current_organization_id: str
    trace_id: str


class OrganizationUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    logo_url: str | None = None
    description: str | None = None
    currency: str | None = Field(default=None, min_length=1, max_length=10)


class OrganizationCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    description: str | None = None
    currency: str | None = Field(default=None, min_length=1, max_length=10)
