from datetime import datetime

from pydantic import BaseModel, Field


class BranchCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {"name": "Adum", "location": "Adum, Kumasi", "contact": "+233 20 000 0000"},
        }
    }

    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    contact: str | None = Field(default=None, max_length=100)
    description: str | None = None
    is_active: bool = True


class BranchUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    location: str | None = Field(default=None, min_length=1, max_length=255)
    contact: str | None = Field(default=None, max_length=100)
    description: str | None = None
    is_active: bool | None = None


class BranchItem(BaseModel):
    id: str
    organization_id: str
    name: str
    location: str
    contact: str | None = None
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BranchResponse(BaseModel):
    branch: BranchItem
    trace_id: str


class BranchListResponse(BaseModel):
    branches: list[BranchItem]
    trace_id: str
