from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class SaleLineInput(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    unit_price: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Defaults to the product's current price.",
    )


class SaleCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "branch_id": "2b0d7a44-0b7c-4a53-8d1e-8f0a3a3b0c11",
                "customer_name": "Kofi",
                "items": [{"product_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7", "quantity": 2}],
            }
        }
    }

    branch_id: UUID | None = Field(default=None, description="Defaults to the caller's branch.")
    items: list[SaleLineInput] = Field(..., min_length=1)
    customer_name: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    sale_date: datetime | None = None


class SaleUpdateRequest(BaseModel):
    branch_id: UUID | None = None
    items: list[SaleLineInput] | None = Field(default=None, min_length=1)
    customer_name: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    sale_date: datetime | None = None
    correction_reason: str | None = None


class SaleVoidRequest(BaseModel):
    reason: str | None = None


class ClosePeriodRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"start_date": "2025-03-01", "end_date": "2025-03-31", "closing_reason": "March closed"},
                {"sale_ids": ["8d1f1e0c-0e55-4a0a-9f8a-3f5a2d1c9b77"]},
            ]
        }
    }

    sale_ids: list[UUID] | None = None
    start_date: date | None = None
    end_date: date | None = None
    branch_id: UUID | None = None
    closing_reason: str | None = None
    timezone: str | None = None

    @model_validator(mode="after")
    def ensure_selection(self):
        if not self.sale_ids and not (self.start_date and self.end_date):
            raise ValueError("sale_ids or start_date and end_date are required")
        return self


class SaleLineItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class SaleItem(BaseModel):
    id: str
    organization_id: str
    branch_id: str
    branch_name: str | None = None
    amount: Decimal
    customer_name: str | None = None
    notes: str | None = None
    sale_date: datetime
    status: str
    is_active: bool
    closed: bool
    closing_reason: str | None = None
    closed_at: datetime | None = None
    receipt_generated_at: datetime | None = None
    created_by: str | None = None
    created_by_name: str | None = None
    last_updated_by: str | None = None
    last_updated_by_name: str | None = None
    items: list[SaleLineItemResponse]
    created_at: datetime
    updated_at: datetime


class SaleResponse(BaseModel):
    sale: SaleItem
    trace_id: str


class SaleListResponse(BaseModel):
    sales: list[SaleItem]
    total_amount: Decimal
    trace_id: str


class ReceiptOrganization(BaseModel):
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    logo_url: str | None = None


class ReceiptBranch(BaseModel):
    id: str
    name: str
    location: str | None = None


class ReceiptLine(BaseModel):
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class ReceiptResponse(BaseModel):
    receipt_number: str
    sale_id: str
    organization: ReceiptOrganization
    currency: str
    branch: ReceiptBranch
    customer_name: str | None = None
    notes: str | None = None
    sale_date: datetime
    served_by: str | None = None
    items: list[ReceiptLine]
    total: Decimal
    generated_at: datetime
    trace_id: str


class ClosePeriodResponse(BaseModel):
    affected_count: int
    closed_sale_ids: list[str]
    closing_reason: str
    trace_id: str
