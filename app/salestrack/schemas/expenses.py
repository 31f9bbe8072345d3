from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class ExpenseCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"branch_id": "2b0d7a44-0b7c-4a53-8d1e-8f0a3a3b0c11", "amount": "150.00", "category": "Rent"},
                {
                    "branch_id": "2b0d7a44-0b7c-4a53-8d1e-8f0a3a3b0c11",
                    "amount": "40.00",
                    "expense_category_id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                },
            ]
        }
    }

    branch_id: UUID | None = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    expense_category_id: UUID | None = None
    category: str | None = Field(default=None, max_length=255)
    description: str | None = None
    expense_date: datetime | None = None

    @model_validator(mode="after")
    def ensure_category(self):
        if not self.expense_category_id and not (self.category or "").strip():
            raise ValueError("expense_category_id or category is required")
        return self


class ExpenseUpdateRequest(BaseModel):
    branch_id: UUID | None = None
    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    expense_category_id: UUID | None = None
    category: str | None = Field(default=None, max_length=255)
    description: str | None = None
    expense_date: datetime | None = None


class ExpenseItem(BaseModel):
    id: str
    organization_id: str
    branch_id: str
    branch_name: str | None = None
    expense_category_id: str | None = None
    category: str
    amount: Decimal
    description: str | None = None
    expense_date: datetime
    created_by: str | None = None
    last_updated_by: str | None = None
    created_at: datetime
    updated_at: datetime


class ExpenseResponse(BaseModel):
    expense: ExpenseItem
    trace_id: str


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseItem]
    total_amount: Decimal
    trace_id: str
