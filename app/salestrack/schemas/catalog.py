from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    description: str | None = None


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    description: str | None = None
    is_active: bool | None = None


class ProductItem(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductResponse(BaseModel):
    product: ProductItem
    trace_id: str


class ProductListResponse(BaseModel):
    products: list[ProductItem]
    trace_id: str


class ExpenseCategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class ExpenseCategoryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None


class ExpenseCategoryItem(BaseModel):
    id: str
    name: str
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ExpenseCategoryResponse(BaseModel):
    category: ExpenseCategoryItem
    trace_id: str


class ExpenseCategoryListResponse(BaseModel):
    categories: list[ExpenseCategoryItem]
    trace_id: str
