from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.salestrack.core.deps import require_permission, require_request_context
from app.salestrack.db.models import ExpenseCategory, Product
from app.salestrack.db.session import get_db
from app.salestrack.schemas.catalog import (
    ExpenseCategoryCreateRequest,
    ExpenseCategoryItem,
    ExpenseCategoryListResponse,
    ExpenseCategoryResponse,
    ExpenseCategoryUpdateRequest,
    ProductCreateRequest,
    ProductItem,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
)
from app.salestrack.services.catalog import CatalogService

router = APIRouter()


def _product_item(product: Product) -> ProductItem:
    return ProductItem(
        id=str(product.id),
        name=product.name,
        description=product.description,
        price=product.price,
        is_active=product.is_active,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _category_item(category: ExpenseCategory) -> ExpenseCategoryItem:
    return ExpenseCategoryItem(
        id=str(category.id),
        name=category.name,
        description=category.description,
        is_active=category.is_active,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


@router.get("/products", response_model=ProductListResponse)
def list_products(
    include_inactive: bool = Query(False),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("PRODUCT_VIEW")),
    db=Depends(get_db),
):
    products = CatalogService(db, context).list_products(include_inactive=include_inactive)
    return ProductListResponse(products=[_product_item(product) for product in products], trace_id=context.trace_id)


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("PRODUCT_VIEW")),
    db=Depends(get_db),
):
    product = CatalogService(db, context).get_product(product_id)
    return ProductResponse(product=_product_item(product), trace_id=context.trace_id)


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(
    payload: ProductCreateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("PRODUCT_MANAGE")),
    db=Depends(get_db),
):
    product = CatalogService(db, context).create_product(
        name=payload.name,
        price=payload.price,
        description=payload.description,
        created_by=context.user_id,
    )
    return ProductResponse(product=_product_item(product), trace_id=context.trace_id)


@router.patch("/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: UUID,
    payload: ProductUpdateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("PRODUCT_MANAGE")),
    db=Depends(get_db),
):
    product = CatalogService(db, context).update_product(product_id, payload.model_dump(exclude_unset=True))
    return ProductResponse(product=_product_item(product), trace_id=context.trace_id)


@router.delete("/products/{product_id}", response_model=ProductResponse)
def deactivate_product(
    product_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("PRODUCT_MANAGE")),
    db=Depends(get_db),
):
    product = CatalogService(db, context).deactivate_product(product_id)
    return ProductResponse(product=_product_item(product), trace_id=context.trace_id)


@router.get("/expense-categories", response_model=ExpenseCategoryListResponse)
def list_expense_categories(
    include_inactive: bool = Query(False),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_VIEW")),
    db=Depends(get_db),
):
    categories = CatalogService(db, context).list_categories(include_inactive=include_inactive)
    return ExpenseCategoryListResponse(
        categories=[_category_item(category) for category in categories],
        trace_id=context.trace_id,
    )


@router.get("/expense-categories/{category_id}", response_model=ExpenseCategoryResponse)
def get_expense_category(
    category_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_VIEW")),
    db=Depends(get_db),
):
    category = CatalogService(db, context).get_category(category_id)
    return ExpenseCategoryResponse(category=_category_item(category), trace_id=context.trace_id)


@router.post("/expense-categories", response_model=ExpenseCategoryResponse, status_code=201)
def create_expense_category(
    payload: ExpenseCategoryCreateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_CATEGORY_MANAGE")),
    db=Depends(get_db),
):
    category = CatalogService(db, context).create_category(
        name=payload.name,
        description=payload.description,
        created_by=context.user_id,
    )
    return ExpenseCategoryResponse(category=_category_item(category), trace_id=context.trace_id)


@router.patch("/expense-categories/{category_id}", response_model=ExpenseCategoryResponse)
def update_expense_category(
    category_id: UUID,
    payload: ExpenseCategoryUpdateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_CATEGORY_MANAGE")),
    db=Depends(get_db),
):
    category = CatalogService(db, context).update_category(category_id, payload.model_dump(exclude_unset=True))
    return ExpenseCategoryResponse(category=_category_item(category), trace_id=context.trace_id)


@router.delete("/expense-categories/{category_id}", response_model=ExpenseCategoryResponse)
def deactivate_expense_category(
    category_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_CATEGORY_MANAGE")),
    db=Depends(get_db),
):
    category = CatalogService(db, context).deactivate_category(category_id)
    return ExpenseCategoryResponse(category=_category_item(category), trace_id=context.trace_id)
