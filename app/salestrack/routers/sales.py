from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response

from app.salestrack.core.deps import require_active_user, require_permission, require_request_context
from app.salestrack.db.models import Sale
from app.salestrack.db.session import get_db
from app.salestrack.schemas.activities import ActivityItem, SaleHistoryResponse
from app.salestrack.schemas.sales import (
    ClosePeriodRequest,
    ClosePeriodResponse,
    ReceiptResponse,
    SaleCreateRequest,
    SaleItem,
    SaleLineItemResponse,
    SaleListResponse,
    SaleResponse,
    SaleUpdateRequest,
    SaleVoidRequest,
)
from app.salestrack.services.activity import ActivityService
from app.salestrack.services.idempotency import begin_idempotent_request, complete_idempotent_request
from app.salestrack.services.periods import resolve_timezone
from app.salestrack.services.sales import LineInput, SalesService

router = APIRouter()


def _sale_item(sale: Sale, names: dict[str, str]) -> SaleItem:
    created_by = str(sale.created_by) if sale.created_by else None
    last_updated_by = str(sale.last_updated_by) if sale.last_updated_by else None
    return SaleItem(
        id=str(sale.id),
        organization_id=str(sale.organization_id),
        branch_id=str(sale.branch_id),
        branch_name=sale.branch.name if sale.branch is not None else None,
        amount=sale.amount,
        customer_name=sale.customer_name,
        notes=sale.notes,
        sale_date=sale.sale_date,
        status=sale.status,
        is_active=sale.is_active,
        closed=sale.closed,
        closing_reason=sale.closing_reason,
        closed_at=sale.closed_at,
        receipt_generated_at=sale.receipt_generated_at,
        created_by=created_by,
        created_by_name=names.get(created_by) if created_by else None,
        last_updated_by=last_updated_by,
        last_updated_by_name=names.get(last_updated_by) if last_updated_by else None,
        items=[
            SaleLineItemResponse(
                id=str(line.id),
                product_id=str(line.product_id),
                product_name=line.product.name if line.product is not None else None,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total_price,
            )
            for line in sale.items
        ],
        created_at=sale.created_at,
        updated_at=sale.updated_at,
    )


def _line_inputs(items) -> list[LineInput]:
    return [
        LineInput(product_id=str(item.product_id), quantity=item.quantity, unit_price=item.unit_price)
        for item in items
    ]


@router.get("/sales", response_model=SaleListResponse)
def list_sales(
    branch_id: UUID | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    timezone: str | None = Query(None),
    include_inactive: bool = Query(False),
    closed: bool | None = Query(None),
    limit: int | None = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("SALE_VIEW")),
    db=Depends(get_db),
):
    service = SalesService(db, context)
    sales = service.list_sales(
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
        tz=resolve_timezone(timezone),
        include_inactive=include_inactive,
        closed=closed,
        limit=limit,
        offset=offset,
    )
    names = service.author_names(sales)
    total = sum((sale.amount for sale in sales if sale.is_active), Decimal("0.00"))
    return SaleListResponse(
        sales=[_sale_item(sale, names) for sale in sales],
        total_amount=total,
        trace_id=context.trace_id,
    )


@router.get("/sales/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("SALE_VIEW")),
    db=Depends(get_db),
):
    service = SalesService(db, context)
    sale = service.get_sale(sale_id)
    return SaleResponse(sale=_sale_item(sale, service.author_names([sale])), trace_id=context.trace_id)


@router.post("/sales", response_model=SaleResponse, status_code=201)
def create_sale(
    request: Request,
    payload: SaleCreateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("SALE_CREATE")),
    db=Depends(get_db),
):
    replay = begin_idempotent_request(
        request,
        db,
        organization_id=context.organization_id,
        payload=payload.model_dump(mode="json"),
    )
    if replay is not None:
        return replay

    service = SalesService(db, context, current_user)
    sale = service.create_sale(
        branch_id=payload.branch_id,
        items=_line_inputs(payload.items),
        customer_name=payload.customer_name,
        notes=payload.notes,
        sale_date=payload.sale_date,
    )
    response = SaleResponse(sale=_sale_item(sale, service.author_names([sale])), trace_id=context.trace_id)
    complete_idempotent_request(request, status_code=201, response_body=response.model_dump(mode="json"))
    return response


@router.patch("/sales/{sale_id}", response_model=SaleResponse)
def update_sale(
    sale_id: UUID,
    payload: SaleUpdateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("SALE_EDIT")),
    db=Depends(get_db),
):
    changes = {
        field: getattr(payload, field)
        for field in ("customer_name", "notes", "sale_date", "branch_id")
        if field in payload.model_fields_set
    }
    service = SalesService(db, context, current_user)
    sale = service.update_sale(
        sale_id,
        items=_line_inputs(payload.items) if payload.items is not None else None,
        correction_reason=payload.correction_reason,
        **changes,
    )
    return SaleResponse(sale=_sale_item(sale, service.author_names([sale])), trace_id=context.trace_id)


@router.post("/sales/{sale_id}/void", response_model=SaleResponse)
def void_sale(
    sale_id: UUID,
    payload: SaleVoidRequest | None = None,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("SALE_VOID")),
    db=Depends(get_db),
):
    service = SalesService(db, context, current_user)
    sale = service.void_sale(sale_id, reason=payload.reason if payload else None)
    return SaleResponse(sale=_sale_item(sale, service.author_names([sale])), trace_id=context.trace_id)


@router.delete("/sales/{sale_id}", status_code=204)
def delete_sale(
    sale_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("SALE_DELETE")),
    db=Depends(get_db),
):
    SalesService(db, context, current_user).delete_sale(sale_id)
    return Response(status_code=204)


@router.post("/sales/{sale_id}/receipt", response_model=ReceiptResponse)
def generate_receipt(
    sale_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("SALE_RECEIPT")),
    db=Depends(get_db),
):
    receipt = SalesService(db, context, current_user).generate_receipt(sale_id)
    return ReceiptResponse(**receipt, trace_id=context.trace_id)


@router.post("/sales/close-period", response_model=ClosePeriodResponse)
def close_period(
    payload: ClosePeriodRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("SALE_CLOSE")),
    db=Depends(get_db),
):
    result = SalesService(db, context, current_user).close_period(
        sale_ids=[str(sale_id) for sale_id in payload.sale_ids] if payload.sale_ids else None,
        start_date=payload.start_date,
        end_date=payload.end_date,
        branch_id=payload.branch_id,
        reason=payload.closing_reason,
        tz=resolve_timezone(payload.timezone),
    )
    return ClosePeriodResponse(**result, trace_id=context.trace_id)


@router.get("/sales/{sale_id}/history", response_model=SaleHistoryResponse)
def sale_history(
    sale_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("SALE_VIEW")),
    db=Depends(get_db),
):
    sale = SalesService(db, context).get_sale(sale_id)
    activities = ActivityService(db).history_for_sale(context.organization_id, sale.id)
    return SaleHistoryResponse(
        sale_id=str(sale.id),
        activities=[ActivityItem(**item) for item in activities],
        trace_id=context.trace_id,
    )
