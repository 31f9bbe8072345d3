from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response

from app.salestrack.core.deps import require_active_user, require_permission, require_request_context
from app.salestrack.db.models import Expense
from app.salestrack.db.session import get_db
from app.salestrack.schemas.expenses import (
    ExpenseCreateRequest,
    ExpenseItem,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseUpdateRequest,
)
from app.salestrack.services.expenses import ExpenseService
from app.salestrack.services.idempotency import begin_idempotent_request, complete_idempotent_request
from app.salestrack.services.periods import resolve_timezone

router = APIRouter()


def _expense_item(expense: Expense) -> ExpenseItem:
    return ExpenseItem(
        id=str(expense.id),
        organization_id=str(expense.organization_id),
        branch_id=str(expense.branch_id),
        branch_name=expense.branch.name if expense.branch is not None else None,
        expense_category_id=str(expense.expense_category_id) if expense.expense_category_id else None,
        category=expense.category,
        amount=expense.amount,
        description=expense.description,
        expense_date=expense.expense_date,
        created_by=str(expense.created_by) if expense.created_by else None,
        last_updated_by=str(expense.last_updated_by) if expense.last_updated_by else None,
        created_at=expense.created_at,
        updated_at=expense.updated_at,
    )


@router.get("/expenses", response_model=ExpenseListResponse)
def list_expenses(
    branch_id: UUID | None = Query(None),
    category: str | None = Query(None),
    expense_category_id: UUID | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    timezone: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_VIEW")),
    db=Depends(get_db),
):
    expenses = ExpenseService(db, context).list_expenses(
        branch_id=branch_id,
        category=category,
        expense_category_id=expense_category_id,
        start_date=start_date,
        end_date=end_date,
        tz=resolve_timezone(timezone),
        limit=limit,
        offset=offset,
    )
    return ExpenseListResponse(
        expenses=[_expense_item(expense) for expense in expenses],
        total_amount=sum((expense.amount for expense in expenses), Decimal("0.00")),
        trace_id=context.trace_id,
    )


@router.get("/expenses/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("EXPENSE_VIEW")),
    db=Depends(get_db),
):
    expense = ExpenseService(db, context).get_expense(expense_id)
    return ExpenseResponse(expense=_expense_item(expense), trace_id=context.trace_id)


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
def create_expense(
    request: Request,
    payload: ExpenseCreateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("EXPENSE_CREATE")),
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

    expense = ExpenseService(db, context, current_user).create_expense(
        branch_id=payload.branch_id,
        amount=payload.amount,
        expense_category_id=payload.expense_category_id,
        category=payload.category,
        description=payload.description,
        expense_date=payload.expense_date,
    )
    response = ExpenseResponse(expense=_expense_item(expense), trace_id=context.trace_id)
    complete_idempotent_request(request, status_code=201, response_body=response.model_dump(mode="json"))
    return response


@router.patch("/expenses/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: UUID,
    payload: ExpenseUpdateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("EXPENSE_EDIT")),
    db=Depends(get_db),
):
    expense = ExpenseService(db, context, current_user).update_expense(
        expense_id, payload.model_dump(exclude_unset=True)
    )
    return ExpenseResponse(expense=_expense_item(expense), trace_id=context.trace_id)


@router.delete("/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("EXPENSE_DELETE")),
    db=Depends(get_db),
):
    ExpenseService(db, context, current_user).delete_expense(expense_id)
    return Response(status_code=204)
