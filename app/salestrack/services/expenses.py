from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.scope import ensure_row_in_scope, require_branch, resolve_branch_filter
from app.salestrack.db.models import Expense, User
from app.salestrack.repos.catalog import ExpenseCategoryRepository
from app.salestrack.repos.expenses import ExpenseRepository
from app.salestrack.repos.organizations import OrganizationRepository
from app.salestrack.services.activity import ActivityService, payload_from_context, snapshot
from app.salestrack.services.activity_formatters import format_currency, to_money
from app.salestrack.services.periods import resolve_date_window, resolve_timezone, to_utc_naive

EXPENSE_SNAPSHOT_FIELDS = (
    "id",
    "branch_id",
    "expense_category_id",
    "category",
    "amount",
    "description",
    "expense_date",
)


def _positive_amount(value) -> Decimal:
    amount = to_money(value)
    if amount is None or amount <= 0:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"field": "amount", "message": "Expense amount must be greater than zero"},
        )
    return amount


class ExpenseService:
    def __init__(self, db, context: RequestContext, actor: User | None = None):
        self.db = db
        self.context = context
        self.actor = actor
        self.repo = ExpenseRepository(db)
        self.categories = ExpenseCategoryRepository(db)
        self.activity = ActivityService(db)

    @property
    def currency(self) -> str:
        organization = OrganizationRepository(self.db).get_by_id(self.context.organization_id)
        return organization.currency if organization is not None else "GH₵"

    def list_expenses(
        self,
        *,
        branch_id=None,
        category: str | None = None,
        expense_category_id=None,
        start_date: date | None = None,
        end_date: date | None = None,
        tz=None,
        limit: int | None = None,
        offset: int = 0,
    ):
        window = resolve_date_window(start_date, end_date, tz or resolve_timezone(None))
        return self.repo.list(
            self.context.organization_id,
            branch_id=resolve_branch_filter(self.context, branch_id),
            category=category,
            expense_category_id=expense_category_id,
            start=window.start_utc,
            end=window.end_utc,
            limit=limit,
            offset=offset,
        )

    def get_expense(self, expense_id) -> Expense:
        return ensure_row_in_scope(self.context, self.repo.get(self.context.organization_id, expense_id))

    def _resolve_category(self, expense_category_id, category: str | None):
        if expense_category_id:
            found = self.categories.get(self.context.organization_id, expense_category_id)
            if found is None or not found.is_active:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"entity": "expense_category", "id": str(expense_category_id)},
                )
            return found.id, found.name
        label = (category or "").strip()
        if not label:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "category", "message": "A category or expense_category_id is required"},
            )
        return None, label

    def _log(self, activity_type: str, expense: Expense, description: str, **fields) -> None:
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type=activity_type,
                entity_type="expense",
                entity_id=str(expense.id),
                branch_id=str(expense.branch_id),
                description=description,
                **fields,
            )
        )

    def create_expense(
        self,
        *,
        branch_id,
        amount,
        expense_category_id=None,
        category: str | None = None,
        description: str | None = None,
        expense_date: datetime | None = None,
    ) -> Expense:
        branch = require_branch(self.db, self.context, branch_id or self.context.branch_id)
        category_id, label = self._resolve_category(expense_category_id, category)
        expense = Expense(
            organization_id=branch.organization_id,
            branch_id=branch.id,
            expense_category_id=category_id,
            category=label,
            amount=_positive_amount(amount),
            description=(description or "").strip() or None,
            expense_date=to_utc_naive(expense_date) or datetime.utcnow(),
            created_by=self.actor.id,
        )
        expense = self.repo.save(expense)
        self._log(
            "create",
            expense,
            f"Expense of {format_currency(expense.amount, self.currency)} recorded under {expense.category}",
            new_values=snapshot(expense, EXPENSE_SNAPSHOT_FIELDS),
        )
        return expense

    def update_expense(self, expense_id, changes: dict) -> Expense:
        expense = self.get_expense(expense_id)
        before = snapshot(expense, EXPENSE_SNAPSHOT_FIELDS)

        if changes.get("branch_id") and str(changes["branch_id"]) != str(expense.branch_id):
            expense.branch_id = require_branch(self.db, self.context, changes["branch_id"]).id
        if "expense_category_id" in changes or "category" in changes:
            expense.expense_category_id, expense.category = self._resolve_category(
                changes.get("expense_category_id"),
                changes.get("category") or (None if changes.get("expense_category_id") else expense.category),
            )
        if changes.get("amount") is not None:
            expense.amount = _positive_amount(changes["amount"])
        if "description" in changes:
            expense.description = (changes["description"] or "").strip() or None
        if changes.get("expense_date") is not None:
            expense.expense_date = to_utc_naive(changes["expense_date"])

        after = snapshot(expense, EXPENSE_SNAPSHOT_FIELDS)
        if after == before:
            return expense
        expense.last_updated_by = self.actor.id
        expense = self.repo.save(expense)
        self._log(
            "update",
            expense,
            f"Expense updated ({expense.category}, {format_currency(expense.amount, self.currency)})",
            old_values=before,
            new_values=snapshot(expense, EXPENSE_SNAPSHOT_FIELDS),
        )
        return expense

    def delete_expense(self, expense_id) -> None:
        expense = self.get_expense(expense_id)
        before = snapshot(expense, EXPENSE_SNAPSHOT_FIELDS)
        self.repo.delete(expense)
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type="delete",
                entity_type="expense",
                entity_id=before["id"],
                branch_id=before["branch_id"],
                description=(
                    f"Expense of {format_currency(before['amount'], self.currency)} deleted ({before['category']})"
                ),
                old_values=before,
            )
        )
