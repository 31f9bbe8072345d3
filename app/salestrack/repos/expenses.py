from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.salestrack.db.models import Expense


class ExpenseRepository:
    def __init__(self, db):
        self.db = db

    def get(self, organization_id, expense_id):
        stmt = (
            select(Expense)
            .options(selectinload(Expense.branch))
            .where(Expense.id == expense_id, Expense.organization_id == organization_id)
        )
        return self.db.execute(stmt).scalars().first()

    def list(
        self,
        organization_id,
        *,
        branch_id=None,
        category: str | None = None,
        expense_category_id=None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ):
        stmt = (
            select(Expense)
            .options(selectinload(Expense.branch))
            .where(Expense.organization_id == organization_id)
        )
        if branch_id is not None:
            stmt = stmt.where(Expense.branch_id == branch_id)
        if category:
            stmt = stmt.where(Expense.category == category)
        if expense_category_id is not None:
            stmt = stmt.where(Expense.expense_category_id == expense_category_id)
        if start is not None:
            stmt = stmt.where(Expense.expense_date >= start)
        if end is not None:
            stmt = stmt.where(Expense.expense_date < end)
        stmt = stmt.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit).offset(offset)
        return self.db.execute(stmt).scalars().all()

    def save(self, expense: Expense) -> Expense:
        self.db.add(expense)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def delete(self, expense: Expense) -> None:
        self.db.delete(expense)
        self.db.commit()

    def amounts_between(self, organization_id, *, start=None, end=None, branch_id=None):
        """(expense_date, amount, branch_id, category) rows, for aggregation."""
        stmt = select(Expense.expense_date, Expense.amount, Expense.branch_id, Expense.category).where(
            Expense.organization_id == organization_id
        )
        if branch_id is not None:
            stmt = stmt.where(Expense.branch_id == branch_id)
        if start is not None:
            stmt = stmt.where(Expense.expense_date >= start)
        if end is not None:
            stmt = stmt.where(Expense.expense_date < end)
        return self.db.execute(stmt.order_by(Expense.expense_date.asc())).all()
