from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.salestrack.db.models import Sale, SaleLineItem


class SaleRepository:
    def __init__(self, db):
        self.db = db

    def _base_query(self):
        return select(Sale).options(
            selectinload(Sale.items).selectinload(SaleLineItem.product),
            selectinload(Sale.branch),
        )

    def get(self, organization_id, sale_id):
        stmt = self._base_query().where(Sale.id == sale_id, Sale.organization_id == organization_id)
        return self.db.execute(stmt).scalars().first()

    def list(
        self,
        organization_id,
        *,
        branch_id=None,
        start: datetime | None = None,
        end: datetime | None = None,
        include_inactive: bool = False,
        closed: bool | None = None,
        limit: int | None = None,
        offset: int = 0,
    ):
        stmt = self._base_query().where(Sale.organization_id == organization_id)
        if branch_id is not None:
            stmt = stmt.where(Sale.branch_id == branch_id)
        if start is not None:
            stmt = stmt.where(Sale.sale_date >= start)
        if end is not None:
            stmt = stmt.where(Sale.sale_date < end)
        if not include_inactive:
            stmt = stmt.where(Sale.is_active.is_(True))
        if closed is not None:
            stmt = stmt.where(Sale.closed.is_(closed))
        stmt = stmt.order_by(Sale.sale_date.desc(), Sale.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit).offset(offset)
        return self.db.execute(stmt).scalars().all()

    def list_closable(self, organization_id, *, sale_ids=None, branch_id=None, start=None, end=None):
        stmt = select(Sale).where(
            Sale.organization_id == organization_id,
            Sale.is_active.is_(True),
            Sale.closed.is_(False),
        )
        if sale_ids is not None:
            stmt = stmt.where(Sale.id.in_(list(sale_ids)))
        if branch_id is not None:
            stmt = stmt.where(Sale.branch_id == branch_id)
        if start is not None:
            stmt = stmt.where(Sale.sale_date >= start)
        if end is not None:
            stmt = stmt.where(Sale.sale_date < end)
        return self.db.execute(stmt.order_by(Sale.sale_date.asc())).scalars().all()

    def save(self, sale: Sale) -> Sale:
        self.db.add(sale)
        self.db.commit()
        self.db.refresh(sale)
        return sale

    def delete(self, sale: Sale) -> None:
        self.db.delete(sale)
        self.db.commit()

    def close(self, sales, *, reason: str, closed_by, closed_at: datetime) -> list[Sale]:
        for sale in sales:
            sale.closed = True
            sale.closing_reason = reason
            sale.closed_at = closed_at
            sale.closed_by = closed_by
            self.db.add(sale)
        self.db.commit()
        return list(sales)

    def amounts_between(self, organization_id, *, start=None, end=None, branch_id=None):
        """(sale_date, amount, branch_id) rows of active sales, for aggregation."""
        stmt = select(Sale.sale_date, Sale.amount, Sale.branch_id).where(
            Sale.organization_id == organization_id,
            Sale.is_active.is_(True),
        )
        if branch_id is not None:
            stmt = stmt.where(Sale.branch_id == branch_id)
        if start is not None:
            stmt = stmt.where(Sale.sale_date >= start)
        if end is not None:
            stmt = stmt.where(Sale.sale_date < end)
        return self.db.execute(stmt.order_by(Sale.sale_date.asc())).all()
