from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.metrics import metrics
from app.salestrack.core.scope import ensure_row_in_scope, require_branch, resolve_branch_filter
from app.salestrack.db.models import Sale, SaleLineItem, User
from app.salestrack.repos.catalog import ProductRepository
from app.salestrack.repos.organizations import OrganizationRepository
from app.salestrack.repos.sales import SaleRepository
from app.salestrack.repos.users import UserRepository
from app.salestrack.services.activity import ActivityService, payload_from_context
from app.salestrack.services.activity_formatters import (
    detect_sale_changes,
    format_currency,
    generate_sale_activity_title,
    has_any_changes,
    sale_snapshot,
    to_money,
)
from app.salestrack.services.periods import resolve_date_window, resolve_timezone, to_utc_naive

DEFAULT_CLOSING_REASON = "Period closed"
DEFAULT_CORRECTION_REASON = "Manual correction"

_UNSET = object()


@dataclass
class LineInput:
    product_id: str
    quantity: int
    unit_price: Decimal | None = None


@dataclass
class ResolvedLine:
    product: object
    quantity: int
    unit_price: Decimal

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(Decimal("0.01"))

    def snapshot(self, line_id=None) -> dict:
        return {
            "id": str(line_id) if line_id else None,
            "product_id": str(self.product.id),
            "product_name": self.product.name,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "total_price": float(self.total_price),
        }


def _line_snapshot(line: SaleLineItem) -> dict:
    return {
        "id": str(line.id),
        "product_id": str(line.product_id),
        "product_name": line.product.name if line.product is not None else None,
        "quantity": line.quantity,
        "unit_price": float(line.unit_price),
        "total_price": float(line.total_price),
    }


def diff_line_items(existing: list[SaleLineItem], resolved: list[ResolvedLine]) -> dict:
    """Split the requested lines into created/updated/deleted against the stored ones, keyed by product."""
    by_product = {str(line.product_id): line for line in existing}
    requested = {str(line.product.id) for line in resolved}
    changes: dict[str, list] = {"created": [], "updated": [], "deleted": []}
    for line in resolved:
        current = by_product.get(str(line.product.id))
        if current is None:
            changes["created"].append(line.snapshot())
        elif current.quantity != line.quantity or to_money(current.unit_price) != to_money(line.unit_price):
            changes["updated"].append({"old": _line_snapshot(current), "new": line.snapshot(current.id)})
    for line in existing:
        if str(line.product_id) not in requested:
            changes["deleted"].append(_line_snapshot(line))
    return changes


def ensure_sale_mutable(sale: Sale, *, allow_voided: bool = False) -> None:
    if sale.closed:
        raise AppError(ErrorCatalog.SALE_CLOSED, details={"id": str(sale.id)})
    if not allow_voided and (sale.status == "voided" or not sale.is_active):
        raise AppError(ErrorCatalog.SALE_VOIDED, details={"id": str(sale.id)})


class SalesService:
    def __init__(self, db, context: RequestContext, actor: User | None = None):
        self.db = db
        self.context = context
        self.actor = actor
        self.repo = SaleRepository(db)
        self.products = ProductRepository(db)
        self.activity = ActivityService(db)

    @property
    def currency(self) -> str:
        organization = OrganizationRepository(self.db).get_by_id(self.context.organization_id)
        return organization.currency if organization is not None else "GH₵"

    def list_sales(
        self,
        *,
        branch_id=None,
        start_date: date | None = None,
        end_date: date | None = None,
        tz=None,
        include_inactive: bool = False,
        closed: bool | None = None,
        limit: int | None = None,
        offset: int = 0,
    ):
        scoped_branch = resolve_branch_filter(self.context, branch_id)
        window = resolve_date_window(start_date, end_date, tz or resolve_timezone(None))
        return self.repo.list(
            self.context.organization_id,
            branch_id=scoped_branch,
            start=window.start_utc,
            end=window.end_utc,
            include_inactive=include_inactive,
            closed=closed,
            limit=limit,
            offset=offset,
        )

    def author_names(self, sales) -> dict[str, str]:
        ids = set()
        for sale in sales:
            ids.add(sale.created_by)
            ids.add(sale.last_updated_by)
        return UserRepository(self.db).names_by_id(ids)

    def get_sale(self, sale_id) -> Sale:
        sale = self.repo.get(self.context.organization_id, sale_id)
        return ensure_row_in_scope(self.context, sale)

    def _resolve_lines(
        self, items: list[LineInput], existing: list[SaleLineItem] | None = None
    ) -> list[ResolvedLine]:
        """Price requested lines; products already on the sale keep their stored price and may be inactive."""
        current = {str(line.product_id): line for line in existing or []}
        if not items:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"field": "items", "message": "At least one item"})
        product_ids = [str(item.product_id) for item in items]
        if len(set(product_ids)) != len(product_ids):
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "items", "message": "Each product may appear only once per sale"},
            )
        products = self.products.get_many(self.context.organization_id, product_ids)
        resolved = []
        for item in items:
            product = products.get(str(item.product_id))
            kept = current.get(str(item.product_id))
            if product is None or (kept is None and not product.is_active):
                raise AppError(ErrorCatalog.PRODUCT_UNAVAILABLE, details={"product_id": str(item.product_id)})
            if item.quantity is None or item.quantity <= 0:
                raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"field": "quantity", "message": "Must be > 0"})
            if item.unit_price is not None:
                unit_price = to_money(item.unit_price)
            elif kept is not None:
                unit_price = to_money(kept.unit_price)
            else:
                unit_price = to_money(product.price)
            if unit_price is None or unit_price < 0:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"field": "unit_price", "message": "Must be >= 0"},
                )
            resolved.append(ResolvedLine(product=product, quantity=item.quantity, unit_price=unit_price))
        return resolved

    @staticmethod
    def _total(lines: list[ResolvedLine]) -> Decimal:
        total = sum((line.total_price for line in lines), Decimal("0.00"))
        if total <= 0:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "amount", "message": "Sale amount must be greater than zero"},
            )
        return total

    def _log(self, activity_type: str, sale: Sale, description: str, **fields) -> None:
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type=activity_type,
                entity_type="sale",
                entity_id=str(sale.id),
                sale_id=str(sale.id),
                branch_id=str(sale.branch_id),
                description=description,
                **fields,
            )
        )

    def create_sale(
        self,
        *,
        branch_id,
        items: list[LineInput],
        customer_name: str | None = None,
        notes: str | None = None,
        sale_date: datetime | None = None,
    ) -> Sale:
        branch = require_branch(self.db, self.context, branch_id or self.context.branch_id)
        lines = self._resolve_lines(items)
        sale = Sale(
            organization_id=branch.organization_id,
            branch_id=branch.id,
            amount=self._total(lines),
            customer_name=(customer_name or "").strip() or None,
            notes=(notes or "").strip() or None,
            sale_date=to_utc_naive(sale_date) or datetime.utcnow(),
            status="active",
            is_active=True,
            closed=False,
            created_by=self.actor.id,
            items=[
                SaleLineItem(
                    product_id=line.product.id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                )
                for line in lines
            ],
        )
        sale = self.repo.save(sale)
        self._log(
            "create",
            sale,
            f"Sale of {format_currency(sale.amount, self.currency)} recorded at {branch.name}",
            new_values=sale_snapshot(sale, branch_name=branch.name),
            metadata={"total_items": len(sale.items)},
        )
        return sale

    def update_sale(
        self,
        sale_id,
        *,
        customer_name=_UNSET,
        notes=_UNSET,
        sale_date=_UNSET,
        branch_id=_UNSET,
        items: list[LineInput] | None = None,
        correction_reason: str | None = None,
    ) -> Sale:
        """Apply a correction; returns the sale untouched when nothing actually changes."""
        sale = self.get_sale(sale_id)
        ensure_sale_mutable(sale)
        old = sale_snapshot(sale)

        new_branch = sale.branch
        if branch_id is not _UNSET and branch_id and str(branch_id) != str(sale.branch_id):
            new_branch = require_branch(self.db, self.context, branch_id)

        if items is not None:
            lines = self._resolve_lines(items, existing=list(sale.items))
            item_changes = diff_line_items(list(sale.items), lines)
            new_amount = self._total(lines)
            new_line_snapshots = [line.snapshot() for line in lines]
        else:
            lines = None
            item_changes = {"created": [], "updated": [], "deleted": []}
            new_amount = sale.amount
            new_line_snapshots = old["sale_line_items"]

        new_sale_date = sale.sale_date if sale_date is _UNSET or sale_date is None else to_utc_naive(sale_date)
        new = {
            **old,
            "amount": float(new_amount),
            "customer_name": old["customer_name"] if customer_name is _UNSET else customer_name,
            "notes": old["notes"] if notes is _UNSET else notes,
            "sale_date": new_sale_date.isoformat(),
            "branch_id": str(new_branch.id),
            "branch_name": new_branch.name,
            "sale_line_items": new_line_snapshots,
        }

        changes = detect_sale_changes(old, new, item_changes)
        if not has_any_changes(changes):
            return sale

        if changes["customer"]:
            sale.customer_name = (new["customer_name"] or "").strip() or None
        if changes["notes"]:
            sale.notes = (new["notes"] or "").strip() or None
        if changes["date"]:
            sale.sale_date = new_sale_date
        if changes["branch"]:
            sale.branch_id = new_branch.id
        if lines is not None and changes["items"]:
            self._apply_lines(sale, lines)
        sale.amount = new_amount
        sale.last_updated_by = self.actor.id
        sale = self.repo.save(sale)

        new_snapshot = sale_snapshot(sale, branch_name=new_branch.name)
        self._log(
            "update",
            sale,
            generate_sale_activity_title(changes, old, new_snapshot, self.currency),
            old_values=old,
            new_values=new_snapshot,
            metadata={
                "correction_reason": correction_reason or DEFAULT_CORRECTION_REASON,
                "item_changes": item_changes,
                "total_items_before": len(old["sale_line_items"]),
                "total_items_after": len(new_snapshot["sale_line_items"]),
                "changes_detected": changes,
            },
        )
        return sale

    @staticmethod
    def _apply_lines(sale: Sale, lines: list[ResolvedLine]) -> None:
        by_product = {str(line.product_id): line for line in sale.items}
        requested = {str(line.product.id) for line in lines}
        for line in list(sale.items):
            if str(line.product_id) not in requested:
                sale.items.remove(line)
        for line in lines:
            current = by_product.get(str(line.product.id))
            if current is None:
                sale.items.append(
                    SaleLineItem(
                        product_id=line.product.id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        total_price=line.total_price,
                    )
                )
            else:
                current.quantity = line.quantity
                current.unit_price = line.unit_price
                current.total_price = line.total_price

    def void_sale(self, sale_id, *, reason: str | None = None) -> Sale:
        sale = self.get_sale(sale_id)
        ensure_sale_mutable(sale)
        old = sale_snapshot(sale)
        sale.is_active = False
        sale.status = "voided"
        sale.last_updated_by = self.actor.id
        sale = self.repo.save(sale)
        self._log(
            "void",
            sale,
            f"Sale of {format_currency(sale.amount, self.currency)} voided",
            old_values=old,
            new_values=sale_snapshot(sale),
            metadata={"void_reason": reason} if reason else None,
        )
        return sale

    def delete_sale(self, sale_id) -> None:
        sale = self.get_sale(sale_id)
        ensure_sale_mutable(sale, allow_voided=True)
        old = sale_snapshot(sale)
        amount = sale.amount
        self.repo.delete(sale)
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type="delete",
                entity_type="sale",
                entity_id=old["id"],
                sale_id=old["id"],
                branch_id=old["branch_id"],
                description=f"Sale of {format_currency(amount, self.currency)} deleted",
                old_values=old,
            )
        )

    def generate_receipt(self, sale_id) -> dict:
        sale = self.get_sale(sale_id)
        if sale.status == "voided" or not sale.is_active:
            raise AppError(ErrorCatalog.SALE_VOIDED, details={"id": str(sale.id)})
        organization = OrganizationRepository(self.db).get_by_id(self.context.organization_id)
        sale.receipt_generated_at = datetime.utcnow()
        sale = self.repo.save(sale)
        self._log("receipt", sale, f"Receipt generated for sale of {format_currency(sale.amount, organization.currency)}")
        cashier = UserRepository(self.db).names_by_id([sale.created_by]).get(str(sale.created_by))
        return {
            "receipt_number": str(sale.id).split("-")[0].upper(),
            "sale_id": str(sale.id),
            "organization": {
                "name": organization.name,
                "address": organization.address,
                "phone": organization.phone,
                "email": organization.email,
                "logo_url": organization.logo_url,
            },
            "currency": organization.currency,
            "branch": {"id": str(sale.branch.id), "name": sale.branch.name, "location": sale.branch.location},
            "customer_name": sale.customer_name,
            "notes": sale.notes,
            "sale_date": sale.sale_date,
            "served_by": cashier,
            "items": [
                {
                    "product_name": line.product.name,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "total_price": line.total_price,
                }
                for line in sale.items
            ],
            "total": sale.amount,
            "generated_at": sale.receipt_generated_at,
        }

    def close_period(
        self,
        *,
        sale_ids: list | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        branch_id=None,
        reason: str | None = None,
        tz=None,
    ) -> dict:
        """Close active, unclosed sales of the current organization.

        Sales are picked by id, or by a date range optionally narrowed to one branch.
        """
        if not sale_ids and not (start_date and end_date):
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "Provide sale_ids or a start_date/end_date range"},
            )
        scoped_branch = resolve_branch_filter(self.context, branch_id)
        if sale_ids:
            candidates = self.repo.list_closable(
                self.context.organization_id, sale_ids=sale_ids, branch_id=scoped_branch
            )
        else:
            window = resolve_date_window(start_date, end_date, tz or resolve_timezone(None))
            candidates = self.repo.list_closable(
                self.context.organization_id,
                branch_id=scoped_branch,
                start=window.start_utc,
                end=window.end_utc,
            )

        reason = (reason or "").strip() or DEFAULT_CLOSING_REASON
        closed_at = datetime.utcnow()
        closed = self.repo.close(candidates, reason=reason, closed_by=self.actor.id, closed_at=closed_at)
        closed_ids = [str(sale.id) for sale in closed]
        metrics.add_sales_closed(len(closed_ids))

        if closed_ids:
            total = sum((sale.amount for sale in closed), Decimal("0.00"))
            self.activity.record(
                payload_from_context(
                    self.context,
                    activity_type="close",
                    entity_type="sale",
                    branch_id=scoped_branch,
                    description=f"{len(closed_ids)} sale(s) closed ({format_currency(total, self.currency)}): {reason}",
                    metadata={
                        "closing_reason": reason,
                        "affected_count": len(closed_ids),
                        "closed_sale_ids": closed_ids,
                    },
                )
            )
        return {"affected_count": len(closed_ids), "closed_sale_ids": closed_ids, "closing_reason": reason}
