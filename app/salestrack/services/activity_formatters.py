"""Human-readable renderings of activity log values.

Snapshots stored in ``activities_log.old_values`` / ``new_values`` are plain
JSON; these helpers turn them into the one-line summaries shown next to each
activity and build the title of a sale correction.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.salestrack.db.models import DEFAULT_CURRENCY

ACTIVITY_DATE_FORMAT = "%b %d, %Y %H:%M"

HIDDEN_KEYS = (
    "id",
    "branch_id",
    "created_by",
    "expense_category_id",
    "organization_id",
    "sale_id",
    "user_id",
    "last_updated_by",
    "category_id",
    "is_active",
)

KEY_LABELS = {
    "item_changes": "Item Changes",
    "changes_detected": "Changes Detected",
    "correction_reason": "Correction Reason",
    "total_items_after": "Total Items After",
    "total_items_before": "Total Items Before",
    "customer_name": "Customer Name",
    "sale_date": "Sale Date",
    "branch_id": "Branch ID",
    "branch_name": "Branch Name",
    "user_id": "User ID",
    "created_at": "Created At",
    "updated_at": "Updated At",
}

_CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Any, currency: str = DEFAULT_CURRENCY) -> str:
    value = to_money(amount)
    if value is None:
        return "N/A"
    return f"{currency} {value}"


def _compact_currency(amount: Any, currency: str) -> str:
    value = to_money(amount)
    return f"{currency}{value}" if value is not None else f"{currency}N/A"


def parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_activity_date(value: Any) -> str:
    if value is None or value == "":
        return "N/A"
    parsed = parse_datetime(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(ACTIVITY_DATE_FORMAT)


def _product_name(item: dict) -> str:
    product = item.get("product") or item.get("products") or {}
    return item.get("product_name") or (product.get("name") if isinstance(product, dict) else None) or "Unknown Product"


def format_sale_line_items(items: list[dict] | None) -> str:
    if not items:
        return "No items"
    if len(items) == 1:
        item = items[0]
        return f"{_product_name(item)} (Qty: {item.get('quantity') or 0}, {format_currency(item.get('unit_price'))})"
    listed = ", ".join(f"{_product_name(item)} ({item.get('quantity') or 0})" for item in items)
    return f"{len(items)} items: {listed}"


def format_item_changes(changes: Any) -> str:
    if not isinstance(changes, dict):
        return "No item changes"

    summary: list[str] = []
    for item in changes.get("created") or []:
        summary.append(f"Added: {item.get('product_name') or 'Unknown Product'} (Qty: {item.get('quantity') or 0})")
    for change in changes.get("updated") or []:
        old = change.get("old") or {}
        new = change.get("new") or {}
        parts = []
        if old.get("quantity") != new.get("quantity"):
            parts.append(f"Qty: {old.get('quantity') or 0} → {new.get('quantity') or 0}")
        if to_money(old.get("unit_price")) != to_money(new.get("unit_price")):
            parts.append(f"Price: {format_currency(old.get('unit_price'))} → {format_currency(new.get('unit_price'))}")
        name = new.get("product_name") or old.get("product_name") or "Unknown Product"
        summary.append(f"Updated {name}: {', '.join(parts)}")
    for item in changes.get("deleted") or []:
        summary.append(f"Removed: {item.get('product_name') or 'Unknown Product'} (Qty: {item.get('quantity') or 0})")

    return "; ".join(summary) if summary else "No item changes"


def _status(value: Any) -> str:
    return "Active" if value else "Inactive"


def format_sale_values(values: dict) -> str:
    parts = []
    if "amount" in values:
        parts.append(f"Amount: {format_currency(values['amount'])}")
    if "customer_name" in values:
        parts.append(f"Customer: {values['customer_name'] or 'Unknown'}")
    if "notes" in values:
        parts.append(f"Notes: {values['notes'] or 'None'}")
    if "sale_date" in values:
        parts.append(f"Date: {format_activity_date(values['sale_date'])}")
    if "branch_name" in values:
        parts.append(f"Branch: {values['branch_name']}")
    if "sale_line_items" in values:
        parts.append(f"Items: {format_sale_line_items(values['sale_line_items'])}")
    if "status" in values:
        parts.append(f"Status: {str(values['status']).title()}")
    return ", ".join(parts) if parts else "No changes"


def format_product_values(values: dict) -> str:
    parts = []
    if "name" in values:
        parts.append(f"Name: {values['name']}")
    if "price" in values:
        parts.append(f"Price: {format_currency(values['price'])}")
    if "description" in values:
        parts.append(f"Description: {values['description'] or 'No description'}")
    if "category" in values:
        parts.append(f"Category: {values['category'] or 'No category'}")
    if "is_active" in values:
        parts.append(f"Status: {_status(values['is_active'])}")
    return ", ".join(parts) if parts else "No changes"


def format_branch_values(values: dict) -> str:
    parts = []
    if "name" in values:
        parts.append(f"Name: {values['name']}")
    if "location" in values:
        parts.append(f"Location: {values['location']}")
    if "is_active" in values:
        parts.append(f"Status: {_status(values['is_active'])}")
    return ", ".join(parts) if parts else "No changes"


def format_user_values(values: dict) -> str:
    parts = []
    if "full_name" in values:
        parts.append(f"Name: {values['full_name']}")
    if "email" in values:
        parts.append(f"Email: {values['email']}")
    if "role" in values:
        parts.append(f"Role: {values['role']}")
    if "branch_id" in values or "branch_name" in values:
        if values.get("branch_name"):
            parts.append(f"Branch: {values['branch_name']}")
        elif values.get("branch_id"):
            parts.append(f"Branch ID: {values['branch_id']}")
        else:
            parts.append("Branch: No branch assigned")
    if "is_active" in values:
        parts.append(f"Status: {_status(values['is_active'])}")
    return ", ".join(parts) if parts else "No changes"


def format_key_to_label(key: str) -> str:
    if key in KEY_LABELS:
        return KEY_LABELS[key]
    return " ".join(word[:1].upper() + word[1:] for word in key.split("_"))


def _format_generic(values: dict) -> str:
    parts = []
    for key, value in values.items():
        if value is None:
            continue
        label = format_key_to_label(key)
        if "date" in key or "time" in key:
            parts.append(f"{label}: {format_activity_date(value)}")
        elif "amount" in key or "price" in key or "cost" in key:
            parts.append(f"{label}: {format_currency(value)}")
        elif isinstance(value, bool):
            parts.append(f"{label}: {'Yes' if value else 'No'}")
        elif key == "item_changes" and isinstance(value, dict):
            parts.append(f"{label}: {format_item_changes(value)}")
        elif key == "changes_detected" and isinstance(value, dict):
            changed = ", ".join(field for field, flag in value.items() if flag is True)
            parts.append(f"{label}: {changed or 'None'}")
        elif key == "items" and isinstance(value, list):
            parts.append(f"{label}: {format_sale_line_items(value)}")
        elif isinstance(value, (dict, list)):
            parts.append(f"{label}: [Object]")
        else:
            parts.append(f"{label}: {value}")
    return ", ".join(parts) if parts else "No changes"


_ENTITY_FORMATTERS = {
    "sale": format_sale_values,
    "sales": format_sale_values,
    "product": format_product_values,
    "products": format_product_values,
    "branch": format_branch_values,
    "branches": format_branch_values,
    "user": format_user_values,
    "users": format_user_values,
    "user_profile": format_user_values,
    "user_profiles": format_user_values,
}


def format_activity_values(values: dict | None, entity_type: str | None = None) -> str:
    if not values:
        return "N/A"
    visible = {key: value for key, value in values.items() if key not in HIDDEN_KEYS}
    formatter = _ENTITY_FORMATTERS.get((entity_type or "").lower(), _format_generic)
    return formatter(visible)


def sale_line_item_snapshot(item) -> dict:
    return {
        "id": str(item.id) if item.id else None,
        "product_id": str(item.product_id),
        "product_name": item.product.name if item.product is not None else None,
        "quantity": item.quantity,
        "unit_price": float(item.unit_price),
        "total_price": float(item.total_price),
    }


def sale_snapshot(sale, *, branch_name: str | None = None) -> dict:
    return {
        "id": str(sale.id),
        "amount": float(sale.amount),
        "sale_date": sale.sale_date.isoformat() if sale.sale_date else None,
        "customer_name": sale.customer_name,
        "notes": sale.notes,
        "branch_id": str(sale.branch_id),
        "branch_name": branch_name or (sale.branch.name if sale.branch is not None else None),
        "status": sale.status,
        "sale_line_items": [sale_line_item_snapshot(item) for item in sale.items],
    }


def _normalize(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    return value


def detect_sale_changes(old: dict, new: dict, item_changes: dict) -> dict[str, bool]:
    return {
        "amount": to_money(old.get("amount")) != to_money(new.get("amount")),
        "customer": _normalize(old.get("customer_name")) != _normalize(new.get("customer_name")),
        "notes": _normalize(old.get("notes")) != _normalize(new.get("notes")),
        "date": parse_datetime(old.get("sale_date")) != parse_datetime(new.get("sale_date")),
        "branch": _normalize(str(old.get("branch_id") or "")) != _normalize(str(new.get("branch_id") or "")),
        "items": any(item_changes.get(kind) for kind in ("created", "updated", "deleted")),
    }


def has_any_changes(changes: dict[str, bool]) -> bool:
    return any(flag is True for flag in changes.values())


def _text_change(field: str, old_value: Any, new_value: Any, placeholder: str) -> str:
    old_value = _normalize(old_value)
    new_value = _normalize(new_value)
    if old_value is None and new_value:
        return f'{field} added: "{new_value}"'
    if old_value and new_value is None:
        return f'{field} removed: "{old_value}"'
    return f'{field} from "{old_value or placeholder}" to "{new_value or placeholder}"'


def join_phrases(phrases: list[str]) -> str:
    if len(phrases) <= 1:
        return "".join(phrases)
    if len(phrases) == 2:
        return f"{phrases[0]} and {phrases[1]}"
    return f"{', '.join(phrases[:-1])}, and {phrases[-1]}"


def generate_sale_activity_title(
    changes: dict[str, bool], old: dict, new: dict, currency: str = DEFAULT_CURRENCY
) -> str:
    fields = []
    if changes.get("amount"):
        fields.append(
            f"amount from {_compact_currency(old.get('amount'), currency)} "
            f"to {_compact_currency(new.get('amount'), currency)}"
        )
    if changes.get("customer"):
        fields.append(_text_change("customer", old.get("customer_name"), new.get("customer_name"), "Unknown"))
    if changes.get("notes"):
        fields.append(_text_change("notes", old.get("notes"), new.get("notes"), "None"))
    if changes.get("date"):
        fields.append(
            f"date from {format_activity_date(old.get('sale_date'))} to {format_activity_date(new.get('sale_date'))}"
        )
    if changes.get("branch"):
        fields.append(
            f'branch from "{old.get("branch_name") or "Unknown branch"}" '
            f'to "{new.get("branch_name") or "Unknown branch"}"'
        )
    if changes.get("items"):
        fields.append("sale items modified")

    if not fields:
        return "Sale updated with no changes"
    return f"Sale updated - {join_phrases(fields)}"
