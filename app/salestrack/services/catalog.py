from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.db.models import ExpenseCategory, Product
from app.salestrack.repos.catalog import ExpenseCategoryRepository, ProductRepository
from app.salestrack.services.activity import ActivityService, payload_from_context, snapshot
from app.salestrack.services.activity_formatters import to_money

PRODUCT_SNAPSHOT_FIELDS = ("id", "name", "description", "price", "is_active")
CATEGORY_SNAPSHOT_FIELDS = ("id", "name", "description", "is_active")


class CatalogService:
    def __init__(self, db, context: RequestContext):
        self.db = db
        self.context = context
        self.products = ProductRepository(db)
        self.categories = ExpenseCategoryRepository(db)
        self.activity = ActivityService(db)

    def _log(self, activity_type: str, entity_type: str, row, description: str, fields, before=None):
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type=activity_type,
                entity_type=entity_type,
                entity_id=str(row.id),
                branch_id=None,
                description=description,
                old_values=before,
                new_values=snapshot(row, fields),
            )
        )

    def list_products(self, *, include_inactive: bool = False):
        return self.products.list(self.context.organization_id, include_inactive=include_inactive)

    def get_product(self, product_id) -> Product:
        product = self.products.get(self.context.organization_id, product_id)
        if product is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "product", "id": str(product_id)})
        return product

    def create_product(self, *, name: str, price, description: str | None = None, created_by=None) -> Product:
        product = Product(
            organization_id=self.context.organization_id,
            name=name.strip(),
            description=(description or "").strip() or None,
            price=to_money(price),
            is_active=True,
            created_by=created_by,
        )
        product = self.products.save(product)
        self._log("create", "product", product, f"Product {product.name} created", PRODUCT_SNAPSHOT_FIELDS)
        return product

    def update_product(self, product_id, changes: dict) -> Product:
        product = self.get_product(product_id)
        before = snapshot(product, PRODUCT_SNAPSHOT_FIELDS)
        if changes.get("name"):
            product.name = changes["name"].strip()
        if "description" in changes:
            product.description = (changes["description"] or "").strip() or None
        if changes.get("price") is not None:
            product.price = to_money(changes["price"])
        if changes.get("is_active") is not None:
            product.is_active = changes["is_active"]
        product = self.products.save(product)
        self._log(
            "update", "product", product, f"Product {product.name} updated", PRODUCT_SNAPSHOT_FIELDS, before
        )
        return product

    def deactivate_product(self, product_id) -> Product:
        product = self.get_product(product_id)
        before = snapshot(product, PRODUCT_SNAPSHOT_FIELDS)
        product.is_active = False
        product = self.products.save(product)
        self._log(
            "delete", "product", product, f"Product {product.name} deactivated", PRODUCT_SNAPSHOT_FIELDS, before
        )
        return product

    def list_categories(self, *, include_inactive: bool = False):
        return self.categories.list(self.context.organization_id, include_inactive=include_inactive)

    def get_category(self, category_id) -> ExpenseCategory:
        category = self.categories.get(self.context.organization_id, category_id)
        if category is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "expense_category", "id": str(category_id)})
        return category

    def _ensure_category_name_free(self, name: str, exclude_id=None) -> None:
        existing = self.categories.get_by_name(self.context.organization_id, name)
        if existing is not None and str(existing.id) != str(exclude_id):
            raise AppError(ErrorCatalog.CATEGORY_NAME_EXISTS, details={"name": name})

    def _save_category(self, category: ExpenseCategory) -> ExpenseCategory:
        try:
            return self.categories.save(category)
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.CATEGORY_NAME_EXISTS, details={"name": category.name}) from exc

    def create_category(self, *, name: str, description: str | None = None, created_by=None) -> ExpenseCategory:
        name = name.strip()
        self._ensure_category_name_free(name)
        category = self._save_category(
            ExpenseCategory(
                organization_id=self.context.organization_id,
                name=name,
                description=(description or "").strip() or None,
                is_active=True,
                created_by=created_by,
            )
        )
        self._log(
            "create", "expense_category", category, f"Expense category {name} created", CATEGORY_SNAPSHOT_FIELDS
        )
        return category

    def update_category(self, category_id, changes: dict) -> ExpenseCategory:
        category = self.get_category(category_id)
        before = snapshot(category, CATEGORY_SNAPSHOT_FIELDS)
        if changes.get("name"):
            name = changes["name"].strip()
            self._ensure_category_name_free(name, exclude_id=category.id)
            category.name = name
        if "description" in changes:
            category.description = (changes["description"] or "").strip() or None
        if changes.get("is_active") is not None:
            category.is_active = changes["is_active"]
        category = self._save_category(category)
        self._log(
            "update",
            "expense_category",
            category,
            f"Expense category {category.name} updated",
            CATEGORY_SNAPSHOT_FIELDS,
            before,
        )
        return category

    def deactivate_category(self, category_id) -> ExpenseCategory:
        category = self.get_category(category_id)
        before = snapshot(category, CATEGORY_SNAPSHOT_FIELDS)
        category.is_active = False
        category = self._save_category(category)
        self._log(
            "delete",
            "expense_category",
            category,
            f"Expense category {category.name} deactivated",
            CATEGORY_SNAPSHOT_FIELDS,
            before,
        )
        return category
