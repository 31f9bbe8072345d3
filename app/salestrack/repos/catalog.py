from __future__ import annotations

from sqlalchemy import func, select

from app.salestrack.db.models import ExpenseCategory, Product


class ProductRepository:
    def __init__(self, db):
        self.db = db

    def get(self, organization_id, product_id):
        stmt = select(Product).where(Product.id == product_id, Product.organization_id == organization_id)
        return self.db.execute(stmt).scalars().first()

    def get_many(self, organization_id, product_ids) -> dict[str, Product]:
        ids = list({product_id for product_id in product_ids})
        if not ids:
            return {}
        stmt = select(Product).where(Product.organization_id == organization_id, Product.id.in_(ids))
        return {str(product.id): product for product in self.db.execute(stmt).scalars().all()}

    def list(self, organization_id, *, include_inactive: bool = False):
        stmt = select(Product).where(Product.organization_id == organization_id)
        if not include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        return self.db.execute(stmt.order_by(Product.name.asc())).scalars().all()

    def save(self, product: Product) -> Product:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product


class ExpenseCategoryRepository:
    def __init__(self, db):
        self.db = db

    def get(self, organization_id, category_id):
        stmt = select(ExpenseCategory).where(
            ExpenseCategory.id == category_id,
            ExpenseCategory.organization_id == organization_id,
        )
        return self.db.execute(stmt).scalars().first()

    def get_by_name(self, organization_id, name: str):
        stmt = select(ExpenseCategory).where(
            ExpenseCategory.organization_id == organization_id,
            func.lower(ExpenseCategory.name) == name.strip().lower(),
        )
        return self.db.execute(stmt).scalars().first()

    def list(self, organization_id, *, include_inactive: bool = False):
        stmt = select(ExpenseCategory).where(ExpenseCategory.organization_id == organization_id)
        if not include_inactive:
            stmt = stmt.where(ExpenseCategory.is_active.is_(True))
        return self.db.execute(stmt.order_by(ExpenseCategory.name.asc())).scalars().all()

    def save(self, category: ExpenseCategory) -> ExpenseCategory:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category
