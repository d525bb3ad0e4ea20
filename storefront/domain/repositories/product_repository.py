from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.core.constants import SortDirection
from storefront.domain.repositories.base_sqlalchemy import SQLAlchemyRepository
from storefront.models.product_model import Product


SORTABLE_FIELDS = {
    "name": Product.name,
    "price": Product.price,
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
}


@dataclass
class ProductFilter:
    """Criteria shared by the page query and its total count."""

    search: Optional[str] = None
    category_ids: Optional[List[str]] = None
    status: Optional[str] = None
    featured: Optional[bool] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    include_deleted: bool = False


class ProductRepository(SQLAlchemyRepository[Product, str]):
    def __init__(self, db: Session):
        super().__init__(Product, db)

    # ---------- lookups -----------------------------------------------------
    def get_full(self, product_id: str) -> Optional[Product]:
        stmt = (
            select(Product)
            .options(
                selectinload(Product.category),
                selectinload(Product.images),
                selectinload(Product.inventory),
            )
            .where(Product.id == product_id)
        )
        return self.db.scalar(stmt)

    def get_public_by_slug(self, slug: str, status: str) -> Optional[Product]:
        stmt = (
            select(Product)
            .options(
                selectinload(Product.category),
                selectinload(Product.images),
                selectinload(Product.inventory),
            )
            .where(
                Product.slug == slug,
                Product.status == status,
                Product.deleted_at.is_(None),
            )
        )
        return self.db.scalar(stmt)

    def sku_exists(self, sku: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(Product.id).where(Product.sku == sku)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        return self.db.scalar(stmt.limit(1)) is not None

    def slug_exists(self, slug: str) -> bool:
        stmt = select(Product.id).where(Product.slug == slug).limit(1)
        return self.db.scalar(stmt) is not None

    # ---------- listing -----------------------------------------------------
    def _filtered(self, stmt, criteria: ProductFilter):
        if not criteria.include_deleted:
            stmt = stmt.where(Product.deleted_at.is_(None))
        if criteria.search:
            pattern = f"%{criteria.search}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )
        if criteria.category_ids is not None:
            stmt = stmt.where(Product.category_id.in_(criteria.category_ids))
        if criteria.status is not None:
            stmt = stmt.where(Product.status == criteria.status)
        if criteria.featured is not None:
            stmt = stmt.where(Product.featured.is_(criteria.featured))
        if criteria.min_price is not None:
            stmt = stmt.where(Product.price >= criteria.min_price)
        if criteria.max_price is not None:
            stmt = stmt.where(Product.price <= criteria.max_price)
        return stmt

    def search(
        self,
        criteria: ProductFilter,
        *,
        sort_by: str = "created_at",
        sort_order: SortDirection = SortDirection.DESC,
        offset: int = 0,
        limit: int = 20,
    ) -> Sequence[Product]:
        if sort_by == "featured":
            ordering = (Product.featured.desc(), Product.created_at.desc())
        else:
            column = SORTABLE_FIELDS.get(sort_by, Product.created_at)
            ordering = (column.desc() if sort_order == SortDirection.DESC else column.asc(),)
        stmt = (
            self._filtered(select(Product), criteria)
            .options(selectinload(Product.images), selectinload(Product.inventory))
            .order_by(*ordering, Product.id)
            .offset(offset)
            .limit(limit)
        )
        return self.db.scalars(stmt).all()

    def count(self, criteria: ProductFilter) -> int:
        stmt = self._filtered(select(func.count(Product.id)), criteria)
        return self.db.scalar(stmt) or 0

    def list_for_category(self, category_id: str, limit: int = 10) -> Sequence[Product]:
        stmt = (
            select(Product)
            .where(Product.category_id == category_id, Product.deleted_at.is_(None))
            .order_by(Product.created_at.desc(), Product.id)
            .limit(limit)
        )
        return self.db.scalars(stmt).all()

    # ---------- writes -------------------------------------------------------
    def detach_from_category(self, category_id: str) -> int:
        """Null the category of every product still pointing at ``category_id``."""
        stmt = (
            update(Product)
            .where(Product.category_id == category_id)
            .values(category_id=None)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount or 0
