from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, aliased, selectinload

from storefront.core.constants import SortDirection
from storefront.domain.repositories.base_sqlalchemy import SQLAlchemyRepository
from storefront.models.category_model import Category
from storefront.models.product_model import Product
from storefront.utils.logger import get_logger


logger = get_logger("category_repository")

SORTABLE_FIELDS = {
    "name": Category.name,
    "sort_order": Category.sort_order,
    "created_at": Category.created_at,
    "updated_at": Category.updated_at,
}


class CategoryRepository(SQLAlchemyRepository[Category, str]):
    def __init__(self, db: Session):
        super().__init__(Category, db)

    # ---------- lookups -----------------------------------------------------
    def get_by_slug(self, slug: str) -> Optional[Category]:
        stmt = select(Category).where(Category.slug == slug)
        return self.db.scalar(stmt)

    def get_with_relations(self, category_id: str) -> Optional[Category]:
        stmt = (
            select(Category)
            .options(selectinload(Category.parent), selectinload(Category.children))
            .where(Category.id == category_id)
        )
        return self.db.scalar(stmt)

    def slug_exists(self, slug: str) -> bool:
        stmt = select(Category.id).where(Category.slug == slug).limit(1)
        return self.db.scalar(stmt) is not None

    def get_parent_id(self, category_id: str) -> Optional[str]:
        """Parent of ``category_id``; ``None`` for roots and unknown ids alike."""
        stmt = select(Category.parent_id).where(Category.id == category_id)
        return self.db.scalar(stmt)

    def children_of(self, parent_id: Optional[str]) -> List[Category]:
        stmt = select(Category).order_by(Category.sort_order, Category.name)
        if parent_id is None:
            stmt = stmt.where(Category.parent_id.is_(None))
        else:
            stmt = stmt.where(Category.parent_id == parent_id)
        return list(self.db.scalars(stmt).all())

    def list_all(self) -> List[Category]:
        stmt = select(Category).order_by(Category.sort_order, Category.name)
        return list(self.db.scalars(stmt).all())

    # ---------- hierarchy queries ------------------------------------------
    def path_to_root(self, category_id: str) -> List[Category]:
        """Ancestors of ``category_id`` plus itself, root first.

        One recursive query fetches the whole ancestor set; UNION drops rows
        already seen, so cyclic data terminates without a depth limit. The
        order is then recovered by following ``parent_id`` from the node up.
        """
        chain = (
            select(Category.id.label("id"), Category.parent_id.label("parent_id"))
            .where(Category.id == category_id)
            .cte("category_path", recursive=True)
        )
        ancestor = aliased(Category)
        chain = chain.union(
            select(ancestor.id, ancestor.parent_id).join(chain, ancestor.id == chain.c.parent_id)
        )
        stmt = select(Category).join(chain, Category.id == chain.c.id)
        by_id = {category.id: category for category in self.db.scalars(stmt).all()}

        path: List[Category] = []
        seen = set()
        current = by_id.get(category_id)
        while current is not None and current.id not in seen:
            seen.add(current.id)
            path.append(current)
            current = by_id.get(current.parent_id)
        path.reverse()
        return path

    def descendant_ids(self, category_id: str) -> List[str]:
        """Every id below ``category_id``. UNION keeps cyclic data finite."""
        tree = (
            select(Category.id.label("id"))
            .where(Category.parent_id == category_id)
            .cte("category_descendants", recursive=True)
        )
        child = aliased(Category)
        tree = tree.union(
            select(child.id).join(tree, child.parent_id == tree.c.id)
        )
        stmt = select(tree.c.id).where(tree.c.id != category_id).order_by(tree.c.id)
        return list(self.db.scalars(stmt).all())

    # ---------- writes -------------------------------------------------------
    def reparent_children(self, category_id: str, new_parent_id: Optional[str]) -> int:
        stmt = (
            update(Category)
            .where(Category.parent_id == category_id)
            .values(parent_id=new_parent_id)
            .execution_options(synchronize_session="fetch")
        )
        moved = self.db.execute(stmt).rowcount or 0
        logger.info(f"Moved {moved} child categories of {category_id} to {new_parent_id}")
        return moved

    # ---------- product counts ----------------------------------------------
    def count_active_products(
        self, category_ids: Iterable[str], status: Optional[str] = None
    ) -> int:
        ids = list(category_ids)
        if not ids:
            return 0
        stmt = select(func.count(Product.id)).where(
            Product.category_id.in_(ids), Product.deleted_at.is_(None)
        )
        if status is not None:
            stmt = stmt.where(Product.status == status)
        return self.db.scalar(stmt) or 0

    def product_counts(self, status: Optional[str] = None) -> Dict[str, int]:
        stmt = (
            select(Product.category_id, func.count(Product.id))
            .where(Product.category_id.is_not(None), Product.deleted_at.is_(None))
            .group_by(Product.category_id)
        )
        if status is not None:
            stmt = stmt.where(Product.status == status)
        return {category_id: count for category_id, count in self.db.execute(stmt).all()}

    def list_with_product_counts(
        self, status: Optional[str] = None
    ) -> List[Tuple[Category, int]]:
        counts = self.product_counts(status)
        return [(category, counts.get(category.id, 0)) for category in self.list_all()]

    # ---------- admin listing -----------------------------------------------
    def _filtered(self, stmt, search: Optional[str], parent_id: Optional[str], root_only: bool):
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(Category.name.ilike(pattern), Category.description.ilike(pattern))
            )
        if root_only:
            stmt = stmt.where(Category.parent_id.is_(None))
        elif parent_id:
            stmt = stmt.where(Category.parent_id == parent_id)
        return stmt

    def search(
        self,
        *,
        search: Optional[str] = None,
        parent_id: Optional[str] = None,
        root_only: bool = False,
        sort_by: str = "sort_order",
        sort_order: SortDirection = SortDirection.ASC,
        offset: int = 0,
        limit: Optional[int] = 100,
    ) -> Sequence[Category]:
        column = SORTABLE_FIELDS.get(sort_by, Category.sort_order)
        ordering = column.desc() if sort_order == SortDirection.DESC else column.asc()
        stmt = self._filtered(select(Category), search, parent_id, root_only)
        stmt = stmt.order_by(ordering, Category.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.db.scalars(stmt).all()

    def count(
        self,
        *,
        search: Optional[str] = None,
        parent_id: Optional[str] = None,
        root_only: bool = False,
    ) -> int:
        stmt = self._filtered(select(func.count(Category.id)), search, parent_id, root_only)
        return self.db.scalar(stmt) or 0
