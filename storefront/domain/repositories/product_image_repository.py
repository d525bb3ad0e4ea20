from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.domain.repositories.base_sqlalchemy import SQLAlchemyRepository
from storefront.models.product_model import ProductImage


class ProductImageRepository(SQLAlchemyRepository[ProductImage, str]):
    def __init__(self, db: Session):
        super().__init__(ProductImage, db)

    def get_by_product(self, product_id: str) -> List[ProductImage]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.sort_order, ProductImage.created_at)
        )
        return list(self.db.scalars(stmt).all())

    def get_for_product(self, product_id: str, image_id: str) -> Optional[ProductImage]:
        stmt = select(ProductImage).where(
            ProductImage.id == image_id, ProductImage.product_id == product_id
        )
        return self.db.scalar(stmt)

    def count_for_product(self, product_id: str) -> int:
        stmt = select(func.count(ProductImage.id)).where(ProductImage.product_id == product_id)
        return self.db.scalar(stmt) or 0

    def max_sort_order(self, product_id: str) -> int:
        """Highest sort order used by the product, ``-1`` when it has no images."""
        stmt = select(func.max(ProductImage.sort_order)).where(
            ProductImage.product_id == product_id
        )
        value = self.db.scalar(stmt)
        return -1 if value is None else value

    def clear_primary(self, product_id: str, keep_id: Optional[str] = None) -> None:
        stmt = update(ProductImage).where(
            ProductImage.product_id == product_id, ProductImage.is_primary.is_(True)
        )
        if keep_id is not None:
            stmt = stmt.where(ProductImage.id != keep_id)
        self.db.execute(
            stmt.values(is_primary=False).execution_options(synchronize_session="fetch")
        )

    def first_remaining(self, product_id: str, exclude_id: str) -> Optional[ProductImage]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id, ProductImage.id != exclude_id)
            .order_by(ProductImage.sort_order, ProductImage.created_at)
            .limit(1)
        )
        return self.db.scalar(stmt)
