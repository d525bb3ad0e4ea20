import datetime as dt
from typing import Optional

from sqlalchemy.exc import IntegrityError

from storefront.core.constants import ProductStatus
from storefront.domain.exceptions import (
    CategoryNotFound,
    DuplicateSku,
    InvalidCategoryReference,
    InvalidProductPrice,
    ProductAlreadyDeleted,
    ProductNotFound,
)
from storefront.domain.repositories.product_repository import ProductFilter
from storefront.domain.services.category_hierarchy import CategoryHierarchy
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.product_model import Inventory, Product
from storefront.models.user_model import User
from storefront.schemas.pagination_schema import PageMeta
from storefront.schemas.product_schema import (
    AdminProductQuery,
    ProductAdminDetail,
    ProductCreate,
    ProductDetail,
    ProductOut,
    ProductPage,
    ProductQuery,
    ProductUpdate,
)
from storefront.services.category_service import invalidate_catalog_cache
from storefront.utils.cache import cache
from storefront.utils.logger import get_logger
from storefront.utils.slug import generate_slug, unique_slug


logger = get_logger("product_service")


class ProductService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.hierarchy = CategoryHierarchy(uow.categories)

    # ---------------- helpers ------------------------------------------
    def _get_or_404(self, product_id: str) -> Product:
        product = self.uow.products.get_full(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def _ensure_category(self, category_id: Optional[str]) -> None:
        if category_id and not self.uow.categories.exists(category_id):
            raise InvalidCategoryReference(category_id)

    def _slug_for(self, name: str) -> str:
        return unique_slug(generate_slug(name) or "product", self.uow.products.slug_exists)

    def _page(self, query: ProductQuery, criteria: ProductFilter) -> ProductPage:
        if query.category_id:
            if not self.uow.categories.exists(query.category_id):
                raise CategoryNotFound(query.category_id)
            ids = [query.category_id]
            if query.include_descendants:
                ids.extend(self.hierarchy.get_descendant_ids(query.category_id))
            criteria.category_ids = ids

        products = self.uow.products.search(
            criteria,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            offset=(query.page - 1) * query.limit,
            limit=query.limit,
        )
        total = self.uow.products.count(criteria)
        return ProductPage(
            items=[ProductOut.from_product(p) for p in products],
            pagination=PageMeta.build(query.page, query.limit, total),
        )

    # ---------------- public -------------------------------------------
    @cache.cacheable(lambda self, query: f"products:list:{query.model_dump_json()}")
    def list_public(self, query: ProductQuery) -> ProductPage:
        criteria = ProductFilter(
            search=query.search,
            status=ProductStatus.ACTIVE.value,
            featured=query.featured,
            min_price=query.min_price,
            max_price=query.max_price,
        )
        return self._page(query, criteria)

    @cache.cacheable(lambda self, slug: f"products:slug:{slug}")
    def get_public(self, slug: str) -> ProductDetail:
        product = self.uow.products.get_public_by_slug(slug, ProductStatus.ACTIVE.value)
        if product is None:
            raise ProductNotFound(slug)
        return ProductDetail.from_product(product)

    # ---------------- admin --------------------------------------------
    def list_admin(self, query: AdminProductQuery) -> ProductPage:
        criteria = ProductFilter(
            search=query.search,
            status=query.status.value if query.status else None,
            featured=query.featured,
            min_price=query.min_price,
            max_price=query.max_price,
            include_deleted=query.include_deleted,
        )
        return self._page(query, criteria)

    def get_admin(self, product_id: str) -> ProductAdminDetail:
        return ProductAdminDetail.from_product(self._get_or_404(product_id))

    def create(self, payload: ProductCreate, actor: Optional[User] = None) -> ProductAdminDetail:
        """Create a product together with its inventory record."""
        with self.uow:
            if self.uow.products.sku_exists(payload.sku):
                raise DuplicateSku(payload.sku)
            self._ensure_category(payload.category_id)

            data = payload.model_dump(exclude={"initial_quantity", "low_stock_threshold"})
            data["status"] = payload.status.value
            product = Product(**data, slug=self._slug_for(payload.name))
            product.inventory = Inventory(
                quantity=payload.initial_quantity,
                low_stock_threshold=payload.low_stock_threshold,
            )
            self.uow.products.add(product)
            try:
                self.uow.products.flush()
            except IntegrityError:
                raise DuplicateSku(payload.sku)

        invalidate_catalog_cache()
        logger.info(
            f"Product created: id={product.id} sku={product.sku} "
            f"by={actor.id if actor else None}"
        )
        return self.get_admin(product.id)

    def update(
        self, product_id: str, payload: ProductUpdate, actor: Optional[User] = None
    ) -> ProductAdminDetail:
        with self.uow:
            product = self._get_or_404(product_id)
            if product.is_deleted:
                raise ProductNotFound(product_id)

            changes = payload.model_dump(exclude_unset=True)
            if "category_id" in changes:
                changes["category_id"] = changes["category_id"] or None
                self._ensure_category(changes["category_id"])
            if changes.get("status") is not None:
                changes["status"] = changes["status"].value

            new_price = changes.get("price", product.price)
            new_compare = changes.get("compare_at_price", product.compare_at_price)
            if new_compare is not None and new_price is not None and new_compare <= new_price:
                raise InvalidProductPrice("Compare at price must be greater than regular price")

            name = changes.get("name")
            if name and name != product.name:
                base = generate_slug(name) or "product"
                if base != product.slug:
                    changes["slug"] = self._slug_for(name)

            for field, value in changes.items():
                if value is None and field in ("name", "price", "status", "featured"):
                    continue
                setattr(product, field, value)
            self.uow.products.flush()

        invalidate_catalog_cache()
        logger.info(
            f"Product updated: id={product_id} fields={sorted(changes)} "
            f"by={actor.id if actor else None}"
        )
        return ProductAdminDetail.from_product(product)

    def delete(self, product_id: str, actor: Optional[User] = None) -> ProductAdminDetail:
        """Soft delete: stamp ``deleted_at`` and archive."""
        with self.uow:
            product = self._get_or_404(product_id)
            if product.is_deleted:
                raise ProductAlreadyDeleted(product_id)
            product.deleted_at = dt.datetime.now(dt.timezone.utc)
            product.status = ProductStatus.ARCHIVED.value
            self.uow.products.flush()

        invalidate_catalog_cache()
        logger.info(f"Product deleted: id={product_id} sku={product.sku} by={actor.id if actor else None}")
        return ProductAdminDetail.from_product(product)
