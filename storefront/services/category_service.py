from typing import List, Optional, Union

from sqlalchemy.exc import IntegrityError

from storefront.core.constants import ProductStatus
from storefront.domain.exceptions import (
    CategoryDeletionBlocked,
    CategoryNotFound,
    CircularCategoryReference,
    InvalidParentCategory,
    SlugConflict,
)
from storefront.domain.repositories.product_repository import ProductFilter
from storefront.domain.services.category_hierarchy import (
    CategoryHierarchy,
    CategoryTreeNode,
)
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.category_model import Category
from storefront.models.user_model import User
from storefront.schemas.category_schema import CategorySchema, CategorySummary
from storefront.schemas.pagination_schema import PageMeta
from storefront.schemas.product_schema import (
    CategoryProductsQuery,
    CategoryStorefront,
    CategoryView,
    ProductOut,
)
from storefront.utils.cache import cache
from storefront.utils.logger import get_logger
from storefront.utils.slug import generate_slug, unique_slug


logger = get_logger("category_service")

ACTIVE = ProductStatus.ACTIVE.value


def invalidate_catalog_cache() -> None:
    cache.invalidate("categories")
    cache.invalidate("products")


class CategoryService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.hierarchy = CategoryHierarchy(uow.categories)

    # ---------------- helpers ------------------------------------------
    def _get_or_404(self, category_id: str) -> Category:
        category = self.uow.categories.get(category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    def _ensure_parent(self, parent_id: Optional[str]) -> None:
        if parent_id and not self.uow.categories.exists(parent_id):
            raise InvalidParentCategory(parent_id)

    def _flush(self, slug: str) -> None:
        try:
            self.uow.categories.flush()
        except IntegrityError:
            raise SlugConflict(slug)

    def _out(self, category: Category, product_count: Optional[int] = None) -> CategorySchema.Out:
        out = CategorySchema.Out.model_validate(category)
        out.product_count = product_count
        return out

    # ---------------- public -------------------------------------------
    @cache.cacheable(
        lambda self, include_children, only_with_products: (
            f"categories:public:{include_children}:{only_with_products}"
        )
    )
    def list_public(
        self, include_children: bool, only_with_products: bool
    ) -> Union[List[CategorySchema.Out], List[CategorySchema.TreeNode]]:
        """Storefront category listing with ACTIVE product counts."""
        nodes = [
            CategoryTreeNode.from_category(category, count)
            for category, count in self.uow.categories.list_with_product_counts(status=ACTIVE)
        ]
        if only_with_products:
            nodes = [node for node in nodes if node.product_count]
        if include_children:
            tree = self.hierarchy.build_category_tree(nodes)
            return [CategorySchema.TreeNode.model_validate(node, from_attributes=True) for node in tree]
        return [CategorySchema.Out.model_validate(node, from_attributes=True) for node in nodes]

    @cache.cacheable(
        lambda self, slug, query: (
            f"categories:slug:{slug}:{query.page}:{query.limit}:{query.sort_by}:{query.sort_order.value}"
        )
    )
    def storefront(self, slug: str, query: CategoryProductsQuery) -> CategoryStorefront:
        category = self.uow.categories.get_by_slug(slug)
        if category is None:
            raise CategoryNotFound(slug)

        counts = self.uow.categories.product_counts(status=ACTIVE)
        children = [
            self._out(child, counts.get(child.id, 0))
            for child in self.uow.categories.children_of(category.id)
        ]
        path = [
            CategorySummary.model_validate(node)
            for node in self.hierarchy.get_category_path(category.id)
        ]

        criteria = ProductFilter(category_ids=[category.id], status=ACTIVE)
        # One session per request, so page and count run one after the other
        products = self.uow.products.search(
            criteria,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            offset=(query.page - 1) * query.limit,
            limit=query.limit,
        )
        total = self.uow.products.count(criteria)

        view = CategoryView(
            id=category.id,
            name=category.name,
            slug=category.slug,
            description=category.description,
            image_url=category.image_url,
            sort_order=category.sort_order,
            parent_id=category.parent_id,
            parent=CategorySummary.model_validate(category.parent) if category.parent else None,
            children=children,
            path=path,
        )
        return CategoryStorefront(
            category=view,
            products=[ProductOut.from_product(p) for p in products],
            pagination=PageMeta.build(query.page, query.limit, total),
        )

    # ---------------- admin --------------------------------------------
    def list_admin(
        self, query: CategorySchema.AdminQuery
    ) -> Union[CategorySchema.Page, List[CategorySchema.TreeNode], List[CategorySchema.FlatNode]]:
        filters = dict(
            search=query.search,
            parent_id=None if query.root_only else query.parent_id,
            root_only=query.root_only,
        )
        counts = self.uow.categories.product_counts()

        if query.include_children:
            categories = self.uow.categories.search(
                **filters, sort_by=query.sort_by, sort_order=query.sort_order, limit=None
            )
            nodes = [CategoryTreeNode.from_category(c, counts.get(c.id, 0)) for c in categories]
            # A filtered subset may not contain the real roots, so hang the
            # tree from whatever parents are missing from the result.
            ids = {node.id for node in nodes}
            tree = []
            for parent_id in dict.fromkeys(n.parent_id for n in nodes if n.parent_id not in ids):
                tree.extend(self.hierarchy.build_category_tree(nodes, parent_id))
            if query.flatten:
                return [
                    CategorySchema.FlatNode.model_validate(n, from_attributes=True)
                    for n in self.hierarchy.flatten_category_tree(tree)
                ]
            return [CategorySchema.TreeNode.model_validate(n, from_attributes=True) for n in tree]

        categories = self.uow.categories.search(
            **filters,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            offset=(query.page - 1) * query.limit,
            limit=query.limit,
        )
        total = self.uow.categories.count(**filters)
        return CategorySchema.Page(
            items=[self._out(c, counts.get(c.id, 0)) for c in categories],
            pagination=PageMeta.build(query.page, query.limit, total),
        )

    def get_detail(self, category_id: str) -> CategorySchema.Detail:
        category = self.uow.categories.get_with_relations(category_id)
        if category is None:
            raise CategoryNotFound(category_id)

        children = self.uow.categories.children_of(category.id)
        products = self.uow.products.list_for_category(category.id, limit=10)
        path = self.hierarchy.get_category_path(category.id)
        return CategorySchema.Detail(
            **self._out(category, self.hierarchy.count_category_products(category.id)).model_dump(),
            parent=CategorySummary.model_validate(category.parent) if category.parent else None,
            children=[self._out(child) for child in children],
            products=[CategorySchema.ProductBrief.model_validate(p) for p in products],
            child_count=len(children),
            path=[CategorySummary.model_validate(node) for node in path],
        )

    def create(self, payload: CategorySchema.Create, actor: Optional[User] = None) -> CategorySchema.Out:
        """Create a category, deriving a unique slug from the name when none is given."""
        with self.uow:
            base_slug = payload.slug or generate_slug(payload.name)
            if not base_slug:
                base_slug = "category"
            slug = unique_slug(base_slug, self.uow.categories.slug_exists)
            self._ensure_parent(payload.parent_id)

            category = Category(
                name=payload.name,
                slug=slug,
                description=payload.description,
                image_url=payload.image_url,
                sort_order=payload.sort_order,
                parent_id=payload.parent_id,
            )
            self.uow.categories.add(category)
            self._flush(slug)

        invalidate_catalog_cache()
        logger.info(
            f"Category created: id={category.id} slug={category.slug} "
            f"parent={category.parent_id} by={actor.id if actor else None}"
        )
        return self._out(category, 0)

    def update(
        self, category_id: str, payload: CategorySchema.Update, actor: Optional[User] = None
    ) -> CategorySchema.Out:
        with self.uow:
            category = self._get_or_404(category_id)
            changes = payload.model_dump(exclude_unset=True)

            if "parent_id" in changes:
                new_parent_id = changes["parent_id"] or None
                if self.hierarchy.has_circular_reference(category_id, new_parent_id):
                    raise CircularCategoryReference(category_id, new_parent_id)
                self._ensure_parent(new_parent_id)
                changes["parent_id"] = new_parent_id

            for field, value in changes.items():
                if value is None and field in ("name", "sort_order"):
                    continue
                setattr(category, field, value)
            self.uow.categories.flush()

        invalidate_catalog_cache()
        logger.info(
            f"Category updated: id={category_id} fields={sorted(changes)} "
            f"by={actor.id if actor else None}"
        )
        return self._out(category, self.hierarchy.count_category_products(category_id))

    def delete(self, category_id: str, actor: Optional[User] = None) -> CategorySchema.Deleted:
        """Guard, splice children onto the parent, then delete, in one transaction."""
        with self.uow:
            category = self._get_or_404(category_id)
            name = category.name

            check = self.hierarchy.can_delete_category(category_id)
            if not check.can_delete:
                raise CategoryDeletionBlocked(check.reason, check.product_count)

            moved = self.hierarchy.move_children_to_parent(category_id)
            # Soft-deleted products keep their row, so release the reference
            self.uow.products.detach_from_category(category_id)
            self.uow.categories.delete(category)

        invalidate_catalog_cache()
        logger.info(
            f"Category deleted: id={category_id} name={name} "
            f"children_moved={moved} by={actor.id if actor else None}"
        )
        return CategorySchema.Deleted(id=category_id, name=name, children_moved=moved)

    def descendants(self, category_id: str) -> CategorySchema.Descendants:
        self._get_or_404(category_id)
        ids = self.hierarchy.get_descendant_ids(category_id)
        count = self.uow.categories.count_active_products([category_id, *ids])
        return CategorySchema.Descendants(
            category_id=category_id, descendant_ids=ids, product_count=count
        )
