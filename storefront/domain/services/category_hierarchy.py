"""Category hierarchy engine.

Pure tree helpers (build / flatten) plus the repository-backed operations the
category service composes: cycle detection, breadcrumb paths, deletion safety,
re-parenting and descendant lookups.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence

from storefront.domain.repositories.category_repository import CategoryRepository
from storefront.models.category_model import Category


@dataclass
class CategoryTreeNode:
    id: str
    name: str
    slug: str
    sort_order: int = 0
    parent_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    product_count: Optional[int] = None
    children: List["CategoryTreeNode"] = field(default_factory=list)

    @classmethod
    def from_category(
        cls, category: Category, product_count: Optional[int] = None
    ) -> "CategoryTreeNode":
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            sort_order=category.sort_order or 0,
            parent_id=category.parent_id,
            description=category.description,
            image_url=category.image_url,
            created_at=category.created_at,
            updated_at=category.updated_at,
            product_count=product_count,
        )


@dataclass
class FlatCategoryNode:
    id: str
    name: str
    slug: str
    depth: int
    sort_order: int = 0
    parent_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    product_count: Optional[int] = None


@dataclass(frozen=True)
class DeletionCheck:
    can_delete: bool
    reason: Optional[str] = None
    product_count: int = 0


def sibling_sort_key(node) -> tuple:
    # Case-insensitive first, exact spelling breaks the remaining ties
    return (node.sort_order or 0, node.name.casefold(), node.name)


class CategoryHierarchy:
    """Operations over the self-referential ``Category.parent_id`` relation."""

    def __init__(self, categories: CategoryRepository):
        self.categories = categories

    # ---------- pure tree helpers --------------------------------------------
    @staticmethod
    def build_category_tree(
        nodes: Iterable[CategoryTreeNode], parent_id: Optional[str] = None
    ) -> List[CategoryTreeNode]:
        """Nest ``nodes`` under ``parent_id``.

        Siblings are ordered by ``sort_order`` then name. Nodes whose parent is
        not part of the input never get attached and are left out. The input
        nodes are not mutated.
        """
        by_parent: Dict[Optional[str], List[CategoryTreeNode]] = defaultdict(list)
        for node in nodes:
            by_parent[node.parent_id].append(node)

        def ordered_children(key: Optional[str]) -> List[CategoryTreeNode]:
            return [
                replace(child, children=[])
                for child in sorted(by_parent.get(key, ()), key=sibling_sort_key)
            ]

        roots = ordered_children(parent_id)
        seen = {parent_id} if parent_id is not None else set()
        stack = list(roots)
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            node.children = [c for c in ordered_children(node.id) if c.id not in seen]
            stack.extend(node.children)
        return roots

    @staticmethod
    def flatten_category_tree(
        tree: Sequence[CategoryTreeNode], depth: int = 0
    ) -> List[FlatCategoryNode]:
        """Pre-order listing of ``tree`` with the nesting depth on each node."""
        result: List[FlatCategoryNode] = []
        stack = [(node, depth) for node in reversed(tree)]
        while stack:
            node, level = stack.pop()
            result.append(
                FlatCategoryNode(
                    id=node.id,
                    name=node.name,
                    slug=node.slug,
                    depth=level,
                    sort_order=node.sort_order,
                    parent_id=node.parent_id,
                    description=node.description,
                    image_url=node.image_url,
                    created_at=node.created_at,
                    updated_at=node.updated_at,
                    product_count=node.product_count,
                )
            )
            stack.extend((child, level + 1) for child in reversed(node.children or ()))
        return result

    # ---------- repository-backed operations ---------------------------------
    def has_circular_reference(
        self, category_id: str, new_parent_id: Optional[str]
    ) -> bool:
        """True when ``new_parent_id`` is ``category_id`` or one of its descendants."""
        if not new_parent_id:
            return False
        if new_parent_id == category_id:
            return True

        visited = {category_id}
        current: Optional[str] = new_parent_id
        while current is not None:
            if current in visited:
                return True
            visited.add(current)
            # Unknown ids read as roots, so dangling references end the walk
            current = self.categories.get_parent_id(current)
        return False

    def get_category_path(self, category_id: str) -> List[Category]:
        """Root-to-leaf breadcrumb; empty for an unknown id."""
        return self.categories.path_to_root(category_id)

    def count_category_products(
        self,
        category_id: str,
        include_descendants: bool = False,
        status: Optional[str] = None,
    ) -> int:
        ids = [category_id]
        if include_descendants:
            ids.extend(self.get_descendant_ids(category_id))
        return self.categories.count_active_products(ids, status=status)

    def can_delete_category(self, category_id: str) -> DeletionCheck:
        count = self.count_category_products(category_id)
        if count > 0:
            noun = "product" if count == 1 else "products"
            return DeletionCheck(
                can_delete=False,
                reason=f"Category has {count} active {noun}",
                product_count=count,
            )
        return DeletionCheck(can_delete=True)

    def move_children_to_parent(self, category_id: str) -> int:
        category = self.categories.get(category_id)
        if category is None:
            return 0
        return self.categories.reparent_children(category_id, category.parent_id)

    def get_descendant_ids(self, category_id: str) -> List[str]:
        return self.categories.descendant_ids(category_id)
