import unittest

import pytest

from storefront.core.constants import ProductStatus
from storefront.domain.repositories.category_repository import CategoryRepository
from storefront.domain.services.category_hierarchy import (
    CategoryHierarchy,
    CategoryTreeNode,
)
from storefront.models.category_model import Category


def node(id, parent_id=None, sort_order=0, name=None):
    return CategoryTreeNode(
        id=id, name=name or id, slug=id.lower(), sort_order=sort_order, parent_id=parent_id
    )


def structure(tree):
    """(id, parent_id) pairs of a nested tree in pre-order."""
    pairs = []
    stack = [(n, None) for n in reversed(tree)]
    while stack:
        current, parent = stack.pop()
        pairs.append((current.id, parent))
        stack.extend((child, current.id) for child in reversed(current.children))
    return pairs


class TestBuildCategoryTree(unittest.TestCase):
    def test_nests_children_under_parents(self):
        nodes = [node("root"), node("a", "root"), node("b", "a"), node("c", "root")]
        tree = CategoryHierarchy.build_category_tree(nodes)
        self.assertEqual([n.id for n in tree], ["root"])
        self.assertEqual([n.id for n in tree[0].children], ["a", "c"])
        self.assertEqual([n.id for n in tree[0].children[0].children], ["b"])

    def test_siblings_sorted_by_sort_order_then_name(self):
        nodes = [
            node("z", sort_order=2, name="Zeta"),
            node("b", sort_order=1, name="Beta"),
            node("a", sort_order=1, name="Alpha"),
        ]
        tree = CategoryHierarchy.build_category_tree(nodes)
        self.assertEqual([n.name for n in tree], ["Alpha", "Beta", "Zeta"])

    def test_name_tiebreak_ignores_case(self):
        nodes = [node("1", name="beta"), node("2", name="Alpha"), node("3", name="alpha")]
        tree = CategoryHierarchy.build_category_tree(nodes)
        self.assertEqual([n.name for n in tree], ["Alpha", "alpha", "beta"])

    def test_orphans_are_excluded(self):
        nodes = [node("root"), node("lost", "missing-parent")]
        tree = CategoryHierarchy.build_category_tree(nodes)
        self.assertEqual(structure(tree), [("root", None)])

    def test_builds_from_given_parent(self):
        nodes = [node("root"), node("a", "root"), node("b", "a")]
        tree = CategoryHierarchy.build_category_tree(nodes, parent_id="a")
        self.assertEqual([n.id for n in tree], ["b"])

    def test_input_nodes_not_mutated(self):
        nodes = [node("root"), node("a", "root")]
        CategoryHierarchy.build_category_tree(nodes)
        self.assertEqual(nodes[0].children, [])

    def test_cyclic_input_terminates(self):
        nodes = [node("root"), node("a", "root"), node("b", "a")]
        # "root" also claims to be a child of "b"
        nodes.append(node("root", "b"))
        tree = CategoryHierarchy.build_category_tree(nodes)
        ids = [pair[0] for pair in structure(tree)]
        self.assertEqual(len(ids), len(set(ids)))

    def test_deep_chain(self):
        nodes = [node("n0")] + [node(f"n{i}", f"n{i - 1}") for i in range(1, 1000)]
        tree = CategoryHierarchy.build_category_tree(nodes)
        flat = CategoryHierarchy.flatten_category_tree(tree)
        self.assertEqual(len(flat), 1000)
        self.assertEqual(flat[-1].depth, 999)


class TestFlattenCategoryTree(unittest.TestCase):
    def setUp(self):
        self.nodes = [
            node("root"),
            node("a", "root", sort_order=1),
            node("a1", "a"),
            node("b", "root", sort_order=2),
            node("other"),
        ]
        self.tree = CategoryHierarchy.build_category_tree(self.nodes)

    def test_pre_order_with_depth(self):
        flat = CategoryHierarchy.flatten_category_tree(self.tree)
        self.assertEqual(
            [(n.id, n.depth) for n in flat],
            [("other", 0), ("root", 0), ("a", 1), ("a1", 2), ("b", 1)],
        )

    def test_round_trip_preserves_structure(self):
        flat = CategoryHierarchy.flatten_category_tree(self.tree)

        # Recompute parents from depth alone
        rebuilt, ancestors = [], []
        for item in flat:
            del ancestors[item.depth:]
            parent = ancestors[-1] if ancestors else None
            rebuilt.append(node(item.id, parent, item.sort_order, item.name))
            ancestors.append(item.id)

        again = CategoryHierarchy.build_category_tree(rebuilt)
        self.assertEqual(structure(again), structure(self.tree))


@pytest.fixture
def hierarchy(db_session):
    return CategoryHierarchy(CategoryRepository(db_session))


class TestCycleDetection:
    def test_self_parent_is_cycle(self, hierarchy, make_category):
        c = make_category("Shoes")
        assert hierarchy.has_circular_reference(c.id, c.id) is True

    def test_no_parent_is_safe(self, hierarchy, make_category):
        c = make_category("Shoes")
        assert hierarchy.has_circular_reference(c.id, None) is False

    def test_descendant_as_parent_is_cycle(self, hierarchy, make_category):
        root = make_category("Root")
        a = make_category("A", root)
        b = make_category("B", a)
        assert hierarchy.has_circular_reference(root.id, b.id) is True

    def test_unrelated_parent_is_safe(self, hierarchy, make_category):
        root = make_category("Root")
        a = make_category("A", root)
        other = make_category("Other")
        assert hierarchy.has_circular_reference(a.id, other.id) is False

    def test_dangling_parent_ends_walk(self, hierarchy, db_session, make_category):
        a = make_category("A")
        b = make_category("B")
        b.parent_id = "does-not-exist"
        db_session.commit()
        assert hierarchy.has_circular_reference(a.id, b.id) is False

    def test_existing_cycle_terminates(self, hierarchy, db_session, make_category):
        a = make_category("A")
        b = make_category("B", a)
        a.parent_id = b.id
        db_session.commit()
        c = make_category("C")
        assert hierarchy.has_circular_reference(c.id, a.id) is True

    def test_thousand_node_chain(self, hierarchy, db_session):
        chain = []
        parent_id = None
        for i in range(1000):
            category = Category(id=f"chain-{i:04d}", name=f"N{i}", slug=f"n-{i}", parent_id=parent_id)
            chain.append(category)
            parent_id = category.id
        db_session.add_all(chain)
        db_session.commit()
        other = Category(id="detached", name="Detached", slug="detached")
        db_session.add(other)
        db_session.commit()

        assert hierarchy.has_circular_reference(other.id, chain[-1].id) is False
        assert hierarchy.has_circular_reference(chain[0].id, chain[-1].id) is True


class TestCategoryPath:
    def test_chain_root_to_leaf(self, hierarchy, make_category):
        root = make_category("Root")
        a = make_category("A", root)
        b = make_category("B", a)
        c = make_category("C", b)
        assert [x.id for x in hierarchy.get_category_path(c.id)] == [root.id, a.id, b.id, c.id]

    def test_root_alone(self, hierarchy, make_category):
        root = make_category("Root")
        assert [x.id for x in hierarchy.get_category_path(root.id)] == [root.id]

    def test_missing_is_empty(self, hierarchy):
        assert hierarchy.get_category_path("nope") == []

    def test_dangling_parent_stops_path(self, hierarchy, db_session, make_category):
        a = make_category("A")
        a.parent_id = "gone"
        db_session.commit()
        assert [x.id for x in hierarchy.get_category_path(a.id)] == [a.id]

    def test_deep_chain_keeps_every_ancestor(self, hierarchy, db_session):
        ids = [f"deep-{i:04d}" for i in range(300)]
        db_session.add_all(
            Category(id=cid, name=cid, slug=cid, parent_id=ids[i - 1] if i else None)
            for i, cid in enumerate(ids)
        )
        db_session.commit()

        assert [x.id for x in hierarchy.get_category_path(ids[-1])] == ids

    def test_cyclic_data_is_bounded(self, hierarchy, db_session, make_category):
        a = make_category("A")
        b = make_category("B", a)
        a.parent_id = b.id
        db_session.commit()
        path = hierarchy.get_category_path(b.id)
        assert sorted(x.id for x in path) == sorted([a.id, b.id])


class TestDeletionGuard:
    def test_empty_category_can_be_deleted(self, hierarchy, make_category):
        c = make_category("Empty")
        check = hierarchy.can_delete_category(c.id)
        assert check.can_delete is True
        assert check.reason is None

    def test_blocked_with_count(self, hierarchy, make_category, make_product):
        c = make_category("Full")
        for i in range(3):
            make_product(f"Item {i}", c)
        check = hierarchy.can_delete_category(c.id)
        assert check.can_delete is False
        assert check.product_count == 3
        assert "3" in check.reason
        assert check.reason == "Category has 3 active products"

    def test_singular_reason(self, hierarchy, make_category, make_product):
        c = make_category("One")
        make_product("Only", c)
        assert hierarchy.can_delete_category(c.id).reason == "Category has 1 active product"

    def test_soft_deleted_products_do_not_block(self, hierarchy, make_category, make_product):
        c = make_category("Ghosts")
        make_product("Gone", c, deleted=True)
        assert hierarchy.can_delete_category(c.id).can_delete is True

    def test_draft_products_still_block(self, hierarchy, make_category, make_product):
        c = make_category("Drafts")
        make_product("Draft", c, status=ProductStatus.DRAFT)
        assert hierarchy.can_delete_category(c.id).can_delete is False


class TestReparenting:
    def test_children_move_to_grandparent(self, hierarchy, db_session, make_category):
        root = make_category("Root")
        a = make_category("A", root)
        b = make_category("B", a)
        c = make_category("C", a)

        assert hierarchy.move_children_to_parent(a.id) == 2
        db_session.commit()
        db_session.refresh(b)
        db_session.refresh(c)
        assert b.parent_id == root.id
        assert c.parent_id == root.id

    def test_children_of_root_become_roots(self, hierarchy, db_session, make_category):
        a = make_category("A")
        b = make_category("B", a)
        assert hierarchy.move_children_to_parent(a.id) == 1
        db_session.commit()
        db_session.refresh(b)
        assert b.parent_id is None

    def test_missing_category_moves_nothing(self, hierarchy):
        assert hierarchy.move_children_to_parent("nope") == 0


class TestDescendants:
    def test_four_level_chain(self, hierarchy, make_category):
        root = make_category("Root")
        a = make_category("A", root)
        b = make_category("B", a)
        c = make_category("C", b)

        first = hierarchy.get_descendant_ids(root.id)
        second = hierarchy.get_descendant_ids(root.id)
        assert sorted(first) == sorted([a.id, b.id, c.id])
        assert first == second
        assert len(set(first)) == 3

    def test_leaf_has_none(self, hierarchy, make_category):
        leaf = make_category("Leaf")
        assert hierarchy.get_descendant_ids(leaf.id) == []

    def test_missing_has_none(self, hierarchy):
        assert hierarchy.get_descendant_ids("nope") == []

    def test_count_including_descendants(self, hierarchy, make_category, make_product):
        root = make_category("Root")
        child = make_category("Child", root)
        make_product("Top", root)
        make_product("Nested", child)
        assert hierarchy.count_category_products(root.id) == 1
        assert hierarchy.count_category_products(root.id, include_descendants=True) == 2
