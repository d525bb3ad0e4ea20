import pytest

from storefront.core.constants import ProductStatus


class TestPublicCategoryAPI:
    def test_list_only_categories_with_active_products(self, client, make_category, make_product):
        shoes = make_category("Shoes")
        make_category("Empty")
        hats = make_category("Hats")
        make_product("Sneaker", shoes)
        make_product("Boot", shoes)
        make_product("Draft Hat", hats, status=ProductStatus.DRAFT)

        resp = client.get("/api/v1/categories")
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert [c["id"] for c in data] == [shoes.id]
        assert data[0]["product_count"] == 2

    def test_list_all_as_tree(self, client, make_category, make_product):
        root = make_category("Apparel")
        child_b = make_category("Shirts", root, sort_order=2)
        child_a = make_category("Pants", root, sort_order=1)
        make_product("Tee", child_b)

        resp = client.get(
            "/api/v1/categories",
            params={"include_children": "true", "only_with_products": "false"},
        )
        assert resp.status_code == 200, resp.text
        tree = resp.json()
        assert [n["id"] for n in tree] == [root.id]
        assert [n["id"] for n in tree[0]["children"]] == [child_a.id, child_b.id]
        assert tree[0]["children"][1]["product_count"] == 1

    def test_category_page(self, client, make_category, make_product):
        root = make_category("Apparel")
        shirts = make_category("Shirts", root)
        tees = make_category("Tees", shirts)
        make_product("Plain", shirts)
        make_product("Featured", shirts, featured=True)
        make_product("Hidden", shirts, status=ProductStatus.DRAFT)

        resp = client.get(f"/api/v1/categories/{shirts.slug}", params={"limit": 1})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["category"]["parent"]["id"] == root.id
        assert [c["id"] for c in body["category"]["children"]] == [tees.id]
        assert [p["id"] for p in body["category"]["path"]] == [root.id, shirts.id]
        assert body["pagination"]["total_items"] == 2
        assert body["pagination"]["has_next_page"] is True
        # Featured products come first by default
        assert body["products"][0]["name"] == "Featured"

    def test_category_page_not_found(self, client):
        resp = client.get("/api/v1/categories/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "CATEGORY_NOT_FOUND"


class TestAdminCategoryAccess:
    def test_requires_token(self, client):
        assert client.get("/api/v1/admin/categories").status_code == 401

    def test_customer_is_forbidden(self, client, customer_headers):
        resp = client.get("/api/v1/admin/categories", headers=customer_headers)
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"


class TestAdminCategoryAPI:
    def test_create_generates_slug(self, client, admin_headers):
        resp = client.post(
            "/api/v1/admin/categories",
            json={"name": "Running Shoes", "description": "Fast"},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["slug"] == "running-shoes"
        assert body["parent_id"] is None

    def test_create_slug_collision_gets_suffix(self, client, admin_headers):
        first = client.post("/api/v1/admin/categories", json={"name": "Bags"}, headers=admin_headers)
        second = client.post("/api/v1/admin/categories", json={"name": "Bags"}, headers=admin_headers)
        assert first.status_code == second.status_code == 201
        assert first.json()["slug"] == "bags"
        assert second.json()["slug"].startswith("bags-")

    def test_create_with_unknown_parent(self, client, admin_headers):
        resp = client.post(
            "/api/v1/admin/categories",
            json={"name": "Orphan", "parent_id": "missing"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "INVALID_PARENT"

    def test_create_validates_payload(self, client, admin_headers):
        resp = client.post(
            "/api/v1/admin/categories",
            json={"name": "Bad", "image_url": "ftp://example.com/x.png"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_update_fields(self, client, admin_headers, make_category):
        category = make_category("Old Name")
        resp = client.put(
            f"/api/v1/admin/categories/{category.id}",
            json={"name": "New Name", "sort_order": 5},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["name"] == "New Name"
        assert resp.json()["sort_order"] == 5
        # Slug stays stable
        assert resp.json()["slug"] == category.slug

    def test_update_rejects_cycle(self, client, admin_headers, make_category):
        root = make_category("Root")
        child = make_category("Child", root)
        grandchild = make_category("Grandchild", child)

        resp = client.put(
            f"/api/v1/admin/categories/{root.id}",
            json={"parent_id": grandchild.id},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "CIRCULAR_REFERENCE"

    def test_move_to_root(self, client, admin_headers, make_category):
        root = make_category("Root")
        child = make_category("Child", root)
        resp = client.put(
            f"/api/v1/admin/categories/{child.id}",
            json={"parent_id": None},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["parent_id"] is None

    def test_update_rejects_slug_change(self, client, admin_headers, make_category):
        category = make_category("Fixed")
        resp = client.put(
            f"/api/v1/admin/categories/{category.id}",
            json={"slug": "something-else"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_detail(self, client, admin_headers, make_category, make_product):
        root = make_category("Root")
        middle = make_category("Middle", root)
        make_category("Leaf", middle)
        make_product("Thing", middle)

        resp = client.get(f"/api/v1/admin/categories/{middle.id}", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["parent"]["id"] == root.id
        assert body["child_count"] == 1
        assert body["product_count"] == 1
        assert [p["name"] for p in body["products"]] == ["Thing"]
        assert [p["id"] for p in body["path"]] == [root.id, middle.id]

    def test_detail_not_found(self, client, admin_headers):
        resp = client.get("/api/v1/admin/categories/missing", headers=admin_headers)
        assert resp.status_code == 404

    def test_delete_blocked_by_products(self, client, admin_headers, make_category, make_product):
        category = make_category("Busy")
        for i in range(3):
            make_product(f"Item {i}", category)

        resp = client.delete(f"/api/v1/admin/categories/{category.id}", headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Category has 3 active products"

    def test_delete_reparents_children(self, client, admin_headers, make_category):
        root = make_category("Root")
        middle = make_category("Middle", root)
        b = make_category("B", middle)
        c = make_category("C", middle)

        resp = client.delete(f"/api/v1/admin/categories/{middle.id}", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["children_moved"] == 2

        for child in (b, c):
            detail = client.get(f"/api/v1/admin/categories/{child.id}", headers=admin_headers)
            assert detail.json()["parent_id"] == root.id
        gone = client.get(f"/api/v1/admin/categories/{middle.id}", headers=admin_headers)
        assert gone.status_code == 404

    def test_delete_releases_soft_deleted_products(
        self, client, admin_headers, make_category, make_product
    ):
        category = make_category("Retired")
        product = make_product("Old", category, deleted=True)

        resp = client.delete(f"/api/v1/admin/categories/{category.id}", headers=admin_headers)
        assert resp.status_code == 200, resp.text

        detail = client.get(f"/api/v1/admin/products/{product.id}", headers=admin_headers)
        assert detail.json()["category_id"] is None

    def test_descendants(self, client, admin_headers, make_category, make_product):
        root = make_category("Root")
        a = make_category("A", root)
        b = make_category("B", a)
        make_product("Deep", b)
        make_product("Top", root)

        resp = client.get(f"/api/v1/admin/categories/{root.id}/descendants", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert sorted(body["descendant_ids"]) == sorted([a.id, b.id])
        assert body["product_count"] == 2

    @pytest.mark.parametrize("parent_filter", ["root", "null"])
    def test_list_roots_only(self, client, admin_headers, make_category, parent_filter):
        root = make_category("Root")
        make_category("Child", root)

        resp = client.get(
            "/api/v1/admin/categories",
            params={"parent_id": parent_filter},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert [c["id"] for c in body["items"]] == [root.id]
        assert body["pagination"]["total_items"] == 1

    def test_list_search_and_paginate(self, client, admin_headers, make_category):
        for name in ("Red Shoes", "Blue Shoes", "Hats"):
            make_category(name)

        resp = client.get(
            "/api/v1/admin/categories",
            params={"search": "shoes", "limit": 1, "sort_by": "name"},
            headers=admin_headers,
        )
        body = resp.json()
        assert [c["name"] for c in body["items"]] == ["Blue Shoes"]
        assert body["pagination"]["total_pages"] == 2

    def test_list_as_tree(self, client, admin_headers, make_category):
        root = make_category("Root")
        child = make_category("Child", root)

        resp = client.get(
            "/api/v1/admin/categories",
            params={"include_children": "true"},
            headers=admin_headers,
        )
        tree = resp.json()
        assert [n["id"] for n in tree] == [root.id]
        assert [n["id"] for n in tree[0]["children"]] == [child.id]

    def test_list_flattened_tree(self, client, admin_headers, make_category):
        root = make_category("Root")
        child = make_category("Child", root)
        grandchild = make_category("Grandchild", child)
        other = make_category("Another Root")

        resp = client.get(
            "/api/v1/admin/categories",
            params={"include_children": "true", "flatten": "true", "sort_by": "name"},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert [(n["id"], n["depth"]) for n in resp.json()] == [
            (other.id, 0),
            (root.id, 0),
            (child.id, 1),
            (grandchild.id, 2),
        ]
