# tests/test_catalog_api.py
import pytest

from storefront.models.enums import UserRole

API = "/api/v1"


@pytest.fixture
def seller(make_user, login):
    make_user(email="seller@x.com", role=UserRole.SELLER)
    return login("seller@x.com")


def _category(client, headers, name="Electronics", **extra):
    res = client.post(f"{API}/categories", headers=headers, json={"name": name, **extra})
    assert res.status_code == 201, res.text
    return res.json()["data"]


def _product(client, headers, category_id, name="Phone X", sku="PHX-1", **extra):
    body = {"name": name, "sku": sku, "price": 499.99, "categoryId": category_id, **extra}
    res = client.post(f"{API}/products", headers=headers, json=body)
    assert res.status_code == 201, res.text
    return res.json()["data"]


# ---------- categories ----------
def test_catalog_writes_need_seller_or_admin(client, make_user, login):
    res = client.post(f"{API}/categories", json={"name": "Books"})
    assert res.status_code == 401

    make_user(email="c@x.com")
    res = client.post(f"{API}/categories", headers=login("c@x.com"), json={"name": "Books"})
    assert res.status_code == 403


def test_create_category_derives_slug_and_rejects_duplicates(client, seller):
    data = _category(client, seller, name="Home & Garden")
    assert data["slug"] == "home-garden"

    res = client.post(f"{API}/categories", headers=seller, json={"name": "Home & Garden"})
    assert (res.status_code, res.json()["code"]) == (409, "CATEGORY_NAME_EXISTS")

    res = client.get(f"{API}/categories/slug/home-garden")
    assert res.json()["data"]["id"] == data["id"]


def test_sub_category_needs_existing_parent(client, seller):
    res = client.post(f"{API}/categories", headers=seller, json={"name": "Phones", "parentId": 999})
    assert (res.status_code, res.json()["code"]) == (404, "PARENT_CATEGORY_NOT_FOUND")

    parent = _category(client, seller)
    child = _category(client, seller, name="Phones", parent_id=parent["id"])
    assert child["parentName"] == "Electronics"

    res = client.get(f"{API}/categories", params={"parent_id": parent["id"]})
    assert [c["name"] for c in res.json()["data"]] == ["Phones"]


def test_category_cannot_be_its_own_parent(client, seller):
    cat = _category(client, seller)
    res = client.put(f"{API}/categories/{cat['id']}", headers=seller, json={"parentId": cat["id"]})
    assert (res.status_code, res.json()["code"]) == (400, "INVALID_PARENT_CATEGORY")


def test_rename_category_regenerates_slug(client, seller):
    cat = _category(client, seller)
    res = client.put(f"{API}/categories/{cat['id']}", headers=seller, json={"name": "Consumer Electronics"})
    assert res.status_code == 200
    assert res.json()["data"]["slug"] == "consumer-electronics"


def test_category_delete_is_blocked_while_in_use(client, seller):
    parent = _category(client, seller)
    child = _category(client, seller, name="Phones", parentId=parent["id"])
    product = _product(client, seller, child["id"])

    res = client.delete(f"{API}/categories/{parent['id']}", headers=seller)
    assert (res.status_code, res.json()["code"]) == (400, "CATEGORY_HAS_SUBCATEGORIES")
    res = client.delete(f"{API}/categories/{child['id']}", headers=seller)
    assert (res.status_code, res.json()["code"]) == (400, "CATEGORY_HAS_PRODUCTS")

    client.delete(f"{API}/products/{product['id']}", headers=seller)
    assert client.delete(f"{API}/categories/{child['id']}", headers=seller).status_code == 200
    assert client.get(f"{API}/categories/{child['id']}").status_code == 404


def test_active_categories_and_category_products(client, seller):
    cat = _category(client, seller)
    _category(client, seller, name="Hidden", isActive=False)
    _product(client, seller, cat["id"])

    res = client.get(f"{API}/categories/active")
    assert [c["name"] for c in res.json()["data"]] == ["Electronics"]

    res = client.get(f"{API}/categories/{cat['id']}/products")
    data = res.json()["data"]
    assert data["category"]["id"] == cat["id"]
    assert [p["sku"] for p in data["products"]] == ["PHX-1"]
    assert data["pagination"]["total"] == 1


# ---------- products ----------
def test_create_product_checks_category_and_uniqueness(client, seller):
    res = client.post(
        f"{API}/products",
        headers=seller,
        json={"name": "Ghost", "sku": "G-1", "price": 10, "categoryId": 999},
    )
    assert (res.status_code, res.json()["code"]) == (404, "CATEGORY_NOT_FOUND")

    cat = _category(client, seller)
    product = _product(client, seller, cat["id"])
    assert product["slug"] == "phone-x"
    assert product["status"] == "DRAFT"
    assert product["categoryName"] == "Electronics"
    assert product["price"] == 499.99

    res = client.post(
        f"{API}/products",
        headers=seller,
        json={"name": "Phone Y", "sku": "PHX-1", "price": 10, "categoryId": cat["id"]},
    )
    assert (res.status_code, res.json()["code"]) == (409, "PRODUCT_SKU_EXISTS")

    res = client.post(
        f"{API}/products",
        headers=seller,
        json={"name": "Phone X", "sku": "PHX-2", "price": 10, "categoryId": cat["id"]},
    )
    assert (res.status_code, res.json()["code"]) == (409, "PRODUCT_SLUG_EXISTS")


def test_product_filters_and_sorting(client, seller):
    cat = _category(client, seller)
    _product(client, seller, cat["id"], name="Cheap", sku="C-1", price=10, status="ACTIVE", stockQuantity=0)
    _product(client, seller, cat["id"], name="Mid", sku="M-1", price=50, status="ACTIVE", stockQuantity=3, brand="Acme")
    _product(client, seller, cat["id"], name="Pricey", sku="P-1", price=900, stockQuantity=1)

    res = client.get(f"{API}/products", params={"sort_by": "price", "sort_order": "asc"})
    assert [p["sku"] for p in res.json()["data"]] == ["C-1", "M-1", "P-1"]

    res = client.get(f"{API}/products", params={"min_price": 20, "max_price": 100})
    assert [p["sku"] for p in res.json()["data"]] == ["M-1"]

    res = client.get(f"{API}/products", params={"in_stock": "true", "sort_by": "name", "sort_order": "asc"})
    assert [p["sku"] for p in res.json()["data"]] == ["M-1", "P-1"]

    res = client.get(f"{API}/products/active", params={"sort_by": "price", "sort_order": "desc"})
    assert [p["sku"] for p in res.json()["data"]] == ["M-1", "C-1"]

    res = client.get(f"{API}/products", params={"brand": "Acme"})
    assert res.json()["pagination"]["total"] == 1

    res = client.get(f"{API}/products", params={"sort_by": "colour"})
    assert res.status_code == 400


def test_search_featured_and_by_category(client, seller):
    cat = _category(client, seller)
    _product(client, seller, cat["id"], name="Wireless Mouse", sku="WM-1", status="ACTIVE", isFeatured=True)
    _product(client, seller, cat["id"], name="Keyboard", sku="KB-1", description="wireless keys", status="ACTIVE")
    _product(client, seller, cat["id"], name="Draft Mouse", sku="DM-1", isFeatured=True)

    res = client.get(f"{API}/products/search", params={"q": "wireless"})
    assert {p["sku"] for p in res.json()["data"]} == {"WM-1", "KB-1"}

    res = client.get(f"{API}/products/search", params={"q": "w"})
    assert (res.status_code, res.json()["code"]) == (400, "INVALID_SEARCH_QUERY")

    res = client.get(f"{API}/products/featured")
    assert [p["sku"] for p in res.json()["data"]] == ["WM-1"]

    res = client.get(f"{API}/products/category/{cat['id']}")
    assert res.json()["pagination"]["total"] == 3
    assert client.get(f"{API}/products/category/999").status_code == 404


def test_update_stock_and_soft_delete(client, seller):
    cat = _category(client, seller)
    product = _product(client, seller, cat["id"])

    res = client.patch(f"{API}/products/{product['id']}/stock", headers=seller, json={"stockQuantity": 12})
    assert res.json()["data"]["stockQuantity"] == 12

    res = client.patch(f"{API}/products/{product['id']}/stock", headers=seller, json={"stockQuantity": -1})
    assert res.status_code == 400

    res = client.put(f"{API}/products/{product['id']}", headers=seller, json={"name": "Phone X Pro"})
    assert res.json()["data"]["slug"] == "phone-x-pro"
    assert client.get(f"{API}/products/slug/phone-x-pro").status_code == 200

    assert client.delete(f"{API}/products/{product['id']}", headers=seller).status_code == 200
    res = client.get(f"{API}/products/{product['id']}")
    assert (res.status_code, res.json()["code"]) == (404, "PRODUCT_NOT_FOUND")


def test_product_images_keep_a_single_primary(client, seller):
    cat = _category(client, seller)
    product = _product(client, seller, cat["id"])
    url = f"{API}/products/{product['id']}/images"

    first = client.post(url, headers=seller, json={"imageUrl": "https://cdn.x.com/1.jpg"}).json()["data"]
    second = client.post(url, headers=seller, json={"imageUrl": "https://cdn.x.com/2.jpg"}).json()["data"]
    assert first["isPrimary"] is True and first["sortOrder"] == 1
    assert second["isPrimary"] is False and second["sortOrder"] == 2

    res = client.put(f"{url}/{second['id']}/primary", headers=seller)
    assert res.status_code == 200
    images = client.get(f"{API}/products/{product['id']}").json()["data"]["images"]
    assert [i["isPrimary"] for i in images] == [False, True]

    assert client.delete(f"{url}/{second['id']}", headers=seller).status_code == 200
    images = client.get(f"{API}/products/{product['id']}").json()["data"]["images"]
    assert [(i["id"], i["isPrimary"]) for i in images] == [(first["id"], True)]

    res = client.delete(f"{url}/9999", headers=seller)
    assert (res.status_code, res.json()["code"]) == (404, "PRODUCT_IMAGE_NOT_FOUND")
