"""API tests for categories and suppliers."""

CATEGORIES = "/api/v1/categories"
SUPPLIERS = "/api/v1/suppliers"


# ── Categories ───────────────────────────────────────────────────────

async def test_list_categories_with_counts(client):
    resp = await client.get(CATEGORIES)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [c["categoryName"] for c in data] == ["Beverages", "Condiments", "Produce"]
    beverages, condiments, produce = data
    assert (beverages["productCount"], beverages["activeProductCount"]) == (12, 11)
    assert beverages["isPopular"] is True
    assert (condiments["productCount"], condiments["activeProductCount"]) == (8, 7)
    assert condiments["isPopular"] is False
    assert produce["productCount"] == 0
    assert produce["hasProducts"] is False


async def test_search_categories(client):
    resp = await client.get(CATEGORIES, params={"search": "sauces"})
    assert [c["categoryId"] for c in resp.json()["data"]] == [2]


async def test_get_category_with_products(client):
    resp = await client.get(f"{CATEGORIES}/2", params={"includeProducts": "true"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["productCount"] == 8
    names = [p["productName"] for p in data["products"]]
    assert names == sorted(names)
    assert all("stockStatus" in p for p in data["products"])


async def test_category_products(client):
    resp = await client.get(f"{CATEGORIES}/2/products", params={"lowStock": "true"})
    assert resp.status_code == 200
    assert [p["productId"] for p in resp.json()["data"]] == [17]
    assert (await client.get(f"{CATEGORIES}/99/products")).status_code == 404


async def test_category_statistics(client):
    resp = await client.get(f"{CATEGORIES}/statistics")
    assert resp.status_code == 200
    by_name = {c["categoryName"]: c for c in resp.json()["data"]}
    beverages = by_name["Beverages"]["statistics"]
    assert beverages["totalProducts"] == 12
    assert beverages["activeProducts"] == 11
    assert beverages["discontinuedProducts"] == 1
    assert beverages["maxPrice"] == 263.5
    assert by_name["Beverages"]["healthScore"] == 92
    assert by_name["Condiments"]["hasLowStockProducts"] is True
    assert by_name["Produce"]["statistics"]["totalProducts"] == 0
    assert by_name["Produce"]["healthScore"] == 0


async def test_category_sales_by_year(client):
    resp = await client.get(f"{CATEGORIES}/beverages/sales/2023")
    assert resp.status_code == 200
    assert resp.json()["data"] == [
        {"productName": "Chai", "totalPurchase": 216.0},
        {"productName": "Chang", "totalPurchase": 190.0},
        {"productName": "Steeleye Stout", "totalPurchase": 180.0},
    ]

    resp = await client.get(f"{CATEGORIES}/Condiments/sales/2023")
    assert resp.json()["data"] == [
        {"productName": "Chef Anton's Cajun Seasoning", "totalPurchase": 198.0},
        {"productName": "Louisiana Hot Spiced Okra", "totalPurchase": 510.0},
    ]

    resp = await client.get(f"{CATEGORIES}/Beverages/sales/2024")
    assert resp.json()["data"] == []


async def test_category_sales_year_is_validated(client):
    resp = await client.get(f"{CATEGORIES}/Beverages/sales/999")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_category(client, user_headers):
    resp = await client.post(
        CATEGORIES, json={"categoryName": "Seafood", "description": "Fish"}, headers=user_headers
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["categoryName"] == "Seafood"
    assert data["productCount"] == 0


async def test_create_category_duplicate_name(client, user_headers):
    resp = await client.post(CATEGORIES, json={"categoryName": "beverages"}, headers=user_headers)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "DUPLICATE_KEY"
    assert error["field"] == "categoryName"


async def test_create_category_name_rules(client, user_headers):
    for name in ("12345", "A" * 16, ""):
        resp = await client.post(CATEGORIES, json={"categoryName": name}, headers=user_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_update_category(client, user_headers):
    resp = await client.put(
        f"{CATEGORIES}/1", json={"categoryName": "Beverages", "description": "Drinks"},
        headers=user_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["description"] == "Drinks"
    assert data["productCount"] == 12

    resp = await client.put(
        f"{CATEGORIES}/3", json={"categoryName": "Condiments"}, headers=user_headers
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "DUPLICATE_KEY"


async def test_delete_category_with_products_needs_force(client, admin_headers):
    resp = await client.delete(f"{CATEGORIES}/1", headers=admin_headers)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["dependents"] == 12
    assert error["dependentType"] == "products"

    resp = await client.delete(f"{CATEGORIES}/1", params={"force": "true"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "deletedCategoryId": 1,
        "categoryName": "Beverages",
        "affectedProducts": 12,
    }
    chai = (await client.get("/api/v1/products/1")).json()["data"]
    assert chai["categoryId"] is None


async def test_delete_empty_category(client, admin_headers, user_headers):
    assert (await client.delete(f"{CATEGORIES}/3", headers=user_headers)).status_code == 403
    resp = await client.delete(f"{CATEGORIES}/3", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["affectedProducts"] == 0
    assert (await client.get(f"{CATEGORIES}/3")).status_code == 404


# ── Suppliers ────────────────────────────────────────────────────────

async def test_list_suppliers(client):
    resp = await client.get(SUPPLIERS)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [s["supplierId"] for s in data] == [1, 2, 3]
    assert [s["productCount"] for s in data] == [13, 7, 0]
    assert data[0]["fullAddress"] == "49 Gilbert St., London, EC1 4SD, UK"


async def test_filter_suppliers_by_country(client):
    resp = await client.get(SUPPLIERS, params={"country": "uk"})
    assert [s["supplierId"] for s in resp.json()["data"]] == [1]


async def test_supplier_statistics(client):
    data = (await client.get(f"{SUPPLIERS}/statistics")).json()["data"]
    assert data["totalSuppliers"] == 3
    assert data["suppliersWithProducts"] == 2
    assert data["suppliersWithoutProducts"] == 1
    assert [(s["supplierId"], s["productCount"]) for s in data["topSuppliersByProductCount"]] == [
        (1, 13),
        (2, 7),
        (3, 0),
    ]


async def test_supplier_countries(client):
    data = (await client.get(f"{SUPPLIERS}/countries")).json()["data"]
    assert data == [
        {"country": "Japan", "supplierCount": 1},
        {"country": "UK", "supplierCount": 1},
        {"country": "USA", "supplierCount": 1},
    ]


async def test_supplier_products(client):
    resp = await client.get(f"{SUPPLIERS}/2/products", params={"sort": "productId"})
    assert [p["productId"] for p in resp.json()["data"]] == [4, 5, 6, 17, 18, 19, 20]
    resp = await client.get(f"{SUPPLIERS}/3/products")
    assert resp.json()["pagination"]["total"] == 0
    assert (await client.get(f"{SUPPLIERS}/99/products")).status_code == 404


async def test_create_supplier(client, user_headers):
    resp = await client.post(
        SUPPLIERS,
        json={"companyName": "Pavlova, Ltd.", "country": "Australia", "email": "orders@pavlova.com"},
        headers=user_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["productCount"] == 0

    resp = await client.post(
        SUPPLIERS, json={"companyName": "Bad", "email": "not-an-email"}, headers=user_headers
    )
    assert resp.status_code == 400


async def test_update_supplier(client, user_headers):
    resp = await client.put(f"{SUPPLIERS}/3", json={"city": "Osaka"}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["city"] == "Osaka"
    assert resp.json()["data"]["companyName"] == "Tokyo Traders"


async def test_delete_supplier(client, admin_headers):
    resp = await client.delete(f"{SUPPLIERS}/2", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["dependents"] == 7

    resp = await client.delete(f"{SUPPLIERS}/2", params={"force": "true"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["affectedProducts"] == 7
    okra = (await client.get("/api/v1/products/17")).json()["data"]
    assert okra["supplierId"] is None
