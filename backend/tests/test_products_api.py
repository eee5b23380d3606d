"""API tests for product listing, CRUD, and stock reports."""

import pytest
from sqlalchemy import update

from app.models import Product

BASE = "/api/v1/products"


def _ids(body) -> list[int]:
    return [p["productId"] for p in body["data"]]


async def _all_ids(client, **params) -> set[int]:
    resp = await client.get(BASE, params={"limit": 100, **params})
    assert resp.status_code == 200
    return set(_ids(resp.json()))


async def test_filtered_sorted_page(client):
    params = {
        "categoryId": 1,
        "minPrice": 10,
        "maxPrice": 50,
        "sort": "unitPrice",
        "order": "DESC",
        "limit": 5,
    }
    resp = await client.get(BASE, params=params)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["pagination"] == {"page": 1, "limit": 5, "total": 9, "pages": 2}
    assert _ids(body) == [8, 2, 1, 9, 10]

    resp = await client.get(BASE, params={**params, "page": 2})
    assert _ids(resp.json()) == [11, 12, 14, 16]


async def test_page_past_the_end_is_empty(client):
    resp = await client.get(BASE, params={"page": 50})
    body = resp.json()
    assert resp.status_code == 200
    assert body["data"] == []
    assert body["pagination"]["total"] == 20
    assert body["pagination"]["pages"] == 2


async def test_filters_intersect(client):
    by_category = await _all_ids(client, categoryId=2)
    low_stock = await _all_ids(client, lowStock="true")
    both = await _all_ids(client, categoryId=2, lowStock="true")
    assert both == by_category & low_stock == {17}


@pytest.mark.parametrize(
    "params, expected",
    [
        ({"priceRange": "luxury"}, [7]),
        ({"inStock": "false"}, [5, 20]),
        ({"search": "LAGER"}, [14, 12]),
        ({"supplierId": 2, "discontinued": "true"}, [5]),
        ({"categoryIds": "2", "maxPrice": "12"}, [3, 20]),
    ],
)
async def test_list_filters(client, params, expected):
    resp = await client.get(BASE, params=params)
    assert resp.status_code == 200
    assert _ids(resp.json()) == expected


async def test_derived_fields_in_listing(client):
    resp = await client.get(BASE, params={"categoryId": 2, "lowStock": "true"})
    (okra,) = resp.json()["data"]
    assert okra["productName"] == "Louisiana Hot Spiced Okra"
    assert okra["unitPrice"] == 17.0
    assert okra["stockStatus"] == "Reorder Required"
    assert okra["isLowStock"] is True
    assert okra["isOutOfStock"] is False
    assert okra["needsReorder"] is True
    assert okra["availableStock"] == 104
    assert okra["stockValue"] == 68.0
    assert okra["priceCategory"] == "Budget"
    assert okra["healthScore"] == 75
    assert "category" not in okra


async def test_include_relations(client):
    resp = await client.get(BASE, params={"search": "chai", "includeCategory": "true"})
    (chai,) = resp.json()["data"]
    assert chai["category"]["categoryName"] == "Beverages"
    assert "supplier" not in chai


async def test_invalid_query_lists_every_error(client):
    resp = await client.get(BASE, params={"limit": 500, "sort": "secret", "minPrice": "abc"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "INVALID_QUERY"
    assert error["statusCode"] == 400
    assert {e["field"] for e in error["errors"]} == {"limit", "sort", "minPrice"}


async def test_get_product(client):
    resp = await client.get(f"{BASE}/7", params={"includeSupplier": "true"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["productName"] == "Cote de Blaye"
    assert data["priceCategory"] == "Luxury"
    assert data["supplier"]["companyName"] == "Exotic Liquids"


async def test_missing_product_uses_error_envelope(client):
    resp = await client.get(f"{BASE}/999")
    assert resp.status_code == 404
    assert resp.json() == {
        "success": False,
        "error": {"code": "NOT_FOUND", "message": "Product not found", "statusCode": 404},
    }


async def test_non_positive_id_is_rejected(client):
    resp = await client.get(f"{BASE}/0")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_out_of_range_ids_are_rejected(client):
    resp = await client.get(f"{BASE}/2147483648")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    resp = await client.get(BASE, params={"categoryId": "99999999999999999999"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "INVALID_QUERY"
    assert error["errors"][0]["field"] == "categoryId"


async def test_create_requires_token(client):
    resp = await client.post(BASE, json={"productName": "Tea"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "HTTP_401"


async def test_invalid_token_is_rejected(client):
    resp = await client.post(
        BASE, json={"productName": "Tea"}, headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401


async def test_create_product(client, user_headers):
    resp = await client.post(
        BASE,
        json={
            "productName": "Earl Grey",
            "categoryId": 1,
            "supplierId": 1,
            "unitPrice": 12.5,
            "unitsInStock": 5,
        },
        headers=user_headers,
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["productId"] > 20
    assert data["unitPrice"] == 12.5
    assert data["stockStatus"] == "Low Stock"
    assert data["category"]["categoryName"] == "Beverages"

    resp = await client.get(f"{BASE}/{data['productId']}")
    assert resp.status_code == 200


async def test_create_product_body_validation(client, user_headers):
    resp = await client.post(
        BASE, json={"productName": "", "unitPrice": -1}, headers=user_headers
    )
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert {e["field"] for e in error["errors"]} == {"productName", "unitPrice"}


async def test_create_product_with_unknown_category(client, user_headers):
    resp = await client.post(
        BASE, json={"productName": "Mystery", "categoryId": 999}, headers=user_headers
    )
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "categoryId"


async def test_update_product(client, user_headers):
    resp = await client.put(f"{BASE}/1", json={"unitPrice": 20}, headers=user_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["unitPrice"] == 20.0
    assert data["priceCategory"] == "Standard"
    assert data["productName"] == "Chai"


async def test_update_missing_product(client, user_headers):
    resp = await client.put(f"{BASE}/999", json={"unitPrice": 20}, headers=user_headers)
    assert resp.status_code == 404


async def test_delete_requires_admin(client, user_headers):
    resp = await client.delete(f"{BASE}/6", headers=user_headers)
    assert resp.status_code == 403


async def test_delete_product_without_orders(client, admin_headers):
    resp = await client.delete(f"{BASE}/6", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "deletedProductId": 6,
        "productName": "Grandma's Boysenberry Spread",
        "affectedOrderDetails": 0,
    }
    assert (await client.get(f"{BASE}/6")).status_code == 404


async def test_delete_product_with_orders_needs_force(client, admin_headers):
    resp = await client.delete(f"{BASE}/1", headers=admin_headers)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "CONFLICT_DEPENDENCY"
    assert error["dependents"] == 1
    assert error["dependentType"] == "orderDetails"
    assert (await client.get(f"{BASE}/1")).status_code == 200

    resp = await client.delete(f"{BASE}/1", params={"force": "true"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["affectedOrderDetails"] == 1
    assert (await client.get(f"{BASE}/1")).status_code == 404

    details = (await client.get("/api/v1/orders/10248/details")).json()["data"]
    assert [d["productId"] for d in details] == [2]


# ── Reports ──────────────────────────────────────────────────────────

async def test_product_statistics(client):
    resp = await client.get(f"{BASE}/statistics")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["overview"]["totalProducts"] == 20
    assert data["overview"]["activeProducts"] == 18
    assert data["overview"]["discontinuedProducts"] == 2
    assert data["overview"]["discontinuationRate"] == 10.0
    assert data["inventory"]["outOfStockProducts"] == 2
    assert data["inventory"]["lowStockProducts"] == 1
    assert data["pricing"]["maxPrice"] == 263.5
    top = data["categories"]["topCategoriesByProductCount"]
    assert [(c["categoryName"], c["productCount"]) for c in top] == [
        ("Beverages", 11),
        ("Condiments", 7),
    ]
    assert data["suppliers"]["totalSuppliers"] == 2


async def test_low_stock_report(client):
    resp = await client.get(f"{BASE}/low-stock", params={"threshold": 20})
    assert resp.status_code == 200
    body = resp.json()
    assert _ids(body) == [17, 3, 12, 2, 7, 8, 9]
    assert body["pagination"]["total"] == 7
    first = body["data"][0]
    assert first["urgencyLevel"] == "Critical"
    assert first["recommendedOrderQuantity"] == 36
    assert body["summary"]["criticalProducts"] == 1
    assert body["summary"]["categories"] == ["Beverages", "Condiments"]


async def test_low_stock_threshold_must_be_positive(client):
    resp = await client.get(f"{BASE}/low-stock", params={"threshold": 0})
    assert resp.status_code == 400


async def test_out_of_stock_report(client):
    resp = await client.get(f"{BASE}/out-of-stock")
    body = resp.json()
    assert _ids(body) == [20]
    assert body["data"][0]["priority"] == "High"
    assert body["summary"]["estimatedRestockCost"] == 120.0

    resp = await client.get(f"{BASE}/out-of-stock", params={"includeDiscontinued": "true"})
    body = resp.json()
    assert _ids(body) == [5, 20]
    assert body["summary"]["discontinuedProducts"] == 1
    assert body["summary"]["estimatedRestockCost"] == 1187.5


async def test_search_ranks_by_relevance(client):
    resp = await client.get(f"{BASE}/search", params={"q": "chai"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["resultCount"] == 1
    (chai,) = body["data"]
    assert chai["relevanceScore"] == 150
    assert chai["matchedFields"] == ["productName"]


async def test_search_matches_quantity_per_unit(client):
    resp = await client.get(f"{BASE}/search", params={"q": "bottles", "sortBy": "price"})
    body = resp.json()
    assert body["resultCount"] == 19
    assert all(p["relevanceScore"] == 110 for p in body["data"])
    assert body["data"][0]["productId"] == 15


async def test_search_by_supplier_and_stock_state(client):
    resp = await client.get(
        f"{BASE}/search", params={"supplier": "cajun", "stockStatus": "outOfStock"}
    )
    body = resp.json()
    assert _ids(body) == [5, 20]
    assert "relevanceScore" not in body["data"][0]
    assert body["searchCriteria"]["stockStatus"] == "outOfStock"


async def test_search_requires_a_criterion(client):
    resp = await client.get(f"{BASE}/search", params={"sortBy": "name"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_QUERY"


async def test_null_stock_counts_as_out_of_stock(client, db):
    await db.execute(update(Product).where(Product.product_id == 19).values(units_in_stock=None))
    await db.commit()

    frankfurter = (await client.get(f"{BASE}/19")).json()["data"]
    assert frankfurter["stockStatus"] == "Out of Stock"

    resp = await client.get(f"{BASE}/out-of-stock")
    body = resp.json()
    assert _ids(body) == [20, 19]
    assert body["summary"]["estimatedRestockCost"] == 315.0

    assert await _all_ids(client, inStock="false") == {5, 19, 20}
    stats = (await client.get(f"{BASE}/statistics")).json()["data"]
    assert stats["inventory"]["outOfStockProducts"] == 3
