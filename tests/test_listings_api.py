"""
Listing API tests - search/filter/sort, owner-gated mutations, status codes and shape.
"""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

BASE = "/api/v1/listings"

FORM = {
    "title": "Alphonso mangoes",
    "description": "Ratnagiri, box of 12",
    "price": "499.50",
    "quantity": "3",
    "category": "fruits",
    "subcategory": "tropical",
    "location": "Jayanagar, Bengaluru",
}


def _day(n: int) -> datetime:
    return datetime(2025, 1, n, tzinfo=timezone.utc)


# --- create ---


@pytest.mark.asyncio
async def test_create_listing_requires_auth(client: AsyncClient):
    response = await client.post(BASE, data=FORM)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_listing_defaults(client: AsyncClient, auth_headers: dict, test_user, indexer):
    """No images -> placeholder main image; no coordinates -> field omitted."""
    response = await client.post(BASE, headers=auth_headers, data=FORM)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["owner_id"] == test_user.id
    assert data["price"] == 499.5
    assert data["quantity"] == 3
    assert data["main_image"] == "default-image.jpg"
    assert data["additional_images"] == []
    assert data["coordinates"] is None
    assert [doc["id"] for doc in indexer.indexed] == [data["id"]]


@pytest.mark.asyncio
async def test_create_listing_with_coordinates(client: AsyncClient, auth_headers: dict):
    response = await client.post(BASE, headers=auth_headers, data={**FORM, "lat": "12.90", "lng": "77.60"})
    assert response.status_code == 201
    assert response.json()["data"]["coordinates"] == {"type": "Point", "coordinates": [77.60, 12.90]}


@pytest.mark.asyncio
async def test_create_listing_lone_latitude_is_dropped(client: AsyncClient, auth_headers: dict):
    response = await client.post(BASE, headers=auth_headers, data={**FORM, "lat": "12.90"})
    assert response.status_code == 201
    assert response.json()["data"]["coordinates"] is None


@pytest.mark.asyncio
async def test_create_listing_stores_images_and_truncates(client: AsyncClient, auth_headers: dict):
    files = [("mainImage", ("main.jpg", b"main-bytes", "image/jpeg"))]
    files += [("additionalImages", (f"extra{i}.png", b"x", "image/png")) for i in range(6)]
    response = await client.post(BASE, headers=auth_headers, data=FORM, files=files)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["main_image"].startswith("/uploads/listings/")
    assert data["main_image"].endswith(".jpg")
    assert len(data["additional_images"]) == 4


@pytest.mark.asyncio
async def test_create_listing_rejects_unknown_image_type(client: AsyncClient, auth_headers: dict):
    files = [("mainImage", ("notes.txt", b"hello", "text/plain"))]
    response = await client.post(BASE, headers=auth_headers, data=FORM, files=files)
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, value",
    [
        ("price", "cheap"),
        ("price", "-1"),
        ("quantity", "two"),
        ("quantity", "0"),
        ("quantity", "2.5"),
        ("title", "   "),
        ("location", ""),
        ("lat", "north"),
    ],
)
async def test_create_listing_invalid_input(client: AsyncClient, auth_headers: dict, field, value):
    response = await client.post(BASE, headers=auth_headers, data={**FORM, field: value, "lng": "77.6"})
    assert response.status_code == 400
    assert response.json()["success"] is False


# --- read ---


@pytest.mark.asyncio
async def test_get_listing(client: AsyncClient, make_listing):
    listing = await make_listing(title="Paneer 500g")
    response = await client.get(f"{BASE}/{listing.id}")
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Paneer 500g"


@pytest.mark.asyncio
async def test_get_listing_invalid_id(client: AsyncClient):
    response = await client.get(f"{BASE}/not-an-id")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_oversized_listing_id_is_400(client: AsyncClient, auth_headers: dict):
    url = f"{BASE}/99999999999999999999"
    assert (await client.get(url)).status_code == 400
    assert (await client.put(url, headers=auth_headers, json={"price": 1})).status_code == 400
    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid listing ID format"}


@pytest.mark.asyncio
async def test_get_listing_not_found(client: AsyncClient):
    response = await client.get(f"{BASE}/9999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Listing not found"}


@pytest.mark.asyncio
async def test_list_default_is_newest_first(client: AsyncClient, make_listing):
    await make_listing(title="old", created_at=_day(1))
    await make_listing(title="newest", created_at=_day(3))
    await make_listing(title="middle", created_at=_day(2))
    response = await client.get(BASE)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert [l["title"] for l in body["data"]] == ["newest", "middle", "old"]


@pytest.mark.asyncio
async def test_list_sorted_by_price_low_to_high(client: AsyncClient, make_listing):
    for price in (99.0, 10.0, 45.5, 10.0):
        await make_listing(price=price)
    response = await client.get(BASE, params={"sortBy": "price", "priceOrder": "lowToHigh"})
    prices = [l["price"] for l in response.json()["data"]]
    assert prices == sorted(prices)
    response = await client.get(BASE, params={"sortBy": "price"})
    prices = [l["price"] for l in response.json()["data"]]
    assert prices == sorted(prices, reverse=True)


@pytest.mark.asyncio
async def test_list_sorted_oldest_first(client: AsyncClient, make_listing):
    await make_listing(title="b", created_at=_day(2))
    await make_listing(title="a", created_at=_day(1))
    response = await client.get(BASE, params={"sortBy": "date", "dateOrder": "oldestToLatest"})
    assert [l["title"] for l in response.json()["data"]] == ["a", "b"]


@pytest.mark.asyncio
async def test_list_filters_are_anded(client: AsyncClient, make_listing):
    await make_listing(title="mango", category="fruits", subcategory="tropical")
    await make_listing(title="orange", category="fruits", subcategory="citrus")
    await make_listing(title="carrot", category="vegetables", subcategory="root")
    response = await client.get(BASE, params={"category": "fruits", "subcategory": "citrus"})
    assert [l["title"] for l in response.json()["data"]] == ["orange"]
    response = await client.get(BASE, params={"category": "fruits"})
    assert response.json()["count"] == 2


@pytest.mark.asyncio
async def test_list_geo_radius(client: AsyncClient, make_listing):
    near = await make_listing(title="near", longitude=77.60, latitude=12.90)
    await make_listing(title="mysuru", longitude=76.64, latitude=12.30)
    await make_listing(title="no coordinates")

    params = {"lat": "12.91", "lng": "77.61", "radius": "5"}
    response = await client.get(BASE, params=params)
    assert [l["id"] for l in response.json()["data"]] == [near.id]

    response = await client.get(BASE, params={**params, "radius": "0.01"})
    assert response.json() == {"success": True, "count": 0, "data": []}


@pytest.mark.asyncio
async def test_list_geo_ignored_without_radius(client: AsyncClient, make_listing):
    await make_listing(longitude=77.60, latitude=12.90)
    await make_listing()
    response = await client.get(BASE, params={"lat": "12.91", "lng": "77.61"})
    assert response.json()["count"] == 2


@pytest.mark.asyncio
async def test_list_rejects_malformed_geo(client: AsyncClient):
    response = await client.get(BASE, params={"lat": "abc", "lng": "77.61", "radius": "5"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_text_search_combines_with_filters(client: AsyncClient, make_listing, search_index):
    mango = await make_listing(title="Alphonso mango", category="fruits")
    pickle = await make_listing(title="Mango pickle", category="preserves")
    await make_listing(title="Carrots", category="vegetables")
    search_index.hits["mango"] = [pickle.id, mango.id]

    response = await client.get(BASE, params={"search": "mango"})
    assert {l["id"] for l in response.json()["data"]} == {mango.id, pickle.id}

    response = await client.get(BASE, params={"search": "mango", "category": "fruits"})
    assert [l["id"] for l in response.json()["data"]] == [mango.id]

    response = await client.get(BASE, params={"search": "durian"})
    assert response.json()["count"] == 0
    assert search_index.queries == ["mango", "mango", "durian"]
    assert search_index.filters == [(None, None), ("fruits", None), (None, None)]


@pytest.mark.asyncio
async def test_list_search_index_down_is_server_error(client: AsyncClient, search_index):
    search_index.fail = True
    response = await client.get(BASE, params={"search": "mango"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Search is currently unavailable"}


@pytest.mark.asyncio
async def test_my_listings(client: AsyncClient, auth_headers: dict, make_listing, other_user):
    await make_listing(title="mine old", created_at=_day(1))
    await make_listing(title="mine new", created_at=_day(2))
    await make_listing(title="theirs", owner_id=other_user.id)
    response = await client.get(f"{BASE}/my", headers=auth_headers)
    assert response.status_code == 200
    assert [l["title"] for l in response.json()["data"]] == ["mine new", "mine old"]


@pytest.mark.asyncio
async def test_my_listings_requires_auth(client: AsyncClient):
    response = await client.get(f"{BASE}/my")
    assert response.status_code == 401


# --- update / delete ---


@pytest.mark.asyncio
async def test_owner_partial_update(client: AsyncClient, auth_headers: dict, make_listing, indexer):
    listing = await make_listing(title="Tomatoes", price=40.0, quantity=10)
    response = await client.put(f"{BASE}/{listing.id}", headers=auth_headers, json={"price": 35})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["price"] == 35
    assert data["title"] == "Tomatoes"
    assert data["quantity"] == 10
    assert indexer.indexed[-1]["price"] == 35


@pytest.mark.asyncio
async def test_owner_update_truncates_images_and_sets_coordinates(client: AsyncClient, auth_headers: dict, make_listing):
    listing = await make_listing()
    patch = {"additional_images": [f"/img/{i}.jpg" for i in range(7)], "lat": 12.9, "lng": 77.6}
    response = await client.put(f"{BASE}/{listing.id}", headers=auth_headers, json=patch)
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["additional_images"]) == 4
    assert data["coordinates"]["coordinates"] == [77.6, 12.9]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "patch",
    [
        {"price": -5},
        {"quantity": 0},
        {"title": ""},
        {"title": None},
        {"owner_id": 999},
        {"lat": 12.9},
    ],
)
async def test_owner_update_invalid_patch(client: AsyncClient, auth_headers: dict, make_listing, patch):
    listing = await make_listing()
    response = await client.put(f"{BASE}/{listing.id}", headers=auth_headers, json=patch)
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("patch", [{"price": 1}, {"price": -5}, {"owner_id": 2}, ["not", "an", "object"]])
async def test_non_owner_update_is_forbidden(client: AsyncClient, other_headers: dict, make_listing, patch):
    listing = await make_listing(price=40.0)
    response = await client.put(f"{BASE}/{listing.id}", headers=other_headers, json=patch)
    assert response.status_code == 403
    check = await client.get(f"{BASE}/{listing.id}")
    assert check.json()["data"]["price"] == 40.0


@pytest.mark.asyncio
async def test_update_missing_listing(client: AsyncClient, auth_headers: dict):
    response = await client.put(f"{BASE}/9999", headers=auth_headers, json={"price": 1})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_non_owner_delete_is_forbidden(client: AsyncClient, other_headers: dict, make_listing, indexer):
    listing = await make_listing()
    response = await client.delete(f"{BASE}/{listing.id}", headers=other_headers)
    assert response.status_code == 403
    assert (await client.get(f"{BASE}/{listing.id}")).status_code == 200
    assert indexer.removed == []


@pytest.mark.asyncio
async def test_owner_delete(client: AsyncClient, auth_headers: dict, make_listing, indexer):
    listing = await make_listing()
    response = await client.delete(f"{BASE}/{listing.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Listing successfully deleted"}
    assert (await client.get(f"{BASE}/{listing.id}")).status_code == 404
    assert indexer.removed == [listing.id]


@pytest.mark.asyncio
async def test_delete_missing_listing(client: AsyncClient, auth_headers: dict):
    response = await client.delete(f"{BASE}/9999", headers=auth_headers)
    assert response.status_code == 404
