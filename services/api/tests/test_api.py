"""HTTP surface tests: status codes, error mapping and payload shape."""

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.services.errors import UnavailableError
from app.services.identity import Identity, Role


def headers(identity: Identity) -> dict[str, str]:
    return {"X-User-Id": str(identity.id), "X-User-Role": identity.role.value}


@pytest.fixture
async def client():
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


async def test_submit_returns_201_then_200(client: AsyncClient, make_user, make_store):
    user = await make_user(Role.USER)
    store_id = await make_store()

    response = await client.post("/v1/ratings", json={"storeId": store_id, "score": 4}, headers=headers(user))
    assert response.status_code == 201
    body = response.json()
    assert body["created"] is True
    assert body["rating"]["score"] == 4
    rating_id = body["rating"]["ratingId"]

    response = await client.post("/v1/ratings", json={"storeId": store_id, "score": 5}, headers=headers(user))
    assert response.status_code == 200
    assert response.json()["rating"]["ratingId"] == rating_id

    response = await client.get(f"/v1/ratings/store/{store_id}/mine", headers=headers(user))
    assert response.json()["rating"]["score"] == 5


async def test_missing_identity_headers(client: AsyncClient):
    response = await client.post("/v1/ratings", json={"storeId": 1, "score": 4})
    assert response.status_code == 422


async def test_out_of_range_score_is_rejected(client: AsyncClient, make_user, make_store):
    user = await make_user(Role.USER)
    store_id = await make_store()
    response = await client.post("/v1/ratings", json={"storeId": store_id, "score": 7}, headers=headers(user))
    assert response.status_code == 422


async def test_engine_errors_map_to_status_codes(client: AsyncClient, make_user, make_store):
    owner = await make_user(Role.STORE_OWNER)
    user = await make_user(Role.USER)
    store_id = await make_store()

    response = await client.post("/v1/ratings", json={"storeId": store_id, "score": 3}, headers=headers(owner))
    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "FORBIDDEN"

    response = await client.post("/v1/ratings", json={"storeId": 9999, "score": 3}, headers=headers(user))
    assert response.status_code == 404
    assert response.json()["error"] == {
        "kind": "NOT_FOUND",
        "message": "Store not found",
        "detail": {"storeId": 9999},
    }

    response = await client.delete("/v1/ratings/not-a-rating", headers=headers(user))
    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "INVALID_ARGUMENT"

    response = await client.delete(f"/v1/ratings/{uuid4()}", headers=headers(user))
    assert response.status_code == 404

    response = await client.get("/v1/stores", params={"page": 1, "limit": 10}, headers=headers(user))
    assert response.status_code == 200


async def test_unavailable_hides_internals(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from app.routes import ratings as rating_routes

    async def fake_submit_rating(rater, store_id, score):
        raise UnavailableError("connection refused by 10.0.0.5:5432")

    monkeypatch.setattr(rating_routes, "submit_rating", fake_submit_rating)

    response = await client.post(
        "/v1/ratings",
        json={"storeId": 1, "score": 4},
        headers={"X-User-Id": "1", "X-User-Role": "user"},
    )
    assert response.status_code == 503
    error = response.json()["error"]
    assert error["kind"] == "UNAVAILABLE"
    assert "10.0.0.5" not in error["message"]


async def test_store_listing_and_stats(client: AsyncClient, make_user, make_store, rate_with_new_users):
    owner = await make_user(Role.STORE_OWNER)
    store_id = await make_store(owner=owner, name="Corner Bakery")
    await rate_with_new_users(store_id, [5, 5, 4, 3, 1])

    response = await client.get(f"/v1/ratings/store/{store_id}/stats", headers=headers(owner))
    assert response.status_code == 200
    assert response.json() == {
        "count": 5,
        "average": "3.60",
        "distribution": {"1": 1, "2": 0, "3": 1, "4": 1, "5": 2},
    }

    user = await make_user(Role.USER)
    response = await client.get(f"/v1/ratings/store/{store_id}/stats", headers=headers(user))
    assert response.status_code == 200
    assert response.json()["count"] == 5

    response = await client.get("/v1/stores", params={"sortBy": "average", "sortOrder": "desc"}, headers=headers(user))
    data = response.json()
    assert data["stores"][0]["name"] == "Corner Bakery"
    assert data["pagination"]["total"] == 1

    response = await client.get("/v1/stores/top", params={"n": 3}, headers=headers(user))
    assert [s["storeId"] for s in response.json()] == [store_id]


async def test_dashboard_per_role(client: AsyncClient, make_user, make_store):
    admin = await make_user(Role.ADMIN)
    owner = await make_user(Role.STORE_OWNER)
    user = await make_user(Role.USER)
    await make_store(owner=owner)

    response = await client.get("/v1/dashboard", headers=headers(admin))
    assert response.status_code == 200
    assert set(response.json()) == {"stats", "recentActivity", "ratingDistribution", "topStores"}

    response = await client.get("/v1/dashboard", headers=headers(owner))
    assert set(response.json()) == {"stores", "overall", "recentRatings", "ratingDistribution", "storeRaters"}

    response = await client.get("/v1/dashboard", headers=headers(user))
    assert set(response.json()) == {
        "userStats",
        "recentRatings",
        "ratingDistribution",
        "recommendedStores",
        "needsRatingStores",
    }


async def test_oversized_ids_are_rejected(client: AsyncClient, make_user):
    user = await make_user(Role.USER)
    huge = 2**70

    response = await client.get(f"/v1/stores/{huge}", headers=headers(user))
    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "INVALID_ARGUMENT"

    response = await client.get(f"/v1/ratings/store/{huge}/mine", headers=headers(user))
    assert response.status_code == 400

    response = await client.get("/v1/stores", params={"page": huge}, headers=headers(user))
    assert response.status_code == 400

    response = await client.get("/v1/dashboard", headers={"X-User-Id": str(huge), "X-User-Role": "user"})
    assert response.status_code == 422


async def test_top_stores_by_role(client: AsyncClient, make_user, make_store, rate_with_new_users):
    admin = await make_user(Role.ADMIN)
    owner = await make_user(Role.STORE_OWNER)
    store_id = await make_store(owner=owner)
    await rate_with_new_users(store_id, [4])

    response = await client.get("/v1/stores/top", headers=headers(admin))
    assert [s["storeId"] for s in response.json()] == [store_id]

    response = await client.get("/v1/stores/top", headers=headers(owner))
    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "FORBIDDEN"
