"""The ``nearMe`` radius filter on /api/posts/filter."""

import pytest
from httpx import AsyncClient

KOLKATA = {"latitude": 22.5726, "longitude": 88.3639}
DELHI = {"latitude": 28.6139, "longitude": 77.2090}


@pytest.fixture
async def two_cities(make_user, make_address, make_post):
    user, _ = await make_user()
    kolkata = await make_address(user.id, **KOLKATA)
    delhi = await make_address(user.id, city="New Delhi", postal_code="110001", **DELHI)
    near = await make_post(user.id, address_id=kolkata.id, title="Kolkata kitten")
    far = await make_post(user.id, address_id=delhi.id, title="Delhi doggo")
    return near, far


def near_me(latitude: float, longitude: float, max_distance: float) -> dict:
    return {"nearMe": "true", "latitude": latitude, "longitude": longitude, "maxDistance": max_distance}


class TestNearMe:
    @pytest.mark.asyncio
    async def test_only_posts_within_radius(self, client: AsyncClient, two_cities):
        near, _ = two_cities
        # Howrah is a few km from central Kolkata and ~1300 km from Delhi.
        response = await client.get("/api/posts/filter", params=near_me(22.5958, 88.2636, 50))
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [near.id]

    @pytest.mark.asyncio
    async def test_large_radius_includes_both(self, client: AsyncClient, two_cities):
        response = await client.get("/api/posts/filter", params=near_me(22.5958, 88.2636, 2000))
        assert response.json()["meta"]["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_nothing_in_range_is_empty(self, client: AsyncClient, two_cities):
        # Mumbai: over 1000 km from both.
        response = await client.get("/api/posts/filter", params=near_me(19.0760, 72.8777, 100))
        body = response.json()
        assert body["data"] == []
        assert body["meta"]["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_incomplete_coordinates_disable_the_filter(self, client: AsyncClient, two_cities):
        response = await client.get("/api/posts/filter", params={"nearMe": "true", "latitude": 22.5})
        assert response.json()["meta"]["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_public_listing_ignores_near_me(self, client: AsyncClient, two_cities):
        response = await client.get("/api/posts/", params=near_me(19.0760, 72.8777, 100))
        assert response.json()["meta"]["pagination"]["total"] == 2
