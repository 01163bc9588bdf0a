"""Integration tests for listings: creation, public listing, ownership and moderation."""

import pytest
from httpx import AsyncClient

from pickmypit.db.models import Post
from pickmypit.pagination import MAX_LIMIT

PNG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="

NEW_POST = {
    "title": "Playful Labrador puppy",
    "description": "Eight weeks old, vaccinated and very friendly with kids.",
    "type": "paid",
    "amount": 5000,
    "species": "Dog",
    "category": "Labrador Retriever",
    "age": {"value": 2, "unit": "months"},
}


async def post_status(database, post_id: int) -> str:
    async with database.session_factory() as session:
        post = await session.get(Post, post_id)
        return post.status


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_create_starts_pending(self, client: AsyncClient, make_user):
        user, headers = await make_user()
        response = await client.post("/api/posts/", json=NEW_POST, headers=headers)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["owner_id"] == user.id
        assert data["slug"].startswith("playful-labrador-puppy-")
        assert data["species_slug"] == "dog"
        assert data["category_slug"] == "labrador-retriever"
        assert data["age"] == {"value": 2, "unit": "months"}
        assert data["formatted_age"] == "2 months old"

    @pytest.mark.asyncio
    async def test_create_requires_login(self, client: AsyncClient):
        response = await client.post("/api/posts/", json=NEW_POST)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_free_post_has_zero_amount(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.post("/api/posts/", json={**NEW_POST, "type": "free"}, headers=headers)
        assert response.json()["data"]["amount"] == 0

    @pytest.mark.asyncio
    async def test_uses_default_address(self, client: AsyncClient, make_user, make_address):
        user, headers = await make_user()
        address = await make_address(user.id, is_default=True)
        response = await client.post("/api/posts/", json=NEW_POST, headers=headers)
        data = response.json()["data"]
        assert data["address_id"] == address.id
        assert data["address"]["city"] == "Kolkata"

    @pytest.mark.asyncio
    async def test_foreign_address_rejected(self, client: AsyncClient, make_user, make_address):
        other, _ = await make_user(email="other@example.com")
        _, headers = await make_user()
        address = await make_address(other.id)
        response = await client.post("/api/posts/", json={**NEW_POST, "address_id": address.id}, headers=headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_data_uri_images_are_uploaded(self, client: AsyncClient, make_user, image_host):
        _, headers = await make_user()
        body = {**NEW_POST, "images": [PNG, "https://example.com/dog.jpg"]}
        response = await client.post("/api/posts/", json=body, headers=headers)
        images = response.json()["data"]["images"]
        assert image_host.uploaded == [PNG]
        assert images[0].startswith("https://res.cloudinary.com/test-cloud/")
        assert "/pickmypit/posts/" in images[0]
        assert images[1] == "https://example.com/dog.jpg"

    @pytest.mark.asyncio
    async def test_contact_details_in_description_rejected(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        body = {**NEW_POST, "description": "Call me on 98765 43210 or visit https://example.com now"}
        response = await client.post("/api/posts/", json=body, headers=headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_same_title_gets_distinct_slugs(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        first = (await client.post("/api/posts/", json=NEW_POST, headers=headers)).json()["data"]
        second = (await client.post("/api/posts/", json=NEW_POST, headers=headers)).json()["data"]
        assert first["slug"] != second["slug"]


class TestPublicListing:
    @pytest.mark.asyncio
    async def test_only_available_posts_listed(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        await make_post(user.id, status="pending")
        visible = await make_post(user.id, status="available")
        await make_post(user.id, status="rejected")

        response = await client.get("/api/posts/")
        assert response.status_code == 200
        body = response.json()
        assert [p["id"] for p in body["data"]] == [visible.id]
        assert body["meta"]["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_pagination_meta(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        for _ in range(25):
            await make_post(user.id)

        first = (await client.get("/api/posts/", params={"page": 1, "limit": 10})).json()
        meta = first["meta"]["pagination"]
        assert len(first["data"]) == 10
        assert meta == {"page": 1, "limit": 10, "total": 25, "totalPages": 3, "hasNext": True, "hasPrev": False}

        last = (await client.get("/api/posts/", params={"page": 3, "limit": 10})).json()
        assert len(last["data"]) == 5
        assert last["meta"]["pagination"]["hasNext"] is False
        assert last["meta"]["pagination"]["hasPrev"] is True

    @pytest.mark.asyncio
    async def test_bad_paging_values_fall_back(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        await make_post(user.id)
        response = await client.get("/api/posts/", params={"page": "abc", "limit": "-4"})
        assert response.status_code == 200
        assert response.json()["meta"]["pagination"]["page"] == 1
        assert response.json()["meta"]["pagination"]["limit"] == 10

    @pytest.mark.asyncio
    async def test_species_and_breed_filters(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        dog = await make_post(user.id, species="Dog", category="Beagle")
        await make_post(user.id, species="Cat", category="Persian")

        response = await client.get("/api/posts/", params={"species": "dog", "breed": "beagle"})
        assert [p["id"] for p in response.json()["data"]] == [dog.id]

    @pytest.mark.asyncio
    async def test_filter_price_range_and_sort(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        cheap = await make_post(user.id, type="paid", amount=1000)
        pricey = await make_post(user.id, type="paid", amount=9000)
        await make_post(user.id, type="paid", amount=20000)
        await make_post(user.id, type="free")

        response = await client.get(
            "/api/posts/filter",
            params={"type": "paid", "minPrice": 500, "maxPrice": 10000, "sort": "price-high"},
        )
        assert [p["id"] for p in response.json()["data"]] == [pricey.id, cheap.id]

    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        match = await make_post(user.id, title="Golden retriever pup")
        await make_post(user.id, title="Tabby kitten")
        response = await client.get("/api/posts/filter", params={"search": "GOLDEN"})
        assert [p["id"] for p in response.json()["data"]] == [match.id]

    @pytest.mark.asyncio
    async def test_get_by_id_and_slug(self, client: AsyncClient, make_user, make_post):
        user, _ = await make_user()
        post = await make_post(user.id)
        by_id = await client.get(f"/api/posts/{post.id}")
        assert by_id.json()["data"]["slug"] == post.slug
        assert by_id.json()["data"]["owner"]["id"] == user.id
        by_slug = await client.get(f"/api/posts/slug/{post.slug}")
        assert by_slug.json()["data"]["id"] == post.id

    @pytest.mark.asyncio
    async def test_missing_post_is_404(self, client: AsyncClient):
        response = await client.get("/api/posts/999")
        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"


class TestOwnerScope:
    @pytest.mark.asyncio
    async def test_user_posts_includes_every_status(self, client: AsyncClient, make_user, make_post):
        user, headers = await make_user()
        other, _ = await make_user(email="other@example.com")
        mine = {(await make_post(user.id, status=s)).id for s in ("pending", "available", "rejected")}
        await make_post(other.id)

        response = await client.get("/api/posts/user-posts", headers=headers)
        assert {p["id"] for p in response.json()["data"]} == mine

    @pytest.mark.asyncio
    async def test_user_posts_page_size_is_capped(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.get("/api/posts/user-posts?limit=500", headers=headers)
        assert response.status_code == 200
        assert response.json()["meta"]["pagination"]["limit"] == MAX_LIMIT

    @pytest.mark.asyncio
    async def test_title_update_regenerates_slug(self, client: AsyncClient, make_user, make_post):
        user, headers = await make_user()
        post = await make_post(user.id, title="Old title here")
        response = await client.put(f"/api/posts/{post.id}", json={"title": "Brand new title"}, headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Brand new title"
        assert data["slug"].startswith("brand-new-title-")

    @pytest.mark.asyncio
    async def test_update_ignores_status(self, client: AsyncClient, make_user, make_post, database):
        user, headers = await make_user()
        post = await make_post(user.id, status="pending")
        await client.put(f"/api/posts/{post.id}", json={"status": "available"}, headers=headers)
        assert await post_status(database, post.id) == "pending"

    @pytest.mark.asyncio
    async def test_stranger_cannot_update_or_delete(self, client: AsyncClient, make_user, make_post):
        owner, _ = await make_user()
        _, stranger_headers = await make_user(email="stranger@example.com")
        post = await make_post(owner.id)

        update = await client.put(f"/api/posts/{post.id}", json={"title": "Hijacked title"}, headers=stranger_headers)
        assert update.status_code == 403
        delete = await client.delete(f"/api/posts/{post.id}", headers=stranger_headers)
        assert delete.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_cleans_up_hosted_images(self, client: AsyncClient, make_user, make_post, image_host):
        user, headers = await make_user()
        hosted = "https://res.cloudinary.com/test-cloud/image/upload/v1/pickmypit/posts/img7.png"
        post = await make_post(user.id, images=[hosted, "https://example.com/elsewhere.jpg"])

        response = await client.delete(f"/api/posts/{post.id}", headers=headers)
        assert response.status_code == 200
        assert image_host.deleted == ["pickmypit/posts/img7"]
        assert (await client.get(f"/api/posts/{post.id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_admin_can_delete_any_post(self, client: AsyncClient, make_user, make_admin, make_post):
        user, _ = await make_user()
        _, admin_headers = await make_admin()
        post = await make_post(user.id)
        response = await client.delete(f"/api/posts/{post.id}", headers=admin_headers)
        assert response.status_code == 200


class TestModeration:
    @pytest.mark.asyncio
    async def test_user_cannot_approve(self, client: AsyncClient, make_user, make_post, database):
        user, headers = await make_user()
        post = await make_post(user.id, status="pending")
        response = await client.put(f"/api/posts/{post.id}/approve", headers=headers)
        assert response.status_code == 403
        assert await post_status(database, post.id) == "pending"

    @pytest.mark.asyncio
    async def test_admin_approve_then_owner_marks_sold(self, client: AsyncClient, make_user, make_admin, make_post):
        user, headers = await make_user()
        _, admin_headers = await make_admin()
        post = await make_post(user.id, status="pending")

        approved = await client.put(f"/api/posts/{post.id}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["data"]["status"] == "available"
        assert approved.json()["data"]["moderated_at"] is not None

        sold = await client.put(f"/api/posts/{post.id}/status", json={"status": "sold"}, headers=headers)
        assert sold.status_code == 200
        assert sold.json()["data"]["status"] == "sold"

    @pytest.mark.asyncio
    async def test_reject_records_reason(self, client: AsyncClient, make_user, make_admin, make_post):
        user, _ = await make_user()
        _, admin_headers = await make_admin()
        post = await make_post(user.id, status="pending")
        response = await client.post(
            f"/api/posts/{post.id}/reject", json={"reason": "Blurry photos"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"
        assert response.json()["data"]["rejection_reason"] == "Blurry photos"

    @pytest.mark.asyncio
    async def test_invalid_transition_is_conflict(self, client: AsyncClient, make_user, make_admin, make_post, database):
        user, _ = await make_user()
        _, admin_headers = await make_admin()
        post = await make_post(user.id, status="sold")
        response = await client.put(f"/api/posts/{post.id}/approve", headers=admin_headers)
        assert response.status_code == 409
        assert await post_status(database, post.id) == "sold"

    @pytest.mark.asyncio
    async def test_banned_is_terminal(self, client: AsyncClient, make_user, make_admin, make_post):
        user, _ = await make_user()
        _, admin_headers = await make_admin()
        post = await make_post(user.id, status="available")
        assert (await client.put(f"/api/posts/{post.id}/ban", headers=admin_headers)).status_code == 200
        assert (await client.put(f"/api/posts/{post.id}/approve", headers=admin_headers)).status_code == 409

    @pytest.mark.asyncio
    async def test_owner_cannot_sell_pending_post(self, client: AsyncClient, make_user, make_post):
        user, headers = await make_user()
        post = await make_post(user.id, status="pending")
        response = await client.put(f"/api/posts/{post.id}/status", json={"status": "sold"}, headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_stranger_cannot_mark_sold(self, client: AsyncClient, make_user, make_post):
        owner, _ = await make_user()
        _, headers = await make_user(email="stranger@example.com")
        post = await make_post(owner.id)
        response = await client.put(f"/api/posts/{post.id}/status", json={"status": "sold"}, headers=headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_moderating_missing_post_is_404(self, client: AsyncClient, make_admin):
        _, admin_headers = await make_admin()
        response = await client.put("/api/posts/4242/approve", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_pending_approvals_requires_admin(self, client: AsyncClient, make_user, make_admin, make_post):
        user, headers = await make_user()
        _, admin_headers = await make_admin()
        pending = await make_post(user.id, status="pending")
        await make_post(user.id, status="available")

        assert (await client.get("/api/posts/pending-approvals", headers=headers)).status_code == 403
        response = await client.get("/api/posts/pending-approvals", headers=admin_headers)
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [pending.id]

    @pytest.mark.asyncio
    async def test_admin_listing_shows_every_status(self, client: AsyncClient, make_user, make_admin, make_post):
        user, _ = await make_user()
        _, admin_headers = await make_admin()
        for status in ("pending", "available", "banned"):
            await make_post(user.id, status=status)
        response = await client.get("/api/posts/admin", headers=admin_headers)
        assert response.json()["meta"]["pagination"]["total"] == 3
