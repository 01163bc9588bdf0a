"""Integration tests for the address book and its single-default rule."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from pickmypit.addresses.service import count_defaults

ADDRESS = {
    "street": "12 Park Street",
    "city": "Kolkata",
    "state": "West Bengal",
    "postal_code": "700016",
    "country": "India",
}


async def create(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post("/api/addresses/", json={**ADDRESS, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def defaults(database, user_id: int) -> int:
    async with database.session_factory() as session:
        return await count_defaults(session, user_id)


class TestCrud:
    @pytest.mark.asyncio
    async def test_requires_login(self, client: AsyncClient):
        response = await client.get("/api/addresses/")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_and_list(self, client: AsyncClient, make_user):
        user, headers = await make_user()
        created = await create(client, headers, landmark="Near the metro")
        assert created["user_id"] == user.id
        assert created["is_default"] is False

        response = await client.get("/api/addresses/", headers=headers)
        assert response.status_code == 200
        assert [a["id"] for a in response.json()["data"]] == [created["id"]]

    @pytest.mark.asyncio
    async def test_postal_code_must_be_six_digits(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.post("/api/addresses/", json={**ADDRESS, "postal_code": "12345"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "postal_code"

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        created = await create(client, headers)
        response = await client.put(f"/api/addresses/{created['id']}", json={}, headers=headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_fields(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        created = await create(client, headers)
        response = await client.put(f"/api/addresses/{created['id']}", json={"city": "Howrah"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["city"] == "Howrah"

    @pytest.mark.asyncio
    async def test_required_field_cannot_be_nulled(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        created = await create(client, headers)
        response = await client.put(f"/api/addresses/{created['id']}", json={"street": None}, headers=headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "street"

        stored = (await client.get(f"/api/addresses/{created['id']}", headers=headers)).json()["data"]
        assert stored["street"] == ADDRESS["street"]

    @pytest.mark.asyncio
    async def test_optional_fields_can_be_cleared(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        created = await create(client, headers, landmark="Near the metro", latitude=22.55, longitude=88.35)
        response = await client.put(
            f"/api/addresses/{created['id']}",
            json={"landmark": None, "latitude": None, "longitude": None},
            headers=headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert (data["landmark"], data["latitude"], data["longitude"]) == (None, None, None)

    @pytest.mark.asyncio
    async def test_other_users_address_is_not_found(self, client: AsyncClient, make_user):
        _, owner_headers = await make_user(email="owner@example.com")
        _, other_headers = await make_user(email="other@example.com")
        created = await create(client, owner_headers)

        assert (await client.get(f"/api/addresses/{created['id']}", headers=other_headers)).status_code == 404
        assert (await client.put(f"/api/addresses/{created['id']}/default", headers=other_headers)).status_code == 404
        assert (await client.delete(f"/api/addresses/{created['id']}", headers=other_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        created = await create(client, headers)
        response = await client.delete(f"/api/addresses/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert (await client.get(f"/api/addresses/{created['id']}", headers=headers)).status_code == 404


class TestDefaultAddress:
    @pytest.mark.asyncio
    async def test_no_default_is_404(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        await create(client, headers)
        response = await client.get("/api/addresses/default", headers=headers)
        assert response.status_code == 404
        assert response.json()["message"] == "No default address found"

    @pytest.mark.asyncio
    async def test_new_default_unsets_siblings(self, client: AsyncClient, make_user, database):
        user, headers = await make_user()
        first = await create(client, headers, is_default=True)
        second = await create(client, headers, is_default=True)

        assert await defaults(database, user.id) == 1
        response = await client.get("/api/addresses/default", headers=headers)
        assert response.json()["data"]["id"] == second["id"]

        listing = (await client.get("/api/addresses/", headers=headers)).json()["data"]
        assert listing[0]["id"] == second["id"]
        assert {a["id"]: a["is_default"] for a in listing} == {first["id"]: False, second["id"]: True}

    @pytest.mark.asyncio
    async def test_update_to_default_unsets_siblings(self, client: AsyncClient, make_user, database):
        user, headers = await make_user()
        first = await create(client, headers, is_default=True)
        second = await create(client, headers)

        response = await client.put(f"/api/addresses/{second['id']}", json={"is_default": True}, headers=headers)
        assert response.status_code == 200
        assert await defaults(database, user.id) == 1
        assert (await client.get("/api/addresses/default", headers=headers)).json()["data"]["id"] == second["id"]
        assert (await client.get(f"/api/addresses/{first['id']}", headers=headers)).json()["data"]["is_default"] is False

    @pytest.mark.asyncio
    async def test_set_default_is_idempotent(self, client: AsyncClient, make_user, database):
        user, headers = await make_user()
        await create(client, headers, is_default=True)
        target = await create(client, headers)

        for _ in range(2):
            response = await client.put(f"/api/addresses/{target['id']}/default", headers=headers)
            assert response.status_code == 200
            assert response.json()["data"]["is_default"] is True
            assert await defaults(database, user.id) == 1

        assert (await client.get("/api/addresses/default", headers=headers)).json()["data"]["id"] == target["id"]

    @pytest.mark.asyncio
    async def test_set_default_leaves_other_users_alone(self, client: AsyncClient, make_user, database):
        alice, alice_headers = await make_user(email="alice@example.com")
        bob, bob_headers = await make_user(email="bob@example.com")
        await create(client, bob_headers, is_default=True)
        mine = await create(client, alice_headers)

        await client.put(f"/api/addresses/{mine['id']}/default", headers=alice_headers)
        assert await defaults(database, alice.id) == 1
        assert await defaults(database, bob.id) == 1

    @pytest.mark.asyncio
    async def test_deleting_default_leaves_none(self, client: AsyncClient, make_user, database):
        user, headers = await make_user()
        only = await create(client, headers, is_default=True)
        await client.delete(f"/api/addresses/{only['id']}", headers=headers)
        assert await defaults(database, user.id) == 0
        assert (await client.get("/api/addresses/default", headers=headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_database_rejects_second_default(self, make_user, make_address):
        user, _ = await make_user()
        await make_address(user.id, is_default=True)
        with pytest.raises(IntegrityError):
            await make_address(user.id, is_default=True)

    @pytest.mark.asyncio
    async def test_defaults_are_per_user_in_the_database(self, make_user, make_address, database):
        alice, _ = await make_user(email="alice@example.com")
        bob, _ = await make_user(email="bob@example.com")
        await make_address(alice.id, is_default=True)
        await make_address(bob.id, is_default=True)
        await make_address(alice.id)
        assert await defaults(database, alice.id) == 1
        assert await defaults(database, bob.id) == 1
