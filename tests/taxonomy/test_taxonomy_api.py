"""Integration tests for the species and breeds catalogue."""

import pytest
from httpx import AsyncClient


async def create_species(client: AsyncClient, headers, name: str = "Dog", **fields) -> dict:
    body = {"name": name, "display_name": name.title(), **fields}
    response = await client.post("/api/species/", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_breed(client: AsyncClient, headers, species_id: int, name: str, **fields) -> dict:
    body = {"name": name, "species_id": species_id, **fields}
    response = await client.post("/api/breeds/", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestSpecies:
    @pytest.mark.asyncio
    async def test_create_lowercases_name(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        species = await create_species(client, headers, name="  Dog ")
        assert species["name"] == "dog"
        assert species["active"] is True

        response = await client.get("/api/species/name/DOG")
        assert response.json()["data"]["id"] == species["id"]

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        await create_species(client, headers, name="cat")
        response = await client.post("/api/species/", json={"name": "CAT", "display_name": "Cat"}, headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_writes_require_admin(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.post("/api/species/", json={"name": "dog", "display_name": "Dog"}, headers=headers)
        assert response.status_code == 403
        assert (await client.post("/api/species/", json={"name": "dog", "display_name": "Dog"})).status_code == 401

    @pytest.mark.asyncio
    async def test_active_filter_and_ordering(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        await create_species(client, headers, name="bird", popularity=1)
        await create_species(client, headers, name="dog", popularity=10)
        await create_species(client, headers, name="fish", active=False)

        everything = (await client.get("/api/species/")).json()["data"]
        assert [s["name"] for s in everything] == ["dog", "bird", "fish"]
        active = (await client.get("/api/species/active")).json()["data"]
        assert [s["name"] for s in active] == ["dog", "bird"]
        flagged = (await client.get("/api/species/", params={"active": "true"})).json()["data"]
        assert [s["name"] for s in flagged] == ["dog", "bird"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        species = await create_species(client, headers, name="dog")
        response = await client.put(f"/api/species/{species['id']}", json={"popularity": 5}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["popularity"] == 5

        assert (await client.delete(f"/api/species/{species['id']}", headers=headers)).status_code == 200
        assert (await client.get(f"/api/species/{species['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_cascades_to_breeds(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        species = await create_species(client, headers, name="dog")
        breed = await create_breed(client, headers, species["id"], "beagle")
        await client.delete(f"/api/species/{species['id']}", headers=headers)
        assert (await client.get(f"/api/breeds/{breed['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_hierarchy_nests_active_breeds(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog")
        await create_species(client, headers, name="fish", active=False)
        await create_breed(client, headers, dog["id"], "beagle")
        await create_breed(client, headers, dog["id"], "pug", active=False)

        response = await client.get("/api/species/hierarchy")
        items = response.json()["data"]
        assert [s["name"] for s in items] == ["dog"]
        assert [b["name"] for b in items[0]["breeds"]] == ["beagle"]


class TestBreeds:
    @pytest.mark.asyncio
    async def test_create_copies_species_display_name(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog", display_name="Dogs")
        breed = await create_breed(client, headers, dog["id"], "Golden Retriever", characteristics=["friendly"])
        assert breed["name"] == "golden retriever"
        assert breed["species_name"] == "Dogs"
        assert breed["species"]["id"] == dog["id"]

    @pytest.mark.asyncio
    async def test_unknown_species_rejected(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        response = await client.post("/api/breeds/", json={"name": "beagle", "species_id": 999}, headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid species ID"

    @pytest.mark.asyncio
    async def test_duplicate_within_species_conflicts(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog")
        cat = await create_species(client, headers, name="cat")
        await create_breed(client, headers, dog["id"], "mixed")
        await create_breed(client, headers, cat["id"], "mixed")
        response = await client.post("/api/breeds/", json={"name": "Mixed", "species_id": dog["id"]}, headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_paginated_listing_by_species(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog")
        cat = await create_species(client, headers, name="cat")
        for name in ("beagle", "boxer", "pug"):
            await create_breed(client, headers, dog["id"], name)
        await create_breed(client, headers, cat["id"], "persian")

        response = await client.get("/api/breeds/", params={"species_id": dog["id"], "limit": 2})
        body = response.json()
        assert [b["name"] for b in body["data"]] == ["beagle", "boxer"]
        assert body["meta"]["pagination"]["total"] == 3
        assert body["meta"]["pagination"]["totalPages"] == 2

        by_species = (await client.get(f"/api/breeds/species/{cat['id']}")).json()["data"]
        assert [b["name"] for b in by_species] == ["persian"]

    @pytest.mark.asyncio
    async def test_lookup_by_name(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog")
        breed = await create_breed(client, headers, dog["id"], "beagle")
        response = await client.get("/api/breeds/name/Beagle", params={"species_id": dog["id"]})
        assert response.json()["data"]["id"] == breed["id"]
        assert (await client.get("/api/breeds/name/husky")).status_code == 404

    @pytest.mark.asyncio
    async def test_rename_into_existing_conflicts(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog")
        await create_breed(client, headers, dog["id"], "beagle")
        boxer = await create_breed(client, headers, dog["id"], "boxer")
        response = await client.put(f"/api/breeds/{boxer['id']}", json={"name": "beagle"}, headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient, make_admin):
        _, headers = await make_admin()
        dog = await create_species(client, headers, name="dog")
        breed = await create_breed(client, headers, dog["id"], "beagle")
        response = await client.put(f"/api/breeds/{breed['id']}", json={"description": "Scent hound"}, headers=headers)
        assert response.json()["data"]["description"] == "Scent hound"
        assert (await client.delete(f"/api/breeds/{breed['id']}", headers=headers)).status_code == 200
        assert (await client.get(f"/api/breeds/{breed['id']}")).status_code == 404
