"""Shared test fixtures."""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.auth.dependencies import USER_COOKIE
from pickmypit.auth.google import GoogleOAuthClient, GoogleProfile, get_google_client
from pickmypit.auth.jwt import create_admin_token, create_user_token
from pickmypit.auth.password import hash_password
from pickmypit.auth.referrals import generate_referral_code
from pickmypit.database import Database
from pickmypit.db.models import Address, Admin, Post, User
from pickmypit.exceptions import AuthenticationError
from pickmypit.main import create_app
from pickmypit.media.cloudinary import CloudinaryImageHost, UploadedImage, get_image_host
from pickmypit.slugs import slugify

TEST_PASSWORD = "secret123"


class FakeImageHost(CloudinaryImageHost):
    """Records uploads and deletes instead of calling Cloudinary."""

    def __init__(self) -> None:
        super().__init__("test-cloud", "key", "secret", folder="pickmypit")
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self._ids = itertools.count(1)

    async def upload(self, file: str, folder: str | None = None) -> UploadedImage:
        public_id = f"{folder or self.folder}/img{next(self._ids)}"
        self.uploaded.append(file)
        return UploadedImage(
            url=f"https://res.cloudinary.com/test-cloud/image/upload/v1/{public_id}.png",
            public_id=public_id,
        )

    async def delete(self, public_id: str) -> bool:
        self.deleted.append(public_id)
        return True


class FakeGoogleClient(GoogleOAuthClient):
    """Maps known tokens to profiles; anything else is rejected like Google does."""

    def __init__(self) -> None:
        super().__init__("https://google.invalid/userinfo")
        self.profiles: dict[str, GoogleProfile] = {}

    async def fetch_profile(self, token: str) -> GoogleProfile:
        try:
            return self.profiles[token]
        except KeyError:
            raise AuthenticationError("Invalid Google token") from None


def user_headers(token: str) -> dict[str, str]:
    return {"Cookie": f"{USER_COOKIE}={token}"}


def admin_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory SQLite database with every table created."""
    db = Database("sqlite+aiosqlite://")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def image_host() -> FakeImageHost:
    return FakeImageHost()


@pytest.fixture
def google_client() -> FakeGoogleClient:
    return FakeGoogleClient()


@pytest.fixture
def app(database: Database, image_host: FakeImageHost, google_client: FakeGoogleClient) -> FastAPI:
    application = create_app(database=database)
    application.dependency_overrides[get_image_host] = lambda: image_host
    application.dependency_overrides[get_google_client] = lambda: google_client
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app (lifespan is not run, so there is no Redis)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test setup and assertions."""
    async with database.session_factory() as session:
        yield session


MakeUser = Callable[..., Awaitable[tuple[User, dict[str, str]]]]
MakeAdmin = Callable[..., Awaitable[tuple[Admin, dict[str, str]]]]


@pytest.fixture
def make_user(database: Database) -> MakeUser:
    """Insert an active user and return it with auth headers."""

    async def _make(email: str = "owner@example.com", role: str = "user", **fields: Any) -> tuple[User, dict[str, str]]:  # noqa: ANN401
        async with database.session_factory() as session:
            user = User(
                first_name=fields.pop("first_name", "Test"),
                last_name=fields.pop("last_name", "User"),
                email=email,
                password_hash=hash_password(TEST_PASSWORD),
                role=role,
                status=fields.pop("status", "active"),
                referral_code=fields.pop("referral_code", generate_referral_code()),
                **fields,
            )
            session.add(user)
            await session.commit()
        return user, user_headers(create_user_token(user.id, user.email, user.role))

    return _make


@pytest.fixture
def make_admin(database: Database) -> MakeAdmin:
    """Insert an active admin and return it with bearer headers."""

    async def _make(email: str = "admin@example.com", role: str = "admin") -> tuple[Admin, dict[str, str]]:
        async with database.session_factory() as session:
            admin = Admin(
                first_name="Site",
                last_name="Admin",
                email=email,
                password_hash=hash_password(TEST_PASSWORD),
                role=role,
                status="active",
            )
            session.add(admin)
            await session.commit()
        return admin, admin_headers(create_admin_token(admin.id, admin.email, admin.role))

    return _make


@pytest.fixture
def make_address(database: Database) -> Callable[..., Awaitable[Address]]:
    async def _make(user_id: int, **fields: Any) -> Address:  # noqa: ANN401
        values: dict[str, Any] = {
            "street": "12 Park Street",
            "city": "Kolkata",
            "state": "West Bengal",
            "postal_code": "700016",
            "country": "India",
            "is_default": False,
        }
        values.update(fields)
        async with database.session_factory() as session:
            address = Address(user_id=user_id, **values)
            session.add(address)
            await session.commit()
        return address

    return _make


@pytest.fixture
def make_post(database: Database) -> Callable[..., Awaitable[Post]]:
    """Insert a post directly, bypassing moderation."""
    counter = itertools.count(1)

    async def _make(owner_id: int, status: str = "available", **fields: Any) -> Post:  # noqa: ANN401
        n = next(counter)
        title = fields.pop("title", f"Friendly puppy {n}")
        species = fields.pop("species", "Dog")
        category = fields.pop("category", "Labrador")
        async with database.session_factory() as session:
            post = Post(
                owner_id=owner_id,
                title=title,
                slug=f"{slugify(title)}-{n:06d}",
                description=fields.pop("description", "A very friendly and playful companion."),
                images=fields.pop("images", []),
                amount=fields.pop("amount", 0),
                type=fields.pop("type", "free"),
                species=species,
                species_slug=slugify(species),
                category=category,
                category_slug=slugify(category),
                status=status,
                **fields,
            )
            session.add(post)
            await session.commit()
        return post

    return _make
