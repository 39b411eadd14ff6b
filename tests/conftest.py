"""
Test configuration and fixtures for the RoomFinder API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the test environment is set first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="roomfinder-test-"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://test")

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from roomfinder.main import app
from roomfinder.database import Base, get_db
from roomfinder.models import User, Listing, PropertyType, TenantPreference
from roomfinder.repositories.user import UserRepository
from roomfinder.repositories.listing import ListingRepository
from roomfinder.services.auth import AuthService
from roomfinder.services.image import ImageUploader
from roomfinder.services.listing import ListingService
from roomfinder.services.storage import LocalObjectStore, get_object_store
from roomfinder.utils.auth import create_access_token


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def object_store(tmp_path) -> LocalObjectStore:
    """Object store writing into the test's temporary directory."""
    return LocalObjectStore(root=tmp_path, bucket="room-images", public_base_url="http://test")


@pytest.fixture
async def async_client(db_session: AsyncSession, object_store: LocalObjectStore) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and storage overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    """Create a user repository instance."""
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    """Create a listing repository instance."""
    return ListingRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    """Create an auth service instance."""
    return AuthService(db_session)


@pytest.fixture
def image_uploader(object_store: LocalObjectStore) -> ImageUploader:
    """Create an image uploader backed by the test store."""
    return ImageUploader(object_store)


@pytest.fixture
def listing_service(db_session: AsyncSession, image_uploader: ImageUploader) -> ListingService:
    """Create a listing service instance."""
    return ListingService(db_session, uploader=image_uploader)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = TEST_PASSWORD,
        is_active: bool = True
    ) -> dict:
        """Create user data dictionary."""
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        password: str = TEST_PASSWORD,
        is_active: bool = True
    ) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(
            UserFactory.create_user_data(email=email, password=password, is_active=is_active)
        )


class ListingFactory:
    """Factory for creating test listings."""

    @staticmethod
    def create_listing_data(**overrides) -> dict:
        """Create listing data dictionary without an owner."""
        data = {
            "title": "Sunny room near metro",
            "description": "Furnished room with attached bathroom and balcony.",
            "location": "Koramangala, Bangalore",
            "rent": Decimal("8000.00"),
            "property_type": PropertyType.ONE_BHK,
            "tenant_preference": TenantPreference.WORKING_PROFESSIONAL,
            "contact_number": "9876543210",
            "images": [],
        }
        data.update(overrides)
        return data

    @staticmethod
    def create_api_payload(**overrides) -> dict:
        """Listing data as JSON sent by a client."""
        data = ListingFactory.create_listing_data(**overrides)
        data["rent"] = float(data["rent"])
        data["property_type"] = PropertyType(data["property_type"]).value
        data["tenant_preference"] = TenantPreference(data["tenant_preference"]).value
        return data

    @staticmethod
    async def create_listing(
        listing_repo: ListingRepository,
        owner_id: uuid.UUID,
        **overrides
    ) -> Listing:
        """Create a test listing in the database."""
        data = ListingFactory.create_listing_data(**overrides)
        data["owner_id"] = owner_id
        return await listing_repo.create_listing(data)


def make_image_bytes(image_format: str = "PNG", size=(20, 20), color: str = "red") -> bytes:
    """Render a small real image in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


def auth_headers_for(user: User) -> Dict[str, str]:
    """Bearer headers for a user."""
    token = create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


# User fixtures
@pytest.fixture
async def owner(user_repository: UserRepository) -> User:
    """User who posts listings."""
    return await UserFactory.create_user(user_repository, email="owner@example.com")


@pytest.fixture
async def other_user(user_repository: UserRepository) -> User:
    """A second user who does not own the test listings."""
    return await UserFactory.create_user(user_repository, email="other@example.com")


@pytest.fixture
async def inactive_user(user_repository: UserRepository) -> User:
    """Deactivated account."""
    return await UserFactory.create_user(user_repository, email="inactive@example.com", is_active=False)


@pytest.fixture
def owner_headers(owner: User) -> Dict[str, str]:
    return auth_headers_for(owner)


@pytest.fixture
def other_headers(other_user: User) -> Dict[str, str]:
    return auth_headers_for(other_user)


# Listing fixtures
@pytest.fixture
async def listing(listing_repository: ListingRepository, owner: User) -> Listing:
    """A listing owned by the owner fixture."""
    return await ListingFactory.create_listing(listing_repository, owner.id)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG", color="blue")
