"""
Tests for the RoomFinder HTTP client, run against the app in process.
"""

import pytest
import uuid
import httpx
from httpx import ASGITransport, AsyncClient

from roomfinder.client import RoomFinderClient, error_from_response
from roomfinder.main import app
from roomfinder.models import PropertyType
from roomfinder.services.image import ImageFile
from roomfinder.session import SessionEvent, SessionStore
from roomfinder.utils.exceptions import (
    ForbiddenError,
    NotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
    UploadError,
    ValidationError,
)
from roomfinder.utils.filters import ListingCriteria
from tests.conftest import ListingFactory, TEST_PASSWORD, make_image_bytes


pytestmark = pytest.mark.integration


@pytest.fixture
async def client(async_client: AsyncClient):
    """RoomFinderClient sharing the overridden app with async_client."""
    async with RoomFinderClient(base_url="http://test", transport=ASGITransport(app=app)) as rf_client:
        yield rf_client


@pytest.fixture
async def signed_in_client(client: RoomFinderClient, owner):
    await client.sign_in(owner.email, TEST_PASSWORD)
    return client


class TestClientSession:
    """Test sign in and out through the client."""

    @pytest.mark.asyncio
    async def test_sign_up_publishes_event(self, client: RoomFinderClient):
        events = []
        client.session_store.subscribe(lambda event, session: events.append((event, session.email if session else None)))

        await client.sign_up("fresh@example.com", "freshpassword1")

        assert events == [(SessionEvent.SIGNED_UP, "fresh@example.com")]
        assert client.session_store.current.email == "fresh@example.com"

    @pytest.mark.asyncio
    async def test_sign_in_and_out(self, client: RoomFinderClient, owner):
        events = []
        client.session_store.subscribe(lambda event, session: events.append(event))

        session = await client.sign_in(owner.email, TEST_PASSWORD)
        assert session.user_id == owner.id
        assert await client.get_current_session() == session

        await client.sign_out()

        assert client.session_store.current is None
        assert await client.get_current_session() is None
        assert events == [SessionEvent.SIGNED_IN, SessionEvent.SIGNED_OUT]

    @pytest.mark.asyncio
    async def test_sign_out_without_session_is_silent(self, client: RoomFinderClient):
        events = []
        client.session_store.subscribe(lambda event, session: events.append(event))

        await client.sign_out()

        assert events == []
        assert client.session_store.current is None

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: RoomFinderClient, owner):
        with pytest.raises(UnauthorizedError):
            await client.sign_in(owner.email, "wrongpassword")
        assert client.session_store.current is None

    @pytest.mark.asyncio
    async def test_shared_session_store(self, async_client: AsyncClient, owner):
        """A store passed in is the one that receives the session."""
        store = SessionStore()
        async with RoomFinderClient(
            base_url="http://test", session_store=store, transport=ASGITransport(app=app)
        ) as rf_client:
            await rf_client.sign_in(owner.email, TEST_PASSWORD)

        assert store.user_id == owner.id


class TestClientListings:
    """Test listing operations through the client."""

    @pytest.mark.asyncio
    async def test_create_with_images(self, signed_in_client: RoomFinderClient, owner):
        draft = ListingFactory.create_api_payload(title="Room with a view")
        files = [ImageFile(make_image_bytes("PNG"), "view.png", "image/png")]

        listing = await signed_in_client.create(draft, files)

        assert listing.owner_id == str(owner.id)
        assert len(listing.images) == 1
        assert signed_in_client.listings[0].images == listing.images

    @pytest.mark.asyncio
    async def test_create_invalid(self, signed_in_client: RoomFinderClient):
        with pytest.raises(ValidationError):
            await signed_in_client.create(ListingFactory.create_api_payload(contact_number="1"))
        assert signed_in_client.listings == []

    @pytest.mark.asyncio
    async def test_refresh_and_search(self, signed_in_client: RoomFinderClient, listing_repository, owner):
        await ListingFactory.create_listing(
            listing_repository, owner.id, title="Sunny Flat", description="Bright flat", location="Pune"
        )
        await ListingFactory.create_listing(
            listing_repository, owner.id, title="Shared Room", location="Mumbai",
            property_type=PropertyType.PG, rent=4000
        )

        listings = await signed_in_client.refresh()

        assert [item.title for item in listings] == ["Shared Room", "Sunny Flat"]
        assert [item.title for item in signed_in_client.search("room")] == ["Shared Room"]
        criteria = ListingCriteria(property_type=PropertyType.ONE_BHK, min_price=5000)
        assert [item.title for item in signed_in_client.search("", criteria)] == ["Sunny Flat"]

    @pytest.mark.asyncio
    async def test_update_replaces_local_copy(self, signed_in_client: RoomFinderClient, listing):
        await signed_in_client.refresh()

        updated = await signed_in_client.update(listing.id, {"rent": 7200})

        assert updated.rent == 7200.0
        assert signed_in_client.listings[0].rent == 7200.0

    @pytest.mark.asyncio
    async def test_upload_failure_raises_upload_error(self, signed_in_client: RoomFinderClient, listing):
        with pytest.raises(UploadError):
            await signed_in_client.upload_images(listing.id, [ImageFile(b"junk", "junk.png")])

        assert (await signed_in_client.get(listing.id)).images == []

    @pytest.mark.asyncio
    async def test_remove_image(self, signed_in_client: RoomFinderClient, listing_repository, owner):
        images = ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]
        listing = await ListingFactory.create_listing(listing_repository, owner.id, images=images)

        updated = await signed_in_client.remove_image(listing.id, images[0])

        assert updated.images == [images[1]]

    @pytest.mark.asyncio
    async def test_get_missing(self, client: RoomFinderClient):
        with pytest.raises(NotFoundError):
            await client.get(uuid.uuid4())


class TestOptimisticDelete:
    """Deleting only changes the local list after the server agrees."""

    @pytest.mark.asyncio
    async def test_delete_success_removes_locally(self, signed_in_client: RoomFinderClient, listing_repository, owner):
        first = await ListingFactory.create_listing(listing_repository, owner.id, title="First")
        await ListingFactory.create_listing(listing_repository, owner.id, title="Second")
        await signed_in_client.refresh()

        await signed_in_client.delete(first.id)

        assert [item.title for item in signed_in_client.listings] == ["Second"]
        with pytest.raises(NotFoundError):
            await signed_in_client.get(first.id)

    @pytest.mark.asyncio
    async def test_delete_forbidden_keeps_local_list(
        self, client: RoomFinderClient, listing, other_user
    ):
        await client.sign_in(other_user.email, TEST_PASSWORD)
        await client.refresh()
        before = list(client.listings)

        with pytest.raises(ForbiddenError):
            await client.delete(listing.id)

        assert client.listings == before
        assert (await client.get(listing.id)).id == str(listing.id)

    @pytest.mark.asyncio
    async def test_delete_missing_keeps_local_list(self, signed_in_client: RoomFinderClient, listing):
        await signed_in_client.refresh()

        with pytest.raises(NotFoundError):
            await signed_in_client.delete(uuid.uuid4())

        assert [item.id for item in signed_in_client.listings] == [str(listing.id)]

    @pytest.mark.asyncio
    async def test_delete_signed_out(self, client: RoomFinderClient, listing):
        await client.refresh()

        with pytest.raises(UnauthorizedError):
            await client.delete(listing.id)

        assert len(client.listings) == 1


class TestErrorMapping:
    """Test error_from_response."""

    def _response(self, status_code: int, body) -> httpx.Response:
        return httpx.Response(status_code, json=body, request=httpx.Request("GET", "http://test"))

    def test_validation_details(self):
        error = error_from_response(self._response(422, {
            "error": {"code": "VALIDATION_ERROR", "message": "bad", "details": [{"field": "rent", "message": "x"}]}
        }))
        assert isinstance(error, ValidationError)
        assert error.field_errors[0]["field"] == "rent"

    def test_storage_unavailable(self):
        error = error_from_response(self._response(503, {
            "error": {"code": "STORAGE_UNAVAILABLE", "message": "down"}
        }))
        assert isinstance(error, StorageUnavailableError)
        assert error.detail == "down"

    def test_non_json_body(self):
        response = httpx.Response(502, text="Bad Gateway", request=httpx.Request("GET", "http://test"))
        error = error_from_response(response)
        assert error.status_code == 502
        assert error.detail == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with RoomFinderClient(transport=httpx.MockTransport(refuse)) as rf_client:
            with pytest.raises(StorageUnavailableError):
                await rf_client.refresh()
