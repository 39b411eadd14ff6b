"""
End-to-end tests for the listing API over HTTP.
"""

import pytest
import uuid
from decimal import Decimal
from httpx import AsyncClient

from roomfinder.models import User, PropertyType, TenantPreference
from roomfinder.repositories.listing import ListingRepository
from tests.conftest import ListingFactory, make_image_bytes


pytestmark = pytest.mark.integration


class TestListingEndpoints:
    """Test listing CRUD over HTTP."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, async_client: AsyncClient, owner: User, owner_headers):
        response = await async_client.post(
            "/api/v1/listings", json=ListingFactory.create_api_payload(), headers=owner_headers
        )

        assert response.status_code == 201
        created = response.json()
        assert created["owner_id"] == str(owner.id)
        assert created["property_type"] == "1BHK"

        response = await async_client.get(f"/api/v1/listings/{created['id']}")

        assert response.status_code == 200
        assert response.json()["title"] == created["title"]

    @pytest.mark.asyncio
    async def test_create_requires_token(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/listings", json=ListingFactory.create_api_payload())
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_rejects_owner_id(self, async_client: AsyncClient, owner_headers, other_user: User):
        payload = ListingFactory.create_api_payload()
        payload["owner_id"] = str(other_user.id)

        response = await async_client.post("/api/v1/listings", json=payload, headers=owner_headers)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_create_invalid_contact_number(self, async_client: AsyncClient, owner_headers):
        payload = ListingFactory.create_api_payload(contact_number="12345")

        response = await async_client.post("/api/v1/listings", json=payload, headers=owner_headers)

        assert response.status_code == 422
        fields = [detail["field"] for detail in response.json()["error"]["details"]]
        assert any("contact_number" in field for field in fields)

    @pytest.mark.asyncio
    async def test_get_missing(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/v1/listings/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_detail_is_public(self, async_client: AsyncClient, listing):
        response = await async_client.get(f"/api/v1/listings/{listing.id}")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_update(self, async_client: AsyncClient, listing, owner_headers):
        response = await async_client.patch(
            f"/api/v1/listings/{listing.id}", json={"rent": 9100, "title": "Renovated room"}, headers=owner_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["rent"] == 9100.0
        assert data["title"] == "Renovated room"
        assert data["location"] == listing.location

    @pytest.mark.asyncio
    async def test_update_owner_rejected(self, async_client: AsyncClient, listing, owner_headers, other_user: User):
        response = await async_client.patch(
            f"/api/v1/listings/{listing.id}", json={"owner_id": str(other_user.id)}, headers=owner_headers
        )

        assert response.status_code == 422

        response = await async_client.get(f"/api/v1/listings/{listing.id}")
        assert response.json()["owner_id"] == str(listing.owner_id)

    @pytest.mark.asyncio
    async def test_update_by_non_owner(self, async_client: AsyncClient, listing, other_headers):
        response = await async_client.patch(
            f"/api/v1/listings/{listing.id}", json={"title": "Mine now"}, headers=other_headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_delete(self, async_client: AsyncClient, listing, owner_headers):
        response = await async_client.delete(f"/api/v1/listings/{listing.id}", headers=owner_headers)
        assert response.status_code == 204

        response = await async_client.get(f"/api/v1/listings/{listing.id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_by_non_owner(self, async_client: AsyncClient, listing, other_headers):
        response = await async_client.delete(f"/api/v1/listings/{listing.id}", headers=other_headers)
        assert response.status_code == 403

        response = await async_client.get(f"/api/v1/listings/{listing.id}")
        assert response.status_code == 200


class TestListingSearch:
    """Test browsing and search parameters."""

    @pytest.fixture
    async def seeded(self, listing_repository: ListingRepository, owner: User, other_user: User):
        await ListingFactory.create_listing(
            listing_repository, owner.id,
            title="Sunny Flat", description="Bright flat close to the station", location="Kothrud, Pune",
            rent=Decimal("8000"), property_type=PropertyType.ONE_BHK, tenant_preference=TenantPreference.FAMILY
        )
        await ListingFactory.create_listing(
            listing_repository, other_user.id,
            title="Shared Room", description="Twin sharing with meals", location="Andheri, Mumbai",
            rent=Decimal("4000"), property_type=PropertyType.PG, tenant_preference=TenantPreference.STUDENTS
        )

    @pytest.mark.asyncio
    async def test_browse_newest_first(self, async_client: AsyncClient, seeded):
        response = await async_client.get("/api/v1/listings")

        assert response.status_code == 200
        data = response.json()
        assert [item["title"] for item in data["listings"]] == ["Shared Room", "Sunny Flat"]
        assert data["total"] == 2
        assert data["filtered"] is False

    @pytest.mark.asyncio
    async def test_text_query(self, async_client: AsyncClient, seeded):
        response = await async_client.get("/api/v1/listings", params={"q": "room"})

        data = response.json()
        assert [item["title"] for item in data["listings"]] == ["Shared Room"]
        assert data["filtered"] is True

    @pytest.mark.asyncio
    async def test_criteria(self, async_client: AsyncClient, seeded):
        response = await async_client.get(
            "/api/v1/listings", params={"property_type": "1BHK", "min_price": 5000}
        )

        assert [item["title"] for item in response.json()["listings"]] == ["Sunny Flat"]

    @pytest.mark.asyncio
    async def test_location_filter(self, async_client: AsyncClient, seeded):
        response = await async_client.get("/api/v1/listings", params={"location": "mumbai"})

        assert [item["title"] for item in response.json()["listings"]] == ["Shared Room"]

    @pytest.mark.asyncio
    async def test_invalid_price_range(self, async_client: AsyncClient, seeded):
        response = await async_client.get("/api/v1/listings", params={"min_price": 9000, "max_price": 1000})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_property_type(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/listings", params={"property_type": "Castle"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_mine(self, async_client: AsyncClient, seeded, owner_headers):
        response = await async_client.get("/api/v1/listings/mine", headers=owner_headers)

        assert response.status_code == 200
        assert [item["title"] for item in response.json()["listings"]] == ["Sunny Flat"]

    @pytest.mark.asyncio
    async def test_mine_requires_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/listings/mine")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_options(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/listings/options")

        assert response.status_code == 200
        data = response.json()
        assert "Independent House" in data["property_types"]
        assert "Working Professional" in data["tenant_preferences"]


class TestListingImagesEndpoints:
    """Test image upload and serving over HTTP."""

    @pytest.mark.asyncio
    async def test_upload_and_serve(self, async_client: AsyncClient, listing, owner_headers):
        image = make_image_bytes("PNG")

        response = await async_client.post(
            f"/api/v1/listings/{listing.id}/images",
            files=[("files", ("front.png", image, "image/png"))],
            headers=owner_headers
        )

        assert response.status_code == 200
        urls = response.json()["images"]
        assert len(urls) == 1
        assert urls[0].startswith("http://test/storage/room-images/")

        served = await async_client.get(urls[0].replace("http://test", ""))
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"
        assert served.content == image

    @pytest.mark.asyncio
    async def test_upload_partial_failure(self, async_client: AsyncClient, listing, owner_headers, object_store):
        response = await async_client.post(
            f"/api/v1/listings/{listing.id}/images",
            files=[
                ("files", ("good.png", make_image_bytes("PNG"), "image/png")),
                ("files", ("bad.png", b"not an image", "image/png")),
            ],
            headers=owner_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UPLOAD_ERROR"

        response = await async_client.get(f"/api/v1/listings/{listing.id}")
        assert response.json()["images"] == []
        assert len(list(object_store.bucket_dir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_upload_by_non_owner(self, async_client: AsyncClient, listing, other_headers):
        response = await async_client.post(
            f"/api/v1/listings/{listing.id}/images",
            files=[("files", ("a.png", make_image_bytes("PNG"), "image/png"))],
            headers=other_headers
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_image(self, async_client: AsyncClient, listing_repository, owner: User, owner_headers):
        images = ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]
        listing = await ListingFactory.create_listing(listing_repository, owner.id, images=images)

        response = await async_client.request(
            "DELETE", f"/api/v1/listings/{listing.id}/images", json={"url": images[1]}, headers=owner_headers
        )

        assert response.status_code == 200
        assert response.json()["images"] == [images[0]]

    @pytest.mark.asyncio
    async def test_missing_object(self, async_client: AsyncClient):
        response = await async_client.get("/storage/room-images/missing.png")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_wrong_bucket(self, async_client: AsyncClient):
        response = await async_client.get("/storage/other-bucket/missing.png")
        assert response.status_code == 404


class TestApplication:
    """Test application level behaviour."""

    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["api_prefix"] == "/api/v1"

    @pytest.mark.asyncio
    async def test_request_id_header(self, async_client: AsyncClient):
        response = await async_client.get("/", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert "X-Processing-Time" in response.headers

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_format(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "HTTP_404"
        assert error["request_id"]
