"""
Async HTTP client for the RoomFinder API.

RoomFinderClient keeps the state a front end needs: the signed-in session
(in a SessionStore that others can subscribe to) and the listings currently
on screen. Searching works on that local copy; deleting only removes a
listing from it after the server confirms the delete.
"""

from typing import Any, Dict, List, Optional, Sequence, Union
import logging
import uuid

import httpx

from roomfinder.config import settings
from roomfinder.schemas.auth import SessionResponse
from roomfinder.schemas.listing import ListingCreate, ListingResponse, ListingUpdate
from roomfinder.services.image import ImageFile
from roomfinder.session import Session, SessionEvent, SessionStore
from roomfinder.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
    UploadError,
    ValidationError,
)
from roomfinder.utils.filters import ListingCriteria, filter_listings, without_listing

logger = logging.getLogger(__name__)

ListingDraft = Union[ListingCreate, Dict[str, Any]]
ListingChanges = Union[ListingUpdate, Dict[str, Any]]


def error_from_response(response: httpx.Response) -> APIException:
    """
    Rebuild the API exception described by an error response.

    Args:
        response: Response with a 4xx or 5xx status

    Returns:
        Exception matching the response's error code
    """
    try:
        error = response.json().get("error", {})
    except ValueError:
        error = {}

    code = error.get("code")
    message = error.get("message") or response.text or response.reason_phrase

    if code == "VALIDATION_ERROR":
        return ValidationError(message, field_errors=error.get("details"))
    if code == "NOT_FOUND":
        return NotFoundError(detail=message)
    if code == "UPLOAD_ERROR":
        return UploadError(message)
    if code == "STORAGE_UNAVAILABLE":
        return StorageUnavailableError(message)
    if response.status_code == 401:
        return UnauthorizedError(message)
    if response.status_code == 403:
        return ForbiddenError(message)
    if response.status_code == 400:
        return BadRequestError(message)
    return APIException(response.status_code, message, error_code=code)


class RoomFinderClient:
    """
    Client for one user of the RoomFinder API.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``
        session_store: Store to publish session changes to; a new one is created if omitted
        transport: Optional httpx transport, e.g. ``httpx.ASGITransport(app=app)``
        api_prefix: Path prefix of the versioned API
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session_store: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        api_prefix: str = settings.api_v1_prefix,
        timeout: float = 10.0
    ):
        self.session_store = session_store or SessionStore()
        self.listings: List[ListingResponse] = []
        self.api_prefix = api_prefix.rstrip("/")
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "RoomFinderClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Send a request with the current session's token, if any.

        Raises:
            APIException: Subclass matching the error response
            StorageUnavailableError: If the server cannot be reached
        """
        headers = kwargs.pop("headers", {})
        session = self.session_store.current
        if session is not None:
            headers.update(session.authorization_header)

        try:
            response = await self._http.request(method, f"{self.api_prefix}{path}", headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise StorageUnavailableError(f"Service unreachable: {str(e)}")

        if response.is_error:
            raise error_from_response(response)
        return response

    # Identity

    @staticmethod
    def _session_from(data: Dict[str, Any]) -> Session:
        payload = SessionResponse.model_validate(data)
        return Session(
            user_id=uuid.UUID(payload.user_id),
            email=payload.email,
            access_token=payload.access_token,
            expires_at=payload.expires_at,
            token_type=payload.token_type,
        )

    async def sign_up(self, email: str, password: str) -> Session:
        """Create an account; the new session becomes current."""
        response = await self._request("POST", "/auth/signup", json={"email": email, "password": password})
        session = self._session_from(response.json())
        self.session_store.set_session(session, SessionEvent.SIGNED_UP)
        return session

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in; the session becomes current.

        Raises:
            UnauthorizedError: If the credentials are wrong
        """
        response = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        session = self._session_from(response.json())
        self.session_store.set_session(session, SessionEvent.SIGNED_IN)
        return session

    async def sign_out(self) -> None:
        """Sign out. The local session is cleared even if the server call fails."""
        if self.session_store.current is None:
            return

        try:
            await self._request("POST", "/auth/logout")
        except UnauthorizedError:
            logger.info("Session was already invalid on the server")
        finally:
            self.session_store.clear()

    async def get_current_session(self) -> Optional[Session]:
        """
        The current session, checked against the server.

        A token the server no longer accepts clears the local session.
        """
        session = self.session_store.current
        if session is None:
            return None

        response = await self._request("GET", "/auth/session")
        if response.json() is None:
            self.session_store.clear()
            return None
        return session

    # Listings

    async def refresh(self, mine: bool = False) -> List[ListingResponse]:
        """
        Reload the local listing list from the server, newest first.

        Args:
            mine: Load only the current user's listings

        Returns:
            The reloaded list
        """
        response = await self._request("GET", "/listings/mine" if mine else "/listings")
        self.listings = [
            ListingResponse.model_validate(item) for item in response.json()["listings"]
        ]
        return self.listings

    async def my_listings(self) -> List[ListingResponse]:
        return await self.refresh(mine=True)

    def search(self, query: str = "", criteria: Optional[ListingCriteria] = None) -> List[ListingResponse]:
        """Filter the local listing list without a server round trip."""
        return filter_listings(self.listings, query, criteria)

    async def get(self, listing_id: Union[uuid.UUID, str]) -> ListingResponse:
        response = await self._request("GET", f"/listings/{listing_id}")
        return ListingResponse.model_validate(response.json())

    async def create(
        self,
        draft: ListingDraft,
        files: Optional[Sequence[ImageFile]] = None
    ) -> ListingResponse:
        """
        Post a listing, then upload its images.

        Raises:
            ValidationError: If the draft is rejected
            UploadError: If an image fails; the listing exists without the new images
        """
        body = draft.model_dump(mode="json") if isinstance(draft, ListingCreate) else draft
        response = await self._request("POST", "/listings", json=body)
        listing = ListingResponse.model_validate(response.json())
        self.listings = [listing] + self.listings

        if files:
            listing = await self.upload_images(listing.id, files)
        return listing

    async def update(self, listing_id: Union[uuid.UUID, str], changes: ListingChanges) -> ListingResponse:
        """Send a partial update and refresh the local copy of that listing."""
        if isinstance(changes, ListingUpdate):
            body = changes.model_dump(mode="json", exclude_unset=True)
        else:
            body = changes
        response = await self._request("PATCH", f"/listings/{listing_id}", json=body)
        return self._replace_local(ListingResponse.model_validate(response.json()))

    async def upload_images(
        self,
        listing_id: Union[uuid.UUID, str],
        files: Sequence[ImageFile]
    ) -> ListingResponse:
        """
        Upload images and attach them to a listing in order.

        Raises:
            UploadError: If any image fails; none of these images are attached
        """
        multipart = [
            ("files", (image.file_name, image.content, image.content_type or "application/octet-stream"))
            for image in files
        ]
        response = await self._request("POST", f"/listings/{listing_id}/images", files=multipart)
        return self._replace_local(ListingResponse.model_validate(response.json()))

    async def remove_image(self, listing_id: Union[uuid.UUID, str], url: str) -> ListingResponse:
        response = await self._request("DELETE", f"/listings/{listing_id}/images", json={"url": url})
        return self._replace_local(ListingResponse.model_validate(response.json()))

    async def delete(self, listing_id: Union[uuid.UUID, str]) -> None:
        """
        Delete a listing.

        The listing leaves the local list only once the server confirms the
        delete. On any error the local list is untouched and the error is raised.
        """
        await self._request("DELETE", f"/listings/{listing_id}")
        self.listings = without_listing(self.listings, listing_id)
        logger.info(f"Deleted listing {listing_id}")

    def _replace_local(self, listing: ListingResponse) -> ListingResponse:
        self.listings = [listing if item.id == listing.id else item for item in self.listings]
        return listing
