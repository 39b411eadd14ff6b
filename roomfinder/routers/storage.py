"""
Public read access to stored objects.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
import mimetypes

from roomfinder.services.storage import LocalObjectStore, get_object_store
from roomfinder.schemas.error import error_responses
from roomfinder.utils.exceptions import NotFoundError


router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get(
    "/{bucket}/{key}",
    summary="Get stored object",
    description="Serve an uploaded image by bucket and key",
    response_class=FileResponse,
    responses=error_responses(404)
)
async def get_object(
    bucket: str,
    key: str,
    store: LocalObjectStore = Depends(get_object_store)
) -> FileResponse:
    """
    Serve a stored object.

    Raises:
        NotFoundError: If the bucket is unknown or the object does not exist
    """
    if bucket != store.bucket or not store.exists(key):
        raise NotFoundError("Object", f"{bucket}/{key}")

    media_type, _ = mimetypes.guess_type(key)
    return FileResponse(store.object_path(key), media_type=media_type or "application/octet-stream")
