from typing import Any, Dict
from fastapi import APIRouter, Depends, File, Request, UploadFile
import logging
from app.api.deps import get_settings
from app.core.auth import get_current_user
from app.core.config import Settings
from app.core.storage import BlobStorage, generate_file_key, validate_image
from app.schemas.user import CurrentUser

logger = logging.getLogger(__name__)
router = APIRouter()

def get_blob_storage(request: Request) -> BlobStorage:
    return request.app.state.blob_storage

@router.post("", response_model=Dict[str, Any])
async def upload_photo(
    *,
    photo: UploadFile = File(..., description="Product photo (jpeg, png, gif or webp)"),
    current_user: CurrentUser = Depends(get_current_user),
    storage: BlobStorage = Depends(get_blob_storage),
    settings: Settings = Depends(get_settings)
) -> Any:
    """
    Store a product photo and return its URL.

    The URL is then passed as ``photo_url`` when creating a declaration.
    """
    # Read one byte past the limit so oversized files are detected without loading them whole
    data = await photo.read(settings.MAX_UPLOAD_BYTES + 1)
    validate_image(photo.filename, photo.content_type, len(data), settings.MAX_UPLOAD_BYTES)

    key = generate_file_key(photo.filename, current_user.id)
    url = await storage.save(data, key, photo.content_type)
    logger.info(f"Photo uploaded by {current_user.id}: {key}")
    return {"success": True, "url": url}
