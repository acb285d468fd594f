"""Admin image upload endpoint."""

import structlog
from fastapi import APIRouter, Depends, File, UploadFile

from dreamland.api.dependencies import get_image_storage
from dreamland.api.middleware.auth import require_admin
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.auth.admin_session import AdminSession
from dreamland.services.image_storage import ImageStorage
from dreamland.services.upload_validator import MAX_UPLOAD_BYTES, validate_image_upload

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


@router.post(
    "/upload",
    summary="Upload an image",
    dependencies=[Depends(rate_limit("upload", RateLimitTier.HEAVY))],
)
async def upload_image(
    file: UploadFile = File(...),
    admin: AdminSession = Depends(require_admin),
    storage: ImageStorage = Depends(get_image_storage),
) -> dict:
    """Validate and store an image.

    Returns:
        ``{ok, url, publicId, filename}``; ``url`` is an optimised Cloudinary
        delivery URL, or a ``data:`` URL when Cloudinary is not configured

    Raises:
        UploadRejectedError: Wrong type, magic-bytes mismatch, empty or over 10 MB
        ImageStorageError: If Cloudinary rejects the upload
    """
    # One byte past the limit is enough to reject without buffering the rest
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    upload = validate_image_upload(file.filename, file.content_type, data)

    stored = await storage.store(upload)
    logger.info(
        "image_upload_accepted",
        admin=admin.email,
        filename=upload.filename,
        content_type=upload.content_type,
        size=len(upload.data),
    )
    return {"ok": True, **stored}
