"""Image hosting on Cloudinary, with a data-URL fallback for local development."""

import base64
import io
import os
import re
import uuid

import cloudinary.exceptions
import cloudinary.uploader
import structlog
from starlette.concurrency import run_in_threadpool

from dreamland.services.errors import ImageStorageError
from dreamland.services.upload_validator import ValidatedUpload

logger = structlog.get_logger(__name__)

_TRANSFORM_PREFIXES = ("f_", "q_", "w_", "h_", "c_")


def _cloud_name() -> str:
    return os.getenv("CLOUDINARY_CLOUD_NAME", "")


def cloudinary_url(
    public_id: str,
    width: int | None = None,
    height: int | None = None,
    crop: str | None = None,
    quality: str | int = "auto",
    fmt: str = "auto",
    cloud_name: str | None = None,
) -> str:
    """Delivery URL for ``public_id``, always with format and quality optimisation.

    Example:
        cloudinary_url("dreamland/logo", width=200)
        # -> https://res.cloudinary.com/<cloud>/image/upload/f_auto,q_auto,w_200/dreamland/logo
    """
    transforms = [f"f_{fmt}", f"q_{quality}"]
    if width:
        transforms.append(f"w_{width}")
    if height:
        transforms.append(f"h_{height}")
    if crop:
        transforms.append(f"c_{crop}")
    cloud = cloud_name or _cloud_name()
    return f"https://res.cloudinary.com/{cloud}/image/upload/{','.join(transforms)}/{public_id}"


def ensure_optimized(url: str, width: int | None = None, cloud_name: str | None = None) -> str:
    """Inject ``f_auto,q_auto`` (and optionally a width) into a Cloudinary URL.

    URLs from other hosts are returned unchanged.
    """
    if not url:
        return url
    cloud_base = f"https://res.cloudinary.com/{cloud_name or _cloud_name()}/image/upload/"
    if not url.startswith(cloud_base):
        return url

    rest = url[len(cloud_base):]
    if rest.startswith(_TRANSFORM_PREFIXES):
        if not width or f"w_{width}" in rest:
            return url
        transforms, _, public_id = rest.partition("/")
        if not public_id:
            return url
        return f"{cloud_base}{transforms},w_{width}/{public_id}"

    transforms = f"f_auto,q_auto,w_{width}" if width else "f_auto,q_auto"
    return f"{cloud_base}{transforms}/{rest}"


def slugify_filename(filename: str) -> str:
    stem = filename.rsplit(".", 1)[0].lower()
    slug = re.sub(r"[^a-z0-9]+", "-", stem).strip("-")
    return slug or "image"


class ImageStorage:
    """Stores validated uploads.

    With Cloudinary credentials the image goes to ``{folder}/{slug}-{suffix}``;
    without them the image is returned inline as a ``data:`` URL.
    """

    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        folder: str | None = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else _cloud_name()
        self.api_key = api_key if api_key is not None else os.getenv("CLOUDINARY_API_KEY", "")
        self.api_secret = (
            api_secret if api_secret is not None else os.getenv("CLOUDINARY_API_SECRET", "")
        )
        self.folder = folder or os.getenv("CLOUDINARY_FOLDER", "dreamland")

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    async def store(self, upload: ValidatedUpload) -> dict:
        """Store an image and describe where it lives.

        Returns:
            Dict with ``url``, ``publicId`` (None for data URLs) and ``filename``

        Raises:
            ImageStorageError: If Cloudinary rejects the upload
        """
        if not self.configured:
            encoded = base64.b64encode(upload.data).decode("ascii")
            logger.info("image_stored_inline", filename=upload.filename, size=len(upload.data))
            return {
                "url": f"data:{upload.content_type};base64,{encoded}",
                "publicId": None,
                "filename": upload.filename,
            }

        public_id = f"{slugify_filename(upload.filename)}-{uuid.uuid4().hex[:8]}"
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(upload.data),
                public_id=public_id,
                folder=self.folder,
                overwrite=True,
                resource_type="image",
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                secure=True,
            )
        except cloudinary.exceptions.Error as exc:
            logger.error("image_upload_failed", filename=upload.filename, error=str(exc))
            raise ImageStorageError("Image upload failed") from exc

        stored_id = result["public_id"]
        logger.info("image_uploaded", public_id=stored_id, bytes=result.get("bytes"))
        return {
            "url": cloudinary_url(stored_id, cloud_name=self.cloud_name),
            "publicId": stored_id,
            "filename": upload.filename,
        }
