"""Checks for uploaded images before they are stored."""

from dataclasses import dataclass

from dreamland.services.errors import UploadRejectedError
from dreamland.services.security import sanitize_filename

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")


@dataclass(frozen=True)
class ValidatedUpload:
    filename: str
    content_type: str
    data: bytes


def sniff_image_type(data: bytes) -> str | None:
    """Identify an image from its leading magic bytes."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def validate_image_upload(
    filename: str | None,
    content_type: str | None,
    data: bytes,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> ValidatedUpload:
    """Validate an uploaded image.

    The declared content type must be an allowed image type and agree with
    the file's magic bytes, so a renamed executable or HTML file is refused
    even when the client lies about the type.

    Raises:
        UploadRejectedError: If the file is empty, too large or not the image it claims to be
    """
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared not in ALLOWED_IMAGE_TYPES:
        raise UploadRejectedError(
            "Invalid file type. Use JPEG, PNG, WebP, or GIF",
            details={"content_type": declared or None},
        )
    if not data:
        raise UploadRejectedError("No file provided")
    if len(data) > max_bytes:
        raise UploadRejectedError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)} MB",
            details={"size": len(data), "max_size": max_bytes},
        )

    actual = sniff_image_type(data)
    if actual != declared:
        raise UploadRejectedError(
            "File content does not match its declared type",
            details={"declared": declared, "detected": actual},
        )

    return ValidatedUpload(
        filename=sanitize_filename(filename),
        content_type=declared,
        data=data,
    )
