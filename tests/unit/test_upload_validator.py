"""Unit tests for image upload validation and storage helpers."""

import pytest

from dreamland.services.errors import UploadRejectedError
from dreamland.services.image_storage import (
    ImageStorage,
    cloudinary_url,
    ensure_optimized,
    slugify_filename,
)
from dreamland.services.upload_validator import sniff_image_type, validate_image_upload

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 32
GIF = b"GIF89a" + b"\x00" * 32
WEBP = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 32


@pytest.mark.unit
class TestSniffImageType:
    """Unit tests for magic-byte detection."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (PNG, "image/png"),
            (JPEG, "image/jpeg"),
            (GIF, "image/gif"),
            (WEBP, "image/webp"),
            (b"<html><body>hi</body></html>", None),
            (b"MZ\x90\x00", None),
        ],
    )
    def test_sniff(self, data: bytes, expected) -> None:
        """Test detection of each supported format."""
        assert sniff_image_type(data) == expected


@pytest.mark.unit
class TestValidateImageUpload:
    """Unit tests for validate_image_upload."""

    def test_valid_png(self) -> None:
        """Test that a genuine PNG passes with a sanitised name."""
        upload = validate_image_upload("../safari photo.png", "image/png", PNG)

        assert upload.filename == "safari photo.png"
        assert upload.content_type == "image/png"
        assert upload.data == PNG

    def test_content_type_parameters_ignored(self) -> None:
        """Test that content type parameters do not affect the check."""
        upload = validate_image_upload("a.jpg", "image/jpeg; charset=binary", JPEG)

        assert upload.content_type == "image/jpeg"

    def test_disallowed_type(self) -> None:
        """Test that non-image types are refused."""
        with pytest.raises(UploadRejectedError, match="Invalid file type"):
            validate_image_upload("a.svg", "image/svg+xml", b"<svg/>")

    def test_empty_file(self) -> None:
        """Test that an empty file is refused."""
        with pytest.raises(UploadRejectedError, match="No file provided"):
            validate_image_upload("a.png", "image/png", b"")

    def test_too_large(self) -> None:
        """Test that files over the limit are refused."""
        with pytest.raises(UploadRejectedError, match="File too large"):
            validate_image_upload("a.png", "image/png", PNG, max_bytes=10)

    def test_disguised_file(self) -> None:
        """Test that an HTML file claiming to be a PNG is refused."""
        with pytest.raises(UploadRejectedError) as exc_info:
            validate_image_upload("a.png", "image/png", b"<html><script></script></html>")

        assert exc_info.value.details == {"declared": "image/png", "detected": None}

    def test_mismatched_image_type(self) -> None:
        """Test that a JPEG declared as PNG is refused."""
        with pytest.raises(UploadRejectedError):
            validate_image_upload("a.png", "image/png", JPEG)


@pytest.mark.unit
class TestImageStorageHelpers:
    """Unit tests for Cloudinary URL helpers and the inline fallback."""

    def test_cloudinary_url(self) -> None:
        """Test that delivery URLs always carry format and quality transforms."""
        assert cloudinary_url("dreamland/logo", width=200, cloud_name="demo") == (
            "https://res.cloudinary.com/demo/image/upload/f_auto,q_auto,w_200/dreamland/logo"
        )

    def test_ensure_optimized_adds_transforms(self) -> None:
        """Test that bare Cloudinary URLs gain optimisation transforms."""
        url = "https://res.cloudinary.com/demo/image/upload/v1/dreamland/a.jpg"

        assert ensure_optimized(url, cloud_name="demo") == (
            "https://res.cloudinary.com/demo/image/upload/f_auto,q_auto/v1/dreamland/a.jpg"
        )

    def test_ensure_optimized_adds_width_to_existing(self) -> None:
        """Test that a width is appended to existing transforms once."""
        url = "https://res.cloudinary.com/demo/image/upload/f_auto,q_auto/dreamland/a.jpg"
        widened = ensure_optimized(url, width=400, cloud_name="demo")

        assert widened.endswith("/f_auto,q_auto,w_400/dreamland/a.jpg")
        assert ensure_optimized(widened, width=400, cloud_name="demo") == widened

    def test_ensure_optimized_ignores_other_hosts(self) -> None:
        """Test that non-Cloudinary URLs are untouched."""
        assert ensure_optimized("https://example.com/a.jpg", cloud_name="demo") == (
            "https://example.com/a.jpg"
        )

    def test_slugify_filename(self) -> None:
        """Test public id slugs built from filenames."""
        assert slugify_filename("Kilimanjaro Summit!.JPG") == "kilimanjaro-summit"
        assert slugify_filename("...png") == "image"

    @pytest.mark.asyncio
    async def test_inline_fallback(self) -> None:
        """Test that without credentials images come back as data URLs."""
        storage = ImageStorage(cloud_name="", api_key="", api_secret="")
        upload = validate_image_upload("a.png", "image/png", PNG)

        stored = await storage.store(upload)

        assert storage.configured is False
        assert stored["url"].startswith("data:image/png;base64,")
        assert stored["publicId"] is None
