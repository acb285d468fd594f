"""Domain exception hierarchy mapped to HTTP responses by the error handlers."""

from fastapi import status


class DreamlandError(Exception):
    """Base class for errors that carry their own HTTP status and error type."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "internal_error"

    def __init__(self, message: str, details: str | dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DreamlandError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class BadRequestError(DreamlandError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "bad_request"


class ConflictError(DreamlandError):
    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"


class UploadRejectedError(DreamlandError):
    """Uploaded file failed type, size or content checks."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "upload_rejected"


class ConfigurationError(DreamlandError):
    """A required integration (Stripe, webhook secret) is not configured."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "configuration_error"


class EmailDeliveryError(Exception):
    """SMTP delivery failed; callers log it and carry on."""


class ImageStorageError(DreamlandError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "image_storage_error"
