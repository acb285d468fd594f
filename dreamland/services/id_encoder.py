"""Opaque, tamper-evident public IDs.

Database IDs never appear in public URLs. A token has three dot-separated
parts::

    {hashid}.{signature}.{payload}

``hashid`` is a Hashids encoding of a 32-bit digest of the ID (obfuscation),
``signature`` a truncated HMAC-SHA256 of the ID (integrity) and ``payload``
the base64url ID itself, so decoding needs no lookup table.
"""

import base64
import binascii
import hashlib
import hmac
import os
from functools import lru_cache

import structlog
from hashids import Hashids

from dreamland.services.errors import ConfigurationError

logger = structlog.get_logger(__name__)

# No 0/O/o, 1/l/I look-alikes
HASHIDS_ALPHABET = "abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ23456789"
HASHIDS_MIN_LENGTH = 8
SIGNATURE_LENGTH = 6

_DEV_SECRET = "dev-encoder-secret-change-in-production"


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class IdEncoder:
    """Encodes string IDs into signed URL tokens and back."""

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError("ID encoder secret is empty")
        self._secret = secret.encode("utf-8")
        self._hashids = Hashids(
            salt=secret, min_length=HASHIDS_MIN_LENGTH, alphabet=HASHIDS_ALPHABET
        )

    def _sign(self, value: str) -> str:
        digest = hmac.new(self._secret, value.encode("utf-8"), hashlib.sha256).digest()
        return _b64url_encode(digest)[:SIGNATURE_LENGTH]

    @staticmethod
    def _numeric_digest(value: str) -> int:
        return int.from_bytes(hashlib.sha256(value.encode("utf-8")).digest()[:4], "big")

    def encode(self, raw_id: str) -> str:
        """Encode a database ID.

        Raises:
            ValueError: If the ID is empty
        """
        if not raw_id:
            raise ValueError("ID cannot be empty")

        hashid = self._hashids.encode(self._numeric_digest(raw_id))
        signature = self._sign(raw_id)
        payload = _b64url_encode(raw_id.encode("utf-8"))
        return f"{hashid}.{signature}.{payload}"

    def decode(self, token: str | None) -> str | None:
        """Decode a token back to its database ID.

        Returns:
            The ID, or None if the token is malformed or was tampered with
        """
        if not token:
            return None

        parts = token.split(".")
        if len(parts) != 3 or not all(parts):
            return None
        hashid, signature, payload = parts

        try:
            raw_id = _b64url_decode(payload).decode("utf-8")
        except (binascii.Error, ValueError):
            return None
        if not raw_id:
            return None

        if not hmac.compare_digest(signature.encode("utf-8"), self._sign(raw_id).encode("utf-8")):
            logger.warning("encoded_id_signature_mismatch")
            return None
        if self._hashids.decode(hashid) != (self._numeric_digest(raw_id),):
            logger.warning("encoded_id_hash_mismatch")
            return None

        return raw_id

    def encode_many(self, ids: list[str]) -> list[str]:
        return [self.encode(raw_id) for raw_id in ids]

    def decode_many(self, tokens: list[str]) -> list[str | None]:
        """Decode several tokens; invalid ones become None in place."""
        return [self.decode(token) for token in tokens]

    def encode_numeric(self, value: int) -> str:
        """Hashids-only encoding for integer IDs (no signature)."""
        return self._hashids.encode(value)

    def decode_numeric(self, value: str) -> int | None:
        decoded = self._hashids.decode(value)
        return decoded[0] if decoded else None

    def validate(self, token: str | None) -> tuple[bool, str | None, str | None]:
        """Validate a token from a request.

        Returns:
            (valid, id, error) where error is a client-facing message
        """
        if not token:
            return False, None, "Missing ID parameter"
        decoded = self.decode(token)
        if decoded is None:
            return False, None, "Invalid or tampered ID"
        return True, decoded, None


def _resolve_secret() -> str:
    secret = os.getenv("ID_ENCODER_SECRET") or os.getenv("SESSION_SECRET")
    if secret:
        return secret
    if os.getenv("APP_ENV", "development") == "production":
        raise ConfigurationError("ID_ENCODER_SECRET is not set")
    return _DEV_SECRET


@lru_cache(maxsize=1)
def get_id_encoder() -> IdEncoder:
    """Process-wide encoder built from the environment."""
    return IdEncoder(_resolve_secret())


def encode_id(raw_id: str) -> str:
    return get_id_encoder().encode(raw_id)


def decode_id(token: str | None) -> str | None:
    return get_id_encoder().decode(token)


def encode_ids(ids: list[str]) -> list[str]:
    return get_id_encoder().encode_many(ids)


def decode_ids(tokens: list[str]) -> list[str | None]:
    return get_id_encoder().decode_many(tokens)


def validate_encoded_id(token: str | None) -> tuple[bool, str | None, str | None]:
    return get_id_encoder().validate(token)
