"""Input sanitisation helpers for user-supplied text, contact data, paths and URLs."""

import ipaddress
import re
import secrets
from urllib.parse import urlparse

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "`": "&#x60;",
    "=": "&#x3D;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>\"'/`=]")
_TAG_RE = re.compile(r"<[^>]*>")
_EMAIL_STRIP_RE = re.compile(r"[^a-z0-9@._+-]")
_PHONE_STRIP_RE = re.compile(r"[^0-9+\-() ]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_SHELL_META_RE = re.compile(r"[`$(){}|;&<>!]")
_WINDOWS_INVALID_RE = re.compile(r'[<>:"|?*]')
_SQL_LIKE_RE = re.compile(r"([%_\\])")

_BLOCKED_HOST_FRAGMENTS = ("localhost", "metadata")


def sanitize_string(value: str | None) -> str:
    """Escape HTML-significant characters so the value is inert in markup."""
    if not isinstance(value, str):
        return ""
    return _HTML_ESCAPE_RE.sub(lambda match: _HTML_ESCAPES[match.group(0)], value)


def strip_html(value: str | None) -> str:
    if not isinstance(value, str):
        return ""
    return _TAG_RE.sub("", value)


def sanitize_email(value: str | None) -> str:
    """Lowercase and drop characters that cannot appear in an address."""
    if not isinstance(value, str):
        return ""
    return _EMAIL_STRIP_RE.sub("", value.strip().lower())[:254]


def sanitize_phone(value: str | None) -> str:
    if not isinstance(value, str):
        return ""
    return _PHONE_STRIP_RE.sub("", value)[:20]


def sanitize_path(value: str | None) -> str:
    """Remove traversal sequences and leading slashes from a relative path."""
    if not isinstance(value, str):
        return ""
    cleaned = value.replace("..", "")
    cleaned = re.sub(r"/{2,}", "/", cleaned)
    cleaned = cleaned.lstrip("/")
    return _WINDOWS_INVALID_RE.sub("", cleaned)


def sanitize_filename(value: str | None) -> str:
    """Reduce an uploaded filename to a safe single path component.

    Returns:
        Cleaned name, or ``"file"`` when nothing usable is left
    """
    if not isinstance(value, str):
        return "file"
    cleaned = value.replace("..", "")
    cleaned = re.sub(r"[/\\]", "", cleaned)
    cleaned = _CONTROL_RE.sub("", cleaned)
    cleaned = _SHELL_META_RE.sub("", cleaned)
    cleaned = cleaned[:255]
    return cleaned or "file"


def _is_private_host(hostname: str) -> bool:
    if any(fragment in hostname for fragment in _BLOCKED_HOST_FRAGMENTS):
        return True
    try:
        address = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    )


def is_valid_url(value: str | None) -> bool:
    """Accept only http(s) URLs that do not point at internal hosts.

    Used before fetching or storing a user-supplied URL, to keep the API
    from being steered at loopback, private ranges or cloud metadata.
    """
    if not isinstance(value, str) or not value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    hostname = (parsed.hostname or "").lower()
    if not hostname:
        return False
    return not _is_private_host(hostname)


def escape_sql_like(value: str | None) -> str:
    """Escape LIKE wildcards; pair with ``escape="\\\\"`` in the query."""
    if not isinstance(value, str):
        return ""
    return _SQL_LIKE_RE.sub(r"\\\1", value)


def generate_csrf_token() -> str:
    return secrets.token_hex(32)
