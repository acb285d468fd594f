"""Unit tests for input sanitisation helpers."""

import pytest

from dreamland.services.security import (
    escape_sql_like,
    generate_csrf_token,
    is_valid_url,
    sanitize_email,
    sanitize_filename,
    sanitize_path,
    sanitize_phone,
    sanitize_string,
    strip_html,
)


@pytest.mark.unit
class TestTextSanitisation:
    """Unit tests for text sanitisation."""

    def test_sanitize_string_escapes_markup(self) -> None:
        """Test that HTML-significant characters are escaped."""
        assert sanitize_string('<script>alert("x")</script>') == (
            "&lt;script&gt;alert(&quot;x&quot;)&lt;&#x2F;script&gt;"
        )

    def test_sanitize_string_non_string(self) -> None:
        """Test that non-strings become empty strings."""
        assert sanitize_string(None) == ""
        assert sanitize_string(42) == ""

    def test_strip_html(self) -> None:
        """Test that tags are removed and text kept."""
        assert strip_html("<b>Hello</b> <i>world</i>") == "Hello world"

    def test_sanitize_email(self) -> None:
        """Test that emails are trimmed, lowercased and stripped of junk."""
        assert sanitize_email("  Jane.Doe+trip@Example.COM ") == "jane.doe+trip@example.com"
        assert sanitize_email("bad<>@x.com") == "bad@x.com"

    def test_sanitize_phone(self) -> None:
        """Test that phones keep digits and separators only."""
        assert sanitize_phone("+1 (555) 010-9999 ext.") == "+1 (555) 010-9999 "
        assert len(sanitize_phone("1" * 40)) == 20

    def test_escape_sql_like(self) -> None:
        """Test that LIKE wildcards are escaped."""
        assert escape_sql_like("50%_off\\") == "50\\%\\_off\\\\"


@pytest.mark.unit
class TestPathSanitisation:
    """Unit tests for path and filename sanitisation."""

    def test_sanitize_path_removes_traversal(self) -> None:
        """Test that parent references and leading slashes are removed."""
        assert sanitize_path("/../etc//passwd") == "etc/passwd"

    def test_sanitize_filename(self) -> None:
        """Test that filenames lose separators and shell metacharacters."""
        assert sanitize_filename("../../evil;rm -rf $(x).png") == "evilrm -rf x.png"

    def test_sanitize_filename_fallback(self) -> None:
        """Test the fallback name when nothing usable remains."""
        assert sanitize_filename("../") == "file"
        assert sanitize_filename(None) == "file"


@pytest.mark.unit
class TestUrlValidation:
    """Unit tests for outbound URL validation."""

    @pytest.mark.parametrize(
        "url",
        ["https://example.com/image.png", "http://cdn.example.org/a?b=c"],
    )
    def test_public_urls_accepted(self, url: str) -> None:
        """Test that public http(s) URLs are accepted."""
        assert is_valid_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com/file",
            "http://localhost:8080/",
            "http://127.0.0.1/",
            "http://10.0.0.5/internal",
            "http://169.254.169.254/latest/meta-data",
            "http://metadata.google.internal/",
            "http://[::1]/",
            "not a url",
            "",
            None,
        ],
    )
    def test_internal_or_invalid_urls_rejected(self, url) -> None:
        """Test that internal hosts and non-http schemes are rejected."""
        assert is_valid_url(url) is False

    def test_csrf_token(self) -> None:
        """Test CSRF token shape and uniqueness."""
        token = generate_csrf_token()

        assert len(token) == 64
        assert token != generate_csrf_token()
