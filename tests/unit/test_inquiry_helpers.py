"""Unit tests for inquiry reference helpers."""

import pytest

from dreamland.services.booking_service import resolve_tour_reference
from dreamland.services.id_encoder import encode_id
from dreamland.services.inquiry_service import bank_transfer_reference, to_base36


@pytest.mark.unit
class TestBankTransferReference:
    """Unit tests for bank transfer references."""

    def test_to_base36(self) -> None:
        """Test base-36 conversion."""
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"
        assert to_base36(46_691) == "100Z"

    def test_reference_format(self) -> None:
        """Test that references combine time and the inquiry id suffix."""
        reference = bank_transfer_reference("9b1deb4d-3b7d-4bad-9bdd-2b0d7b3dcb6d", now_ms=46_691)

        assert reference == "UTM-100Z-CB6D"

    def test_reference_uses_clock(self) -> None:
        """Test that a reference is produced without an explicit time."""
        reference = bank_transfer_reference("abcd1234")

        assert reference.startswith("UTM-")
        assert reference.endswith("-1234")


@pytest.mark.unit
class TestResolveTourReference:
    """Unit tests for public tour references."""

    def test_encoded_id_decoded(self) -> None:
        """Test that an opaque id resolves to the database id."""
        assert resolve_tour_reference(encode_id("tour-123")) == "tour-123"

    def test_raw_id_passed_through(self) -> None:
        """Test that a raw id is accepted as is."""
        assert resolve_tour_reference("tour-123") == "tour-123"

    def test_empty(self) -> None:
        """Test that empty references resolve to None."""
        assert resolve_tour_reference(None) is None
        assert resolve_tour_reference("") is None
