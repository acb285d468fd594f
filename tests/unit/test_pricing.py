"""Unit tests for pricing and payment-state arithmetic."""

from decimal import Decimal

import pytest

from dreamland.models.booking import PaymentStatus
from dreamland.services.pricing import (
    advance_for,
    from_minor_units,
    paid_percentage,
    payment_status_for,
    quote_booking,
    to_minor_units,
    to_money,
)


@pytest.mark.unit
class TestQuoteBooking:
    """Unit tests for booking request quotes."""

    def test_adults_only(self) -> None:
        """Test that a quote for adults only is price times adults."""
        quote = quote_booking(1000, adults=2)

        assert quote.total == Decimal("2000.00")
        assert quote.advance == Decimal("600.00")

    def test_children_pay_seventy_percent(self) -> None:
        """Test that each child is charged 70% of the adult price."""
        quote = quote_booking(1000, adults=2, children=1)

        assert quote.child_price == Decimal("700.00")
        assert quote.total == Decimal("2700.00")
        assert quote.advance == Decimal("810.00")

    def test_amounts_round_to_cents(self) -> None:
        """Test that fractional prices are rounded half up to the cent."""
        quote = quote_booking("99.99", adults=1, children=1)

        assert quote.child_price == Decimal("69.99")
        assert quote.total == Decimal("169.98")
        assert quote.advance == Decimal("50.99")

    def test_zero_price_quote(self) -> None:
        """Test that an unpriced tour produces a zero quote."""
        quote = quote_booking(0, adults=3)

        assert quote.total == Decimal("0.00")
        assert quote.advance == Decimal("0.00")


@pytest.mark.unit
class TestMoneyConversions:
    """Unit tests for money helpers."""

    def test_to_money_accepts_floats_and_strings(self) -> None:
        """Test that floats and strings are coerced without binary noise."""
        assert to_money(0.1 + 0.2) == Decimal("0.30")
        assert to_money("12.345") == Decimal("12.35")
        assert to_money(None) == Decimal("0.00")

    def test_minor_units_round_trip(self) -> None:
        """Test conversion to and from Stripe minor units."""
        assert to_minor_units(Decimal("810.00")) == 81000
        assert to_minor_units(19.99) == 1999
        assert from_minor_units(81000) == Decimal("810.00")
        assert from_minor_units(None) == Decimal("0.00")

    def test_advance_is_thirty_percent(self) -> None:
        """Test that the advance is 30% of the total."""
        assert advance_for(Decimal("2700.00")) == Decimal("810.00")


@pytest.mark.unit
class TestPaymentStatus:
    """Unit tests for payment status derivation."""

    @pytest.mark.parametrize(
        ("paid", "due", "expected"),
        [
            (0, 1000, PaymentStatus.PENDING),
            (300, 1000, PaymentStatus.PARTIAL),
            (1000, 1000, PaymentStatus.PAID),
            (1200, 1000, PaymentStatus.PAID),
        ],
    )
    def test_payment_status_for(self, paid, due, expected) -> None:
        """Test status transitions as payments accumulate."""
        assert payment_status_for(paid, due) == expected

    def test_paid_percentage(self) -> None:
        """Test the paid share of the total, rounded to a whole percent."""
        assert paid_percentage(810, 2700) == 30
        assert paid_percentage(1, 3) == 33
        assert paid_percentage(100, 0) == 0
