"""Tour pricing and payment-state arithmetic.

All money is handled as ``Decimal`` rounded to cents; floats only appear at
the JSON boundary.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from dreamland.models.booking import PaymentStatus

CENT = Decimal("0.01")
CHILD_PRICE_RATIO = Decimal("0.70")
ADVANCE_RATIO = Decimal("0.30")


def to_money(value) -> Decimal:
    """Coerce a number (or numeric string) to a cent-rounded Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Amount in cents, as Stripe expects."""
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(amount: int | None) -> Decimal:
    return to_money(Decimal(amount or 0) / 100)


@dataclass(frozen=True)
class PriceQuote:
    adult_price: Decimal
    child_price: Decimal
    adults: int
    children: int
    total: Decimal
    advance: Decimal


def quote_booking(adult_price, adults: int, children: int = 0) -> PriceQuote:
    """Price a booking request.

    Children pay 70% of the adult price; the advance that confirms a booking
    is 30% of the total.
    """
    adult = to_money(adult_price)
    child = to_money(adult * CHILD_PRICE_RATIO)
    total = to_money(adult * adults + child * children)
    return PriceQuote(
        adult_price=adult,
        child_price=child,
        adults=adults,
        children=children,
        total=total,
        advance=advance_for(total),
    )


def advance_for(total) -> Decimal:
    return to_money(to_money(total) * ADVANCE_RATIO)


def payment_status_for(amount_paid, amount_due) -> PaymentStatus:
    """PAID once the full amount is in, PARTIAL for anything less, else PENDING."""
    paid = to_money(amount_paid)
    if paid <= 0:
        return PaymentStatus.PENDING
    if paid >= to_money(amount_due):
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def paid_percentage(amount_paid, amount_due) -> int:
    due = to_money(amount_due)
    if due <= 0:
        return 0
    return int((to_money(amount_paid) / due * 100).to_integral_value(rounding=ROUND_HALF_UP))
