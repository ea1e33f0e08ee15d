# storefront/domain/price.py
"""
Pomocnicze funkcje dla cen trzymanych w centach (int).
Zadnych floatow w obliczeniach sum - float pojawia sie tylko na wejsciu (dolary z formularza).
"""
from decimal import Decimal, ROUND_HALF_UP


def from_dollars(dollars: float | str | Decimal) -> int:
    # np. 12.34 -> 1234, 12.999 -> 1300
    cents = Decimal(str(dollars)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_decimal_string(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    whole, part = divmod(abs(cents), 100)
    return f"{sign}{whole}.{part:02d}"


def to_usd_string(cents: int) -> str:
    if cents < 0:
        return f"-${to_decimal_string(-cents)}"
    return f"${to_decimal_string(cents)}"


def apply_discount(cents: int, discount_percent: float | None) -> int:
    """Cena jednostkowa po rabacie, zaokraglona do centa."""
    if not discount_percent:
        return cents

    pct = min(max(Decimal(str(discount_percent)), Decimal("0")), Decimal("100"))
    discounted = Decimal(cents) * (Decimal("100") - pct) / Decimal("100")
    return int(discounted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
