# storefront/domain/cart.py
"""
Czysta logika koszyka - bez bazy, bez HTTP.

Koszyk to lista CartItem traktowana jak mapa product_id -> quantity
(max jeden wpis na produkt, kolejnosc dodawania zachowana).
"""
from typing import List

from storefront.domain.schemas import CartItem

FIXED_PER_ORDER_CAP = 99


def max_allowed_for(inventory: int) -> int:
    return min(inventory, FIXED_PER_ORDER_CAP)


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def reconcile(cart: List[CartItem], product_id: int, delta: int, max_allowed: int) -> List[CartItem]:
    """
    Aplikuje zmiane ilosci (delta) dla product_id i zwraca NOWY koszyk.

    - delta == 0: usuwa wpis (zero to sygnal usuniecia, nie no-op)
    - delta > 0: existing + delta albo delta, przyciete do [1, max_allowed]
    - delta < 0: existing + delta, ponizej 1 wpis znika; w dol bez limitu max_allowed;
      brak wpisu -> nic sie nie dzieje

    Gdy max_allowed < 1 (produkt wyprzedany) wzrost nie moze dac poprawnej ilosci,
    wiec wpis jest usuwany / nie jest dodawany.
    """
    existing = next((item for item in cart if item.product_id == product_id), None)
    others = [item for item in cart if item.product_id != product_id]

    if delta == 0:
        return others

    if delta > 0:
        base = existing.quantity + delta if existing else delta
        quantity = _clamp(base, 1, max_allowed)
    else:
        if existing is None:
            return list(cart)
        quantity = existing.quantity + delta

    if quantity < 1:
        return others

    updated = CartItem(product_id=product_id, quantity=quantity)
    if existing is None:
        return others + [updated]

    return [updated if item.product_id == product_id else item for item in cart]


def item_count(cart: List[CartItem]) -> int:
    return sum(item.quantity for item in cart)
