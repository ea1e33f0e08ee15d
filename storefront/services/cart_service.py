# storefront/services/cart_service.py
from typing import List

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.domain.cart import item_count, max_allowed_for, reconcile
from storefront.domain.errors import ProductNotFound, SessionRowMissing, StorageUnavailable
from storefront.domain.price import apply_discount, to_usd_string
from storefront.domain.schemas import CartItem, CartLineOut, CartOut
from storefront.repos.product_repo import ProductRepo
from storefront.repos.session_repo import SessionRepo
from storefront.services.lock_service import LockService
from storefront.services.session_resolver import SessionContext
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use case'y koszyka:
    command (update_quantity) - zmiana ilosci z limitem magazynu, zapis do sesji
    query (view_cart) - tylko odczyt, laczy koszyk z aktualnymi produktami
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.products = ProductRepo(db)
        self.sessions = SessionRepo(db)
        self.lock_service = lock_service

    #query - odczyt
    def view_cart(self, ctx: SessionContext) -> CartOut:
        products = self.products.get_products(item.product_id for item in ctx.cart)

        lines: List[CartLineOut] = []
        for item in ctx.cart:
            product = products.get(item.product_id)
            if product is None:
                # produkt usuniety przez admina, pomijamy w widoku
                logger.warning(f"Cart of session {ctx.session_id} references missing product {item.product_id}")
                continue

            unit = apply_discount(product.price, product.discount_percent)
            lines.append(
                CartLineOut(
                    product_id=product.id,
                    name=product.name,
                    quantity=item.quantity,
                    unit_price_cents=unit,
                    line_total_cents=unit * item.quantity,
                    thumbnail_url=product.thumbnail_url,
                )
            )

        total = sum(line.line_total_cents for line in lines)
        return CartOut(
            items=lines,
            item_count=sum(line.quantity for line in lines),
            total_cents=total,
            total_display=to_usd_string(total),
        )

    #commands
    def update_quantity(self, ctx: SessionContext, product_id: int, delta: int) -> List[CartItem]:
        """
        Zmienia ilosc produktu w koszyku sesji i zapisuje wynik.

        - produkt zawsze pobierany na nowo (stan magazynu moze sie zmienic miedzy requestami)
        - nieistniejacy produkt -> ProductNotFound zanim koszyk zostanie ruszony
        - read-modify-write bloba pod lockiem sesji, koszyk czytany ponownie pod lockiem
        """
        product = self.products.get_product(product_id)
        if product is None:
            logger.info(f"Cart update for session {ctx.session_id} rejected: product {product_id} not found")
            raise ProductNotFound(product_id)

        max_allowed = max_allowed_for(product.inventory)

        try:
            with self.lock_service.session_lock(ctx.session_id):
                row = self.sessions.find(ctx.session_id)
                if row is None:
                    raise SessionRowMissing(ctx.session_id)

                current = self.sessions.load_cart(row)
                updated = reconcile(current, product_id, delta, max_allowed)
                self.sessions.update_cart(ctx.session_id, updated)
        except RedisError as e:
            logger.error(f"Cart lock failed for session {ctx.session_id}: {e}")
            raise StorageUnavailable("cart_lock", e, session_id=ctx.session_id) from e

        logger.info(
            f"Session {ctx.session_id}: product {product_id} delta {delta} "
            f"(max {max_allowed}), cart now has {item_count(updated)} items"
        )
        ctx.cart = updated
        return updated
