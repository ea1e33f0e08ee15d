# storefront/services/checkout_service.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.domain.cart import item_count
from storefront.domain.errors import (
    EmptyCart,
    InsufficientInventory,
    PaymentFailed,
    ProductNotFound,
    SessionRowMissing,
    StorageUnavailable,
)
from storefront.domain.price import apply_discount
from storefront.domain.schemas import CartItem
from storefront.repos.product_repo import ProductRepo
from storefront.repos.session_repo import SessionRepo
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.payment_client import PaymentClient
from storefront.services.session_resolver import SessionContext
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutState(str, Enum):
    STARTED = "STARTED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_AUTHORIZED = "PAYMENT_AUTHORIZED"
    INVENTORY_COMMITTED = "INVENTORY_COMMITTED"
    INVENTORY_INSUFFICIENT = "INVENTORY_INSUFFICIENT"


@dataclass
class CheckoutResult:
    state: CheckoutState
    total_cents: int
    items: List[CartItem] = field(default_factory=list)


class CheckoutService:
    """
    Serwis odpowiedzialny za zlozenie zamowienia z koszyka sesji.

    0. Lock sesji i ponowny odczyt koszyka z bazy
    1. Pusty koszyk -> EmptyCart, nic nie zapisujemy
    2. Liczy total z aktualnych cen
    3. Autoryzacja platnosci (bez retry)
    4. Zmniejszenie stanow wszystko-albo-nic w jednej transakcji
       (produkt usuniety w miedzyczasie liczy sie jako brak towaru)
    5. Czyszczenie koszyka + powiadomienie (async)
    """

    def __init__(
        self,
        db: Session,
        payment_client: PaymentClient,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.products = ProductRepo(db)
        self.sessions = SessionRepo(db)
        self.payment_client = payment_client
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    def _transition(self, ctx: SessionContext, state: CheckoutState) -> CheckoutState:
        logger.info(f"Checkout for session {ctx.session_id}: {state.value}")
        return state

    def order_total(self, cart: List[CartItem]) -> int:
        products = self.products.get_products(item.product_id for item in cart)
        total = 0
        for item in cart:
            product = products.get(item.product_id)
            if product is None:
                raise ProductNotFound(item.product_id)
            total += apply_discount(product.price, product.discount_percent) * item.quantity
        return total

    def checkout(self, ctx: SessionContext, payment_token: str) -> CheckoutResult:
        """
        Caly checkout trzyma lock sesji: koszyk czytany na nowo pod lockiem,
        czyszczony przed zwolnieniem. Rownolegly checkout tej samej sesji widzi pusty koszyk.
        """
        self._transition(ctx, CheckoutState.STARTED)
        try:
            with self.lock_service.session_lock(ctx.session_id):
                row = self.sessions.find(ctx.session_id)
                if row is None:
                    raise SessionRowMissing(ctx.session_id)
                cart = self.sessions.load_cart(row)
                ctx.cart = cart

                if not cart:
                    raise EmptyCart(ctx.session_id)

                total = self._pay_and_commit(ctx, cart, payment_token)

                self.sessions.update_cart(ctx.session_id, [])
                ctx.cart = []
        except RedisError as e:
            logger.error(f"Checkout lock failed for session {ctx.session_id}: {e}")
            raise StorageUnavailable("checkout_lock", e, session_id=ctx.session_id) from e

        try:
            self.notification_service.send_order_confirmation(ctx.session_id, total, item_count(cart))
        except Exception as e:
            # zamowienie juz zlozone, brak powiadomienia nie moze go cofnac
            logger.warning(f"Failed to queue order confirmation for session {ctx.session_id}: {e}")

        return CheckoutResult(state=CheckoutState.INVENTORY_COMMITTED, total_cents=total, items=cart)

    def _pay_and_commit(self, ctx: SessionContext, cart: List[CartItem], payment_token: str) -> int:
        total = self.order_total(cart)

        self._transition(ctx, CheckoutState.PAYMENT_PENDING)
        try:
            self.payment_client.authorize(total, payment_token)
        except PaymentFailed as e:
            self._transition(ctx, CheckoutState.PAYMENT_FAILED)
            e.state = CheckoutState.PAYMENT_FAILED
            raise

        self._transition(ctx, CheckoutState.PAYMENT_AUTHORIZED)
        try:
            self.products.decrement_all(cart)
        except ProductNotFound as e:
            # produkt usuniety po autoryzacji - traktujemy jak brak towaru (409)
            requested = next((i.quantity for i in cart if i.product_id == e.product_id), 0)
            err = InsufficientInventory(e.product_id, requested, 0)
            self._reject_inventory(ctx, total, err)
            raise err from e
        except InsufficientInventory as e:
            self._reject_inventory(ctx, total, e)
            raise

        self._transition(ctx, CheckoutState.INVENTORY_COMMITTED)
        return total

    def _reject_inventory(self, ctx: SessionContext, total: int, e: InsufficientInventory) -> None:
        # platnosc juz autoryzowana - zwrot to sprawa dostawcy platnosci
        logger.error(
            f"Inventory rejected after payment authorization for session {ctx.session_id} "
            f"({total} cents): {e}"
        )
        self._transition(ctx, CheckoutState.INVENTORY_INSUFFICIENT)
        e.state = CheckoutState.INVENTORY_INSUFFICIENT
