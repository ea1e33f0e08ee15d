from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.domain.errors import (
    CartBusy,
    EmptyCart,
    InsufficientInventory,
    PaymentFailed,
    ProductNotFound,
    StorageUnavailable,
)
from storefront.domain.schemas import CartItem
from storefront.repos.product_repo import ProductRepo
from storefront.repos.session_repo import SessionRepo
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService, CheckoutState
from storefront.services.session_resolver import SessionResolver


@pytest.fixture
def service(db, payment_client, lock_service, notifier):
    return CheckoutService(db, payment_client, lock_service, notifier)


def session_with_cart(db, *pairs):
    ctx = SessionResolver(db).resolve(None, "ip", "ua")
    cart = [CartItem(product_id=pid, quantity=qty) for pid, qty in pairs]
    SessionRepo(db).update_cart(ctx.session_id, cart)
    ctx.cart = cart
    return ctx


def stored_cart(db, session_id):
    db.expire_all()
    repo = SessionRepo(db)
    return repo.load_cart(repo.find(session_id))


def test_empty_cart_is_rejected_without_side_effects(db, service, payment_client, notifier):
    ctx = SessionResolver(db).resolve(None, "ip", "ua")

    with pytest.raises(EmptyCart):
        service.checkout(ctx, "tok")

    assert payment_client.calls == []
    assert notifier.sent == []


def test_successful_checkout(db, service, payment_client, notifier, make_product, inventory_of):
    apple = make_product(price=120, inventory=10, discount_percent=10.0)
    tea = make_product(name="Tea", price=400, inventory=5, category="Beverage")
    ctx = session_with_cart(db, (apple.id, 3), (tea.id, 2))

    result = service.checkout(ctx, "tok_visa")

    assert result.state == CheckoutState.INVENTORY_COMMITTED
    assert result.total_cents == 108 * 3 + 400 * 2
    assert payment_client.calls == [(result.total_cents, "tok_visa")]
    assert inventory_of(apple.id) == 7
    assert inventory_of(tea.id) == 3
    assert stored_cart(db, ctx.session_id) == []
    assert ctx.cart == []
    assert notifier.sent == [(ctx.session_id, result.total_cents, 5)]


def test_payment_failure_leaves_cart_and_inventory(db, service, payment_client, notifier, make_product, inventory_of):
    apple = make_product(inventory=4)
    ctx = session_with_cart(db, (apple.id, 2))
    payment_client.fail = True

    with pytest.raises(PaymentFailed) as exc:
        service.checkout(ctx, "tok")

    assert exc.value.state == CheckoutState.PAYMENT_FAILED
    assert inventory_of(apple.id) == 4
    assert stored_cart(db, ctx.session_id) == [CartItem(product_id=apple.id, quantity=2)]
    assert notifier.sent == []


def test_all_or_nothing_when_one_line_is_short(db, service, make_product, inventory_of):
    plenty = make_product(name="Plenty", inventory=50)
    scarce = make_product(name="Scarce", inventory=1)
    ctx = session_with_cart(db, (plenty.id, 5), (scarce.id, 3))

    with pytest.raises(InsufficientInventory) as exc:
        service.checkout(ctx, "tok")

    assert exc.value.product_id == scarce.id
    assert exc.value.state == CheckoutState.INVENTORY_INSUFFICIENT
    assert inventory_of(plenty.id) == 50
    assert inventory_of(scarce.id) == 1
    assert stored_cart(db, ctx.session_id) == [
        CartItem(product_id=plenty.id, quantity=5),
        CartItem(product_id=scarce.id, quantity=3),
    ]


def test_last_unit_goes_to_exactly_one_checkout(db, service, make_product, inventory_of):
    last = make_product(name="Last one", inventory=1)
    first_ctx = session_with_cart(db, (last.id, 1))
    second_ctx = session_with_cart(db, (last.id, 1))

    outcomes = []
    for ctx in (first_ctx, second_ctx):
        try:
            outcomes.append(service.checkout(ctx, "tok").state)
        except InsufficientInventory as e:
            outcomes.append(e.state)

    assert outcomes.count(CheckoutState.INVENTORY_COMMITTED) == 1
    assert outcomes.count(CheckoutState.INVENTORY_INSUFFICIENT) == 1
    assert inventory_of(last.id) == 0


def test_missing_product_fails_before_payment(db, service, payment_client):
    ctx = session_with_cart(db, (12345, 1))

    with pytest.raises(ProductNotFound):
        service.checkout(ctx, "tok")

    assert payment_client.calls == []


def test_checkout_reads_cart_again_under_lock(db, service, payment_client, lock_service, make_product):
    apple = make_product(price=120, inventory=10)
    tea = make_product(name="Tea", price=400, inventory=5, category="Beverage")
    checkout_ctx = session_with_cart(db, (apple.id, 1))

    # drugi request tej samej sesji dodaje produkt po tym, jak checkout rozwiazal sesje
    add_ctx = SessionResolver(db).resolve(checkout_ctx.session_id, "ip", "ua")
    CartService(db, lock_service).update_quantity(add_ctx, tea.id, 1)

    result = service.checkout(checkout_ctx, "tok")

    assert result.total_cents == 120 + 400
    assert payment_client.calls == [(520, "tok")]
    assert result.items == [CartItem(product_id=apple.id, quantity=1), CartItem(product_id=tea.id, quantity=1)]
    assert stored_cart(db, checkout_ctx.session_id) == []


def test_same_session_cannot_check_out_twice(db, service, payment_client, make_product, inventory_of):
    apple = make_product(price=120, inventory=10)
    first_ctx = session_with_cart(db, (apple.id, 1))
    second_ctx = SessionResolver(db).resolve(first_ctx.session_id, "ip", "ua")

    service.checkout(first_ctx, "tok")
    with pytest.raises(EmptyCart):
        service.checkout(second_ctx, "tok")

    assert payment_client.calls == [(120, "tok")]
    assert inventory_of(apple.id) == 9


def test_lock_is_held_through_payment(db, service, payment_client, lock_service, make_product):
    apple = make_product(inventory=3)
    ctx = session_with_cart(db, (apple.id, 1))

    held = []
    authorize = payment_client.authorize

    def recording_authorize(amount_cents, token):
        held.append(lock_service._locks[ctx.session_id].locked())
        return authorize(amount_cents, token)

    payment_client.authorize = recording_authorize
    service.checkout(ctx, "tok")

    assert held == [True]
    assert not lock_service._locks[ctx.session_id].locked()


def test_busy_session_is_rejected_before_payment(db, service, payment_client, lock_service, make_product, inventory_of):
    apple = make_product(inventory=3)
    ctx = session_with_cart(db, (apple.id, 2))
    lock_service.busy.add(ctx.session_id)

    with pytest.raises(CartBusy):
        service.checkout(ctx, "tok")

    assert payment_client.calls == []
    assert inventory_of(apple.id) == 3
    assert stored_cart(db, ctx.session_id) == [CartItem(product_id=apple.id, quantity=2)]


def test_redis_failure_becomes_storage_unavailable(db, payment_client, notifier, make_product):
    apple = make_product(inventory=3)
    ctx = session_with_cart(db, (apple.id, 1))
    broken = MagicMock()
    broken.session_lock.side_effect = RedisConnectionError("down")

    with pytest.raises(StorageUnavailable):
        CheckoutService(db, payment_client, broken, notifier).checkout(ctx, "tok")

    assert payment_client.calls == []


def test_product_deleted_after_authorization_counts_as_insufficient(db, service, payment_client, make_product, inventory_of):
    plenty = make_product(name="Plenty", inventory=50)
    doomed = make_product(name="Doomed", inventory=5)
    ctx = session_with_cart(db, (plenty.id, 2), (doomed.id, 1))

    authorize = payment_client.authorize

    def authorize_then_delete(amount_cents, token):
        authorize(amount_cents, token)
        ProductRepo(db).delete_product(doomed.id)

    payment_client.authorize = authorize_then_delete

    with pytest.raises(InsufficientInventory) as exc:
        service.checkout(ctx, "tok")

    assert exc.value.status_code == 409
    assert exc.value.state == CheckoutState.INVENTORY_INSUFFICIENT
    assert exc.value.product_id == doomed.id
    assert exc.value.available == 0
    assert inventory_of(plenty.id) == 50


def test_stock_taken_between_read_and_update_rolls_back_everything(db, make_product, inventory_of):
    plenty = make_product(name="Plenty", inventory=5)
    last = make_product(name="Last one", inventory=0)
    repo = ProductRepo(db)

    # inny checkout zabral ostatnia sztuke po odczycie FOR UPDATE, ale przed UPDATE
    real_execute = db.execute
    locked_reads = []

    def execute(statement, *args, **kwargs):
        if getattr(statement, "_for_update_arg", None) is not None:
            locked_reads.append(statement)
            if len(locked_reads) == 2:
                stale = MagicMock()
                stale.scalar_one_or_none.return_value = 1
                return stale
        return real_execute(statement, *args, **kwargs)

    with patch.object(db, "execute", side_effect=execute):
        with pytest.raises(InsufficientInventory) as exc:
            repo.decrement_all([CartItem(product_id=plenty.id, quantity=2), CartItem(product_id=last.id, quantity=1)])

    assert len(locked_reads) == 2
    assert exc.value.product_id == last.id
    assert exc.value.available == 0
    assert inventory_of(plenty.id) == 5
    assert inventory_of(last.id) == 0
