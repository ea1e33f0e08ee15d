import pytest

from storefront.domain.errors import CartBusy, ProductNotFound, SessionRowMissing
from storefront.domain.schemas import CartItem
from storefront.repos.session_repo import SessionRepo
from storefront.services.cart_service import CartService
from storefront.services.session_resolver import SessionContext, SessionResolver


@pytest.fixture
def ctx(db):
    return SessionResolver(db).resolve(None, "ip", "ua")


@pytest.fixture
def service(db, lock_service):
    return CartService(db, lock_service)


def stored_cart(db, session_id):
    db.expire_all()
    repo = SessionRepo(db)
    return repo.load_cart(repo.find(session_id))


def test_add_product_persists_cart(db, service, ctx, make_product):
    apple = make_product(inventory=10)

    cart = service.update_quantity(ctx, apple.id, 3)

    assert cart == [CartItem(product_id=apple.id, quantity=3)]
    assert ctx.cart == cart
    assert stored_cart(db, ctx.session_id) == cart


def test_quantity_is_capped_by_live_inventory(db, service, ctx, make_product):
    malk = make_product(name="Malk", inventory=7)

    service.update_quantity(ctx, malk.id, 5)
    cart = service.update_quantity(ctx, malk.id, 5)

    assert cart == [CartItem(product_id=malk.id, quantity=7)]


def test_quantity_is_capped_by_per_order_cap(db, service, ctx, make_product):
    apple = make_product(inventory=500)
    cart = service.update_quantity(ctx, apple.id, 250)
    assert cart[0].quantity == 99


def test_inventory_is_refetched_on_every_mutation(db, service, ctx, make_product):
    pie = make_product(name="Pie", inventory=8)
    service.update_quantity(ctx, pie.id, 2)

    pie.inventory = 3
    db.commit()

    cart = service.update_quantity(ctx, pie.id, 5)
    assert cart[0].quantity == 3


def test_unknown_product_leaves_cart_untouched(db, service, ctx, make_product):
    apple = make_product()
    service.update_quantity(ctx, apple.id, 1)

    with pytest.raises(ProductNotFound):
        service.update_quantity(ctx, 9999, 1)

    assert stored_cart(db, ctx.session_id) == [CartItem(product_id=apple.id, quantity=1)]


def test_remove_and_decrement(db, service, ctx, make_product):
    apple = make_product()
    tea = make_product(name="Tea", category="Beverage")
    service.update_quantity(ctx, apple.id, 2)
    service.update_quantity(ctx, tea.id, 1)

    service.update_quantity(ctx, apple.id, -1)
    cart = service.update_quantity(ctx, tea.id, 0)

    assert cart == [CartItem(product_id=apple.id, quantity=1)]
    assert stored_cart(db, ctx.session_id) == cart


def test_mutation_rereads_cart_under_lock(db, service, ctx, make_product):
    # inny request zdazyl dopisac produkt - nasz zapis nie moze go zgubic
    apple = make_product()
    tea = make_product(name="Tea", category="Beverage")
    SessionRepo(db).update_cart(ctx.session_id, [CartItem(product_id=tea.id, quantity=2)])

    cart = service.update_quantity(ctx, apple.id, 1)

    assert {item.product_id for item in cart} == {apple.id, tea.id}


def test_busy_session_lock_raises(db, service, ctx, lock_service, make_product):
    apple = make_product()
    lock_service.busy.add(ctx.session_id)

    with pytest.raises(CartBusy):
        service.update_quantity(ctx, apple.id, 1)

    assert stored_cart(db, ctx.session_id) == []


def test_vanished_session_row_is_reported(db, service, make_product):
    apple = make_product()
    ghost = SessionContext(session_id="44444444-4444-4444-8444-444444444444", was_created=False)

    with pytest.raises(SessionRowMissing):
        service.update_quantity(ghost, apple.id, 1)


def test_view_cart_totals_use_discounted_prices(db, service, ctx, make_product):
    apple = make_product(price=120, discount_percent=10.0)
    coffee = make_product(name="Coffee", price=720, category="Beverage")
    service.update_quantity(ctx, apple.id, 2)
    service.update_quantity(ctx, coffee.id, 1)

    view = service.view_cart(ctx)

    assert view.item_count == 3
    assert view.total_cents == 108 * 2 + 720
    assert view.total_display == "$9.36"
    assert [line.product_id for line in view.items] == [apple.id, coffee.id]


def test_view_cart_skips_deleted_products(db, service, make_product):
    apple = make_product()
    ctx = SessionContext(
        session_id="x",
        was_created=False,
        cart=[CartItem(product_id=apple.id, quantity=1), CartItem(product_id=777, quantity=2)],
    )

    view = service.view_cart(ctx)
    assert [line.product_id for line in view.items] == [apple.id]
    assert view.item_count == 1
