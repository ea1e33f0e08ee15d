import os

# konfiguracja musi byc ustawiona przed importem storefront.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SEED_EXAMPLE_PRODUCTS"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import threading
from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

import storefront.data.models  # noqa: F401
from storefront.api.deps import get_lock_service, get_payment_client
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models.product import ProductModel
from storefront.domain.errors import CartBusy, PaymentFailed
from storefront.main import create_app
from storefront.repos.product_repo import ProductRepo


class FakeLockService:
    """Lock w pamieci zamiast redisa."""

    def __init__(self):
        self._locks = {}
        self.busy = set()
        self.acquired = []

    @contextmanager
    def session_lock(self, session_id, ttl=10):
        if session_id in self.busy:
            raise CartBusy(session_id)
        lock = self._locks.setdefault(session_id, threading.Lock())
        with lock:
            self.acquired.append(session_id)
            yield


class FakePaymentClient:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def authorize(self, amount_cents, token):
        self.calls.append((amount_cents, token))
        if self.fail:
            raise PaymentFailed("card declined", amount_cents)


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send_order_confirmation(self, session_id, total_cents, item_count):
        self.sent.append((session_id, total_cents, item_count))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_product(db):
    def _make(name="Red Apple", price=120, inventory=10, category="Produce", **kwargs):
        product = ProductModel(name=name, price=price, inventory=inventory, category=category, **kwargs)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def inventory_of(db):
    def _inventory(product_id):
        db.expire_all()
        return db.get(ProductModel, product_id).inventory

    return _inventory


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(db, lock_service, payment_client):
    application = create_app()
    application.dependency_overrides[get_lock_service] = lambda: lock_service
    application.dependency_overrides[get_payment_client] = lambda: payment_client
    return application


@pytest.fixture
def client(app):
    # bez "with" - lifespan (create_all + seed) nie jest uruchamiany, baze przygotowuje fixture db
    return TestClient(app)


@pytest.fixture
def refresh_categories(app, db):
    def _refresh():
        return app.state.category_cache.refresh(ProductRepo(db))

    return _refresh
