import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cart_tracker.data.database import Base
from cart_tracker.data.models import CartLineModel
from cart_tracker.domain.schemas import OrderSnapshot
from cart_tracker.services.tracker_service import TrackerService

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeProductClient:
    def __init__(self, products: dict | None = None):
        self.products = products or {}
        self.calls = []

    def lookup_product(self, product_id: int):
        self.calls.append(product_id)
        return self.products.get(product_id)


class FakeOrderClient:
    def __init__(self):
        self.orders = {}

    def add(self, order_id: int, user_id=None, billing_email=None, product_ids=()):
        self.orders[order_id] = OrderSnapshot(
            order_id=order_id,
            user_id=user_id,
            billing_email=billing_email,
            product_ids=list(product_ids),
        )

    def get_order(self, order_id: int):
        return self.orders.get(order_id)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def products():
    return FakeProductClient({
        42: {"id": 42, "name": "Keyboard", "price": 10.00},
        7: {"id": 7, "name": "Mouse", "price": 49.50},
    })


@pytest.fixture
def orders():
    return FakeOrderClient()


@pytest.fixture
def service(db, products, orders, clock):
    return TrackerService(
        db=db,
        product_client=products,
        order_client=orders,
        clock=clock,
    )


@pytest.fixture
def make_line(db):
    """Wstawia rekord bezposrednio do tabeli (dane syntetyczne do statystyk)."""

    def _make(**kwargs):
        created_at = kwargs.pop("created_at", NOW)
        values = {
            "session_id": "s-synthetic",
            "product_id": 1,
            "product_name": "Product 1",
            "quantity": 1,
            "price": Decimal("0.00"),
            "cart_total": Decimal("0.00"),
            "status": "pending",
            "created_at": created_at,
            "updated_at": created_at,
        }
        values.update(kwargs)
        line = CartLineModel(**values)
        db.add(line)
        db.commit()
        return line.id

    return _make
