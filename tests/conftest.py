from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import portal.persistence.pg as pg
from portal.context import PortalContext, now_utc
from portal.core.config import get_settings
from portal.core.security import Principal, issue_token
from portal.domain.money import decimal_to_cents
from portal.domain.orders.commands import CreateOrderInput
from portal.persistence.models import Base, ProductModel


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.auth_enabled = True

    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_schema(configure_test_engine):
    Base.metadata.drop_all(bind=configure_test_engine)
    Base.metadata.create_all(bind=configure_test_engine)
    yield


@pytest.fixture()
def client(configure_test_engine):
    from portal.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(configure_test_engine):
    with pg.session_scope() as s:
        yield s


@pytest.fixture()
def ctx(session):
    return PortalContext.for_session(session)


@pytest.fixture()
def make_product():
    def _make(name: str = "Widget", price: str = "10.00", stock: int = 10, image: str = "") -> str:
        with pg.session_scope() as s:
            row = ProductModel(
                name=name,
                description=f"{name} description",
                category="general",
                price_cents=decimal_to_cents(Decimal(price)),
                stock=stock,
                image=image,
                created_at=now_utc(),
            )
            s.add(row)
            s.flush()
            return row.product_id

    return _make


@pytest.fixture()
def stock_of():
    def _stock(product_id: str) -> int:
        with pg.session_scope() as s:
            return PortalContext.for_session(s).ledger.get(product_id).stock

    return _stock


@pytest.fixture()
def principals() -> dict[str, Principal]:
    return {
        "alice": Principal(id="user-alice", role="user"),
        "bob": Principal(id="user-bob", role="user"),
        "admin": Principal(id="user-admin", role="admin"),
    }


@pytest.fixture()
def auth_headers(principals):
    return {
        name: {"Authorization": f"Bearer {issue_token(p.id, p.role)}"}
        for name, p in principals.items()
    }


SHIPPING = {
    "address": "Calle Mayor 1",
    "city": "Madrid",
    "postal_code": "28013",
    "country": "ES",
}


def build_cart(lines: list[tuple[str, str, int]], total: str | None = None, **extra) -> CreateOrderInput:
    """lines: (product_id, claimed unit price, quantity)."""
    computed = sum((Decimal(price) * qty for _, price, qty in lines), Decimal("0"))
    return CreateOrderInput(
        items=[
            {"product_id": product_id, "name": f"item-{product_id[:4]}", "price": price, "quantity": qty}
            for product_id, price, qty in lines
        ],
        total=Decimal(total) if total is not None else computed,
        shipping_address=SHIPPING,
        **extra,
    )


@pytest.fixture()
def cart():
    return build_cart
