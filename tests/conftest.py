"""Shared fixtures: a fresh file-backed SQLite database per test.

Environment is set before anything under config/ is imported, since
config.settings exits when required variables are missing.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-storefront.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from config.database import Base, build_engine, get_db  # noqa: E402
from main import app  # noqa: E402
from modules.cart.service import cart_service  # noqa: E402
from modules.catalog.service import catalog_service  # noqa: E402
from modules.user.service import user_service  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'storefront-test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


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
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ==========================================
# Builders
# ==========================================

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name: str = None, is_admin: bool = False):
        counter["n"] += 1
        label = name or f"user{counter['n']}"
        return user_service.create_user(db, f"{label.lower()}@example.com", label, is_admin=is_admin)

    return _make


@pytest.fixture
def make_product(db):
    def _make(name: str = "Widget", price: str = "10.00", stock: int = 5):
        return catalog_service.create_product(db, name=name, price=price, stock=stock)

    return _make


@pytest.fixture
def customer(make_user):
    return make_user("Alice")


@pytest.fixture
def admin(make_user):
    return make_user("Root", is_admin=True)


@pytest.fixture
def fill_cart(db):
    def _fill(user, *lines):
        for product, qty in lines:
            cart_service.add_item(db, user.id, product.id, qty)

    return _fill

