import os

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-qrdine-unit-tests-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "correctpass")
os.environ.setdefault("LOAD_SEED_DATA", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# A stream request reads the feed once and closes
os.environ.setdefault("REALTIME_STREAM_SECONDS", "0")
os.environ.setdefault("REALTIME_POLL_SECONDS", "0")

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correctpass"


@pytest.fixture()
def app():
    """
    Fresh application over an empty in-memory database, seeded with the
    demo menu, tables 1-6 and the admin account.
    """
    from qrdine_app.app import create_app
    from qrdine_shared.db import dispose_engine
    from qrdine_shared.realtime import clear_subscriptions

    dispose_engine()
    clear_subscriptions()
    flask_app = create_app()
    flask_app.config.update(TESTING=True)

    yield flask_app

    clear_subscriptions()
    dispose_engine()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin_client(app):
    """Test client holding a signed-in admin session."""
    test_client = app.test_client()
    resp = test_client.post(
        "/admin/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.get_json()
    return test_client


@pytest.fixture()
def products(app):
    """Seeded products keyed by name."""
    from qrdine_shared.services.menu_service import list_products

    return {product["name"]: product for product in list_products()}


def cart_line(product, quantity=1, note=""):
    return {
        "id": product["id"],
        "name": product["name"],
        "price": product["price"],
        "category": product["category"],
        "quantity": quantity,
        "note": note,
    }


@pytest.fixture()
def make_line():
    return cart_line
