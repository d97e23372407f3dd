"""
Pytest fixtures for restopos backend tests.

Provides test database setup, users with bearer tokens, a small catalog
and a test client.
"""

import pytest

from restopos import create_app
from restopos.extensions import db
from restopos.models import Product, Category, Restaurant
from restopos.schemas import CreateOrderRequest
from restopos.services.auth_service import create_user


TEST_PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SESSION_STORE': 'database',
    'POS_TIMEZONE': 'UTC',
    'BCRYPT_ROUNDS': 4,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def restaurant(db_session):
    r = Restaurant(name="Test Bistro", currency="USD", tax_rate_bps=1000, timezone="UTC")
    db_session.add(r)
    db_session.commit()
    return r


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user("admin@test.local", TEST_PASSWORD, role="admin", first_name="Ada")


@pytest.fixture(scope='function')
def staff_user(db_session):
    return create_user("staff@test.local", TEST_PASSWORD, role="staff", first_name="Sam")


@pytest.fixture(scope='function')
def category(db_session):
    c = Category(name="Mains")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def burger(db_session, category):
    """Tracked product: stock 10, threshold 5."""
    p = Product(
        category_id=category.id,
        sku="BURGER",
        name="Burger",
        price_cents=1250,
        cost_cents=400,
        track_inventory=True,
        stock_quantity=10,
        low_stock_threshold=5,
    )
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def fries(db_session, category):
    """Tracked product with plenty of stock."""
    p = Product(
        category_id=category.id,
        sku="FRIES",
        name="Fries",
        price_cents=450,
        cost_cents=90,
        track_inventory=True,
        stock_quantity=100,
        low_stock_threshold=10,
    )
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def coffee(db_session):
    """Untracked product: stock and threshold are ignored."""
    p = Product(
        sku="COFFEE",
        name="Coffee",
        price_cents=300,
        track_inventory=False,
        stock_quantity=0,
        low_stock_threshold=5,
    )
    db_session.add(p)
    db_session.commit()
    return p


def get_auth_token(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, staff_user.email))


def order_payload(*lines, tax_cents=0, order_type="dine-in", payment_status="pending", **header):
    """
    Build a POST /api/orders body from (product, quantity) pairs with
    consistent totals.
    """
    items = []
    for product, quantity in lines:
        items.append({
            "product_id": product.id,
            "quantity": quantity,
            "unit_price_cents": product.price_cents,
            "total_price_cents": product.price_cents * quantity,
        })
    subtotal = sum(i["total_price_cents"] for i in items)
    order = {
        "type": order_type,
        "subtotal_cents": subtotal,
        "tax_cents": tax_cents,
        "total_cents": subtotal + tax_cents,
        "payment_status": payment_status,
    }
    order.update(header)
    return {"order": order, "items": items}


def build_order(*lines, **kwargs) -> CreateOrderRequest:
    """Same as order_payload, parsed through the request schema."""
    return CreateOrderRequest.from_json(order_payload(*lines, **kwargs))
