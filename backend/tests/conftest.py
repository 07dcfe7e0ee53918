"""
Pytest fixtures for Jewel CRM backend tests.

Provides an in-memory database, two tenant stores, one user per role,
bearer-token headers, and a small catalog/customer/sale fixture set.
"""

import pytest

from crm import create_app
from crm.extensions import db
from crm.models import Store, Floor, User, Category, Product, Customer, Sale
from crm.services.session_service import create_session
from crm.services.tenant_service import Actor


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store_a(db_session):
    """Create Store A (first tenant)."""
    store = Store(name="Store A - Zaveri Jewels", code="ZAV", is_active=True)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session):
    """Create Store B (second tenant)."""
    store = Store(name="Store B - Kanak Gold", code="KAN", is_active=True)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def floor_a(db_session, store_a):
    floor = Floor(store_id=store_a.id, name="Gold", number=0)
    db_session.add(floor)
    db_session.commit()
    return floor


@pytest.fixture(scope='function')
def floor_a2(db_session, store_a):
    floor = Floor(store_id=store_a.id, name="Diamond", number=1)
    db_session.add(floor)
    db_session.commit()
    return floor


def _user(db_session, store, role, email, floor=None):
    user = User(
        store_id=store.id,
        floor_id=floor.id if floor else None,
        name=email.split("@")[0].title(),
        email=email,
        password_hash="x",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_a(db_session, store_a):
    return _user(db_session, store_a, "BUSINESS_ADMIN", "admin@zaveri.test")


@pytest.fixture(scope='function')
def manager_a(db_session, store_a, floor_a):
    return _user(db_session, store_a, "FLOOR_MANAGER", "manager@zaveri.test", floor_a)


@pytest.fixture(scope='function')
def sales_a(db_session, store_a, floor_a):
    return _user(db_session, store_a, "SALESPERSON", "sales@zaveri.test", floor_a)


@pytest.fixture(scope='function')
def admin_b(db_session, store_b):
    return _user(db_session, store_b, "BUSINESS_ADMIN", "admin@kanak.test")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_a):
    _, token = create_session(user_id=admin_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def manager_headers(manager_a):
    _, token = create_session(user_id=manager_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def sales_headers(sales_a):
    _, token = create_session(user_id=sales_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_b_headers(admin_b):
    _, token = create_session(user_id=admin_b.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_actor(admin_a):
    return Actor(user=admin_a, ip_address="127.0.0.1", user_agent="pytest")


@pytest.fixture(scope='function')
def sales_actor(sales_a):
    return Actor(user=sales_a, ip_address="127.0.0.1", user_agent="pytest")


@pytest.fixture(scope='function')
def category_a(db_session, store_a):
    category = Category(store_id=store_a.id, name="Rings")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product_a(db_session, store_a, category_a):
    """22K gold ring priced at 1,00,000.00."""
    product = Product(
        store_id=store_a.id,
        category_id=category_a.id,
        sku="RING-22K-001",
        name="22K Gold Ring",
        price_cents=10_000_000,
        material="Gold",
        purity="22K",
        stock_quantity=5,
        min_stock_level=2,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, store_b):
    product = Product(store_id=store_b.id, sku="KAN-001", name="Kanak Bangle", price_cents=500_000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer_a(db_session, store_a, floor_a):
    customer = Customer(
        store_id=store_a.id,
        floor_id=floor_a.id,
        name="Priya Shah",
        phone="9800000001",
        status="ACTIVE",
        customer_value="REGULAR",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def vip_customer_a(db_session, store_a):
    customer = Customer(
        store_id=store_a.id,
        name="Meera Kapoor",
        phone="9800000002",
        status="ACTIVE",
        customer_value="HIGH_VALUE",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, store_b):
    customer = Customer(store_id=store_b.id, name="Ravi Kumar", phone="9900000001")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def sale_a(db_session, store_a, floor_a, customer_a, product_a, sales_a):
    sale = Sale(
        store_id=store_a.id,
        floor_id=floor_a.id,
        customer_id=customer_a.id,
        product_id=product_a.id,
        user_id=sales_a.id,
        quantity=1,
        amount_cents=2_000_000,
        discount_cents=0,
        total_amount_cents=2_000_000,
        payment_method="CARD",
        status="COMPLETED",
    )
    db_session.add(sale)
    db_session.commit()
    return sale
