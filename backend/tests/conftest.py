"""
Pytest fixtures for storefront backend tests.

Provides an in-memory database, a test client, and a small seeded catalog
(one product with two variants, a supplier) shared by the service tests.
"""

from datetime import timedelta

import pytest
from storefront import create_app
from storefront.extensions import db
from storefront.models import Product, ProductVariant, Sale, SaleDetail, Supplier
from storefront.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DB_RETRY_BACKOFF': 0,
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
def product(db_session):
    """T-shirt with a base price of 100000."""
    product = Product(title="Basic Tee", price=100000, discount=0, gender="unisex", material="cotton")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def variant(db_session, product):
    """Variant without price override, 10 in stock."""
    variant = ProductVariant(
        product_id=product.id,
        sku="TEE-RED-M",
        size="M",
        color="Red",
        price=None,
        cost_price=40000,
        stock=10,
    )
    db_session.add(variant)
    db_session.commit()
    return variant


@pytest.fixture(scope='function')
def priced_variant(db_session, product):
    """Variant with its own price override of 100 and 10 in stock."""
    variant = ProductVariant(
        product_id=product.id,
        sku="TEE-BLU-L",
        size="L",
        color="Blue",
        price=100,
        cost_price=30,
        stock=10,
    )
    db_session.add(variant)
    db_session.commit()
    return variant


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(name="Saigon Textiles", address="12 Nguyen Trai, District 1")
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def make_sale(db_session):
    """Factory for sales covering products; window defaults to yesterday..tomorrow."""
    def _make(product_ids, discount, *, start_offset_days=-1, end_offset_days=1, title="Promo"):
        now = utcnow()
        sale = Sale(
            title=title,
            discount=discount,
            start_date=now + timedelta(days=start_offset_days),
            end_date=now + timedelta(days=end_offset_days),
        )
        db_session.add(sale)
        db_session.flush()
        for pid in product_ids:
            db_session.add(SaleDetail(sale_id=sale.id, product_id=pid))
        db_session.commit()
        return sale

    return _make
