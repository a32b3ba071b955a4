import os
from decimal import Decimal

import pytest

from pos import create_app
from pos.database import Base
from pos.models import Product


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application instance for testing."""
    db_path = tmp_path_factory.mktemp('db') / 'pos_test.db'
    database_uri = os.getenv('TEST_DATABASE_URL', f'sqlite:///{db_path}')
    app = create_app('config.TestConfig', overrides={'SQLALCHEMY_DATABASE_URI': database_uri})
    return app


@pytest.fixture(scope='session')
def database(app):
    """Create all tables once per test session."""
    database = app.extensions['database']
    database.create_all()
    yield database
    database.session.remove()
    database.drop_all()
    database.dispose()


@pytest.fixture(autouse=True)
def clean_tables(database):
    """Empty every table after each test."""
    yield
    database.session.remove()
    with database.engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(database):
    """Thread-local database session (same one the request handlers use)."""
    session = database.session
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def make_product(session):
    """
    Factory creating a committed catalog product.

    Returns the product id; the session is left with no open transaction.
    """
    def _make(name='Claw Hammer', price='100.00', stock='5', reorder_level=50):
        product = Product(
            name=name,
            price=Decimal(str(price)),
            stock=Decimal(str(stock)),
            reorder_level=reorder_level
        )
        session.add(product)
        session.commit()
        product_id = product.id
        session.commit()
        return product_id

    return _make


@pytest.fixture(scope='function')
def stock_of(session):
    """Fresh stock read for a product id."""
    def _stock_of(product_id):
        session.expire_all()
        stock = session.get(Product, product_id).stock
        session.commit()
        return stock

    return _stock_of
