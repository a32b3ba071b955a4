"""
Integration tests for the catalog store.
"""

from decimal import Decimal

import pytest

from pos.exceptions import BusinessLogicError, InsufficientStockError, ProductNotFoundError
from pos.services.catalog_store import CatalogStore


class TestDecrementStock:

    def test_decrement(self, session, make_product, stock_of):
        product_id = make_product(stock='5')

        CatalogStore(session).decrement_stock(product_id, Decimal('2'))
        session.commit()

        assert stock_of(product_id) == Decimal('3')

    def test_decrement_to_zero(self, session, make_product, stock_of):
        product_id = make_product(stock='2.5')

        CatalogStore(session).decrement_stock(product_id, Decimal('2.5'))
        session.commit()

        assert stock_of(product_id) == Decimal('0')

    def test_refused_when_short(self, session, make_product, stock_of):
        product_id = make_product(name='Wheelbarrow', stock='1')

        with pytest.raises(InsufficientStockError) as exc_info:
            CatalogStore(session).decrement_stock(product_id, Decimal('2'))
        session.rollback()

        assert exc_info.value.available == Decimal('1')
        assert exc_info.value.shortfall == Decimal('1')
        assert 'Wheelbarrow' in exc_info.value.message
        assert stock_of(product_id) == Decimal('1')

    def test_unknown_product(self, session):
        with pytest.raises(ProductNotFoundError):
            CatalogStore(session).decrement_stock(424242, Decimal('1'))
        session.rollback()


class TestReads:

    def test_get_products_skips_missing(self, session, make_product):
        a = make_product(name='Drill bit set')
        b = make_product(name='Sandpaper')

        products = CatalogStore(session).get_products([a, b, a, 999])

        assert set(products) == {a, b}
        assert products[b].name == 'Sandpaper'
        session.commit()

    def test_list_products_by_name(self, session, make_product):
        make_product(name='Wrench')
        make_product(name='Allen key')

        names = [p.name for p in CatalogStore(session).list_products()]

        assert names == ['Allen key', 'Wrench']
        session.commit()

    def test_low_stock(self, session, make_product):
        make_product(name='Hinges', stock='60', reorder_level=50)
        make_product(name='Padlock', stock='50', reorder_level=50)
        make_product(name='Door stop', stock='3', reorder_level=10)

        low = [p.name for p in CatalogStore(session).low_stock_products()]

        assert low == ['Door stop', 'Padlock']
        session.commit()


class TestAddProduct:

    def test_add(self, session, stock_of):
        product = CatalogStore(session).add_product('  Masking tape ', '45.5', '120', reorder_level=20)
        session.commit()

        assert product.name == 'Masking tape'
        assert product.price == Decimal('45.50')
        assert stock_of(product.id) == Decimal('120')

    def test_stock_defaults_to_zero(self, session, stock_of):
        product = CatalogStore(session).add_product('Spray paint', 250, None)
        session.commit()

        assert stock_of(product.id) == Decimal('0')

    @pytest.mark.parametrize('name, price, stock', [
        ('', 10, 1),
        ('Bucket', None, 1),
        ('Bucket', -1, 1),
        ('Bucket', 10, -3),
        ('Bucket', 'ten', 1),
    ])
    def test_invalid(self, session, name, price, stock):
        with pytest.raises(BusinessLogicError):
            CatalogStore(session).add_product(name, price, stock)
        session.rollback()
