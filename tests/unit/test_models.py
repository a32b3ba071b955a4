"""
Unit tests for SQLAlchemy models.
"""

import pytest
from decimal import Decimal
from pos.models import Product, Bill, BillLine


class TestProductModel:
    """Tests for Product model."""

    def test_create_product(self, session):
        """Test creating a product."""
        product = Product(name='Spanner set', price=Decimal('899.00'), stock=Decimal('7'))
        session.add(product)
        session.commit()

        assert product.id is not None
        assert product.reorder_level == 50
        assert product.created_at is not None

    def test_negative_stock_rejected(self, session):
        """Stock can never be stored below zero."""
        session.add(Product(name='Broken', price=Decimal('1'), stock=Decimal('-1')))

        with pytest.raises(Exception):  # IntegrityError
            session.commit()

    @pytest.mark.parametrize('stock, expected', [('49', True), ('50', True), ('51', False)])
    def test_is_low_stock(self, stock, expected):
        product = Product(name='Nails', price=Decimal('1'), stock=Decimal(stock), reorder_level=50)
        assert product.is_low_stock is expected


class TestBillModel:
    """Tests for Bill model."""

    def test_shortage(self):
        assert Bill(change_returned=Decimal('-30.00')).shortage == Decimal('30.00')
        assert Bill(change_returned=Decimal('20.00')).shortage == 0

    def test_to_dict_keys(self):
        bill = Bill(
            bill_no='WH00001',
            customer_name='Walk-in',
            subtotal=Decimal('200.00'),
            bill_discount=Decimal('20.00'),
            total_amount=Decimal('180.00'),
            amount_paid=Decimal('150.00'),
            change_returned=Decimal('-30.00'),
            customer_return_balance=Decimal('0.00'),
            enable_return_balance=False,
            lines=[BillLine(position=0, product_id=1, name='Hammer', unit_price=Decimal('100.00'),
                            quantity=Decimal('2'), discount=Decimal('10'),
                            line_total=Decimal('200.00'), line_discount=Decimal('20.00'))],
        )

        data = bill.to_dict()

        assert data['billNo'] == 'WH00001'
        assert data['changeReturned'] == -30.0
        assert data['timestamp'] is None
        assert data['items'] == [{
            'id': 1, 'name': 'Hammer', 'price': 100.0, 'quantity': 2.0,
            'discount': 10.0, 'total': 200.0, 'discountAmount': 20.0,
        }]
