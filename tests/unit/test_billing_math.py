"""
Unit tests for pricing, payment reconciliation, bill numbers and errors.
"""

from decimal import Decimal

import pytest

from pos.exceptions import (
    EmptyCartError, InsufficientStockError, ProductNotFoundError, PersistenceError
)
from pos.services.bill_ledger import format_bill_number, parse_bill_number
from pos.services.billing_service import money, price_line, reconcile_payment


class TestPriceLine:

    def test_discounted_line(self):
        line = price_line(0, 'Claw Hammer', Decimal('100'), Decimal('2'), Decimal('10'), product_id=1)

        assert line.line_total == Decimal('200.00')
        assert line.line_discount == Decimal('20.00')
        assert line.unit_price == Decimal('100.00')
        assert line.product_id == 1

    def test_fractional_quantity_rounds_to_cents(self):
        line = price_line(0, 'Copper wire (m)', Decimal('12.99'), Decimal('1.333'), Decimal('0'))
        # 12.99 * 1.333 = 17.31567
        assert line.line_total == Decimal('17.32')

    def test_sub_cent_price_rounded_before_total(self):
        line = price_line(0, 'Washer', Decimal('0.005'), Decimal('3'), Decimal('0'))

        assert line.unit_price == Decimal('0.01')
        assert line.line_total == Decimal('0.03')
        assert line.line_total == line.unit_price * line.quantity

    def test_half_cent_rounds_up(self):
        assert money(Decimal('0.125')) == Decimal('0.13')

    def test_full_discount(self):
        line = price_line(0, 'Sample', Decimal('40'), Decimal('1'), Decimal('100'))
        assert line.line_total - line.line_discount == Decimal('0.00')


class TestReconcilePayment:

    def test_shortage_is_negative(self):
        payment = reconcile_payment(Decimal('180.00'), amount_paid=150)
        assert payment['change_returned'] == Decimal('-30.00')
        assert payment['amount_paid'] == Decimal('150.00')

    def test_change_owed(self):
        payment = reconcile_payment(Decimal('180.00'), amount_paid='200')
        assert payment['change_returned'] == Decimal('20.00')

    def test_amount_paid_defaults_to_total(self):
        payment = reconcile_payment(Decimal('180.00'))
        assert payment['amount_paid'] == Decimal('180.00')
        assert payment['change_returned'] == Decimal('0.00')

    def test_return_balance_substitutes_for_cash(self):
        payment = reconcile_payment(
            Decimal('180.00'), amount_paid=500, customer_return_balance=100, enable_return_balance=True
        )
        assert payment['change_returned'] == Decimal('-80.00')
        assert payment['customer_return_balance'] == Decimal('100.00')
        assert payment['amount_paid'] == Decimal('500.00')

    def test_return_balance_ignored_when_disabled(self):
        payment = reconcile_payment(
            Decimal('180.00'), amount_paid=200, customer_return_balance=100, enable_return_balance=False
        )
        assert payment['change_returned'] == Decimal('20.00')

    def test_enabled_without_balance_counts_as_zero(self):
        payment = reconcile_payment(Decimal('50.00'), enable_return_balance=True)
        assert payment['change_returned'] == Decimal('-50.00')


class TestBillNumbers:

    def test_format(self):
        assert format_bill_number(1) == 'WH00001'
        assert format_bill_number(42, prefix='AB') == 'AB00042'

    def test_format_grows_past_width(self):
        assert format_bill_number(123456) == 'WH123456'

    def test_format_rejects_zero(self):
        with pytest.raises(ValueError):
            format_bill_number(0)

    @pytest.mark.parametrize('bill_no, expected', [
        ('WH00001', 1),
        ('WH00120', 120),
        ('WH123456', 123456),
        ('BL-K3J9-ABCD', None),
        ('WH', None),
        ('WH12a45', None),
        ('XX00001', None),
        (None, None),
    ])
    def test_parse(self, bill_no, expected):
        assert parse_bill_number(bill_no) == expected


class TestErrorPayloads:

    def test_insufficient_stock_reports_shortfall(self):
        error = InsufficientStockError(2, 'PVC Pipe', Decimal('10'), Decimal('5'), line=0)

        assert error.status_code == 409
        assert error.shortfall == Decimal('5')
        assert error.to_dict() == {
            'product_id': 2,
            'requested': '10',
            'available': '5',
            'shortfall': '5',
            'line': 0,
            'message': 'Insufficient stock for PVC Pipe: requested 10, available 5',
            'kind': 'InsufficientStockError',
            'status': 'error',
        }

    def test_fractional_quantities_formatted(self):
        error = InsufficientStockError(1, 'Rope', Decimal('2.500'), Decimal('1.25'))
        assert error.payload['requested'] == '2.5'
        assert error.payload['shortfall'] == '1.25'

    def test_status_classes(self):
        assert EmptyCartError().status_code == 400
        assert ProductNotFoundError(9).status_code == 404
        assert PersistenceError().status_code == 500
