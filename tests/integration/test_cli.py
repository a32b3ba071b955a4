"""
Tests for the flask CLI commands.
"""

from decimal import Decimal

from pos.models import Product


def test_add_product(app, session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['add-product', '--name', 'Ladder 6ft', '--price', '3200', '--stock', '4'])

    assert result.exit_code == 0
    assert 'Product created.' in result.output
    product = session.query(Product).filter_by(name='Ladder 6ft').one()
    assert product.stock == Decimal('4')
    assert product.reorder_level == app.config['DEFAULT_REORDER_LEVEL']
    session.commit()


def test_add_product_rejects_bad_price(app, session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['add-product', '--name', 'Ladder', '--price', 'free', '--stock', '4'])

    assert 'Error:' in result.output
    assert session.query(Product).count() == 0
    session.commit()


def test_low_stock(app, make_product):
    make_product(name='Cable ties', stock='5', reorder_level=10)
    runner = app.test_cli_runner()

    result = runner.invoke(args=['low-stock'])

    assert result.exit_code == 0
    assert 'Cable ties' in result.output
