"""
Flask CLI commands for store setup.

Commands:
- flask init-db: Create all tables
- flask add-product: Add a catalog product
- flask low-stock: List products at or under their reorder level
"""

import click
from flask import current_app

from pos.database import get_database
from pos.exceptions import BusinessLogicError
from pos.services.catalog_store import CatalogStore


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db():
        """Create all tables."""
        get_database().create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('add-product')
    @click.option('--name', prompt=True, help='Product name')
    @click.option('--price', prompt=True, help='Unit price')
    @click.option('--stock', prompt=True, help='Quantity on hand')
    @click.option('--reorder-level', type=int, default=None, help='Low stock threshold')
    def add_product(name, price, stock, reorder_level):
        """Add a catalog product."""
        if reorder_level is None:
            reorder_level = current_app.config['DEFAULT_REORDER_LEVEL']

        session = get_database().session
        try:
            product = CatalogStore(session).add_product(name, price, stock, reorder_level)
            session.commit()
        except BusinessLogicError as e:
            session.rollback()
            click.echo(click.style(f'Error: {e.message}', fg='red'))
            return

        click.echo(click.style('Product created.', fg='green', bold=True))
        click.echo(f'   ID: {product.id}')
        click.echo(f'   Name: {product.name}')
        click.echo(f'   Price: {product.price}  Stock: {product.stock}')

    @app.cli.command('low-stock')
    def low_stock():
        """List products at or under their reorder level."""
        products = CatalogStore(get_database().session).low_stock_products()
        if not products:
            click.echo('No products under their reorder level.')
            return
        for product in products:
            click.echo(f'{product.id:>6}  {product.name:<40} stock={product.stock} reorder={product.reorder_level}')
