"""Catalog store - product reads and atomic stock decrements."""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from pos.exceptions import BusinessLogicError, InsufficientStockError, ProductNotFoundError
from pos.models import Product
from pos.services.cart import parse_amount

logger = logging.getLogger(__name__)


class CatalogStore:
    """Data access for catalog products."""

    def __init__(self, session: Session):
        self.session = session

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def get_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Fetch products in batch, keyed by id. Missing ids are absent."""
        product_ids = list(set(product_ids))
        if not product_ids:
            return {}
        products = (
            self.session.query(Product)
            .filter(Product.id.in_(product_ids))
            .populate_existing()
            .all()
        )
        return {p.id: p for p in products}

    def list_products(self) -> List[Product]:
        return self.session.query(Product).order_by(Product.name.asc()).all()

    def low_stock_products(self) -> List[Product]:
        """Products at or under their reorder level, lowest stock first."""
        return (
            self.session.query(Product)
            .filter(Product.stock <= Product.reorder_level)
            .order_by(Product.stock.asc(), Product.name.asc())
            .all()
        )

    def add_product(self, name: str, price, stock, reorder_level: int = 50) -> Product:
        """Insert a catalog product (flush only, caller commits)."""
        name = (name or '').strip()
        if not name:
            raise BusinessLogicError('Product name is required')
        price = parse_amount(price, 'price')
        stock = parse_amount(stock, 'stock')
        if price is None:
            raise BusinessLogicError('Product price is required', payload={'field': 'price'})
        stock = stock if stock is not None else Decimal('0')

        product = Product(name=name, price=price, stock=stock, reorder_level=reorder_level)
        self.session.add(product)
        self.session.flush()
        return product

    def decrement_stock(self, product_id: int, amount: Decimal) -> None:
        """
        Subtract ``amount`` from a product's stock in one conditional UPDATE.

        The row only changes when the resulting stock stays >= 0, so
        concurrent checkouts cannot oversell. Raises ProductNotFoundError or
        InsufficientStockError when no row was updated.
        """
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= amount)
            .values(stock=Product.stock - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

        product = (
            self.session.query(Product)
            .filter(Product.id == product_id)
            .populate_existing()
            .first()
        )
        if product is None:
            raise ProductNotFoundError(product_id)
        logger.info(
            f"[CATALOG] Conditional decrement refused: product={product_id} "
            f"requested={amount} available={product.stock}"
        )
        raise InsufficientStockError(product.id, product.name, amount, product.stock)
