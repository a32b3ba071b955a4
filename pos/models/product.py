"""Product model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, CheckConstraint
from sqlalchemy.sql import func
from pos.database import Base


class Product(Base):
    """Catalog product with on-hand stock."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Numeric(12, 3), nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=50, server_default='50')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"

    @property
    def is_low_stock(self) -> bool:
        """Stock at or under the reorder level."""
        return (self.stock or 0) <= (self.reorder_level or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': float(self.price),
            'stock': float(self.stock),
            'reorder_level': self.reorder_level,
            'low_stock': self.is_low_stock,
        }
