"""Bill Line model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from pos.database import Base


class BillLine(Base):
    """
    Snapshot of one sold line.

    Name and price are copied at checkout time, so later catalog edits never
    alter a historical bill. product_id is NULL for ad-hoc ("other") lines
    and is kept without a foreign key.
    """

    __tablename__ = 'bill_line'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    bill_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('bill.id'), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(BigInteger, nullable=True)
    name = Column(String, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    discount = Column(Numeric(5, 2), nullable=False, default=0)
    line_total = Column(Numeric(12, 2), nullable=False)
    line_discount = Column(Numeric(12, 2), nullable=False, default=0)

    # Relationships
    bill = relationship('Bill', back_populates='lines')

    @property
    def is_other(self) -> bool:
        return self.product_id is None

    def to_dict(self):
        return {
            'id': self.product_id,
            'name': self.name,
            'price': float(self.unit_price),
            'quantity': float(self.quantity),
            'discount': float(self.discount),
            'total': float(self.line_total),
            'discountAmount': float(self.line_discount),
        }

    def __repr__(self):
        return f"<BillLine(id={self.id}, name='{self.name}', qty={self.quantity})>"
