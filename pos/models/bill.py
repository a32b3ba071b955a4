"""Bill model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Boolean, DateTime, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos.database import Base
from pos.exceptions import BusinessLogicError


class Bill(Base):
    """Bill (immutable record of a completed sale)."""

    __tablename__ = 'bill'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    bill_no = Column(String(32), unique=True, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    bill_discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    # Signed: positive is change owed to the customer, negative a shortage
    change_returned = Column(Numeric(12, 2), nullable=False)
    customer_return_balance = Column(Numeric(12, 2), nullable=False, default=0, server_default='0')
    enable_return_balance = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    lines = relationship('BillLine', back_populates='bill', order_by='BillLine.position',
                         cascade='save-update, merge')

    @property
    def shortage(self):
        """Amount still owed by the customer (0 when fully paid)."""
        if self.change_returned is None or self.change_returned >= 0:
            return 0
        return -self.change_returned

    def to_dict(self):
        return {
            'billNo': self.bill_no,
            'customerName': self.customer_name,
            'items': [line.to_dict() for line in self.lines],
            'subtotal': float(self.subtotal),
            'totalAmount': float(self.total_amount),
            'billDiscount': float(self.bill_discount),
            'amountPaid': float(self.amount_paid),
            'changeReturned': float(self.change_returned),
            'customerReturnBalance': float(self.customer_return_balance or 0),
            'enableReturnBalance': bool(self.enable_return_balance),
            'timestamp': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Bill(id={self.id}, bill_no='{self.bill_no}', total={self.total_amount})>"


def _refuse_mutation(mapper, connection, target):
    raise BusinessLogicError(f"{type(target).__name__} records are immutable")


def _register_immutability():
    from pos.models.bill_line import BillLine
    for cls in (Bill, BillLine):
        event.listen(cls, 'before_update', _refuse_mutation)
        event.listen(cls, 'before_delete', _refuse_mutation)
