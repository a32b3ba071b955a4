"""Bill number sequence model."""
from sqlalchemy import Column, String, BigInteger
from pos.database import Base


class BillSequence(Base):
    """
    Last allocated bill number per prefix.

    Incremented in place inside the checkout transaction; the row lock
    taken by that UPDATE serializes allocation and bill append.
    """

    __tablename__ = 'bill_sequence'

    prefix = Column(String(8), primary_key=True)
    last_value = Column(BigInteger, nullable=False, default=0)

    def __repr__(self):
        return f"<BillSequence(prefix='{self.prefix}', last_value={self.last_value})>"
