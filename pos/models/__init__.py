"""Models package - exports all SQLAlchemy models."""
from pos.models.product import Product
from pos.models.bill import Bill, _register_immutability
from pos.models.bill_line import BillLine
from pos.models.bill_sequence import BillSequence

_register_immutability()

__all__ = ['Product', 'Bill', 'BillLine', 'BillSequence']
