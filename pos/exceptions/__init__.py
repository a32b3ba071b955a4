"""Custom exceptions for the POS application."""
from decimal import Decimal


def _fmt_qty(value) -> str:
    """Render a quantity without trailing zeros (5, 2.5)."""
    value = Decimal(str(value))
    if value % 1 == 0:
        return f"{int(value)}"
    return f"{value:.3f}".rstrip('0').rstrip('.')


class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['kind'] = self.kind
        rv['status'] = 'error'
        return rv


class BusinessLogicError(PosError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class EmptyCartError(BusinessLogicError):
    """Raised when checkout is attempted with no line items."""
    def __init__(self, message="No items in cart"):
        super().__init__(message)


class InvalidLineError(BusinessLogicError):
    """A single cart line failed validation."""
    def __init__(self, line: int, message: str, **extra):
        payload = {'line': line}
        payload.update(extra)
        super().__init__(f"Line {line + 1}: {message}", payload=payload)
        self.line = line


class InvalidQuantityError(InvalidLineError):
    """Quantity missing, non-numeric, non-positive or finer than the stored scale."""
    def __init__(self, line: int, value=None):
        super().__init__(line, f"invalid quantity {value!r}, must be a positive number with at most 3 decimals", quantity=str(value))
        self.value = value


class InvalidDiscountError(InvalidLineError):
    """Discount outside the [0, 100] percent range or finer than 0.01."""
    def __init__(self, line: int, value=None):
        super().__init__(line, f"invalid discount {value!r}, must be between 0 and 100 with at most 2 decimals", discount=str(value))
        self.value = value


class InvalidPriceError(InvalidLineError):
    """Price missing, non-numeric or negative."""
    def __init__(self, line: int, value=None):
        super().__init__(line, f"invalid price {value!r}, must be a non-negative number", price=str(value))
        self.value = value


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_id, product_name, required, available, line=None):
        required = Decimal(str(required))
        available = Decimal(str(available))
        shortfall = required - available
        message = (
            f"Insufficient stock for {product_name}: "
            f"requested {_fmt_qty(required)}, available {_fmt_qty(available)}"
        )
        payload = {
            'product_id': product_id,
            'requested': _fmt_qty(required),
            'available': _fmt_qty(available),
            'shortfall': _fmt_qty(shortfall),
        }
        if line is not None:
            payload['line'] = line
        super().__init__(message, status_code=409, payload=payload)
        self.product_id = product_id
        self.product_name = product_name
        self.required = required
        self.available = available
        self.shortfall = shortfall
        self.line = line


class ProductNotFoundError(NotFoundError):
    """A catalog line references a product id that does not exist."""
    def __init__(self, product_id, line=None):
        payload = {'product_id': product_id}
        if line is not None:
            payload['line'] = line
        super().__init__(f"Product {product_id} not found", payload)
        self.product_id = product_id
        self.line = line


class BillNotFoundError(NotFoundError):
    """No bill with the requested number."""
    def __init__(self, bill_no):
        super().__init__(f"Bill {bill_no} not found", {'bill_no': bill_no})
        self.bill_no = bill_no


class BillNumberAllocationConflict(PosError):
    """Concurrent allocation raced; retry with a freshly read sequence."""
    def __init__(self, message="Bill number allocation conflict"):
        super().__init__(message, 409)


class PersistenceError(PosError):
    """Ledger append or catalog update failed for an infrastructure reason."""
    def __init__(self, message="Checkout failed, try again"):
        super().__init__(message, 500)
