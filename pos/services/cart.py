"""
Cart line parsing.

JSON carts arrive loosely typed: ids may be null, missing or numeric strings,
and prices or quantities may be strings. They are resolved here, once, into
CatalogLine / AdHocLine so the billing engine never inspects raw payloads.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from pos.exceptions import (
    BusinessLogicError, InvalidQuantityError, InvalidDiscountError, InvalidPriceError
)

HUNDRED = Decimal('100')
# Scale of the quantity and discount columns
QUANTITY_PLACES = 3
DISCOUNT_PLACES = 2


@dataclass(frozen=True)
class CatalogLine:
    """Line referencing an inventory product."""

    product_id: int
    quantity: Decimal
    override_price: Optional[Decimal] = None
    discount: Decimal = Decimal('0')
    name: Optional[str] = None


@dataclass(frozen=True)
class AdHocLine:
    """Free-form "other" line, never tracked in inventory."""

    name: str
    price: Decimal
    quantity: Decimal
    discount: Decimal = Decimal('0')


CartLine = Union[CatalogLine, AdHocLine]


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a JSON scalar to a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    return number


def _fits_scale(number: Decimal, places: int) -> bool:
    """True when number has at most places decimals."""
    try:
        return number == number.quantize(Decimal(1).scaleb(-places))
    except InvalidOperation:
        return False


def parse_quantity(value: Any, line: int) -> Decimal:
    """Positive quantity with at most QUANTITY_PLACES decimals."""
    quantity = _to_decimal(value)
    if quantity is None or quantity <= 0 or not _fits_scale(quantity, QUANTITY_PLACES):
        raise InvalidQuantityError(line, value)
    return quantity


def parse_discount(value: Any, line: int) -> Decimal:
    """Percent discount in [0, 100]; out-of-range values are rejected."""
    if value is None or value == '':
        return Decimal('0')
    discount = _to_decimal(value)
    if discount is None or discount < 0 or discount > HUNDRED or not _fits_scale(discount, DISCOUNT_PLACES):
        raise InvalidDiscountError(line, value)
    return discount


def parse_price(value: Any, line: int, required: bool = True) -> Optional[Decimal]:
    if value is None or value == '':
        if required:
            raise InvalidPriceError(line, value)
        return None
    price = _to_decimal(value)
    if price is None or price < 0:
        raise InvalidPriceError(line, value)
    return price


def parse_amount(value: Any, field_name: str) -> Optional[Decimal]:
    """Optional non-negative money amount from the payment fields."""
    if value is None or value == '':
        return None
    amount = _to_decimal(value)
    if amount is None or amount < 0:
        raise BusinessLogicError(f"Invalid {field_name} {value!r}, must be a non-negative number",
                                 payload={'field': field_name})
    return amount


def _parse_product_id(value: Any, line: int) -> Optional[int]:
    """Catalog id, or None for an "other" line (null, missing, blank)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        product_id = int(value)
    except (TypeError, ValueError):
        raise BusinessLogicError(f"Line {line + 1}: invalid product id {value!r}",
                                 payload={'line': line})
    if isinstance(value, float) and value != product_id:
        raise BusinessLogicError(f"Line {line + 1}: invalid product id {value!r}",
                                 payload={'line': line})
    return product_id


def parse_cart_line(item: Dict[str, Any], line: int) -> CartLine:
    """Resolve one JSON cart item into a CatalogLine or AdHocLine."""
    if not isinstance(item, dict):
        raise BusinessLogicError(f"Line {line + 1}: malformed cart item", payload={'line': line})

    quantity = parse_quantity(item.get('quantity'), line)
    discount = parse_discount(item.get('discount'), line)
    product_id = _parse_product_id(item.get('id'), line)

    if product_id is None:
        name = (item.get('name') or '').strip()
        if not name:
            raise BusinessLogicError(f"Line {line + 1}: other items need a name", payload={'line': line})
        return AdHocLine(
            name=name,
            price=parse_price(item.get('price'), line),
            quantity=quantity,
            discount=discount,
        )

    return CatalogLine(
        product_id=product_id,
        quantity=quantity,
        override_price=parse_price(item.get('price'), line, required=False),
        discount=discount,
        name=(item.get('name') or None),
    )


def parse_cart(items: Any) -> List[CartLine]:
    """Parse the ``items`` array of a checkout request."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise BusinessLogicError('items must be a list')
    return [parse_cart_line(item, index) for index, item in enumerate(items)]
