"""
Billing service with transactional checkout logic.
Validates a cart, computes totals, reconciles payment, allocates the bill
number, decrements stock and appends the bill as one unit of work.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pos.exceptions import (
    PosError, EmptyCartError, InsufficientStockError, ProductNotFoundError,
    BillNumberAllocationConflict, PersistenceError
)
from pos.models import Bill, BillLine
from pos.services.bill_ledger import BillLedger, DEFAULT_PREFIX, DEFAULT_WIDTH
from pos.services.cart import (
    AdHocLine, CatalogLine, CartLine, HUNDRED, parse_amount, parse_quantity, parse_discount, parse_price
)
from pos.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
WALK_IN = 'Walk-in'
DEFAULT_MAX_ATTEMPTS = 3


def money(value) -> Decimal:
    """Quantize to currency precision (2 places, half up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PricedLine:
    """A validated cart line with its charged price and totals."""

    position: int
    product_id: Optional[int]
    name: str
    unit_price: Decimal
    quantity: Decimal
    discount: Decimal
    line_total: Decimal
    line_discount: Decimal


@dataclass
class BillTotals:
    lines: List[PricedLine] = field(default_factory=list)
    subtotal: Decimal = Decimal('0.00')
    discount: Decimal = Decimal('0.00')

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount

    def quantities_by_product(self) -> Dict[int, Decimal]:
        """Requested quantity per catalog product, ascending id order."""
        quantities: Dict[int, Decimal] = {}
        for line in self.lines:
            if line.product_id is not None:
                quantities[line.product_id] = quantities.get(line.product_id, Decimal('0')) + line.quantity
        return dict(sorted(quantities.items()))


def price_line(position: int, name: str, price: Decimal, quantity: Decimal, discount: Decimal,
               product_id: Optional[int] = None) -> PricedLine:
    """Price one line; the charged unit price is the cent-rounded price."""
    price = money(price)
    line_total = money(price * quantity)
    line_discount = money(line_total * discount / HUNDRED)
    return PricedLine(
        position=position,
        product_id=product_id,
        name=name,
        unit_price=price,
        quantity=quantity,
        discount=discount,
        line_total=line_total,
        line_discount=line_discount,
    )


def reconcile_payment(total: Decimal, amount_paid=None, customer_return_balance=None,
                      enable_return_balance: bool = False) -> Dict[str, Decimal]:
    """
    Compute what was tendered and the signed change.

    With enable_return_balance the customer's running balance stands in for
    cash tendered. change_returned < 0 is a shortage and is not an error.
    """
    return_balance = parse_amount(customer_return_balance, 'customerReturnBalance')
    paid = parse_amount(amount_paid, 'amountPaid')
    return_balance = money(return_balance) if return_balance is not None else Decimal('0.00')
    paid = money(paid) if paid is not None else total

    effective_paid = return_balance if enable_return_balance else paid
    return {
        'amount_paid': paid,
        'customer_return_balance': return_balance,
        'change_returned': money(effective_paid - total),
    }


def _normalize_line(index: int, line: CartLine) -> CartLine:
    """Re-check invariants on lines built directly in Python, as Decimals."""
    quantity = parse_quantity(line.quantity, index)
    discount = parse_discount(line.discount, index)
    if isinstance(line, AdHocLine):
        return replace(line, quantity=quantity, discount=discount,
                       price=parse_price(line.price, index))
    return replace(line, quantity=quantity, discount=discount,
                   override_price=parse_price(line.override_price, index, required=False))


def compute_totals(cart: Sequence[CartLine], catalog: CatalogStore) -> BillTotals:
    """
    Validate every line and price the cart without mutating anything.

    Stock is checked against a plain read here; the conditional decrement at
    commit time is what actually guarantees it.
    """
    if not cart:
        raise EmptyCartError()

    cart = [_normalize_line(index, line) for index, line in enumerate(cart)]

    catalog_ids = [line.product_id for line in cart if isinstance(line, CatalogLine)]
    products = catalog.get_products(catalog_ids) if catalog_ids else {}

    totals = BillTotals()
    requested: Dict[int, Decimal] = {}

    for index, line in enumerate(cart):
        if isinstance(line, AdHocLine):
            priced = price_line(index, line.name, line.price, line.quantity, line.discount)
        else:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFoundError(line.product_id, line=index)

            requested[product.id] = requested.get(product.id, Decimal('0')) + line.quantity
            if requested[product.id] > product.stock:
                raise InsufficientStockError(product.id, product.name, requested[product.id],
                                             product.stock, line=index)

            price = line.override_price if line.override_price is not None else product.price
            priced = price_line(index, product.name, price, line.quantity, line.discount,
                                product_id=product.id)

        totals.lines.append(priced)
        totals.subtotal += priced.line_total
        totals.discount += priced.line_discount

    return totals


def checkout(
    session: Session,
    cart: Sequence[CartLine],
    customer_name: Optional[str] = None,
    amount_paid: Union[Decimal, int, float, str, None] = None,
    customer_return_balance: Union[Decimal, int, float, str, None] = None,
    enable_return_balance: bool = False,
    prefix: str = DEFAULT_PREFIX,
    width: int = DEFAULT_WIDTH,
    walk_in_name: str = WALK_IN,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Bill:
    """
    Turn a cart into a committed Bill.

    Validation errors are raised before anything is written. Commit-time
    stock races and bill number conflicts re-read state and retry up to
    ``max_attempts`` times. Any failure rolls back the whole transaction.
    """
    customer_name = (customer_name or '').strip() or walk_in_name
    max_attempts = max(1, max_attempts)
    catalog = CatalogStore(session)
    ledger = BillLedger(session, prefix=prefix, width=width)

    last_error: Optional[PosError] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return _checkout_once(
                session, catalog, ledger, cart, customer_name,
                amount_paid, customer_return_balance, enable_return_balance,
                final_attempt=attempt == max_attempts,
            )
        except _Retry as retry:
            last_error = retry.error
            logger.warning(f"[CHECKOUT] Attempt {attempt}/{max_attempts} conflicted: {retry.error.message}")

    raise last_error


class _Retry(Exception):
    def __init__(self, error: PosError):
        super().__init__(error.message)
        self.error = error


def _checkout_once(session, catalog, ledger, cart, customer_name, amount_paid,
                   customer_return_balance, enable_return_balance, final_attempt) -> Bill:
    try:
        # 1. Validate and price (reads only)
        totals = compute_totals(cart, catalog)
        total = totals.total
        payment = reconcile_payment(total, amount_paid, customer_return_balance, enable_return_balance)
    except PosError:
        session.rollback()
        raise

    try:
        # 2. Conditional stock decrements, ascending id order
        for product_id, quantity in totals.quantities_by_product().items():
            catalog.decrement_stock(product_id, quantity)

        # 3. Allocate number and append
        bill_no = ledger.allocate_bill_number()
        bill = Bill(
            bill_no=bill_no,
            customer_name=customer_name,
            subtotal=money(totals.subtotal),
            bill_discount=money(totals.discount),
            total_amount=money(total),
            amount_paid=payment['amount_paid'],
            change_returned=payment['change_returned'],
            customer_return_balance=payment['customer_return_balance'],
            enable_return_balance=bool(enable_return_balance),
            created_at=datetime.now(timezone.utc),
            lines=[
                BillLine(
                    position=line.position,
                    product_id=line.product_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    discount=line.discount,
                    line_total=line.line_total,
                    line_discount=line.line_discount,
                )
                for line in totals.lines
            ],
        )
        ledger.append(bill)
        total_amount, change = bill.total_amount, bill.change_returned

        session.commit()
        logger.info(
            f"[CHECKOUT] {bill_no} committed: customer='{customer_name}' "
            f"lines={len(totals.lines)} total={total_amount} change={change}"
        )
        return bill

    except (InsufficientStockError, BillNumberAllocationConflict) as e:
        session.rollback()
        if final_attempt:
            raise
        raise _Retry(e)
    except PosError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[CHECKOUT] Persistence failure: {e}", exc_info=True)
        raise PersistenceError(f"Checkout failed, try again ({type(e).__name__})") from e
