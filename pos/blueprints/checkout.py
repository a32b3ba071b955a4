"""Checkout blueprint - turns a submitted cart into a bill."""
import logging
from typing import Tuple

from flask import Blueprint, current_app, jsonify, request, Response

from pos.blueprints.metrics import record_checkout
from pos.database import get_session
from pos.exceptions import BusinessLogicError, PosError
from pos.services.billing_service import checkout
from pos.services.cache_service import get_cache
from pos.services.cart import parse_cart

logger = logging.getLogger(__name__)

checkout_bp = Blueprint('checkout', __name__, url_prefix='/api')


def _parse_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def invalidate_products_cache() -> None:
    """Drop cached product listings after stock changed."""
    try:
        get_cache().invalidate_module('products')
    except Exception as e:
        logger.warning(f"[CACHE] Could not invalidate products after checkout: {e}")


@checkout_bp.route('/checkout', methods=['POST'])
def create() -> Tuple[Response, int]:
    """Validate the cart, persist the bill and return it."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BusinessLogicError('Request body must be a JSON object')

    if data.get('changeReturned') is not None:
        logger.debug("[CHECKOUT] Ignoring client-supplied changeReturned, recomputed server side")

    config = current_app.config
    try:
        cart = parse_cart(data.get('items'))
        bill = checkout(
            get_session(),
            cart,
            customer_name=data.get('customerName'),
            amount_paid=data.get('amountPaid'),
            customer_return_balance=data.get('customerReturnBalance'),
            enable_return_balance=_parse_flag(data.get('enableReturnBalance', False)),
            prefix=config['BILL_NUMBER_PREFIX'],
            width=config['BILL_NUMBER_WIDTH'],
            walk_in_name=config['WALK_IN_CUSTOMER_NAME'],
            max_attempts=config['CHECKOUT_MAX_ATTEMPTS'],
        )
    except PosError as e:
        record_checkout(e.kind)
        raise

    record_checkout('success', bill.total_amount)
    invalidate_products_cache()
    return jsonify(bill.to_dict()), 201
