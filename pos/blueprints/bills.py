"""Bills blueprint - bill history and receipt lookup."""
from flask import Blueprint, current_app, jsonify, request, Response

from pos.database import get_session
from pos.exceptions import BusinessLogicError
from pos.services.bill_ledger import BillLedger

bills_bp = Blueprint('bills', __name__, url_prefix='/api')


def _ledger() -> BillLedger:
    return BillLedger(
        get_session(),
        prefix=current_app.config['BILL_NUMBER_PREFIX'],
        width=current_app.config['BILL_NUMBER_WIDTH'],
    )


@bills_bp.route('/bills', methods=['GET'])
def history() -> Response:
    """Recent bills, newest first."""
    max_limit = current_app.config['MAX_BILL_HISTORY']
    try:
        limit = int(request.args.get('limit', max_limit))
    except ValueError:
        raise BusinessLogicError('limit must be an integer')
    if limit < 1:
        raise BusinessLogicError('limit must be positive')

    bills = _ledger().list_recent(min(limit, max_limit))
    return jsonify([bill.to_dict() for bill in bills])


@bills_bp.route('/bills/<bill_no>', methods=['GET'])
def detail(bill_no: str) -> Response:
    return jsonify(_ledger().get_by_number(bill_no).to_dict())


@bills_bp.route('/public-bill/<bill_no>', methods=['GET'])
def public_detail(bill_no: str) -> Response:
    """Receipt lookup shared with customers (e.g. via QR code on the slip)."""
    return jsonify(_ledger().get_by_number(bill_no).to_dict())
