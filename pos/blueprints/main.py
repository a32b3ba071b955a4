"""Main blueprint - health check."""
from flask import Blueprint, jsonify
from sqlalchemy import text

from pos.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Liveness plus a trivial database round trip."""
    session = get_session()
    session.execute(text('SELECT 1'))
    session.rollback()
    return jsonify({'status': 'ok'})
