"""Products blueprint - read-only catalog for the POS screen."""
import logging

from flask import Blueprint, current_app, jsonify, Response

from pos.database import get_session
from pos.services.cache_service import get_cache
from pos.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

products_bp = Blueprint('products', __name__, url_prefix='/api/products')


@products_bp.route('', methods=['GET'])
def products_list() -> Response:
    """All products ordered by name (cached)."""
    store = CatalogStore(get_session())

    def load():
        return [p.to_dict() for p in store.list_products()]

    try:
        cache = get_cache()
        products = cache.memoize('products', 'all', load, ttl=current_app.config.get('CACHE_PRODUCTS_TTL'))
    except RuntimeError:
        products = load()
    return jsonify(products)


@products_bp.route('/low-stock', methods=['GET'])
def low_stock() -> Response:
    """Products at or under their reorder level."""
    products = CatalogStore(get_session()).low_stock_products()
    return jsonify([p.to_dict() for p in products])
