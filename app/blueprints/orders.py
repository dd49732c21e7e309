"""Orders blueprint - JSON endpoints for quotations/orders and commission reports."""
from decimal import Decimal
from flask import Blueprint, request, jsonify, current_app

from app.database import get_session
from app.exceptions import BusinessLogicError
from app.services import order_service, stats_service
from app.utils.number_format import decimal_str

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


def _payload():
    return request.get_json(silent=True) or {}


def _split_payload(payload):
    """Accept {"order": {...}, "items": [...]} or a flat order with an items key."""
    order_data = payload.get('order') if isinstance(payload.get('order'), dict) else payload
    items = payload.get('items') or []
    if not isinstance(items, list):
        raise BusinessLogicError('items deve ser uma lista.')
    return order_data, items


def _serialize_row(row):
    return {
        key: decimal_str(value) if isinstance(value, Decimal) else value
        for key, value in row.items()
    }


def _representative_filter():
    value = request.args.get('representative_id', '').strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise BusinessLogicError('representative_id inválido.')


@orders_bp.route('/', methods=['POST'])
def create_order():
    """Create an order from the full list of line items."""
    db_session = get_session()
    order_data, items_payload = _split_payload(_payload())

    line_items = order_service.build_line_items(db_session, items_payload)
    order, warning = order_service.save_order(db_session, order_data, line_items)

    return jsonify({
        'status': 'ok',
        'order': order_service.order_to_dict(order),
        'warning': warning,
    }), 201


@orders_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id):
    """Order with items, decimal-safe strings and derived commission."""
    order = order_service.get_order_with_items(get_session(), order_id)
    return jsonify({'status': 'ok', 'order': order_service.order_to_dict(order)})


@orders_bp.route('/<int:order_id>', methods=['PUT'])
def update_order(order_id):
    """Replace an order's data and its whole item list."""
    db_session = get_session()
    order_data, items_payload = _split_payload(_payload())

    line_items = order_service.build_line_items(db_session, items_payload)
    order, warning = order_service.save_order(db_session, order_data, line_items, order_id=order_id)

    return jsonify({
        'status': 'ok',
        'order': order_service.order_to_dict(order),
        'warning': warning,
    })


@orders_bp.route('/<int:order_id>/status', methods=['PATCH'])
def change_status(order_id):
    """Switch between cotacao and confirmado."""
    status = _payload().get('status')
    order = order_service.update_order_status(get_session(), order_id, status)
    return jsonify({'status': 'ok', 'order': order_service.order_to_dict(order, include_items=False)})


@orders_bp.route('/<int:order_id>', methods=['DELETE'])
def delete_order(order_id):
    order_service.delete_order(get_session(), order_id)
    return jsonify({'status': 'ok'})


@orders_bp.route('/stats/representatives', methods=['GET'])
def representatives_report():
    """Sales and commission per representative (confirmed orders)."""
    rows = stats_service.sales_by_representative(get_session(), _representative_filter())
    return jsonify({'status': 'ok', 'representatives': [_serialize_row(r) for r in rows]})


@orders_bp.route('/stats/top-products', methods=['GET'])
def top_products_report():
    """Best-selling products (confirmed orders)."""
    try:
        limit = int(request.args.get('limit', current_app.config.get('TOP_PRODUCTS_LIMIT', 20)))
    except ValueError:
        raise BusinessLogicError('limit inválido.')
    if limit <= 0:
        raise BusinessLogicError('limit deve ser maior que 0.')

    rows = stats_service.top_selling_products(get_session(), limit, _representative_filter())
    return jsonify({'status': 'ok', 'products': [_serialize_row(r) for r in rows]})


@orders_bp.route('/stats/brands', methods=['GET'])
def brands_report():
    """Sales and commission per product brand (confirmed orders)."""
    rows = stats_service.sales_by_brand(get_session(), _representative_filter())
    return jsonify({'status': 'ok', 'brands': [_serialize_row(r) for r in rows]})


@orders_bp.route('/stats/orders', methods=['GET'])
def orders_report():
    """Order counters by status for the dashboard."""
    stats = stats_service.order_stats(get_session(), _representative_filter())
    return jsonify({'status': 'ok', 'orders': _serialize_row(stats)})
