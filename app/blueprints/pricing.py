"""Pricing blueprint - JSON calculator endpoints over the pricing engine."""
from decimal import Decimal
from flask import Blueprint, request, jsonify

from app.exceptions import BusinessLogicError, PricingPreconditionError
from app.services.pricing_service import (
    LineItem,
    discounted_unit_price,
    line_subtotal,
    line_commission,
    implied_discount_from_manual_price,
    order_totals,
    round_money,
)
from app.utils.number_format import parse_decimal, parse_quantity, decimal_str

pricing_bp = Blueprint('pricing', __name__, url_prefix='/api/pricing')


def _payload():
    return request.get_json(silent=True) or {}


def _number(payload, key, default=None) -> Decimal:
    value = payload.get(key, default)
    try:
        return parse_decimal(value, key)
    except ValueError as e:
        raise BusinessLogicError(str(e))


def _discount(payload, key='discount_percentage') -> Decimal:
    pct = _number(payload, key, '0')
    if pct >= 100:
        raise BusinessLogicError('O desconto deve ser menor que 100%.')
    return pct


def _quantity(payload) -> int:
    try:
        return parse_quantity(payload.get('quantity'))
    except ValueError as e:
        raise BusinessLogicError(str(e))


@pricing_bp.route('/line', methods=['POST'])
def price_line():
    """
    Price a single line.

    Body: quantity, unit_price, discount_percentage, commission_percentage.
    discounted_unit_price and commission are rounded here for display only.
    """
    payload = _payload()
    quantity = _quantity(payload)
    unit_price = _number(payload, 'unit_price')
    discount = _discount(payload)
    commission = _number(payload, 'commission_percentage', '0')

    return jsonify({
        'status': 'ok',
        'discounted_unit_price': decimal_str(round_money(discounted_unit_price(unit_price, discount))),
        'subtotal': decimal_str(line_subtotal(quantity, unit_price, discount)),
        'commission': decimal_str(round_money(line_commission(quantity, unit_price, discount, commission))),
    })


@pricing_bp.route('/implied-discount', methods=['POST'])
def implied_discount():
    """Discount equivalent to a typed final price. Body: unit_price, manual_price."""
    payload = _payload()
    unit_price = _number(payload, 'unit_price')
    manual_price = _number(payload, 'manual_price')

    if unit_price <= 0:
        raise BusinessLogicError('O produto não possui preço de tabela.')
    if manual_price <= 0:
        raise BusinessLogicError('O preço manual deve ser maior que 0.')

    try:
        pct = implied_discount_from_manual_price(unit_price, manual_price)
    except PricingPreconditionError:
        raise BusinessLogicError('O preço manual é baixo demais para este produto.')

    return jsonify({
        'status': 'ok',
        'discount_percentage': decimal_str(pct),
    })


@pricing_bp.route('/order-totals', methods=['POST'])
def totals():
    """
    Order totals for an unsaved list of lines.

    Body: items [{quantity, unit_price, discount_percentage,
    commission_percentage}], taxes, status.
    """
    payload = _payload()
    raw_items = payload.get('items') or []
    if not isinstance(raw_items, list):
        raise BusinessLogicError('items deve ser uma lista.')

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise BusinessLogicError(f'Item {index + 1} inválido.')
        items.append(LineItem(
            product_id=raw.get('product_id') or 0,
            quantity=_quantity(raw),
            unit_price=_number(raw, 'unit_price'),
            discount_percentage=_discount(raw),
            commission_percentage=_number(raw, 'commission_percentage', '0'),
        ))

    taxes = _number(payload, 'taxes', '0')
    status = payload.get('status') or 'cotacao'
    if status not in ('cotacao', 'confirmado'):
        raise BusinessLogicError(f'Status inválido: {status}. Use "cotacao" ou "confirmado".')

    result = order_totals(items, taxes, status)
    data = result.to_dict()
    data['status'] = 'ok'
    data['order_status'] = status
    data['lines'] = [
        {'subtotal': decimal_str(item.subtotal)} for item in items
    ]
    return jsonify(data)
