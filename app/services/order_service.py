"""Order service for saving quotations/orders and their line items."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app
from sqlalchemy.orm import Session

from app.models import Order, OrderItem, OrderStatus, Product, Discount, Client, Representative
from app.exceptions import BusinessLogicError, NotFoundError, PricingPreconditionError
from app.services import line_item_service
from app.services.pricing_service import (
    LineItem, ByDiscountTier, Manual,
    order_totals, normalize_status, round_money
)
from app.utils.number_format import parse_decimal, parse_quantity, parse_optional_id, decimal_str

logger = logging.getLogger(__name__)

EMPTY_ORDER_WARNING = 'Pedido salvo sem itens.'


def _parse_status(value) -> OrderStatus:
    try:
        return normalize_status(value or OrderStatus.COTACAO.value)
    except PricingPreconditionError:
        raise BusinessLogicError(f'Status inválido: {value}. Use "cotacao" ou "confirmado".')


def build_line_items(session: Session, items_payload: List[Dict[str, Any]]) -> List[LineItem]:
    """
    Rebuild the order form state from an API payload.

    Each entry: product_id, quantity, and optionally unit_price (list price
    captured earlier), discount_id, manual_price, keep_tier, client_ref.
    Unknown discount ids fall back to no discount.
    """
    items: List[LineItem] = []
    if not items_payload:
        return items

    try:
        product_ids = {int(raw['product_id']) for raw in items_payload}
    except (KeyError, TypeError, ValueError):
        raise BusinessLogicError('Todos os itens precisam de um product_id válido.')

    products = session.query(Product).filter(Product.id.in_(product_ids)).all()
    products_dict = {p.id: p for p in products}
    if len(products_dict) != len(product_ids):
        missing = sorted(product_ids - set(products_dict))
        raise NotFoundError(f'Produto(s) não encontrado(s): {missing}')

    discounts = session.query(Discount).all()

    for index, raw in enumerate(items_payload):
        product = products_dict[int(raw['product_id'])]
        try:
            quantity = parse_quantity(raw.get('quantity'))
            unit_price = parse_decimal(raw['unit_price'], 'unit_price') if raw.get('unit_price') not in (None, '') else None
            discount_id = parse_optional_id(raw.get('discount_id'))
            manual_price = parse_decimal(raw['manual_price'], 'manual_price') if raw.get('manual_price') not in (None, '') else None
        except ValueError as e:
            raise BusinessLogicError(f'Item {index + 1}: {e}')

        if unit_price is None and not product.active:
            raise BusinessLogicError(f'O produto "{product.name}" não está ativo.')

        line_item_service.add_product(items, product, quantity, raw.get('client_ref'), unit_price)

        if discount_id is not None:
            discount = line_item_service.resolve_discount(discounts, discount_id)
            line_item_service.apply_discount_tier(items, index, discount)

        if manual_price is not None:
            keep_tier = raw.get('keep_tier', True)
            if not isinstance(keep_tier, bool):
                raise BusinessLogicError(f'Item {index + 1}: keep_tier deve ser true ou false.')
            line_item_service.apply_manual_price(items, index, manual_price, keep_tier=keep_tier)

    return items


def save_order(
    session: Session,
    order_data: Dict[str, Any],
    line_items: List[LineItem],
    order_id: Optional[int] = None
) -> Tuple[Order, Optional[str]]:
    """
    Create or update an order with the full current list of line items.

    Previously persisted items are replaced, never merged. Totals come from
    the pricing engine; the order-level discount is always 0. Saving an
    empty order is allowed and returns a warning for the user.
    """
    status = _parse_status(order_data.get('status'))
    try:
        taxes = parse_decimal(order_data.get('taxes') or '0', 'taxes')
        client_id = parse_optional_id(order_data.get('client_id'))
        representative_id = parse_optional_id(order_data.get('representative_id'))
    except ValueError as e:
        raise BusinessLogicError(str(e))

    if client_id is None:
        raise BusinessLogicError('Selecione um cliente para o pedido.')
    if representative_id is None:
        raise BusinessLogicError('Selecione um representante para o pedido.')

    try:
        if not session.get(Client, client_id):
            raise NotFoundError(f'Cliente {client_id} não encontrado.')
        if not session.get(Representative, representative_id):
            raise NotFoundError(f'Representante {representative_id} não encontrado.')

        if order_id is not None:
            order = session.get(Order, order_id)
            if not order:
                raise NotFoundError(f'Pedido {order_id} não encontrado.')
            order.items.clear()
        else:
            order = Order()
            session.add(order)

        totals = order_totals(line_items, taxes, status)

        order.client_id = client_id
        order.representative_id = representative_id
        order.status = status.value
        order.payment_terms = (
            (order_data.get('payment_terms') or '').strip()
            or current_app.config.get('DEFAULT_PAYMENT_TERMS')
        )
        order.notes = (order_data.get('notes') or '').strip() or None
        order.subtotal = totals.subtotal
        order.discount = Decimal('0.00')
        order.taxes = totals.taxes
        order.total = totals.total

        for item in line_items:
            order.items.append(OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                discount_id=item.discount_id,
                discount_percentage=item.discount_percentage,
                commission=item.commission_percentage,
                subtotal=item.subtotal,
                client_ref=item.client_ref
            ))

        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Order %s saved (%s): %d items, subtotal %s, total %s",
        order.id, order.status, len(line_items), totals.subtotal, totals.total
    )

    warning = None
    if not line_items:
        warning = EMPTY_ORDER_WARNING
        logger.info("Order %s saved without items", order.id)

    return order, warning


def get_order_with_items(session: Session, order_id: int) -> Order:
    """Load an order (items are loaded through the relationship)."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Pedido {order_id} não encontrado.')
    return order


def update_order_status(session: Session, order_id: int, status) -> Order:
    """
    Move an order between quotation and confirmed.

    No transition rules are enforced: toggling back to quotation is allowed.
    """
    new_status = _parse_status(status)
    order = get_order_with_items(session, order_id)
    previous = order.status

    try:
        order.status = new_status.value
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Order %s status changed: %s -> %s", order.id, previous, order.status)
    return order


def delete_order(session: Session, order_id: int) -> None:
    """Delete an order and its items."""
    order = get_order_with_items(session, order_id)
    try:
        session.delete(order)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Order %s deleted", order_id)


def line_items_from_order(order: Order) -> List[LineItem]:
    """
    Rebuild the editable line items of a persisted order.

    Subtotals are recomputed from the stored fields; a mismatch with the
    stored subtotal means the row was written outside the pricing engine.
    """
    items = []
    for row in order.items:
        item = LineItem(
            product_id=row.product_id,
            quantity=row.quantity,
            unit_price=row.unit_price,
            discount_percentage=row.discount_percentage or Decimal('0'),
            commission_percentage=row.commission or Decimal('0'),
            discount_id=row.discount_id,
            client_ref=row.client_ref
        )

        tier_percentage = row.discount.percentage if row.discount is not None else Decimal('0')
        if item.discount_percentage != tier_percentage:
            # Manual price is not stored; the discounted price it implied is
            item.mode = Manual(round_money(item.discounted_unit_price))
        else:
            item.mode = ByDiscountTier(row.discount_id)

        if row.subtotal is not None and Decimal(row.subtotal) != item.subtotal:
            logger.warning(
                "Order item %s subtotal %s differs from recomputed %s",
                row.id, row.subtotal, item.subtotal
            )
        items.append(item)
    return items


def _item_to_dict(row: OrderItem, item: LineItem) -> Dict[str, Any]:
    return {
        'id': row.id,
        'order_id': row.order_id,
        'product_id': row.product_id,
        'product_code': row.product.code if row.product else None,
        'product_name': row.product.name if row.product else None,
        'quantity': row.quantity,
        'unit_price': decimal_str(row.unit_price),
        'discount_id': row.discount_id,
        'discount_name': row.discount.name if row.discount else None,
        'discount_percentage': decimal_str(row.discount_percentage),
        'commission': decimal_str(row.commission),
        'discounted_unit_price': decimal_str(round_money(item.discounted_unit_price)),
        'subtotal': decimal_str(row.subtotal),
        'client_ref': row.client_ref,
        'manual_price': isinstance(item.mode, Manual),
    }


def order_to_dict(order: Order, include_items: bool = True) -> Dict[str, Any]:
    """Serialize an order with decimal-safe strings and its derived commission."""
    line_items = line_items_from_order(order)
    totals = order_totals(line_items, order.taxes or Decimal('0'), order.status)

    data = {
        'id': order.id,
        'client_id': order.client_id,
        'client_name': order.client.name if order.client else None,
        'representative_id': order.representative_id,
        'status': order.status,
        'payment_terms': order.payment_terms,
        'subtotal': decimal_str(order.subtotal),
        'discount': decimal_str(order.discount),
        'taxes': decimal_str(order.taxes),
        'total': decimal_str(order.total),
        'total_commission': decimal_str(totals.total_commission),
        'notes': order.notes,
        'created_at': order.created_at.isoformat() if order.created_at else None,
    }

    if include_items:
        data['items'] = [_item_to_dict(row, item) for row, item in zip(order.items, line_items)]

    return data


