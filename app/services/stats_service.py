"""
Commission and sales reports over confirmed orders.

Commission goes through the same boundary as the order screen: it is
rounded once per order (per order and product, or per order and brand,
for the catalog reports) and those cents are then added up. A
representative's report is therefore always the sum of the
total_commission shown on each of their confirmed orders.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.models import Order, OrderStatus, Representative
from app.services.order_service import line_items_from_order
from app.services.pricing_service import LineItem, order_totals, round_money, ZERO

NO_BRAND = 'Sem Marca'


def _orders(session: Session, representative_id: Optional[int] = None) -> List[Order]:
    query = session.query(Order)
    if representative_id is not None:
        query = query.filter(Order.representative_id == representative_id)
    return query.order_by(Order.id).all()


def _confirmed_orders(session: Session, representative_id: Optional[int] = None) -> List[Order]:
    return [o for o in _orders(session, representative_id) if o.status == OrderStatus.CONFIRMADO.value]


def _commission(line_items: Iterable[LineItem]) -> Decimal:
    return order_totals(line_items, ZERO, OrderStatus.CONFIRMADO).total_commission


def order_commission(order: Order) -> Decimal:
    """Commission of one order exactly as the order screen reports it."""
    return order_totals(line_items_from_order(order), order.taxes or ZERO, order.status).total_commission


def order_stats(session: Session, representative_id: Optional[int] = None) -> Dict[str, Any]:
    """Dashboard counters: orders by status and their values."""
    orders = _orders(session, representative_id)
    confirmed = [o for o in orders if o.status == OrderStatus.CONFIRMADO.value]
    return {
        'total': len(orders),
        'confirmed': len(confirmed),
        'quotation': len(orders) - len(confirmed),
        'total_value': round_money(sum((o.total or ZERO for o in orders), ZERO)),
        'confirmed_value': round_money(sum((o.total or ZERO for o in confirmed), ZERO)),
        'total_commission': round_money(sum((order_commission(o) for o in confirmed), ZERO)),
    }


def sales_by_representative(session: Session, representative_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Sales summary per representative.

    Value, pieces and commission only count confirmed orders; quotations
    appear in total_orders only.
    """
    query = session.query(Representative)
    if representative_id is not None:
        query = query.filter(Representative.id == representative_id)
    representatives = query.order_by(Representative.name).all()

    results = []
    for rep in representatives:
        rep_orders = _orders(session, rep.id)
        confirmed = [o for o in rep_orders if o.status == OrderStatus.CONFIRMADO.value]

        results.append({
            'id': rep.id,
            'name': rep.name,
            'total_orders': len(rep_orders),
            'confirmed_orders': len(confirmed),
            'total_value': round_money(sum((o.total for o in confirmed), ZERO)),
            'total_pieces': sum(item.quantity for o in confirmed for item in o.items),
            'total_commission': round_money(sum((order_commission(o) for o in confirmed), ZERO)),
        })
    return results


def _group_by(session: Session, representative_id: Optional[int], key) -> Dict[Any, Dict[str, Any]]:
    """
    Aggregate confirmed order lines under key(order_item).

    Returns key -> {total_pieces, total_value, total_commission, orders}.
    """
    groups: Dict[Any, Dict[str, Any]] = {}

    for order in _confirmed_orders(session, representative_id):
        per_order = defaultdict(list)
        for row, item in zip(order.items, line_items_from_order(order)):
            per_order[key(row)].append(item)

        for group_key, items in per_order.items():
            entry = groups.setdefault(group_key, {
                'total_pieces': 0,
                'total_value': ZERO,
                'total_commission': ZERO,
                'orders': 0,
            })
            entry['total_pieces'] += sum(i.quantity for i in items)
            entry['total_value'] += sum((i.subtotal for i in items), ZERO)
            entry['total_commission'] += _commission(items)
            entry['orders'] += 1

    return groups


def top_selling_products(
    session: Session,
    limit: int = 20,
    representative_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Best-selling products by pieces over confirmed orders."""
    products = {}

    def by_product(row):
        products.setdefault(row.product_id, row.product)
        return row.product_id

    groups = _group_by(session, representative_id, by_product)

    results = []
    for product_id, entry in groups.items():
        product = products[product_id]
        results.append({
            'id': product.id,
            'code': product.code,
            'name': product.name,
            'brand': product.brand,
            'total_pieces': entry['total_pieces'],
            'total_value': round_money(entry['total_value']),
            'total_commission': round_money(entry['total_commission']),
        })

    return sorted(results, key=lambda e: (-e['total_pieces'], e['code']))[:limit]


def sales_by_brand(session: Session, representative_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Pieces, value and commission per product brand over confirmed orders."""
    groups = _group_by(
        session, representative_id,
        lambda row: (row.product.brand or '').strip() or NO_BRAND
    )

    results = [
        {
            'brand': brand,
            'total_pieces': entry['total_pieces'],
            'total_value': round_money(entry['total_value']),
            'total_commission': round_money(entry['total_commission']),
            'orders': entry['orders'],
        }
        for brand, entry in groups.items()
    ]
    return sorted(results, key=lambda e: (-e['total_pieces'], e['brand']))
