"""Line item service - order form state (list of LineItem being edited)."""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from app.exceptions import BusinessLogicError, NotFoundError, PricingPreconditionError
from app.services.pricing_service import (
    LineItem, ByDiscountTier, Manual, ZERO,
    implied_discount_from_manual_price, round_money, to_decimal
)

logger = logging.getLogger(__name__)


def _get_item(items: List[LineItem], index: int) -> LineItem:
    if index < 0 or index >= len(items):
        raise NotFoundError(f'Item {index} não existe no pedido.')
    return items[index]


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise BusinessLogicError('A quantidade deve ser um número inteiro maior que 0.')
    return quantity


def new_line_item(
    product,
    quantity: int,
    client_ref: Optional[str] = None,
    unit_price: Optional[Decimal] = None
) -> LineItem:
    """
    Build a line item for a catalog product.

    Uses the product's current list price unless unit_price carries the
    price captured when the line was first added (re-editing a saved
    order). Starts without discount tier and without commission.
    """
    quantity = _check_quantity(quantity)
    price = product.price if unit_price is None else unit_price
    if price is None or to_decimal(price, 'preço de tabela') <= 0:
        raise BusinessLogicError(f'O produto "{product.name}" não possui preço de tabela.')

    price = to_decimal(price, 'preço de tabela')
    # Stored as Numeric(10, 2): more places would not survive a reload
    if price != round_money(price):
        raise BusinessLogicError(f'Preço de tabela com mais de 2 casas decimais: {price}')

    return LineItem(
        product_id=product.id,
        quantity=quantity,
        unit_price=price,
        client_ref=(client_ref or '').strip() or None,
    )


def add_product(
    items: List[LineItem],
    product,
    quantity: int = 1,
    client_ref: Optional[str] = None,
    unit_price: Optional[Decimal] = None
) -> LineItem:
    """Append a product to the order. The same product may appear on several lines."""
    item = new_line_item(product, quantity, client_ref, unit_price)
    items.append(item)
    logger.debug("Added product %s x%s at %s", product.id, quantity, item.unit_price)
    return item


def update_quantity(items: List[LineItem], index: int, quantity: int) -> LineItem:
    """Change the quantity of a line, keeping its discount."""
    item = _get_item(items, index)
    item.quantity = _check_quantity(quantity)
    item.recalculate()
    return item


def resolve_discount(discounts: Iterable, discount_id: Optional[int]):
    """
    Find a discount tier in the loaded catalog.

    A missing reference is treated as "no discount" and only logged.
    """
    if discount_id is None:
        return None
    for discount in discounts:
        if discount.id == discount_id:
            return discount
    logger.warning("Discount %s not found in catalog; using no discount", discount_id)
    return None


def apply_discount_tier(items: List[LineItem], index: int, discount) -> LineItem:
    """
    Select a catalog discount tier for a line (None returns it to list price).

    Replaces any manual price previously typed on the line.
    """
    item = _get_item(items, index)

    if discount is None:
        item.discount_id = None
        item.discount_percentage = ZERO
        item.commission_percentage = ZERO
        item.mode = ByDiscountTier()
    else:
        try:
            percentage = to_decimal(discount.percentage)
            commission = to_decimal(discount.commission)
        except PricingPreconditionError:
            raise BusinessLogicError(f'Desconto "{discount.name}" com valores inválidos.')
        if percentage < 0 or percentage >= 100 or commission < 0:
            raise BusinessLogicError(f'Desconto "{discount.name}" com valores inválidos.')
        item.discount_id = discount.id
        item.discount_percentage = percentage
        item.commission_percentage = commission
        item.mode = ByDiscountTier(discount.id)

    item.recalculate()
    return item


def apply_manual_price(items: List[LineItem], index: int, final_price, keep_tier: bool = True) -> LineItem:
    """
    Set a typed final unit price on a line.

    The equivalent discount is derived from the list price and the normal
    subtotal/commission path applies. The selected tier's commission rate
    is kept unless keep_tier is False, in which case the tier is cleared.
    """
    item = _get_item(items, index)
    try:
        price = to_decimal(final_price, 'preço manual')
    except PricingPreconditionError:
        raise BusinessLogicError('Preço manual inválido.')
    if price <= 0:
        raise BusinessLogicError('O preço manual deve ser maior que 0.')

    try:
        item.discount_percentage = implied_discount_from_manual_price(item.unit_price, price)
    except PricingPreconditionError:
        raise BusinessLogicError('O preço manual é baixo demais para este produto.')

    if not keep_tier:
        item.discount_id = None
        item.commission_percentage = ZERO

    item.mode = Manual(price)
    item.recalculate()
    logger.debug(
        "Manual price %s on product %s implies %s%% discount",
        price, item.product_id, item.discount_percentage
    )
    return item


def remove_item(items: List[LineItem], index: int) -> LineItem:
    """Remove a line from the order."""
    _get_item(items, index)
    return items.pop(index)
