"""
Pricing engine for order line items.

Single source of truth for discounted unit prices, line subtotals, sales
commissions and order totals. Every screen, endpoint and report computes
money through these functions.

Rules:
- All arithmetic is done with Decimal.
- Line subtotals and order totals are rounded to 2 places (ROUND_HALF_UP).
- Discounted unit prices and line commissions are NOT rounded; rounding
  happens only at the subtotal / order-total boundaries.
- Commission is only reported for confirmed orders.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Union

from app.exceptions import PricingPreconditionError
from app.models.order import OrderStatus


CENTS = Decimal('0.01')
ROUNDING = ROUND_HALF_UP
ZERO = Decimal('0')
HUNDRED = Decimal('100')

Number = Union[Decimal, int, str, float]


def to_decimal(value: Number, field_name: str = 'valor') -> Decimal:
    """Coerce an engine input to Decimal (floats go through str to avoid binary noise)."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise PricingPreconditionError(f'{field_name} inválido: {value!r}')
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise PricingPreconditionError(f'{field_name} inválido: {value!r}')

    if not result.is_finite():
        raise PricingPreconditionError(f'{field_name} inválido: {value!r}')
    return result


def round_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents."""
    return value.quantize(CENTS, rounding=ROUNDING)


def _quantity(quantity: Number) -> Decimal:
    qty = to_decimal(quantity, 'quantidade')
    if qty <= 0 or qty != qty.to_integral_value():
        raise PricingPreconditionError(f'Quantidade deve ser um inteiro positivo: {quantity!r}')
    return qty


def _unit_price(unit_price: Number) -> Decimal:
    price = to_decimal(unit_price, 'preço unitário')
    if price < 0:
        raise PricingPreconditionError(f'Preço unitário negativo: {unit_price!r}')
    return price


def _discount(discount_percentage: Number) -> Decimal:
    pct = to_decimal(discount_percentage, 'percentual de desconto')
    if pct < 0 or pct >= HUNDRED:
        raise PricingPreconditionError(
            f'Percentual de desconto fora do intervalo [0, 100): {discount_percentage!r}'
        )
    return pct


def _commission(commission_percentage: Number) -> Decimal:
    pct = to_decimal(commission_percentage, 'percentual de comissão')
    if pct < 0:
        raise PricingPreconditionError(f'Percentual de comissão negativo: {commission_percentage!r}')
    return pct


def normalize_status(order_status: Union[OrderStatus, str]) -> OrderStatus:
    """Accept an OrderStatus or its string value."""
    if isinstance(order_status, OrderStatus):
        return order_status
    try:
        return OrderStatus(order_status)
    except ValueError:
        raise PricingPreconditionError(f'Status de pedido desconhecido: {order_status!r}')


# ---------------------------------------------------------------------------
# Line-level operations
# ---------------------------------------------------------------------------

def discounted_unit_price(unit_price: Number, discount_percentage: Number) -> Decimal:
    """
    Unit price after applying a percentage discount.

    Returns the list price unchanged when there is no discount. Not rounded.
    """
    price = _unit_price(unit_price)
    pct = _discount(discount_percentage)
    if pct <= 0:
        return price
    return price * (1 - pct / HUNDRED)


def line_subtotal(quantity: Number, unit_price: Number, discount_percentage: Number) -> Decimal:
    """Rounded line subtotal: quantity x discounted unit price."""
    qty = _quantity(quantity)
    return round_money(qty * discounted_unit_price(unit_price, discount_percentage))


def line_commission(
    quantity: Number,
    unit_price: Number,
    discount_percentage: Number,
    commission_percentage: Number
) -> Decimal:
    """
    Commission earned on a line, unrounded.

    Status-independent: order aggregation zeroes it for quotations.
    """
    qty = _quantity(quantity)
    rate = _commission(commission_percentage)
    return qty * discounted_unit_price(unit_price, discount_percentage) * rate / HUNDRED


def implied_discount_from_manual_price(unit_price: Number, manual_final_price: Number) -> Decimal:
    """
    Discount percentage equivalent to a manually typed final unit price.

    A manual price at or above the list price implies no discount (never a
    negative one). The result is rounded to 2 places and must stay below
    100%, so a manual price of zero is rejected.
    """
    price = _unit_price(unit_price)
    if price == 0:
        raise PricingPreconditionError('Preço de tabela zero: desconto implícito indefinido.')

    manual = to_decimal(manual_final_price, 'preço manual')
    if manual < 0:
        raise PricingPreconditionError(f'Preço manual negativo: {manual_final_price!r}')

    if manual >= price:
        return round_money(ZERO)

    pct = round_money((1 - manual / price) * HUNDRED)
    if pct >= HUNDRED:
        raise PricingPreconditionError(
            f'Preço manual {manual_final_price!r} implica desconto de 100% sobre {unit_price!r}.'
        )
    return pct


# ---------------------------------------------------------------------------
# Line item state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ByDiscountTier:
    """Discount chosen from the catalog; discount_id None means list price."""
    discount_id: Optional[int] = None


@dataclass(frozen=True)
class Manual:
    """Discount derived from a final unit price typed by the user."""
    final_price: Decimal


PricingMode = Union[ByDiscountTier, Manual]


@dataclass
class LineItem:
    """
    One product entry of an order being edited.

    unit_price is the list price captured when the product was added and
    never changes afterwards; edits go through the discount or a manual
    price. subtotal is derived and refreshed by recalculate().
    """

    product_id: int
    quantity: int
    unit_price: Decimal
    discount_percentage: Decimal = ZERO
    commission_percentage: Decimal = ZERO
    discount_id: Optional[int] = None
    client_ref: Optional[str] = None
    mode: PricingMode = field(default_factory=ByDiscountTier)
    subtotal: Decimal = field(init=False, default=ZERO)

    def __post_init__(self):
        self.unit_price = _unit_price(self.unit_price)
        self.discount_percentage = _discount(self.discount_percentage)
        self.commission_percentage = _commission(self.commission_percentage)
        self.recalculate()

    def recalculate(self) -> Decimal:
        """Refresh the derived subtotal from the other fields."""
        self.subtotal = line_subtotal(self.quantity, self.unit_price, self.discount_percentage)
        return self.subtotal

    @property
    def discounted_unit_price(self) -> Decimal:
        return discounted_unit_price(self.unit_price, self.discount_percentage)

    @property
    def commission_amount(self) -> Decimal:
        return line_commission(
            self.quantity, self.unit_price,
            self.discount_percentage, self.commission_percentage
        )

    @property
    def is_manual(self) -> bool:
        return isinstance(self.mode, Manual)


# ---------------------------------------------------------------------------
# Order-level aggregation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderTotals:
    """Order-level monetary totals, all rounded to cents."""

    subtotal: Decimal
    taxes: Decimal
    total: Decimal
    total_commission: Decimal

    def to_dict(self) -> Dict[str, str]:
        """Decimal-safe string representation for the API boundary."""
        return {
            'subtotal': f"{self.subtotal:.2f}",
            'taxes': f"{self.taxes:.2f}",
            'total': f"{self.total:.2f}",
            'total_commission': f"{self.total_commission:.2f}",
        }


def order_totals(
    line_items: Iterable[Any],
    taxes: Number,
    order_status: Union[OrderStatus, str]
) -> OrderTotals:
    """
    Aggregate line items into order totals.

    line_items only need quantity, unit_price, discount_percentage,
    commission_percentage and subtotal attributes. An empty list is a valid
    order: subtotal 0, total equal to taxes, no commission.
    """
    freight = to_decimal(taxes, 'frete')
    if freight < 0:
        raise PricingPreconditionError(f'Frete negativo: {taxes!r}')
    status = normalize_status(order_status)

    items = list(line_items)
    subtotal = round_money(sum((to_decimal(item.subtotal, 'subtotal') for item in items), ZERO))
    total = round_money(subtotal + freight)

    if status is OrderStatus.CONFIRMADO:
        total_commission = round_money(sum(
            (line_commission(item.quantity, item.unit_price,
                             item.discount_percentage, item.commission_percentage)
             for item in items),
            ZERO
        ))
    else:
        total_commission = round_money(ZERO)

    return OrderTotals(
        subtotal=subtotal,
        taxes=round_money(freight),
        total=total,
        total_commission=total_commission
    )
