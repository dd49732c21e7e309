"""
Unit tests for the pricing engine.
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from hypothesis import given, settings, strategies as st

from app.exceptions import PricingPreconditionError
from app.models import OrderStatus
from app.services.pricing_service import (
    LineItem, ByDiscountTier, Manual, OrderTotals,
    discounted_unit_price,
    line_subtotal,
    line_commission,
    implied_discount_from_manual_price,
    order_totals,
    round_money,
)


prices = st.decimals(min_value=Decimal('0.01'), max_value=Decimal('99999.99'), places=2)
discount_rates = st.decimals(min_value=Decimal('0'), max_value=Decimal('99.99'), places=2)
commission_rates = st.decimals(min_value=Decimal('0'), max_value=Decimal('20'), places=2)
quantities = st.integers(min_value=1, max_value=10000)
statuses = st.sampled_from(['cotacao', 'confirmado'])


@st.composite
def line_items(draw):
    return LineItem(
        product_id=draw(st.integers(min_value=1, max_value=1000)),
        quantity=draw(quantities),
        unit_price=draw(prices),
        discount_percentage=draw(discount_rates),
        commission_percentage=draw(commission_rates),
    )


class TestDiscountedUnitPrice:
    """Tests for discounted_unit_price."""

    def test_no_discount_returns_list_price(self):
        assert discounted_unit_price(Decimal('100.00'), Decimal('0')) == Decimal('100.00')

    def test_applies_percentage(self):
        assert discounted_unit_price(Decimal('100.00'), Decimal('20')) == Decimal('80.00')

    def test_is_not_rounded(self):
        """33.33% off 10.00 keeps every digit until the subtotal boundary."""
        assert discounted_unit_price(Decimal('10.00'), Decimal('33.33')) == Decimal('6.667')

    def test_accepts_strings_and_ints(self):
        assert discounted_unit_price('50', 10) == Decimal('45.0')

    def test_floats_go_through_str(self):
        assert discounted_unit_price(0.1, 0) == Decimal('0.1')

    @pytest.mark.parametrize('pct', [Decimal('100'), Decimal('150'), Decimal('-1')])
    def test_rejects_out_of_range_discount(self, pct):
        with pytest.raises(PricingPreconditionError):
            discounted_unit_price(Decimal('10.00'), pct)

    def test_rejects_negative_price(self):
        with pytest.raises(PricingPreconditionError):
            discounted_unit_price(Decimal('-1.00'), Decimal('0'))

    def test_rejects_garbage(self):
        with pytest.raises(PricingPreconditionError):
            discounted_unit_price('abc', '0')

    def test_precondition_error_is_value_error(self):
        with pytest.raises(ValueError):
            discounted_unit_price(Decimal('10.00'), Decimal('100'))


class TestLineSubtotal:
    """Tests for line_subtotal."""

    def test_scenario_single_discounted_item(self):
        """10 x 100.00 at 20% off -> 80.00 each, 800.00 total."""
        assert discounted_unit_price(Decimal('100.00'), Decimal('20')) == Decimal('80.00')
        assert line_subtotal(10, Decimal('100.00'), Decimal('20')) == Decimal('800.00')

    def test_rounds_half_up_to_cents(self):
        # 3 x 6.667 = 20.001 -> 20.00 ; 1 x 0.125 -> 0.13
        assert line_subtotal(3, Decimal('10.00'), Decimal('33.33')) == Decimal('20.00')
        assert line_subtotal(1, Decimal('0.25'), Decimal('50')) == Decimal('0.13')

    def test_rounds_once_not_per_unit(self):
        """Rounding the unit price first would give 3 x 6.67 = 20.01."""
        assert line_subtotal(3, Decimal('10.00'), Decimal('33.33')) != Decimal('20.01')

    def test_result_has_two_places(self):
        assert line_subtotal(2, Decimal('10'), Decimal('0')).as_tuple().exponent == -2

    @pytest.mark.parametrize('qty', [0, -1, Decimal('1.5')])
    def test_rejects_invalid_quantity(self, qty):
        with pytest.raises(PricingPreconditionError):
            line_subtotal(qty, Decimal('10.00'), Decimal('0'))

    @given(quantities, prices, discount_rates)
    def test_idempotent(self, qty, price, pct):
        assert line_subtotal(qty, price, pct) == line_subtotal(qty, price, pct)

    @given(quantities, prices)
    def test_no_discount_identity(self, qty, price):
        assert line_subtotal(qty, price, Decimal('0')) == round_money(qty * price)


class TestLineCommission:
    """Tests for line_commission."""

    def test_scenario_commission_on_discounted_value(self):
        """10 x 80.00 x 5% = 40.00."""
        assert line_commission(10, Decimal('100.00'), Decimal('20'), Decimal('5')) == Decimal('40')

    def test_not_rounded_per_line(self):
        value = line_commission(1, Decimal('0.33'), Decimal('0'), Decimal('1'))
        assert value == Decimal('0.0033')

    def test_zero_rate(self):
        assert line_commission(5, Decimal('10.00'), Decimal('10'), Decimal('0')) == 0

    def test_rejects_negative_rate(self):
        with pytest.raises(PricingPreconditionError):
            line_commission(1, Decimal('10.00'), Decimal('0'), Decimal('-1'))


class TestImpliedDiscount:
    """Tests for implied_discount_from_manual_price."""

    def test_scenario_manual_price(self):
        """50.00 list, 40.00 typed -> 20.00%."""
        assert implied_discount_from_manual_price(Decimal('50.00'), Decimal('40.00')) == Decimal('20.00')

    def test_rounds_to_two_places(self):
        assert implied_discount_from_manual_price(Decimal('30.00'), Decimal('20.00')) == Decimal('33.33')

    def test_price_at_list_is_no_discount(self):
        assert implied_discount_from_manual_price(Decimal('50.00'), Decimal('50.00')) == 0

    def test_price_above_list_is_no_discount(self):
        assert implied_discount_from_manual_price(Decimal('50.00'), Decimal('55.00')) == 0

    def test_zero_list_price_is_rejected(self):
        with pytest.raises(PricingPreconditionError):
            implied_discount_from_manual_price(Decimal('0'), Decimal('10.00'))

    def test_zero_manual_price_is_rejected(self):
        """Would imply a 100% discount, outside the valid range."""
        with pytest.raises(PricingPreconditionError):
            implied_discount_from_manual_price(Decimal('50.00'), Decimal('0'))

    def test_negative_manual_price_is_rejected(self):
        with pytest.raises(PricingPreconditionError):
            implied_discount_from_manual_price(Decimal('50.00'), Decimal('-1'))

    @given(prices)
    def test_full_price_boundary(self, price):
        assert implied_discount_from_manual_price(price, price) == 0
        assert implied_discount_from_manual_price(price, price * Decimal('1.1')) == 0

    @given(prices, discount_rates)
    def test_round_trip(self, price, pct):
        manual = discounted_unit_price(price, pct)
        implied = implied_discount_from_manual_price(price, manual)
        assert abs(implied - pct) <= Decimal('0.01')


class TestLineItem:
    """Tests for the LineItem state object."""

    def test_subtotal_computed_on_creation(self):
        item = LineItem(product_id=1, quantity=10, unit_price=Decimal('100.00'), discount_percentage=Decimal('20'))
        assert item.subtotal == Decimal('800.00')
        assert item.mode == ByDiscountTier()
        assert item.is_manual is False

    def test_recalculate_after_mutation(self):
        item = LineItem(product_id=1, quantity=1, unit_price=Decimal('100.00'))
        item.quantity = 3
        assert item.recalculate() == Decimal('300.00')

    def test_commission_amount(self):
        item = LineItem(
            product_id=1, quantity=10, unit_price=Decimal('100.00'),
            discount_percentage=Decimal('20'), commission_percentage=Decimal('5')
        )
        assert item.commission_amount == Decimal('40')

    def test_manual_mode_flag(self):
        item = LineItem(product_id=1, quantity=1, unit_price=Decimal('50.00'), mode=Manual(Decimal('40.00')))
        assert item.is_manual is True

    def test_rejects_invalid_discount(self):
        with pytest.raises(PricingPreconditionError):
            LineItem(product_id=1, quantity=1, unit_price=Decimal('10.00'), discount_percentage=Decimal('100'))

    @given(line_items())
    def test_stored_subtotal_reproducible(self, item):
        assert line_subtotal(item.quantity, item.unit_price, item.discount_percentage) == item.subtotal


class TestOrderTotals:
    """Tests for order_totals."""

    def _item(self, qty, price, pct='0', commission='0'):
        return LineItem(
            product_id=1, quantity=qty, unit_price=Decimal(price),
            discount_percentage=Decimal(pct), commission_percentage=Decimal(commission)
        )

    def test_scenario_two_items(self):
        items = [self._item(2, '10'), self._item(3, '20', '50')]
        assert [i.subtotal for i in items] == [Decimal('20.00'), Decimal('30.00')]
        totals = order_totals(items, Decimal('0'), 'cotacao')
        assert totals.subtotal == Decimal('50.00')
        assert totals.total == Decimal('50.00')

    def test_scenario_empty_order(self):
        totals = order_totals([], Decimal('15.00'), 'cotacao')
        assert totals == OrderTotals(
            subtotal=Decimal('0.00'), taxes=Decimal('15.00'),
            total=Decimal('15.00'), total_commission=Decimal('0.00')
        )

    def test_empty_confirmed_order_has_no_commission(self):
        assert order_totals([], Decimal('0'), 'confirmado').total_commission == 0

    def test_scenario_commission_gated_by_status(self):
        items = [self._item(10, '100.00', '20', '5')]
        assert order_totals(items, Decimal('0'), 'confirmado').total_commission == Decimal('40.00')
        assert order_totals(items, Decimal('0'), 'cotacao').total_commission == Decimal('0.00')

    def test_accepts_status_enum(self):
        items = [self._item(10, '100.00', '20', '5')]
        assert order_totals(items, 0, OrderStatus.CONFIRMADO).total_commission == Decimal('40.00')

    def test_commission_rounded_once_over_all_lines(self):
        """Three lines of 0.0033 sum to 0.0099 -> 0.01, not 3 x 0.00."""
        items = [self._item(1, '0.33', '0', '1') for _ in range(3)]
        assert order_totals(items, 0, 'confirmado').total_commission == Decimal('0.01')

    def test_taxes_added_to_total(self):
        items = [self._item(1, '10.00')]
        totals = order_totals(items, '5.5', 'cotacao')
        assert totals.taxes == Decimal('5.50')
        assert totals.total == Decimal('15.50')

    def test_works_with_plain_objects(self):
        row = SimpleNamespace(
            quantity=2, unit_price=Decimal('10.00'), discount_percentage=Decimal('0'),
            commission_percentage=Decimal('10'), subtotal=Decimal('20.00')
        )
        totals = order_totals([row], 0, 'confirmado')
        assert totals.subtotal == Decimal('20.00')
        assert totals.total_commission == Decimal('2.00')

    def test_to_dict_uses_decimal_strings(self):
        totals = order_totals([self._item(10, '100.00', '20', '5')], '15', 'confirmado')
        assert totals.to_dict() == {
            'subtotal': '800.00',
            'taxes': '15.00',
            'total': '815.00',
            'total_commission': '40.00',
        }

    def test_rejects_negative_taxes(self):
        with pytest.raises(PricingPreconditionError):
            order_totals([], Decimal('-1'), 'cotacao')

    def test_rejects_unknown_status(self):
        with pytest.raises(PricingPreconditionError):
            order_totals([], Decimal('0'), 'cancelado')

    @given(st.lists(line_items(), min_size=1, max_size=10))
    def test_quotation_never_carries_commission(self, items):
        assert order_totals(items, Decimal('0'), 'cotacao').total_commission == 0

    @given(
        st.lists(line_items(), max_size=5),
        st.integers(min_value=1, max_value=100),
        st.decimals(min_value=Decimal('10'), max_value=Decimal('1000'), places=2),
        st.decimals(min_value=Decimal('0'), max_value=Decimal('90'), places=2),
        st.decimals(min_value=Decimal('1'), max_value=Decimal('20'), places=2),
    )
    def test_confirmed_order_carries_commission(self, items, qty, price, pct, commission):
        items.append(LineItem(
            product_id=1, quantity=qty, unit_price=price,
            discount_percentage=pct, commission_percentage=commission
        ))
        assert order_totals(items, Decimal('0'), 'confirmado').total_commission > 0

    @settings(max_examples=50)
    @given(st.lists(line_items(), max_size=10), statuses)
    def test_aggregation_additivity(self, items, status):
        expected = round_money(sum(
            (line_subtotal(i.quantity, i.unit_price, i.discount_percentage) for i in items),
            Decimal('0')
        ))
        assert order_totals(items, Decimal('0'), status).subtotal == expected

    @given(st.lists(line_items(), max_size=10), st.decimals(min_value=Decimal('0'), max_value=Decimal('1000'), places=2))
    def test_total_is_subtotal_plus_taxes(self, items, taxes):
        totals = order_totals(items, taxes, 'cotacao')
        assert totals.total == totals.subtotal + taxes
