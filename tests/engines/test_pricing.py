"""Tests for order totals and parcel pricing."""

from decimal import Decimal

import pytest

from logistics_engines.pricing import (
    PriceLine,
    order_total,
    parcel_price,
    primary_currency,
    rate_per_kg_from_price,
)
from logistics_kernel.domain.values import Money
from logistics_modules.business.models import Order
from logistics_modules.express.models import Parcel
from tests.conftest import make_parcel


class TestOrderPricing:
    def test_total_is_sum_of_lines(self):
        lines = [
            PriceLine("Tissu", Decimal("3"), Decimal("150")),
            PriceLine("Chaussures", Decimal("2"), Decimal("75.50")),
        ]
        assert order_total(lines, "MAD") == Money.of("601.00", "MAD")

    def test_order_create_computes_total(self):
        order = Order.create(
            id=1,
            reference="CMD-1",
            convoy_id=10,
            wave_id=100,
            currency="mad",
            lines=[PriceLine("Tissu", "2", "10")],
        )
        assert order.total_amount == Decimal("20")
        assert order.currency == "MAD"
        assert order.convoy_id == 10
        assert order.status == "pending"

    def test_invalid_lines_rejected(self):
        with pytest.raises(ValueError, match="Quantity"):
            PriceLine("x", Decimal("0"), Decimal("1"))
        with pytest.raises(ValueError, match="Unit price"):
            PriceLine("x", Decimal("1"), Decimal("-1"))


class TestParcelPricing:
    def test_parcel_price_with_counter_currency(self, converter):
        price = parcel_price(Decimal("2.5"), Money.of("12", "MAD"), "CFA", converter)
        assert price.primary == Money.of("30.0", "MAD")
        assert price.counter == Money.of("1890.0", "CFA")

    def test_parcel_create(self):
        parcel = make_parcel(weight="10", rate="12")
        assert parcel.total_amount == Decimal("120.00")
        assert parcel.currency == "MAD"
        assert parcel.trip_id == 20
        assert parcel.has_debt

    def test_parcel_quote(self, converter):
        quote = make_parcel(weight="10", rate="12").quote("CFA", converter)
        assert quote.counter.amount == Decimal("7560")

    def test_weight_must_be_positive(self):
        with pytest.raises(ValueError, match="weight must be positive"):
            Parcel(
                id=1, reference="COL-1", journey_id=1, wave_id=1, status="registered",
                currency="MAD", total_amount=Decimal("0"), weight_kg=Decimal("0"),
            )

    def test_primary_currency_prefers_secondary(self):
        assert primary_currency(Money.of("12", "MAD"), Money.of("756", "CFA")).code == "MAD"
        assert primary_currency(Money.of("0", "MAD"), Money.of("756", "CFA")).code == "CFA"
        assert primary_currency(None, None) is None

    def test_parcel_from_prices_uses_secondary_price(self):
        parcel = Parcel.from_prices(
            id=5, reference="COL-5", trip_id=20, wave_id=200, weight_kg=Decimal("4"),
            price_secondary=Money.of("50", "MAD"), price_reference=Money.of("3150", "CFA"),
        )
        assert parcel.currency == "MAD"
        assert parcel.total_amount == Decimal("50")
        assert parcel.rate_per_kg == Money.of("12.50", "MAD")

    def test_parcel_from_prices_falls_back_to_cfa(self):
        parcel = Parcel.from_prices(
            id=6, reference="COL-6", trip_id=20, wave_id=200, weight_kg=Decimal("3"),
            price_secondary=Money.of("0", "MAD"), price_reference=Money.of("3150", "CFA"),
        )
        assert parcel.currency == "CFA"
        assert parcel.total_amount == Decimal("3150")
        assert parcel.rate_per_kg == Money.of("1050.00", "CFA")

    def test_parcel_from_prices_requires_a_price(self):
        with pytest.raises(ValueError, match="COL-7 has no price"):
            Parcel.from_prices(
                id=7, reference="COL-7", trip_id=20, wave_id=200, weight_kg=Decimal("1"),
                price_secondary=None, price_reference=None,
            )

    def test_rate_back_out(self):
        rate = rate_per_kg_from_price(Money.of("100", "MAD"), Decimal("3"))
        assert rate == Money.of("33.33", "MAD")
