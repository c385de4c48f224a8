"""
Tests for the revenue split rules.

Covers:
- split_service_value(): company + provider == service value for every
  percentage, half-up rounding, bounds
- ordered_providers(): assigned order, duplicates, single provider fallback
- provider_shares(): equal split, remainder to the first provider, zero amount
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fieldops_engines.revenue_split import (
    ordered_providers,
    provider_shares,
    share_for,
    split_service_value,
)
from fieldops_kernel.domain.values import Money

cents = st.integers(min_value=0, max_value=10_000_000_00).map(lambda c: Decimal(c) / 100)
percentages = st.integers(min_value=0, max_value=10_000).map(lambda p: Decimal(p) / 100)


class TestSplitServiceValue:

    @given(value=cents, pct=percentages)
    def test_company_and_provider_sum_to_service_value(self, value, pct):
        split = split_service_value(Money.of(value, "BRL"), pct)
        assert split.company_value.amount + split.provider_value.amount == value

    @given(value=cents)
    def test_zero_and_hundred_percent_are_exact(self, value):
        zero = split_service_value(Money.of(value, "BRL"), Decimal("0"))
        full = split_service_value(Money.of(value, "BRL"), Decimal("100"))
        assert zero.company_value.is_zero
        assert full.provider_value.is_zero

    def test_thirty_percent_of_thousand(self):
        split = split_service_value(Money.of("1000.00", "BRL"), Decimal("30"))
        assert split.company_value.amount == Decimal("300.00")
        assert split.provider_value.amount == Decimal("700.00")

    def test_rounds_company_value_half_up(self):
        split = split_service_value(Money.of("0.05", "BRL"), Decimal("50"))
        assert split.company_value.amount == Decimal("0.03")
        assert split.provider_value.amount == Decimal("0.02")

    @pytest.mark.parametrize("pct", [Decimal("-1"), Decimal("100.01")])
    def test_percentage_out_of_range(self, pct):
        with pytest.raises(ValueError):
            split_service_value(Money.of("100", "BRL"), pct)


class TestOrderedProviders:

    def test_assigned_order_is_kept_and_duplicates_dropped(self):
        a, b = uuid4(), uuid4()
        assert ordered_providers([str(b), str(a), str(b)], None) == (b, a)

    def test_falls_back_to_single_provider(self):
        p = uuid4()
        assert ordered_providers([], p) == (p,)

    def test_no_providers(self):
        assert ordered_providers(None, None) == ()

    def test_malformed_id_raises(self):
        with pytest.raises(ValueError):
            ordered_providers(["not-a-uuid"], None)


class TestProviderShares:

    def test_two_providers_split_equally(self):
        p1, p2 = uuid4(), uuid4()
        shares = dict(provider_shares(Money.of("700.00", "BRL"), [p1, p2]))
        assert shares[p1].amount == Decimal("350.00")
        assert shares[p2].amount == Decimal("350.00")

    def test_remainder_goes_to_first_provider(self):
        p1, p2, p3 = uuid4(), uuid4(), uuid4()
        shares = provider_shares(Money.of("100.00", "BRL"), [p1, p2, p3])
        assert [s.amount for _, s in shares] == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]

    @given(
        amount=cents,
        count=st.integers(min_value=1, max_value=7),
    )
    def test_shares_sum_to_provider_amount(self, amount, count):
        providers = [uuid4() for _ in range(count)]
        shares = provider_shares(Money.of(amount, "BRL"), providers)
        assert sum((s.amount for _, s in shares), Decimal("0")) == amount
        assert [p for p, _ in shares] == providers

    def test_zero_amount_without_providers(self):
        assert provider_shares(Money.zero("BRL"), []) == ()

    def test_positive_amount_without_providers_raises(self):
        with pytest.raises(ValueError):
            provider_shares(Money.of("10.00", "BRL"), [])

    def test_share_for_non_member_is_zero(self):
        p1 = uuid4()
        assert share_for(uuid4(), Money.of("10.00", "BRL"), [p1]).is_zero
