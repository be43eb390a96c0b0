"""End-to-end tests for a single limit computation pass."""

from datetime import timedelta
from decimal import Decimal

import pytest

from swaplimits.assets import UNLIMITED, CryptoCurrency, FiatCurrency, SwapAsset
from swaplimits.history.models import (
    BtcOutput,
    BtcTransaction,
    NimTransaction,
    SwapLeg,
    SwapRecord,
)
from swaplimits.history.stores import BtcTransactionStore, NimTransactionStore
from swaplimits.limits.engine import SwapLimitsEngine
from swaplimits.limits.resolver import LimitsRequest
from tests.constants import (
    BTC_ADDRESS,
    BTC_CHANGE,
    EXCHANGE_RATES,
    NIM_ADDRESS,
    NIM_HTLC,
    NOW,
)

REQUEST = LimitsRequest(
    nim_addresses=frozenset({NIM_ADDRESS}),
    btc_addresses=frozenset({BTC_ADDRESS, BTC_CHANGE}),
)


def add_eur_purchase(nim_store, swap_index, swap_hash: str, cents: int, age: timedelta) -> None:
    """Record a EUR -> NIM swap paid out to the account."""
    swap_index.add_swap(
        SwapRecord(swap_hash, in_leg=SwapLeg(SwapAsset.EUR, cents), out_leg=SwapLeg(SwapAsset.NIM, 2_000_000)),
        [f"tx-{swap_hash}"],
    )
    nim_store.add_transactions([NimTransaction(
        transaction_hash=f"tx-{swap_hash}",
        sender=NIM_HTLC,
        recipient=NIM_ADDRESS,
        value=2_000_000,
        timestamp=NOW - age,
        fiat_value={FiatCurrency.USD: Decimal(cents) / 100},
    )])


class TestSwapLimitsEngine:
    """Tests for SwapLimitsEngine.compute."""

    @pytest.mark.asyncio
    async def test_empty_history(self, engine):
        """Test a user without swaps gets the reference limits."""
        limits = await engine.compute(REQUEST, EXCHANGE_RATES, now=NOW)

        assert limits.current.usd == Decimal("200")
        assert limits.monthly.usd == Decimal("200")
        assert limits.remaining.usd == Decimal("200")
        assert limits.current.eur == UNLIMITED

    @pytest.mark.asyncio
    async def test_swap_on_both_ledgers_counted_once(self, engine, nim_store, btc_store, swap_index):
        """Test a NIM -> BTC swap reduces the budget by its value once."""
        swap_index.add_swap(
            SwapRecord("s1", in_leg=SwapLeg(SwapAsset.NIM, 1_500_000_000), out_leg=SwapLeg(SwapAsset.BTC, 48_000)),
            ["n1", "b1"],
        )
        nim_store.add_transactions([NimTransaction(
            transaction_hash="n1",
            sender=NIM_ADDRESS,
            recipient=NIM_HTLC,
            value=1_500_000_000,
            timestamp=NOW - timedelta(days=1),
            fiat_value={FiatCurrency.USD: Decimal("30")},
        )])
        btc_store.add_transactions([BtcTransaction(
            transaction_hash="b1",
            outputs=[BtcOutput(address=BTC_ADDRESS, value=48_000, fiat_value={FiatCurrency.USD: Decimal("30")})],
            timestamp=NOW - timedelta(days=1),
        )])

        limits = await engine.compute(REQUEST, EXCHANGE_RATES, now=NOW)

        assert limits.current.usd == Decimal("170")
        assert limits.remaining.usd == Decimal("170")

    @pytest.mark.asyncio
    async def test_fiat_to_crypto_new_user(self, engine, nim_store, swap_index):
        """Test the EUR allowance shrinks with each recent EUR purchase."""
        request = LimitsRequest(
            is_fiat_to_crypto=True,
            nim_addresses=REQUEST.nim_addresses,
            btc_addresses=REQUEST.btc_addresses,
        )
        add_eur_purchase(nim_store, swap_index, "e1", 4000, timedelta(hours=3))

        limits = await engine.compute(request, EXCHANGE_RATES, now=NOW)
        assert limits.current.eur == Decimal("60")

        add_eur_purchase(nim_store, swap_index, "e2", 4000, timedelta(hours=2))

        limits = await engine.compute(request, EXCHANGE_RATES, now=NOW)
        assert limits.current.eur == Decimal("20")
        # Both purchases count as swapped volume too
        assert limits.current.usd == Decimal("120")

    @pytest.mark.asyncio
    async def test_established_user_not_limited(self, engine, nim_store, swap_index):
        """Test an EUR swap from four days ago lifts the allowance."""
        request = LimitsRequest(is_fiat_to_crypto=True, nim_addresses=REQUEST.nim_addresses)
        add_eur_purchase(nim_store, swap_index, "old", 1000, timedelta(days=4))
        add_eur_purchase(nim_store, swap_index, "new", 9000, timedelta(hours=1))

        limits = await engine.compute(request, EXCHANGE_RATES, now=NOW)

        assert limits.current.eur == UNLIMITED

    @pytest.mark.asyncio
    async def test_allowance_skipped_for_crypto_swaps(self, engine, nim_store, swap_index):
        """Test the EUR allowance is only computed for fiat-to-crypto swaps."""
        add_eur_purchase(nim_store, swap_index, "e1", 4000, timedelta(hours=3))

        limits = await engine.compute(REQUEST, EXCHANGE_RATES, now=NOW)

        assert limits.current.eur == UNLIMITED

    @pytest.mark.asyncio
    async def test_idempotent(self, engine, nim_store, swap_index):
        """Test unchanged inputs give identical snapshots."""
        add_eur_purchase(nim_store, swap_index, "e1", 4000, timedelta(hours=3))
        request = LimitsRequest(is_fiat_to_crypto=True, nim_addresses=REQUEST.nim_addresses)

        first = await engine.compute(request, EXCHANGE_RATES, now=NOW)
        second = await engine.compute(request, EXCHANGE_RATES, now=NOW)

        assert first == second

    @pytest.mark.asyncio
    async def test_backfills_historic_values(self, quota_provider, swap_index, settings):
        """Test historic USD values are filled in before classification."""
        lookups = []

        async def price_lookup(currency, fiat, timestamp):
            lookups.append((currency, fiat))
            return Decimal("0.003") if currency == CryptoCurrency.NIM else None

        nim_store = NimTransactionStore(price_lookup=price_lookup)
        engine = SwapLimitsEngine(quota_provider, nim_store, BtcTransactionStore(price_lookup), swap_index, settings)
        swap_index.link_transaction("n1", "s1")
        # 10,000 NIM at $0.003
        nim_store.add_transactions([NimTransaction(
            transaction_hash="n1",
            sender=NIM_ADDRESS,
            recipient=NIM_HTLC,
            value=1_000_000_000,
            timestamp=NOW - timedelta(days=3),
        )])

        limits = await engine.compute(REQUEST, EXCHANGE_RATES, now=NOW)

        assert (CryptoCurrency.NIM, FiatCurrency.USD) in lookups
        assert limits.current.usd == Decimal("170")
