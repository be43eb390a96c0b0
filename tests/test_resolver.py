"""Tests for aggregate limit resolution."""

from decimal import Decimal

import pytest

from swaplimits.assets import UNLIMITED, SwapAsset
from swaplimits.limits.resolver import LimitResolver, LimitsRequest
from swaplimits.quotas.base import QuotaServiceError, ReferenceQuota
from tests.constants import BTC_ADDRESS, NIM_ADDRESS

REFERENCE_BTC = ReferenceQuota(
    monthly=Decimal("20000"), current=Decimal("5000"), monthly_remaining=Decimal("15000")
)


@pytest.fixture
def resolver(quota_provider, settings) -> LimitResolver:
    return LimitResolver(quota_provider, settings)


class TestLimitResolver:
    """Tests for LimitResolver."""

    @pytest.mark.asyncio
    async def test_account_quota_scenario(self, resolver, quota_provider):
        """Test account quota of $50/$200/$150 with nothing swapped."""
        quota_provider.set_account_quota(
            "user-1",
            monthly=Decimal("20000"),
            current=Decimal("5000"),
            monthly_remaining=Decimal("15000"),
        )

        limits = await resolver.resolve(LimitsRequest(uid="user-1"), swapped_usd=Decimal("0"))

        assert limits.current.usd == Decimal("50")
        assert limits.monthly.usd == Decimal("200")
        assert limits.remaining.usd == Decimal("150")

    @pytest.mark.asyncio
    async def test_anonymous_collapses_to_monthly_minus_swapped(self, resolver):
        """Test without account or addresses only the window budget binds."""
        limits = await resolver.resolve(LimitsRequest(), swapped_usd=Decimal("30"))

        assert limits.monthly.usd == Decimal("200")
        assert limits.current.usd == Decimal("170")
        assert limits.remaining.usd == Decimal("170")

    @pytest.mark.asyncio
    async def test_address_quota_binds(self, resolver):
        """Test the NIM address quota caps the current limit."""
        limits = await resolver.resolve(
            LimitsRequest(nim_address=NIM_ADDRESS), swapped_usd=Decimal("30")
        )

        assert limits.current.usd == Decimal("50")
        assert limits.remaining.usd == Decimal("150")

    @pytest.mark.asyncio
    async def test_swapped_volume_binds(self, resolver):
        """Test the window budget binds when it is the smallest term."""
        limits = await resolver.resolve(
            LimitsRequest(nim_address=NIM_ADDRESS), swapped_usd=Decimal("170")
        )

        assert limits.current.usd == Decimal("30")
        assert limits.remaining.usd == Decimal("30")

    @pytest.mark.asyncio
    async def test_btc_address_quota_binds(self, resolver, quota_provider):
        """Test the BTC address quota caps the limits."""
        quota_provider.set_address_quota(
            SwapAsset.BTC,
            BTC_ADDRESS,
            ReferenceQuota(
                monthly=Decimal("20000"), current=Decimal("1000"), monthly_remaining=Decimal("4000")
            ),
        )

        limits = await resolver.resolve(
            LimitsRequest(btc_address=BTC_ADDRESS), swapped_usd=Decimal("0")
        )

        assert limits.current.usd == Decimal("10")
        assert limits.remaining.usd == Decimal("40")

    @pytest.mark.asyncio
    async def test_negative_budget_clamped(self, resolver):
        """Test limits are clamped at zero once the budget is exhausted."""
        limits = await resolver.resolve(LimitsRequest(), swapped_usd=Decimal("250"))

        assert limits.current.usd == Decimal("0")
        assert limits.current.luna == 0
        assert limits.current.sat == 0
        assert limits.remaining.usd == Decimal("0")
        assert limits.monthly.usd == Decimal("200")

    @pytest.mark.asyncio
    async def test_base_unit_conversion(self, resolver):
        """Test each ledger converts with its own quota's rate."""
        # NIM: 5000 luna per cent, BTC: 1.6 sat per cent
        limits = await resolver.resolve(LimitsRequest(), swapped_usd=Decimal("0"))

        assert limits.monthly.luna == 100_000_000
        assert limits.monthly.sat == 32_000
        assert limits.current.luna == 100_000_000
        assert limits.current.sat == 32_000

    @pytest.mark.asyncio
    async def test_rates_not_cross_applied(self, resolver, quota_provider):
        """Test a changed BTC price only affects satoshi figures."""
        quota_provider.set_address_quota(
            SwapAsset.BTC,
            BTC_ADDRESS,
            REFERENCE_BTC,
            native=ReferenceQuota(
                monthly=Decimal("64000"), current=Decimal("16000"), monthly_remaining=Decimal("48000")
            ),
        )

        limits = await resolver.resolve(
            LimitsRequest(btc_address=BTC_ADDRESS), swapped_usd=Decimal("0")
        )

        # $50 at 320 sat per dollar, 500,000 luna per dollar
        assert limits.current.sat == 16_000
        assert limits.current.luna == 25_000_000

    @pytest.mark.asyncio
    async def test_new_user_limit_only_on_current(self, resolver):
        """Test the EUR allowance is attached to the current bucket."""
        limits = await resolver.resolve(
            LimitsRequest(), swapped_usd=Decimal("0"), new_user_eur=Decimal("60")
        )

        assert limits.current.eur == Decimal("60")
        assert limits.current.has_new_user_limit is True
        assert not hasattr(limits.monthly, "eur")
        assert not hasattr(limits.remaining, "eur")

    @pytest.mark.asyncio
    async def test_new_user_limit_defaults_to_unlimited(self, resolver):
        """Test the EUR allowance defaults to not applicable."""
        limits = await resolver.resolve(LimitsRequest(), swapped_usd=Decimal("0"))

        assert limits.current.eur == UNLIMITED
        assert limits.current.has_new_user_limit is False

    @pytest.mark.asyncio
    async def test_placeholder_addresses(self, resolver, quota_provider, settings):
        """Test placeholder addresses are queried and no account lookup happens."""
        await resolver.resolve(LimitsRequest(), swapped_usd=Decimal("0"))

        assert ("limits", f"NIM:{settings.nim_placeholder_address}") in quota_provider.calls
        assert ("limits", f"BTC:{settings.btc_placeholder_address}") in quota_provider.calls
        assert not any(kind == "user_limits" for kind, _ in quota_provider.calls)

    @pytest.mark.asyncio
    async def test_unknown_account(self, resolver, quota_provider):
        """Test an account unknown to the service is treated as unlinked."""
        limits = await resolver.resolve(LimitsRequest(uid="ghost"), swapped_usd=Decimal("0"))

        assert ("user_limits", "ghost") in quota_provider.calls
        assert limits.monthly.usd == Decimal("200")
        assert limits.current.usd == Decimal("200")

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, resolver, quota_provider):
        """Test quota failures are not swallowed."""
        quota_provider.fail_address(SwapAsset.NIM, NIM_ADDRESS)

        with pytest.raises(QuotaServiceError):
            await resolver.resolve(LimitsRequest(nim_address=NIM_ADDRESS), swapped_usd=Decimal("0"))

    @pytest.mark.asyncio
    async def test_limits_non_negative_and_bounded(self, resolver, quota_provider):
        """Test figures stay non-negative and remaining stays within monthly."""
        quota_provider.set_account_quota(
            "user-1",
            monthly=Decimal("20000"),
            current=Decimal("-100"),
            monthly_remaining=Decimal("25000"),
        )

        for swapped in ("0", "30", "199.99", "500"):
            limits = await resolver.resolve(
                LimitsRequest(uid="user-1", nim_address=NIM_ADDRESS), swapped_usd=Decimal(swapped)
            )
            for bucket in (limits.current, limits.monthly, limits.remaining):
                assert bucket.usd >= 0
                assert bucket.luna >= 0
                assert bucket.sat >= 0
            assert limits.remaining.usd <= limits.monthly.usd

