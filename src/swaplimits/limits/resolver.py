"""Aggregate limit resolution.

Combines the account quota, the two address quotas and the locally observed
swapped volume into one ``SwapLimits`` snapshot. All three quotas are fetched
concurrently; any fetch failure propagates to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from swaplimits.assets import CENTS_PER_UNIT, UNLIMITED, SwapAsset
from swaplimits.config import Settings, get_settings
from swaplimits.limits.conversion import UnitRate
from swaplimits.quotas.base import AccountQuota, AddressQuota, QuotaProvider

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class LimitsRequest:
    """Inputs of one limit computation.

    ``nim_address``/``btc_address`` are the addresses taking part in the
    swap; ``nim_addresses``/``btc_addresses`` are the address sets whose
    history counts towards the limits.
    """

    uid: Optional[str] = None
    nim_address: Optional[str] = None
    btc_address: Optional[str] = None
    is_fiat_to_crypto: bool = False
    nim_addresses: frozenset[str] = frozenset()
    btc_addresses: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LimitAmounts:
    """A limit in USD and in each ledger's base units."""

    usd: Decimal
    luna: int
    sat: int


@dataclass(frozen=True)
class CurrentLimit(LimitAmounts):
    """Limit for the next swap; ``eur`` is the new-user allowance."""

    eur: Decimal = UNLIMITED

    @property
    def has_new_user_limit(self) -> bool:
        return self.eur.is_finite()


@dataclass(frozen=True)
class SwapLimits:
    """Snapshot of the swap limits of the active user."""

    current: CurrentLimit
    monthly: LimitAmounts
    remaining: LimitAmounts


async def _no_account_quota() -> None:
    return None


def _usd(cents: Decimal) -> Decimal:
    return cents / CENTS_PER_UNIT


class LimitResolver:
    """Resolves swap limits from remote quotas and swapped volume."""

    def __init__(self, quota_provider: QuotaProvider, settings: Optional[Settings] = None):
        self.quota_provider = quota_provider
        self.settings = settings or get_settings()

    async def fetch_quotas(
        self, request: LimitsRequest
    ) -> tuple[Optional[AccountQuota], AddressQuota, AddressQuota]:
        """Fetch account and address quotas concurrently.

        Missing addresses are replaced by placeholder addresses so the service
        still returns the reference quota used for unit conversion.
        """
        if request.uid:
            account_fetch = self.quota_provider.get_user_limits(request.uid)
        else:
            account_fetch = _no_account_quota()

        return await asyncio.gather(
            account_fetch,
            self.quota_provider.get_limits(
                SwapAsset.NIM, request.nim_address or self.settings.nim_placeholder_address
            ),
            self.quota_provider.get_limits(
                SwapAsset.BTC, request.btc_address or self.settings.btc_placeholder_address
            ),
        )

    async def resolve(
        self,
        request: LimitsRequest,
        swapped_usd: Decimal,
        new_user_eur: Decimal = UNLIMITED,
    ) -> SwapLimits:
        """Compute the limits snapshot.

        Args:
            request: Account and addresses of the swap
            swapped_usd: USD volume already swapped in the accounting window
            new_user_eur: Remaining new-user allowance (UNLIMITED if not applicable)

        Returns:
            SwapLimits with current, monthly and remaining figures

        Raises:
            QuotaServiceError: If any quota fetch fails
        """
        account, nim_quota, btc_quota = await self.fetch_quotas(request)

        luna_rate = UnitRate.from_quota(nim_quota)
        sat_rate = UnitRate.from_quota(btc_quota)

        nim_reference = nim_quota.reference
        btc_reference = btc_quota.reference

        monthly_usd = _usd((account or nim_reference).monthly)
        # The reference quota caps everything swapped in the window
        window_budget = _usd(nim_reference.monthly) - swapped_usd

        current_usd = max(ZERO, min(
            _usd(account.current) if account else UNLIMITED,
            window_budget,
            _usd(nim_reference.current) if request.nim_address else UNLIMITED,
            _usd(btc_reference.current) if request.btc_address else UNLIMITED,
        ))

        remaining_usd = max(ZERO, min(
            _usd(account.monthly_remaining) if account else UNLIMITED,
            window_budget,
            _usd(nim_reference.monthly_remaining) if request.nim_address else UNLIMITED,
            _usd(btc_reference.monthly_remaining) if request.btc_address else UNLIMITED,
        ))

        limits = SwapLimits(
            current=CurrentLimit(
                usd=current_usd,
                luna=luna_rate.to_base_units(current_usd),
                sat=sat_rate.to_base_units(current_usd),
                eur=new_user_eur,
            ),
            monthly=LimitAmounts(
                usd=monthly_usd,
                luna=luna_rate.to_base_units(monthly_usd),
                sat=sat_rate.to_base_units(monthly_usd),
            ),
            remaining=LimitAmounts(
                usd=remaining_usd,
                luna=luna_rate.to_base_units(remaining_usd),
                sat=sat_rate.to_base_units(remaining_usd),
            ),
        )

        logger.debug(
            f"Resolved limits (account: {'yes' if account else 'no'}, swapped ${swapped_usd:.2f}): "
            f"current ${current_usd}, monthly ${monthly_usd}, remaining ${remaining_usd}"
        )
        return limits
