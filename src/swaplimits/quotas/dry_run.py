"""Simulated quota provider for dry-run mode and testing.

Returns fixed quotas without contacting the remote service.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from swaplimits.assets import SwapAsset
from swaplimits.quotas.base import (
    AccountQuota,
    AddressQuota,
    QuotaProvider,
    QuotaServiceError,
    ReferenceQuota,
)

logger = logging.getLogger(__name__)

# Default reference quota in USD cents
DEFAULT_REFERENCE = ReferenceQuota(
    monthly=Decimal("2000000"),
    current=Decimal("500000"),
    monthly_remaining=Decimal("2000000"),
)

# Native units per USD cent used to derive native figures
DEFAULT_UNITS_PER_CENT = {
    SwapAsset.NIM: Decimal("5000"),  # 1 NIM = $0.002
    SwapAsset.BTC: Decimal("1.6"),  # 1 BTC = $62,500
}


class SimulatedQuotaProvider(QuotaProvider):
    """Quota provider serving configured in-memory quotas."""

    def __init__(
        self,
        reference: ReferenceQuota = DEFAULT_REFERENCE,
        units_per_cent: Optional[dict[SwapAsset, Decimal]] = None,
        delay_seconds: float = 0.0,
    ):
        """Initialize simulated provider.

        Args:
            reference: Reference quota returned for unknown addresses
            units_per_cent: Native units per USD cent for each ledger
            delay_seconds: Artificial latency per request
        """
        self.reference = reference
        self.units_per_cent = units_per_cent or dict(DEFAULT_UNITS_PER_CENT)
        self.delay_seconds = delay_seconds
        self._address_quotas: dict[tuple[SwapAsset, str], AddressQuota] = {}
        self._account_quotas: dict[str, AccountQuota] = {}
        self._failures: dict[tuple[SwapAsset, str], str] = {}
        self.calls: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "simulated"

    def set_address_quota(
        self,
        asset: SwapAsset,
        address: str,
        reference: ReferenceQuota,
        native: Optional[ReferenceQuota] = None,
    ) -> AddressQuota:
        """Configure the quota of one address.

        Native figures default to the reference converted with ``units_per_cent``.
        """
        if native is None:
            factor = self.units_per_cent[asset]
            native = ReferenceQuota(
                monthly=reference.monthly * factor,
                current=reference.current * factor,
                monthly_remaining=reference.monthly_remaining * factor,
            )
        quota = AddressQuota(
            asset=asset,
            address=address,
            monthly=native.monthly,
            current=native.current,
            monthly_remaining=native.monthly_remaining,
            reference=reference,
        )
        self._address_quotas[(asset, address)] = quota
        return quota

    def set_account_quota(
        self, uid: str, monthly: Decimal, current: Decimal, monthly_remaining: Decimal
    ) -> AccountQuota:
        """Configure the quota of a linked account."""
        quota = AccountQuota(
            uid=uid, monthly=monthly, current=current, monthly_remaining=monthly_remaining
        )
        self._account_quotas[uid] = quota
        return quota

    def fail_address(self, asset: SwapAsset, address: str, message: str = "simulated outage") -> None:
        """Make lookups of an address fail."""
        self._failures[(asset, address)] = message

    def clear_failures(self) -> None:
        self._failures.clear()

    async def get_limits(self, asset: SwapAsset, address: str) -> AddressQuota:
        self.calls.append(("limits", f"{asset.value}:{address}"))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if (asset, address) in self._failures:
            raise QuotaServiceError(self._failures[(asset, address)], status_code=503)

        quota = self._address_quotas.get((asset, address))
        if quota is None:
            quota = self.set_address_quota(asset, address, self.reference)
        return quota

    async def get_user_limits(self, uid: str) -> Optional[AccountQuota]:
        self.calls.append(("user_limits", uid))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return self._account_quotas.get(uid)
