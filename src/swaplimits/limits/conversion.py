"""Conversion between USD and ledger base units.

Rates come from a single address quota: the quota's monthly figure is
reported both in native units and in USD cents, which fixes the price
of one base unit for that pass.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from swaplimits.assets import CENTS_PER_UNIT
from swaplimits.quotas.base import AddressQuota


@dataclass(frozen=True)
class UnitRate:
    """USD per base unit of one ledger, as implied by its quota."""

    usd: Decimal
    units: Decimal

    @classmethod
    def from_quota(cls, quota: AddressQuota) -> "UnitRate":
        return cls(usd=quota.reference.monthly / CENTS_PER_UNIT, units=quota.monthly)

    @property
    def is_degenerate(self) -> bool:
        return self.usd <= 0 or self.units <= 0

    @property
    def usd_per_unit(self) -> Optional[Decimal]:
        if self.is_degenerate:
            return None
        return self.usd / self.units

    def to_base_units(self, usd: Decimal) -> int:
        """Convert a USD amount to whole base units, rounding down."""
        if self.is_degenerate or usd <= 0:
            return 0
        # usd / (self.usd / self.units), without rounding the rate first
        return int((usd * self.units) // self.usd)
