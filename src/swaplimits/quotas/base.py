"""Abstract interface for remote swap quota providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from swaplimits.assets import SwapAsset

logger = logging.getLogger(__name__)


class QuotaServiceError(Exception):
    """Raised when the remote quota service cannot be reached or answers badly."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class ReferenceQuota:
    """Quota figures in the reference fiat currency (USD cents)."""

    monthly: Decimal
    current: Decimal
    monthly_remaining: Decimal


@dataclass(frozen=True)
class AddressQuota:
    """Quota of one address on one ledger.

    ``monthly``, ``current`` and ``monthly_remaining`` are in the ledger's
    native units; ``reference`` repeats them in USD cents.
    """

    asset: SwapAsset
    address: str
    monthly: Decimal
    current: Decimal
    monthly_remaining: Decimal
    reference: ReferenceQuota


@dataclass(frozen=True)
class AccountQuota:
    """Quota of a linked user account, in USD cents."""

    uid: str
    monthly: Decimal
    current: Decimal
    monthly_remaining: Decimal


class QuotaProvider(ABC):
    """Abstract base class for quota providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def get_limits(self, asset: SwapAsset, address: str) -> AddressQuota:
        """
        Get the quota of a single address.

        Args:
            asset: Ledger of the address (NIM or BTC)
            address: Address to look up

        Returns:
            AddressQuota with native and reference figures

        Raises:
            QuotaServiceError: If the quota cannot be fetched
        """
        pass

    @abstractmethod
    async def get_user_limits(self, uid: str) -> Optional[AccountQuota]:
        """
        Get the quota of a linked user account.

        Args:
            uid: Opaque account identifier

        Returns:
            AccountQuota, or None if the service knows no such account

        Raises:
            QuotaServiceError: If the quota cannot be fetched
        """
        pass
