"""Remote quota providers.

Providers:
- Fastspot: per-address and per-account limits over HTTP
- Simulated: fixed in-memory quotas for dry-run mode and tests
"""

from swaplimits.quotas.base import (
    AccountQuota,
    AddressQuota,
    QuotaProvider,
    QuotaServiceError,
    ReferenceQuota,
)
from swaplimits.quotas.dry_run import SimulatedQuotaProvider
from swaplimits.quotas.factory import create_quota_provider
from swaplimits.quotas.fastspot import FastspotQuotaProvider

__all__ = [
    # Base classes
    "AccountQuota",
    "AddressQuota",
    "QuotaProvider",
    "QuotaServiceError",
    "ReferenceQuota",
    # Providers
    "FastspotQuotaProvider",
    "SimulatedQuotaProvider",
    # Factory
    "create_quota_provider",
]
