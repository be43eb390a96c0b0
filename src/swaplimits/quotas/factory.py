"""Factory for creating quota providers.

Creates the real provider when an API key is available, otherwise
falls back to the simulated provider.
"""

import logging

from swaplimits.config import get_settings
from swaplimits.quotas.base import QuotaProvider

logger = logging.getLogger(__name__)


def create_quota_provider(use_real: bool = True) -> QuotaProvider:
    """Create the quota provider for the current settings."""
    settings = get_settings()

    if use_real and settings.has_quota_api_key and not settings.dry_run:
        from swaplimits.quotas.fastspot import FastspotQuotaProvider

        logger.info(f"Using Fastspot quota provider at {settings.quota_api_url}")
        return FastspotQuotaProvider(
            api_key=settings.quota_api_key,
            base_url=settings.quota_api_url,
            timeout=settings.http_timeout,
        )

    # Fallback to simulated
    from swaplimits.quotas.dry_run import SimulatedQuotaProvider

    logger.info("Using simulated quota provider")
    return SimulatedQuotaProvider()
