"""One complete limit computation pass.

Backfills historical USD values in both stores, classifies the histories,
applies the new-user window for fiat-to-crypto swaps and resolves the
limits against the remote quotas.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from swaplimits.assets import UNLIMITED, ExchangeRates, FiatCurrency
from swaplimits.config import Settings, get_settings
from swaplimits.history.models import as_utc
from swaplimits.history.stores import TransactionStore
from swaplimits.history.swaps import SwapIndex
from swaplimits.limits.classifier import TransactionClassifier
from swaplimits.limits.new_user import new_user_limit_eur
from swaplimits.limits.resolver import LimitResolver, LimitsRequest, SwapLimits
from swaplimits.quotas.base import QuotaProvider

logger = logging.getLogger(__name__)


class SwapLimitsEngine:
    """Computes ``SwapLimits`` snapshots from explicit inputs."""

    def __init__(
        self,
        quota_provider: QuotaProvider,
        nim_store: TransactionStore,
        btc_store: TransactionStore,
        swap_index: SwapIndex,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.nim_store = nim_store
        self.btc_store = btc_store
        self.classifier = TransactionClassifier(swap_index, self.settings)
        self.resolver = LimitResolver(quota_provider, self.settings)

    async def compute(
        self,
        request: LimitsRequest,
        exchange_rates: ExchangeRates,
        now: Optional[datetime] = None,
    ) -> SwapLimits:
        """Run one pass.

        Raises:
            QuotaServiceError: If a quota fetch fails
            HtlcOutputError: If strict output selection rejects a BTC transaction
        """
        now = as_utc(now) if now else datetime.now(timezone.utc)

        # Find historic tx values in USD
        await self.nim_store.calculate_fiat_amounts(FiatCurrency.USD)
        await self.btc_store.calculate_fiat_amounts(FiatCurrency.USD)

        nim_transactions = list(self.nim_store.transactions.values())
        btc_transactions = list(self.btc_store.transactions.values())

        new_user_eur = UNLIMITED
        if request.is_fiat_to_crypto:
            eur_swaps = self.classifier.find_eur_swaps(
                nim_transactions,
                btc_transactions,
                request.nim_addresses,
                request.btc_addresses,
            )
            new_user_eur = new_user_limit_eur(eur_swaps, now, self.settings)

        classification = self.classifier.classify(
            nim_transactions,
            btc_transactions,
            request.nim_addresses,
            request.btc_addresses,
            exchange_rates,
            now,
        )

        return await self.resolver.resolve(
            request,
            swapped_usd=classification.swapped_usd,
            new_user_eur=new_user_eur,
        )
