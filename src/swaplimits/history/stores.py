"""Local transaction stores, one per ledger.

The stores are owned and mutated by the wallet; the limit engine only
reads ``transactions`` and asks for historical fiat values to be filled in.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Awaitable, Callable, Iterable, Optional

from swaplimits.assets import LUNAS_PER_NIM, SATS_PER_BTC, CryptoCurrency, FiatCurrency

logger = logging.getLogger(__name__)

# Async lookup of the historical price of one coin
PriceLookup = Callable[[CryptoCurrency, FiatCurrency, datetime], Awaitable[Optional[Decimal]]]


class TransactionStore(ABC):
    """Abstract base class for ledger transaction stores."""

    def __init__(self, currency: CryptoCurrency, price_lookup: Optional[PriceLookup] = None):
        self.currency = currency
        self._price_lookup = price_lookup
        self._transactions: dict = {}

    @property
    def transactions(self) -> dict:
        """Known transactions keyed by hash."""
        return self._transactions

    def add_transactions(self, transactions: Iterable) -> None:
        for tx in transactions:
            self._transactions[tx.transaction_hash] = tx

    def clear(self) -> None:
        self._transactions.clear()

    async def _historic_price(self, fiat: FiatCurrency, timestamp: datetime) -> Optional[Decimal]:
        if self._price_lookup is None:
            return None
        return await self._price_lookup(self.currency, fiat, timestamp)

    @abstractmethod
    async def calculate_fiat_amounts(self, fiat: FiatCurrency) -> None:
        """Fill in missing historical fiat values of confirmed transactions."""
        pass


class NimTransactionStore(TransactionStore):
    """Transaction store for the NIM ledger."""

    def __init__(self, price_lookup: Optional[PriceLookup] = None):
        super().__init__(CryptoCurrency.NIM, price_lookup)

    async def calculate_fiat_amounts(self, fiat: FiatCurrency) -> None:
        filled = 0
        for tx in list(self._transactions.values()):
            if tx.timestamp is None:
                continue
            if tx.fiat_value is not None and fiat in tx.fiat_value:
                continue

            price = await self._historic_price(fiat, tx.timestamp)
            if price is None:
                continue

            tx.fiat_value = {**(tx.fiat_value or {}), fiat: price * tx.value / LUNAS_PER_NIM}
            filled += 1

        if filled:
            logger.debug(f"Backfilled {fiat.value} values of {filled} NIM transactions")


class BtcTransactionStore(TransactionStore):
    """Transaction store for the BTC ledger; values are kept per output."""

    def __init__(self, price_lookup: Optional[PriceLookup] = None):
        super().__init__(CryptoCurrency.BTC, price_lookup)

    async def calculate_fiat_amounts(self, fiat: FiatCurrency) -> None:
        filled = 0
        for tx in list(self._transactions.values()):
            if tx.timestamp is None:
                continue

            missing = [
                output for output in tx.outputs
                if output.fiat_value is None or fiat not in output.fiat_value
            ]
            if not missing:
                continue

            price = await self._historic_price(fiat, tx.timestamp)
            if price is None:
                continue

            for output in missing:
                output.fiat_value = {
                    **(output.fiat_value or {}),
                    fiat: price * output.value / SATS_PER_BTC,
                }
            filled += 1

        if filled:
            logger.debug(f"Backfilled {fiat.value} values of {filled} BTC transactions")
