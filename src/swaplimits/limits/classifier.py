"""Classification of ledger transactions that took part in swaps.

Two views are derived from the local histories:

- EUR-sourced swaps with the timestamp of the transaction that carried them,
  used by the new-user window.
- Swapped volume in USD over the accounting window, counted against the
  monthly limit. A swap observed on both ledgers is counted on the NIM side
  only.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from swaplimits.assets import (
    HTLC_ADDRESS_LENGTH,
    LUNAS_PER_NIM,
    SATS_PER_BTC,
    CryptoCurrency,
    ExchangeRates,
    FiatCurrency,
    SwapAsset,
)
from swaplimits.config import Settings, get_settings
from swaplimits.history.models import BtcOutput, BtcTransaction, NimTransaction, as_utc
from swaplimits.history.swaps import SwapIndex

logger = logging.getLogger(__name__)


class OutputLookupStatus(str, Enum):
    """Outcome of selecting the swap output of a BTC transaction."""

    FOUND = "found"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OutputLookup:
    """Result of selecting the swap output of a BTC transaction."""

    status: OutputLookupStatus
    output: Optional[BtcOutput] = None
    candidates: int = 0

    @property
    def found(self) -> bool:
        return self.status == OutputLookupStatus.FOUND


class HtlcOutputError(Exception):
    """Raised when a BTC swap transaction has no unique HTLC output."""

    def __init__(self, transaction_hash: str, lookup: OutputLookup):
        self.transaction_hash = transaction_hash
        self.lookup = lookup
        super().__init__(
            f"Cannot select swap output of BTC transaction {transaction_hash}: "
            f"{lookup.status.value} ({lookup.candidates} HTLC candidates)"
        )


def select_swap_output(tx: BtcTransaction) -> OutputLookup:
    """Pick the output of a BTC transaction that carries the swap value.

    A single output is taken as is. Otherwise exactly one output must have
    the length of an HTLC address.
    """
    if len(tx.outputs) == 1:
        return OutputLookup(OutputLookupStatus.FOUND, tx.outputs[0], candidates=1)

    htlc_outputs = [
        output for output in tx.outputs
        if output.address is not None and len(output.address) == HTLC_ADDRESS_LENGTH
    ]
    if len(htlc_outputs) == 1:
        return OutputLookup(OutputLookupStatus.FOUND, htlc_outputs[0], candidates=1)
    if not htlc_outputs:
        return OutputLookup(OutputLookupStatus.NOT_FOUND)
    return OutputLookup(OutputLookupStatus.AMBIGUOUS, candidates=len(htlc_outputs))


@dataclass(frozen=True)
class TimedSwap:
    """A EUR-sourced swap; ``amount`` is in EUR cents."""

    swap_hash: str
    amount: int
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ClassifiedTransaction:
    """A ledger transaction counted towards swapped volume."""

    transaction_hash: str
    currency: CryptoCurrency
    swap_hash: str
    timestamp: Optional[datetime]
    usd_value: Decimal


@dataclass
class Classification:
    """Swapped volume found in both ledgers' histories."""

    nim: list[ClassifiedTransaction] = field(default_factory=list)
    btc: list[ClassifiedTransaction] = field(default_factory=list)
    skipped: list[tuple[str, OutputLookupStatus]] = field(default_factory=list)

    @property
    def transactions(self) -> list[ClassifiedTransaction]:
        return [*self.nim, *self.btc]

    @property
    def swapped_usd(self) -> Decimal:
        return sum((tx.usd_value for tx in self.transactions), Decimal("0"))

    @property
    def swap_hashes(self) -> set[str]:
        return {tx.swap_hash for tx in self.transactions}


def _live_rate(rates: ExchangeRates, currency: CryptoCurrency) -> Decimal:
    return rates.get(currency, {}).get(FiatCurrency.USD) or Decimal("0")


def _stored_usd(fiat_value: Optional[dict[FiatCurrency, Decimal]]) -> Decimal:
    if not fiat_value:
        return Decimal("0")
    return fiat_value.get(FiatCurrency.USD) or Decimal("0")


class TransactionClassifier:
    """Scans local histories for transactions that belong to swaps."""

    def __init__(self, swap_index: SwapIndex, settings: Optional[Settings] = None):
        self.swap_index = swap_index
        self.settings = settings or get_settings()

    def volume_cutoff(self, now: datetime) -> datetime:
        """Oldest timestamp still counted towards swapped volume."""
        return as_utc(now) - timedelta(
            days=self.settings.volume_window_days,
            hours=self.settings.volume_window_buffer_hours,
        )

    def _eur_swap(self, transaction_hash: str, timestamp: Optional[datetime]) -> Optional[TimedSwap]:
        swap = self.swap_index.swap_by_transaction_hash(transaction_hash)
        if swap is None or swap.in_leg is None or swap.in_leg.asset != SwapAsset.EUR:
            return None
        return TimedSwap(
            swap_hash=swap.swap_hash,
            amount=swap.in_leg.amount,
            timestamp=as_utc(timestamp),
        )

    def find_eur_swaps(
        self,
        nim_transactions: Iterable[NimTransaction],
        btc_transactions: Iterable[BtcTransaction],
        nim_addresses: Iterable[str],
        btc_addresses: Iterable[str],
    ) -> list[TimedSwap]:
        """Collect EUR-sourced swaps received by addresses in scope."""
        nim_scope = set(nim_addresses)
        btc_scope = set(btc_addresses)
        swaps = []

        for tx in nim_transactions:
            if tx.recipient not in nim_scope:
                continue
            timed = self._eur_swap(tx.transaction_hash, tx.timestamp)
            if timed:
                swaps.append(timed)

        for tx in btc_transactions:
            if not any(output.address in btc_scope for output in tx.outputs):
                continue
            timed = self._eur_swap(tx.transaction_hash, tx.timestamp)
            if timed:
                swaps.append(timed)

        logger.debug(f"Found {len(swaps)} EUR-sourced swaps")
        return swaps

    def classify(
        self,
        nim_transactions: Iterable[NimTransaction],
        btc_transactions: Iterable[BtcTransaction],
        nim_addresses: Iterable[str],
        btc_addresses: Iterable[str],
        exchange_rates: ExchangeRates,
        now: datetime,
    ) -> Classification:
        """Find swap transactions inside the accounting window and value them in USD.

        Raises:
            HtlcOutputError: If strict output selection is enabled and a BTC
                swap transaction has no unique HTLC output
        """
        cutoff = self.volume_cutoff(now)
        nim_scope = set(nim_addresses)
        btc_scope = set(btc_addresses)
        result = Classification()

        for tx in nim_transactions:
            if tx.timestamp is not None and as_utc(tx.timestamp) < cutoff:
                continue
            if tx.sender not in nim_scope and tx.recipient not in nim_scope:
                continue
            swap_hash = self.swap_index.swap_hash_for(tx.transaction_hash)
            if not swap_hash:
                continue

            if tx.timestamp is not None:
                usd_value = _stored_usd(tx.fiat_value)
            else:
                usd_value = _live_rate(exchange_rates, CryptoCurrency.NIM) * tx.value / LUNAS_PER_NIM

            result.nim.append(ClassifiedTransaction(
                transaction_hash=tx.transaction_hash,
                currency=CryptoCurrency.NIM,
                swap_hash=swap_hash,
                timestamp=tx.timestamp,
                usd_value=usd_value,
            ))

        nim_swap_hashes = {tx.swap_hash for tx in result.nim}

        for tx in btc_transactions:
            if tx.timestamp is not None and as_utc(tx.timestamp) < cutoff:
                continue
            if not any(address in btc_scope for address in tx.addresses):
                continue
            swap_hash = self.swap_index.swap_hash_for(tx.transaction_hash)
            if not swap_hash or swap_hash in nim_swap_hashes:
                continue

            lookup = select_swap_output(tx)
            if not lookup.found:
                if self.settings.strict_output_selection:
                    raise HtlcOutputError(tx.transaction_hash, lookup)
                logger.warning(
                    f"Skipping BTC swap transaction {tx.transaction_hash}: "
                    f"HTLC output {lookup.status.value}"
                )
                result.skipped.append((tx.transaction_hash, lookup.status))
                continue

            output = lookup.output
            if tx.timestamp is not None:
                usd_value = _stored_usd(output.fiat_value)
            else:
                usd_value = _live_rate(exchange_rates, CryptoCurrency.BTC) * output.value / SATS_PER_BTC

            result.btc.append(ClassifiedTransaction(
                transaction_hash=tx.transaction_hash,
                currency=CryptoCurrency.BTC,
                swap_hash=swap_hash,
                timestamp=tx.timestamp,
                usd_value=usd_value,
            ))

        logger.debug(
            f"Swapped volume since {cutoff.isoformat()}: ${result.swapped_usd:.2f} "
            f"({len(result.nim)} NIM, {len(result.btc)} BTC transactions)"
        )
        return result
