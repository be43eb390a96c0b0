"""Index of recorded swaps and the ledger transactions that belong to them."""

import logging
from typing import Iterable, Optional

from swaplimits.history.models import SwapRecord

logger = logging.getLogger(__name__)


class SwapIndex:
    """Maps transaction hashes to swap hashes and swap hashes to swaps."""

    def __init__(self):
        self._swap_by_transaction: dict[str, str] = {}
        self._swaps: dict[str, SwapRecord] = {}

    def add_swap(self, swap: SwapRecord, transaction_hashes: Iterable[str] = ()) -> None:
        """Record a swap and link it to its ledger transactions."""
        self._swaps[swap.swap_hash] = swap
        for tx_hash in transaction_hashes:
            self.link_transaction(tx_hash, swap.swap_hash)

    def link_transaction(self, transaction_hash: str, swap_hash: str) -> None:
        self._swap_by_transaction[transaction_hash] = swap_hash

    def swap_hash_for(self, transaction_hash: str) -> Optional[str]:
        """Swap hash a transaction participates in, if any."""
        return self._swap_by_transaction.get(transaction_hash)

    def get_swap(self, swap_hash: str) -> Optional[SwapRecord]:
        return self._swaps.get(swap_hash)

    def swap_by_transaction_hash(self, transaction_hash: str) -> Optional[SwapRecord]:
        """Swap a transaction participates in, if its details are known."""
        swap_hash = self.swap_hash_for(transaction_hash)
        if swap_hash is None:
            return None
        return self._swaps.get(swap_hash)

    def __len__(self) -> int:
        return len(self._swaps)
