"""Read-only views on the wallet's transaction history and swaps."""

from swaplimits.history.models import (
    BtcInput,
    BtcOutput,
    BtcTransaction,
    NimTransaction,
    SwapLeg,
    as_utc,
    SwapRecord,
)
from swaplimits.history.stores import (
    BtcTransactionStore,
    NimTransactionStore,
    PriceLookup,
    TransactionStore,
)
from swaplimits.history.swaps import SwapIndex

__all__ = [
    "BtcInput",
    "BtcOutput",
    "BtcTransaction",
    "NimTransaction",
    "SwapLeg",
    "SwapRecord",
    "as_utc",
    "BtcTransactionStore",
    "NimTransactionStore",
    "PriceLookup",
    "TransactionStore",
    "SwapIndex",
]
