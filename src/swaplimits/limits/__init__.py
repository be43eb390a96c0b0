"""Swap limit computation.

- conversion: USD <-> luna/satoshi rates derived from address quotas
- classifier: swap transactions and swapped volume from local histories
- new_user: EUR allowance during the first days of fiat-to-crypto use
- resolver: current/monthly/remaining limits from quotas and volume
- engine: one complete computation pass
- controller: reactive recomputation and publication
"""

from swaplimits.limits.classifier import (
    Classification,
    ClassifiedTransaction,
    HtlcOutputError,
    OutputLookup,
    OutputLookupStatus,
    TimedSwap,
    TransactionClassifier,
    select_swap_output,
)
from swaplimits.limits.controller import AccountState, SwapLimitsController
from swaplimits.limits.conversion import UnitRate
from swaplimits.limits.engine import SwapLimitsEngine
from swaplimits.limits.new_user import new_user_limit_eur
from swaplimits.limits.resolver import (
    CurrentLimit,
    LimitAmounts,
    LimitResolver,
    LimitsRequest,
    SwapLimits,
)

__all__ = [
    "Classification",
    "ClassifiedTransaction",
    "HtlcOutputError",
    "OutputLookup",
    "OutputLookupStatus",
    "TimedSwap",
    "TransactionClassifier",
    "select_swap_output",
    "AccountState",
    "SwapLimitsController",
    "UnitRate",
    "SwapLimitsEngine",
    "new_user_limit_eur",
    "CurrentLimit",
    "LimitAmounts",
    "LimitResolver",
    "LimitsRequest",
    "SwapLimits",
]
