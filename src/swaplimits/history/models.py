"""Ledger transaction and swap records read by the limit engine."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from swaplimits.assets import FiatCurrency, SwapAsset


def as_utc(timestamp: Optional[datetime]) -> Optional[datetime]:
    """Return ``timestamp`` as an aware UTC datetime; naive values are taken as UTC."""
    if timestamp is None:
        return None
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


@dataclass
class NimTransaction:
    """A NIM transaction as known to the wallet.

    ``value`` is in luna. ``timestamp`` is None while the transaction is pending.
    """

    transaction_hash: str
    sender: str
    recipient: str
    value: int
    timestamp: Optional[datetime] = None
    fiat_value: Optional[dict[FiatCurrency, Decimal]] = None


@dataclass
class BtcInput:
    """Spent output referenced by a BTC transaction."""

    address: Optional[str]
    value: int


@dataclass
class BtcOutput:
    """Output of a BTC transaction, valued in satoshis."""

    address: Optional[str]
    value: int
    fiat_value: Optional[dict[FiatCurrency, Decimal]] = None


@dataclass
class BtcTransaction:
    """A BTC transaction as known to the wallet."""

    transaction_hash: str
    inputs: list[BtcInput] = field(default_factory=list)
    outputs: list[BtcOutput] = field(default_factory=list)
    timestamp: Optional[datetime] = None

    @property
    def addresses(self) -> list[str]:
        """All input and output addresses of the transaction."""
        return [
            io.address
            for io in [*self.inputs, *self.outputs]
            if io.address is not None
        ]


@dataclass(frozen=True)
class SwapLeg:
    """One side of a swap; ``amount`` is in the asset's smallest unit."""

    asset: SwapAsset
    amount: int


@dataclass(frozen=True)
class SwapRecord:
    """A recorded historical swap."""

    swap_hash: str
    in_leg: Optional[SwapLeg] = None
    out_leg: Optional[SwapLeg] = None
