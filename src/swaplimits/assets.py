"""Assets, currencies and unit constants shared by the limit engine."""

from decimal import Decimal
from enum import Enum


class SwapAsset(str, Enum):
    """Assets as named by the swap service."""

    NIM = "NIM"
    BTC = "BTC"
    EUR = "EUR"


class CryptoCurrency(str, Enum):
    """Cryptocurrencies held by the wallet."""

    NIM = "nim"
    BTC = "btc"


class FiatCurrency(str, Enum):
    """Fiat currencies used for valuations."""

    USD = "usd"
    EUR = "eur"


# Base units per coin
LUNAS_PER_NIM = Decimal("1e5")
SATS_PER_BTC = Decimal("1e8")

# Minor units per fiat unit (cents)
CENTS_PER_UNIT = Decimal("100")

# Length of a P2WSH (bech32) HTLC address on BTC mainnet
HTLC_ADDRESS_LENGTH = 62

# No constraint
UNLIMITED = Decimal("Infinity")

# Exchange rate table: crypto -> fiat -> price of one coin
ExchangeRates = dict[CryptoCurrency, dict[FiatCurrency, Decimal]]
