"""Swap limit request and response contracts."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from swaplimits.assets import CryptoCurrency, FiatCurrency
from swaplimits.limits.controller import AccountState
from swaplimits.limits.resolver import LimitAmounts, SwapLimits


class LimitAmountsResponse(BaseModel):
    """A limit in USD and in base units of both ledgers."""

    usd: Decimal = Field(..., ge=0, description="Limit in USD")
    luna: int = Field(..., ge=0, description="Limit in luna (1e-5 NIM)")
    sat: int = Field(..., ge=0, description="Limit in satoshi (1e-8 BTC)")

    @classmethod
    def from_amounts(cls, amounts: LimitAmounts) -> "LimitAmountsResponse":
        return cls(usd=amounts.usd, luna=amounts.luna, sat=amounts.sat)


class CurrentLimitResponse(LimitAmountsResponse):
    """Limit for the next swap."""

    eur: Optional[Decimal] = Field(
        None, description="Remaining new-user EUR allowance (null = not applicable)"
    )


class SwapLimitsResponse(BaseModel):
    """Current, monthly and remaining swap limits."""

    current: CurrentLimitResponse
    monthly: LimitAmountsResponse
    remaining: LimitAmountsResponse

    @classmethod
    def from_limits(cls, limits: SwapLimits) -> "SwapLimitsResponse":
        current = limits.current
        return cls(
            current=CurrentLimitResponse(
                usd=current.usd,
                luna=current.luna,
                sat=current.sat,
                eur=current.eur if current.has_new_user_limit else None,
            ),
            monthly=LimitAmountsResponse.from_amounts(limits.monthly),
            remaining=LimitAmountsResponse.from_amounts(limits.remaining),
        )


class LimitInputsRequest(BaseModel):
    """Addresses and mode of the swap being prepared."""

    nim_address: Optional[str] = Field(None, description="NIM address taking part in the swap")
    btc_address: Optional[str] = Field(None, description="BTC address taking part in the swap")
    is_fiat_to_crypto: bool = Field(False, description="Whether the swap is funded with EUR")


class AccountStateRequest(BaseModel):
    """Selection state of the active wallet account."""

    uid: Optional[str] = Field(None, description="Linked account id, if any")
    active_currency: CryptoCurrency = Field(CryptoCurrency.NIM, description="Selected ledger")
    active_address: Optional[str] = Field(None, description="Selected address on that ledger")
    nim_addresses: list[str] = Field(default_factory=list, description="NIM addresses of the account")
    btc_addresses: list[str] = Field(default_factory=list, description="BTC addresses of the account")

    def to_state(self) -> AccountState:
        return AccountState(
            uid=self.uid,
            active_currency=self.active_currency,
            active_address=self.active_address,
            nim_addresses=frozenset(self.nim_addresses),
            btc_addresses=frozenset(self.btc_addresses),
        )


class ExchangeRatesRequest(BaseModel):
    """Live exchange rates, e.g. ``{"nim": {"usd": "0.002", "eur": "0.0018"}}``."""

    rates: dict[CryptoCurrency, dict[FiatCurrency, Decimal]]

    @field_validator("rates")
    @classmethod
    def validate_rates(cls, v: dict) -> dict:
        for prices in v.values():
            if any(price < 0 for price in prices.values()):
                raise ValueError("Exchange rates must not be negative")
        return v


class ExchangeRatesResponse(BaseModel):
    """Stored exchange rates and the limits recomputed with them."""

    rates: dict[CryptoCurrency, dict[FiatCurrency, Decimal]]
    limits: Optional[SwapLimitsResponse] = Field(
        None, description="Recomputed limits (null until the first snapshot exists)"
    )
