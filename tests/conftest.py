"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DRY_RUN"] = "true"
os.environ["QUOTA_API_KEY"] = ""
os.environ["DEBUG"] = "true"

from swaplimits.assets import CryptoCurrency
from swaplimits.config import Settings
from swaplimits.history.stores import BtcTransactionStore, NimTransactionStore
from swaplimits.history.swaps import SwapIndex
from swaplimits.limits.controller import AccountState, SwapLimitsController
from swaplimits.limits.engine import SwapLimitsEngine
from swaplimits.quotas.dry_run import SimulatedQuotaProvider
from tests.constants import (
    BTC_ADDRESS,
    BTC_CHANGE,
    EXCHANGE_RATES,
    NIM_ADDRESS,
    NIM_ADDRESS_2,
    NOW,
    REFERENCE,
)


@pytest.fixture
def settings() -> Settings:
    """Settings with default policy values."""
    return Settings()


@pytest.fixture
def quota_provider() -> SimulatedQuotaProvider:
    """Simulated quota provider returning the reference quota."""
    return SimulatedQuotaProvider(reference=REFERENCE)


@pytest.fixture
def nim_store() -> NimTransactionStore:
    return NimTransactionStore()


@pytest.fixture
def btc_store() -> BtcTransactionStore:
    return BtcTransactionStore()


@pytest.fixture
def swap_index() -> SwapIndex:
    return SwapIndex()


@pytest.fixture
def engine(quota_provider, nim_store, btc_store, swap_index, settings) -> SwapLimitsEngine:
    """Engine wired to in-memory collaborators."""
    return SwapLimitsEngine(
        quota_provider=quota_provider,
        nim_store=nim_store,
        btc_store=btc_store,
        swap_index=swap_index,
        settings=settings,
    )


@pytest.fixture
def account() -> AccountState:
    """Active account with two NIM and two BTC addresses."""
    return AccountState(
        uid=None,
        active_currency=CryptoCurrency.NIM,
        active_address=NIM_ADDRESS,
        nim_addresses=frozenset({NIM_ADDRESS, NIM_ADDRESS_2}),
        btc_addresses=frozenset({BTC_ADDRESS, BTC_CHANGE}),
    )


@pytest.fixture
def controller(engine, account) -> SwapLimitsController:
    """Controller with a fixed clock."""
    return SwapLimitsController(
        engine,
        account=account,
        exchange_rates=EXCHANGE_RATES,
        clock=lambda: NOW,
    )
