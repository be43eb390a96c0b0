"""Reactive recomputation of swap limits.

The controller owns the mutable inputs (swap addresses, fiat-to-crypto mode,
active account, exchange rates) and decides when a new pass runs. Every
trigger runs a full pass on a frozen snapshot of the inputs. Passes are
numbered at dispatch; a pass that finishes after a newer one was dispatched
drops its result, so the last triggered pass wins.

A failing pass keeps the previous snapshot published. The error is logged,
stored on ``last_error`` and re-raised by ``refresh()``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from swaplimits.assets import CryptoCurrency, ExchangeRates
from swaplimits.limits.engine import SwapLimitsEngine
from swaplimits.limits.resolver import LimitsRequest, SwapLimits

logger = logging.getLogger(__name__)

LimitsCallback = Callable[[SwapLimits], None]


@dataclass(frozen=True)
class AccountState:
    """Selection state of the active wallet account."""

    uid: Optional[str] = None
    active_currency: CryptoCurrency = CryptoCurrency.NIM
    active_address: Optional[str] = None
    nim_addresses: frozenset[str] = field(default_factory=frozenset)
    btc_addresses: frozenset[str] = field(default_factory=frozenset)


class SwapLimitsController:
    """Keeps a published ``SwapLimits`` snapshot up to date."""

    def __init__(
        self,
        engine: SwapLimitsEngine,
        account: Optional[AccountState] = None,
        exchange_rates: Optional[ExchangeRates] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the controller.

        Args:
            engine: Engine running the passes
            account: Initial account selection
            exchange_rates: Initial live exchange rates
            clock: Returns the current time (defaults to the engine's UTC now)
        """
        self.engine = engine
        self._account = account or AccountState()
        self._exchange_rates: ExchangeRates = exchange_rates or {}
        self._clock = clock

        self.nim_address: Optional[str] = None
        self.btc_address: Optional[str] = None
        self.is_fiat_to_crypto = False

        self._limits: Optional[SwapLimits] = None
        self.last_error: Optional[BaseException] = None
        self.trigger = 0
        self._dispatched = 0
        self._subscribers: list[LimitsCallback] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def limits(self) -> Optional[SwapLimits]:
        """Latest published snapshot (None until the first pass completes)."""
        return self._limits

    @property
    def account(self) -> AccountState:
        return self._account

    @property
    def exchange_rates(self) -> ExchangeRates:
        return self._exchange_rates

    def snapshot(self) -> LimitsRequest:
        """Freeze the current inputs for a pass."""
        return LimitsRequest(
            uid=self._account.uid,
            nim_address=self.nim_address,
            btc_address=self.btc_address,
            is_fiat_to_crypto=self.is_fiat_to_crypto,
            nim_addresses=frozenset(self._account.nim_addresses),
            btc_addresses=frozenset(self._account.btc_addresses),
        )

    def subscribe(self, callback: LimitsCallback) -> Callable[[], None]:
        """Call ``callback`` with every published snapshot.

        Returns:
            Function removing the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ======================
    # Triggers
    # ======================

    def use_swap_limits(
        self,
        nim_address: Optional[str] = None,
        btc_address: Optional[str] = None,
        is_fiat_to_crypto: bool = False,
    ) -> asyncio.Task:
        """Set the swap inputs and start a pass."""
        asyncio.get_running_loop()
        self.nim_address = nim_address
        self.btc_address = btc_address
        self.is_fiat_to_crypto = is_fiat_to_crypto
        return self.recalculate()

    def recalculate(self) -> asyncio.Task:
        """Start a pass in the background.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        asyncio.get_running_loop()
        self.trigger += 1
        seq, request, rates = self._dispatch()
        task = asyncio.create_task(self._run_pass(seq, request, rates))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    async def refresh(self) -> Optional[SwapLimits]:
        """Run a pass and wait for it.

        Returns:
            The published snapshot, or None if a newer pass superseded it

        Raises:
            Exception: Whatever made the pass fail
        """
        self.trigger += 1
        seq, request, rates = self._dispatch()
        return await self._run_pass(seq, request, rates, reraise=True)

    # Setters check for a running loop before changing any input

    def set_nim_address(self, address: Optional[str]) -> None:
        if address != self.nim_address:
            asyncio.get_running_loop()
            self.nim_address = address
            self.recalculate()

    def set_btc_address(self, address: Optional[str]) -> None:
        if address != self.btc_address:
            asyncio.get_running_loop()
            self.btc_address = address
            self.recalculate()

    def set_fiat_to_crypto(self, enabled: bool) -> None:
        if enabled != self.is_fiat_to_crypto:
            asyncio.get_running_loop()
            self.is_fiat_to_crypto = enabled
            self.recalculate()

    def set_account(self, account: AccountState) -> None:
        """Apply a new account selection.

        Selecting a non-NIM currency clears the NIM swap address.
        """
        if account.active_currency == CryptoCurrency.NIM:
            nim_address = account.active_address or None
        else:
            nim_address = None

        changed = account != self._account or nim_address != self.nim_address
        if not changed:
            return

        asyncio.get_running_loop()
        self._account = account
        self.nim_address = nim_address
        logger.debug(
            f"Account selection changed ({account.active_currency.value}, "
            f"{account.active_address}); recalculating"
        )
        self.recalculate()

    def set_exchange_rates(self, rates: ExchangeRates) -> None:
        """Replace the live exchange rates; recalculates once limits exist."""
        if rates == self._exchange_rates:
            return
        if self._limits is not None:
            asyncio.get_running_loop()
        self._exchange_rates = {currency: dict(prices) for currency, prices in rates.items()}
        if self._limits is not None:
            self.recalculate()

    async def wait_idle(self) -> None:
        """Wait for all background passes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ======================
    # Passes
    # ======================

    def _dispatch(self) -> tuple[int, LimitsRequest, ExchangeRates]:
        self._dispatched += 1
        rates = {currency: dict(prices) for currency, prices in self._exchange_rates.items()}
        return self._dispatched, self.snapshot(), rates

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

    async def _run_pass(
        self,
        seq: int,
        request: LimitsRequest,
        rates: ExchangeRates,
        reraise: bool = False,
    ) -> Optional[SwapLimits]:
        now = self._clock() if self._clock else None
        logger.debug(f"Limit pass #{seq} started")

        try:
            limits = await self.engine.compute(request, rates, now=now)
        except Exception as e:
            if seq == self._dispatched:
                self.last_error = e
            logger.error(f"Limit pass #{seq} failed: {type(e).__name__}: {e}")
            if reraise:
                raise
            return None

        if seq != self._dispatched:
            logger.debug(f"Discarding limit pass #{seq}; pass #{self._dispatched} is newer")
            return None

        self._publish(limits)
        return limits

    def _publish(self, limits: SwapLimits) -> None:
        self._limits = limits
        self.last_error = None
        logger.info(
            f"Swap limits updated: current ${limits.current.usd}, "
            f"remaining ${limits.remaining.usd} of ${limits.monthly.usd}"
        )
        for callback in list(self._subscribers):
            try:
                callback(limits)
            except Exception as e:
                logger.error(f"Limits subscriber error: {e}")
