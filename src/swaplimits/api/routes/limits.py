"""Swap limit endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from swaplimits.api.contracts import (
    AccountStateRequest,
    ExchangeRatesRequest,
    ExchangeRatesResponse,
    LimitInputsRequest,
    SwapLimitsResponse,
)
from swaplimits.limits.classifier import HtlcOutputError
from swaplimits.limits.controller import SwapLimitsController
from swaplimits.quotas.base import QuotaServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/limits")


def get_controller(request: Request) -> SwapLimitsController:
    return request.app.state.controller


def _check_error(error: Optional[BaseException]) -> None:
    if isinstance(error, QuotaServiceError):
        raise HTTPException(status_code=502, detail=f"Quota service unavailable: {error}")
    if isinstance(error, HtlcOutputError):
        raise HTTPException(status_code=500, detail=str(error))


def _published(controller: SwapLimitsController) -> SwapLimitsResponse:
    if controller.limits is None:
        raise HTTPException(status_code=503, detail="Swap limits not available yet")
    return SwapLimitsResponse.from_limits(controller.limits)


async def _refresh(controller: SwapLimitsController) -> SwapLimitsResponse:
    try:
        await controller.refresh()
    except (QuotaServiceError, HtlcOutputError) as e:
        _check_error(e)

    # A newer pass may have superseded ours; serve whatever is published
    return _published(controller)


async def _settle(controller: SwapLimitsController) -> SwapLimitsResponse:
    """Wait for triggered passes, computing the first snapshot if none ran."""
    await controller.wait_idle()
    if controller.limits is None and controller.last_error is None:
        return await _refresh(controller)
    _check_error(controller.last_error)
    return _published(controller)


@router.get("", response_model=SwapLimitsResponse)
async def get_limits(
    controller: SwapLimitsController = Depends(get_controller),
) -> SwapLimitsResponse:
    """Get the latest published swap limits.

    Limits are informational; enforcing them is up to the caller.
    """
    if controller.limits is None:
        raise HTTPException(status_code=503, detail="Swap limits not computed yet")
    return SwapLimitsResponse.from_limits(controller.limits)


@router.post("/recalculate", response_model=SwapLimitsResponse)
async def recalculate_limits(
    controller: SwapLimitsController = Depends(get_controller),
) -> SwapLimitsResponse:
    """Recompute the swap limits and return the new snapshot."""
    return await _refresh(controller)


@router.put("/inputs", response_model=SwapLimitsResponse)
async def set_limit_inputs(
    inputs: LimitInputsRequest,
    controller: SwapLimitsController = Depends(get_controller),
) -> SwapLimitsResponse:
    """Set the addresses and mode of the swap being prepared, then recompute."""
    controller.nim_address = inputs.nim_address
    controller.btc_address = inputs.btc_address
    controller.is_fiat_to_crypto = inputs.is_fiat_to_crypto
    logger.debug(
        f"Limit inputs set: nim={inputs.nim_address} btc={inputs.btc_address} "
        f"fiat_to_crypto={inputs.is_fiat_to_crypto}"
    )
    return await _refresh(controller)


@router.put("/account", response_model=SwapLimitsResponse)
async def set_account(
    account: AccountStateRequest,
    controller: SwapLimitsController = Depends(get_controller),
) -> SwapLimitsResponse:
    """Select the active account; limits are recomputed if the selection changed."""
    controller.set_account(account.to_state())
    return await _settle(controller)


@router.put("/exchange-rates", response_model=ExchangeRatesResponse)
async def set_exchange_rates(
    body: ExchangeRatesRequest,
    controller: SwapLimitsController = Depends(get_controller),
) -> ExchangeRatesResponse:
    """Replace the live exchange rates.

    Once limits have been published they are recomputed with the new rates.
    """
    controller.set_exchange_rates(body.rates)
    if controller.limits is None:
        return ExchangeRatesResponse(rates=controller.exchange_rates)

    await controller.wait_idle()
    _check_error(controller.last_error)
    return ExchangeRatesResponse(
        rates=controller.exchange_rates,
        limits=SwapLimitsResponse.from_limits(controller.limits),
    )
