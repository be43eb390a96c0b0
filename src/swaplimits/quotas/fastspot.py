"""Fastspot quota service integration.

Fastspot reports per-address and per-user swap limits. Address limits carry
the native figures plus a ``reference`` block in USD cents.
"""

import logging
from decimal import Decimal
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from swaplimits.assets import SwapAsset
from swaplimits.quotas.base import (
    AccountQuota,
    AddressQuota,
    QuotaProvider,
    QuotaServiceError,
    ReferenceQuota,
)

logger = logging.getLogger(__name__)

FASTSPOT_MAINNET = "https://api.fastspot.io/fast/v1"
FASTSPOT_TESTNET = "https://api.test.fastspot.io/fast/v1"


class LimitFigures(BaseModel):
    """Wire shape shared by all limit payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    monthly: Decimal
    current: Decimal
    monthly_remaining: Decimal = Field(alias="monthlyRemaining")


class AddressLimitsPayload(LimitFigures):
    """Wire shape of ``GET /limits``."""

    reference: LimitFigures


class FastspotQuotaProvider(QuotaProvider):
    """Quota provider backed by the Fastspot HTTP API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = FASTSPOT_MAINNET,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Fastspot provider.

        Args:
            api_key: Fastspot API key
            base_url: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "Fastspot"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"X-FAST-ApiKey": self.api_key},
            transport=self._transport,
        )

    async def _get(self, path: str, params: Optional[dict] = None) -> Optional[dict]:
        """GET a JSON document, returning None on 404."""
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request {path} failed: {e}")
            raise QuotaServiceError(f"{self.name} request {path} failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.warning(f"{self.name} API error on {path}: {response.status_code}")
            raise QuotaServiceError(
                f"{self.name} API error on {path}: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise QuotaServiceError(f"{self.name} returned invalid JSON for {path}") from e

    async def get_limits(self, asset: SwapAsset, address: str) -> AddressQuota:
        """Get address limits from Fastspot."""
        data = await self._get("/limits", params={"asset": asset.value, "address": address})
        if data is None:
            raise QuotaServiceError(f"No limits for {asset.value} address {address}", status_code=404)

        try:
            payload = AddressLimitsPayload.model_validate(data)
        except ValidationError as e:
            raise QuotaServiceError(f"Unexpected limits payload for {asset.value}: {e}") from e

        logger.debug(
            f"{asset.value} limits for {address}: monthly {payload.monthly} "
            f"(reference {payload.reference.monthly} cents)"
        )
        return AddressQuota(
            asset=asset,
            address=address,
            monthly=payload.monthly,
            current=payload.current,
            monthly_remaining=payload.monthly_remaining,
            reference=ReferenceQuota(
                monthly=payload.reference.monthly,
                current=payload.reference.current,
                monthly_remaining=payload.reference.monthly_remaining,
            ),
        )

    async def get_user_limits(self, uid: str) -> Optional[AccountQuota]:
        """Get account limits from Fastspot."""
        data = await self._get(f"/limits/{uid}")
        if data is None:
            logger.debug(f"{self.name} has no limits for account {uid}")
            return None

        try:
            payload = LimitFigures.model_validate(data)
        except ValidationError as e:
            raise QuotaServiceError(f"Unexpected user limits payload: {e}") from e

        return AccountQuota(
            uid=uid,
            monthly=payload.monthly,
            current=payload.current,
            monthly_remaining=payload.monthly_remaining,
        )
