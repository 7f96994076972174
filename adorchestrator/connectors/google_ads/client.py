"""AdOrchestrator — Google Ads Conversions API Client.

Uploads click conversions with partial failure enabled, so one bad row
does not reject the whole batch.
"""

from typing import Any, Dict, List

import httpx
from pydantic import BaseModel

from adorchestrator.config import settings
from adorchestrator.connectors.google_ads.transformer import (
    build_conversion_action_name,
    convert_to_google_format,
)
from adorchestrator.core.logging import get_logger
from adorchestrator.models.conversion_models import CAPIConfig, ConversionEvent

logger = get_logger("google_ads.client")


class GoogleAdsAPIError(Exception):
    """Raised when Google Ads rejects an upload request as a whole."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class CAPISyncResult(BaseModel):
    success: bool = False
    total_events: int = 0
    success_count: int = 0
    failure_count: int = 0
    errors: List[str] = []


class GoogleAdsClient:
    """Async HTTP client for ``customers/{id}:uploadClickConversions``."""

    def __init__(
        self,
        developer_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.developer_token = developer_token or settings.google_ads_developer_token
        self.base = f"{settings.google_ads_base_url}/{settings.google_ads_api_version}"
        self._transport = transport

    async def _post(
        self, url: str, access_token: str, customer_id: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "developer-token": self.developer_token,
            "login-customer-id": customer_id,
        }
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                resp = await client.post(url, json=body, headers=headers)
        except httpx.RequestError as e:
            raise GoogleAdsAPIError(f"Network error: {e}") from e

        if resp.status_code >= 400:
            raise GoogleAdsAPIError(
                f"API error: {resp.status_code} - {resp.text}", resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise GoogleAdsAPIError(
                f"Invalid response body: {resp.text[:200]}", resp.status_code
            ) from e

    async def upload_conversions(
        self, config: CAPIConfig, events: List[ConversionEvent]
    ) -> CAPISyncResult:
        """Upload ``events`` for ``config``. Never raises; failures land in the result."""
        result = CAPISyncResult(total_events=len(events))

        if not events:
            result.success = True
            return result

        if not config.access_token:
            result.errors.append("No access token configured")
            result.failure_count = len(events)
            return result

        action = build_conversion_action_name(
            config.customer_id, config.conversion_action_id
        )
        url = f"{self.base}/customers/{config.customer_id}:uploadClickConversions"
        body = {
            "conversions": [convert_to_google_format(e, action) for e in events],
            "partialFailure": True,
        }

        try:
            data = await self._post(url, config.access_token, config.customer_id, body)
        except GoogleAdsAPIError as e:
            logger.error(f"Conversion upload failed: {e}", extra={"brand_id": str(config.brand_id)})
            result.errors.append(str(e))
            result.failure_count = len(events)
            return result

        partial = data.get("partialFailureError")
        if partial:
            failures = partial.get("details") or []
            result.failure_count = len(failures)
            result.success_count = len(events) - len(failures)
            result.errors = [f.get("message", "Unknown error") for f in failures]
        else:
            result.success_count = len(events)

        result.success = result.success_count > 0
        logger.info(
            f"Uploaded {result.success_count}/{len(events)} conversions",
            extra={"brand_id": str(config.brand_id)},
        )
        return result
