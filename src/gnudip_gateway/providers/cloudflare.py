"""
CloudFlare DNS updater.

This module implements the CloudFlare DNS API v4 for updating one DNS record.
Only API Token authentication is supported (not Global API Key).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from starlette import status as st_status

from gnudip_gateway.providers.base import BaseUpdater, ProviderResult

if TYPE_CHECKING:
    from typing import Final

    from gnudip_gateway.config import ProviderConfig


# CloudFlare API base URL
CF_API_BASE: Final[str] = "https://api.cloudflare.com/client/v4"


logger = logging.getLogger(__name__)


class CloudFlareUpdater(BaseUpdater):
    """
    CloudFlare DNS updater.

    Uses CloudFlare API v4 with API Token authentication. Requires `api_key`
    (the token), `zone_id` and `record_id` in the provider configuration.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._transport = transport

    @property
    def name(self) -> str:
        """Get the provider name."""
        return "cloudflare"

    async def update(self, address: str) -> ProviderResult:
        """
        Update the configured record's content to `address`.

        Parameters
        ----------
        address : str
            The address to publish.

        Returns
        -------
        ProviderResult
            The result of the operation.
        """
        url = (
            f"{CF_API_BASE}/zones/{self.config.zone_id}"
            f"/dns_records/{self.config.record_id}"
        )
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "type": self.record_type_for(address).value,
            "content": address,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                response = await client.patch(url, headers=headers, json=payload)
        except httpx.RequestError as e:
            logger.error("[cloudflare] Network request failed: '%s'", e)  # noqa: TRY400
            return ProviderResult(success=False, message=f"Request error: {e}")

        logger.debug("[cloudflare] PATCH %s -> %d", url, response.status_code)
        logger.debug("[cloudflare] Response: %s", response.text)

        try:
            data = response.json()
        except ValueError:
            data = {}
        # Proxies and error pages may answer with non-object JSON
        if not isinstance(data, dict):
            data = {}

        if response.status_code == st_status.HTTP_200_OK and data.get("success"):
            result = data.get("result")
            if not isinstance(result, dict):
                result = {}
            return ProviderResult(
                success=True,
                message=f"DNS record updated for {result.get('name', self.config.record_id)}",
                record_id=str(result.get("id", self.config.record_id)),
                request_id=response.headers.get("cf-ray"),
            )

        errors = data.get("errors")
        first_error = errors[0] if isinstance(errors, list) and errors else None
        error_msg = (
            first_error.get("message", "Unknown error")
            if isinstance(first_error, dict)
            else "Unknown error"
        )
        logger.error("[cloudflare] Failed to update record: '%s'", error_msg)
        return ProviderResult(
            success=False,
            message=f"Failed to update record: {error_msg}",
            record_id=self.config.record_id,
        )
