"""
Vultr DNS updater.

This module updates one Vultr DNS record through the Vultr API v2.
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


# Vultr API base URL
VULTR_API_BASE: Final[str] = "https://api.vultr.com/v2"


logger = logging.getLogger(__name__)


class VultrUpdater(BaseUpdater):
    """
    Vultr DNS updater.

    Uses API key (Bearer) authentication. Requires `api_key`, `domain` and
    `record_id` in the provider configuration.
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
        return "vultr"

    async def update(self, address: str) -> ProviderResult:
        """
        Update the configured record's data to `address`.

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
            f"{VULTR_API_BASE}/domains/{self.config.domain}"
            f"/records/{self.config.record_id}"
        )
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                response = await client.patch(url, headers=headers, json={"data": address})
        except httpx.RequestError as e:
            logger.error("[vultr] Network request failed: '%s'", e)  # noqa: TRY400
            return ProviderResult(success=False, message=f"Request error: {e}")

        logger.debug("[vultr] PATCH %s -> %d", url, response.status_code)

        # Vultr answers a successful update with "204 No Content"
        if response.status_code in {st_status.HTTP_200_OK, st_status.HTTP_204_NO_CONTENT}:
            return ProviderResult(
                success=True,
                message=f"DNS record updated for {self.config.domain}",
                record_id=self.config.record_id,
            )

        logger.error("[vultr] Failed to update record: '%s'", response.text)
        return ProviderResult(
            success=False,
            message=f"Failed to update record: {_error_message(response)}",
            record_id=self.config.record_id,
        )


def _error_message(response: httpx.Response) -> str:
    """
    Extract the error message from a Vultr error response.

    Parameters
    ----------
    response : httpx.Response
        The failed response.

    Returns
    -------
    str
        The API error message, or the HTTP status line.
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {response.status_code}"
