"""
Alibaba Cloud DNS (alidns) updater.

This module updates one record through the Alibaba Cloud DNS API using the
official SDK. Endpoint: alidns.aliyuncs.com (unified for domestic and
international).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from alibabacloud_alidns20150109 import models as alidns_models
from alibabacloud_alidns20150109.client import Client as AlidnsClient
from alibabacloud_tea_openapi import models as open_api_models
from alibabacloud_tea_util import models as util_models

from gnudip_gateway.providers.base import BaseUpdater, ProviderResult

if TYPE_CHECKING:
    from typing import Final


# Alibaba Cloud DNS endpoint (unified)
ALIDNS_ENDPOINT: Final[str] = "alidns.aliyuncs.com"

# Error code returned when the record already holds the requested value
ALIDNS_DUPLICATE_CODE: Final[str] = "DomainRecordDuplicate"


logger = logging.getLogger(__name__)


class AliyunUpdater(BaseUpdater):
    """
    Alibaba Cloud DNS (alidns) updater.

    Uses the official alibabacloud_alidns20150109 SDK. Requires
    `access_key_id`, `access_key_secret`, `record_id` and `record` (the RR,
    e.g. "home" or "@") in the provider configuration.
    """

    @property
    def name(self) -> str:
        """Get the provider name."""
        return "aliyun"

    def _create_client(self) -> AlidnsClient:
        """
        Create an Alibaba Cloud DNS client.

        Returns
        -------
        AlidnsClient
            The DNS client instance.
        """
        config = open_api_models.Config(
            access_key_id=self.config.access_key_id,
            access_key_secret=self.config.access_key_secret,
            endpoint=ALIDNS_ENDPOINT,
        )
        return AlidnsClient(config)

    def _runtime_options(self) -> util_models.RuntimeOptions:
        """Build runtime options bounded by the configured timeout (milliseconds)."""
        timeout_ms = int(self.config.timeout * 1000)
        return util_models.RuntimeOptions(
            read_timeout=timeout_ms,
            connect_timeout=timeout_ms,
        )

    async def update(self, address: str) -> ProviderResult:
        """
        Update the configured record's value to `address`.

        Parameters
        ----------
        address : str
            The address to publish.

        Returns
        -------
        ProviderResult
            The result of the operation.
        """
        record_id = self.config.record_id
        rr = self.config.record

        try:
            client = self._create_client()
            request = alidns_models.UpdateDomainRecordRequest(
                record_id=record_id,
                rr=rr,
                type=self.record_type_for(address).value,
                value=address,
            )
            response = await client.update_domain_record_with_options_async(
                request,
                self._runtime_options(),
            )
        except Exception as e:
            # The API refuses updates that would not change the record
            if getattr(e, "code", None) == ALIDNS_DUPLICATE_CODE:
                logger.debug("[aliyun] Record %s already set to %s", record_id, address)
                return ProviderResult(
                    success=True,
                    message=f"DNS record unchanged for {rr}",
                    record_id=record_id,
                )
            logger.error(
                "[aliyun: UpdateDomainRecord] Failed to update domain record: '%s'",
                e,
            )
            return ProviderResult(
                success=False,
                message=f"Failed to update record: {e}",
                record_id=record_id,
            )

        request_id = response.body.request_id
        logger.debug("[aliyun] UpdateDomainRecord -> RequestId: %s", request_id)

        return ProviderResult(
            success=True,
            message=f"DNS record updated for {rr}",
            record_id=record_id,
            request_id=request_id,
        )
