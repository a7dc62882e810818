"""
Tencent Cloud DNSPod updater.

This module updates one record through the Tencent Cloud DNSPod API using
the official SDK. Only supports China mainland DNSPod (not international
version api.dnspod.com).
Endpoint: dnspod.tencentcloudapi.com
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tencentcloud.common import credential
from tencentcloud.common.profile.client_profile import ClientProfile
from tencentcloud.common.profile.http_profile import HttpProfile
from tencentcloud.dnspod.v20210323 import dnspod_client_async, models

from gnudip_gateway.providers.base import BaseUpdater, ProviderResult

if TYPE_CHECKING:
    from typing import Final


# Tencent Cloud DNSPod endpoint
DNSPOD_ENDPOINT: Final[str] = "dnspod.tencentcloudapi.com"


logger = logging.getLogger(__name__)


class TencentUpdater(BaseUpdater):
    """
    Tencent Cloud DNSPod updater.

    Uses the official tencentcloud-sdk-python-dnspod SDK. Requires
    `access_key_id` (SecretId), `access_key_secret` (SecretKey), `domain`,
    `record_id` and `record` (the sub domain) in the provider configuration.

    Note: Only supports China mainland DNSPod, not international version.
    """

    @property
    def name(self) -> str:
        """Get the provider name."""
        return "tencent"

    def _create_client(self) -> dnspod_client_async.DnspodClient:
        """
        Create a Tencent Cloud DNSPod client.

        Returns
        -------
        DnspodClient
            The DNSPod client instance.
        """
        cred = credential.Credential(
            self.config.access_key_id,
            self.config.access_key_secret,
        )
        http_profile = HttpProfile()
        http_profile.endpoint = DNSPOD_ENDPOINT
        http_profile.reqTimeout = max(1, int(self.config.timeout))

        client_profile = ClientProfile()
        client_profile.httpProfile = http_profile

        return dnspod_client_async.DnspodClient(cred, "", client_profile)

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
        fqdn = f"{self.config.record}.{self.config.domain}"

        try:
            async with self._create_client() as client:
                request = models.ModifyRecordRequest()
                request.Domain = self.config.domain
                request.RecordId = int(self.config.record_id)
                request.SubDomain = self.config.record
                request.RecordType = self.record_type_for(address).value
                request.RecordLine = self.config.record_line
                request.Value = address

                response = await client.ModifyRecord(request)
        except Exception as e:
            logger.error("[tencent: ModifyRecord] Failed to update record: '%s'", e)
            return ProviderResult(
                success=False,
                message=f"Failed to update record: {e}",
                record_id=self.config.record_id,
            )

        request_id = response.RequestId
        logger.debug("[tencent] ModifyRecord -> RequestId: %s", request_id)

        return ProviderResult(
            success=True,
            message=f"DNS record updated for {fqdn}",
            record_id=self.config.record_id,
            request_id=request_id,
        )
