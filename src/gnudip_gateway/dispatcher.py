"""
Update dispatch.

Maps a validated request's GnuDIP request code to a provider update and the
GnuDIP return code sent back to the client.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from gnudip_gateway.errors import ProviderFailureError, UnknownOperationError
from gnudip_gateway.models import OFFLINE_ADDRESS, ReqCode, UpdateResult

if TYPE_CHECKING:
    from gnudip_gateway.models import ValidatedRequest
    from gnudip_gateway.providers.base import BaseUpdater


logger = logging.getLogger(__name__)


class UpdateDispatcher:
    """
    Execute validated update requests against an updater.

    Parameters
    ----------
    updater : BaseUpdater
        The DNS provider updater.
    timeout : float | None, optional
        Upper bound in seconds for one provider update; None for no bound.
    """

    def __init__(self, updater: BaseUpdater, *, timeout: float | None = None) -> None:
        self._updater = updater
        self._timeout = timeout

    async def dispatch(self, request: ValidatedRequest) -> UpdateResult:
        """
        Dispatch a validated request.

        Parameters
        ----------
        request : ValidatedRequest
            The authenticated request.

        Returns
        -------
        UpdateResult
            The GnuDIP return code and, for `reqc=2`, the registered address.

        Raises
        ------
        UnknownOperationError
            If the request code is not supported. No update is made.
        ProviderFailureError
            If the provider update failed.
        """
        if request.req_code == ReqCode.REGISTER_ADDRESS:
            await self._update(request.domain, request.addr)
            return UpdateResult(retc="0")
        if request.req_code == ReqCode.GO_OFFLINE:
            await self._update(request.domain, OFFLINE_ADDRESS)
            return UpdateResult(retc="2")
        if request.req_code == ReqCode.REGISTER_PEER:
            await self._update(request.domain, request.addr)
            return UpdateResult(retc="0", addr=request.addr)
        raise UnknownOperationError(request.req_code)

    async def _update(self, domain: str, address: str | None) -> None:
        if not address:
            msg = "No address to register"
            raise ProviderFailureError(msg)

        start_time = time.monotonic()
        logger.info(
            "[update] provider=%s domain=%s addr=%s",
            self._updater.name,
            domain,
            address,
        )

        try:
            async with asyncio.timeout(self._timeout):
                result = await self._updater.update(address)
        except TimeoutError as e:
            logger.warning(
                "[update] provider=%s timed out after %.2fs",
                self._updater.name,
                time.monotonic() - start_time,
            )
            msg = "Provider update timed out"
            raise ProviderFailureError(msg) from e
        except Exception as e:
            logger.exception("[update] provider=%s failed", self._updater.name)
            raise ProviderFailureError(str(e) or type(e).__name__) from e

        duration = time.monotonic() - start_time
        if not result.success:
            logger.warning(
                "[update] status=error message=%s duration=%.2fs",
                result.message,
                duration,
            )
            raise ProviderFailureError(result.message)

        logger.info(
            "[update] status=success message=%s duration=%.2fs",
            result.message,
            duration,
        )
