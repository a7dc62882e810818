"""
Base class for DNS updaters.

This module defines the abstract base class that all DNS provider
implementations must inherit from.
"""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from gnudip_gateway.models import RecordType

if TYPE_CHECKING:
    from gnudip_gateway.config import ProviderConfig


class ProviderResult:
    """
    Result of a provider update.

    Attributes
    ----------
    success : bool
        Whether the update was successful.
    message : str
        Human-readable message.
    record_id : str | None
        The record ID from the provider.
    request_id : str | None
        The request ID from the provider.
    """

    def __init__(
        self,
        *,
        success: bool,
        message: str,
        record_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.success = success
        self.message = message
        self.record_id = record_id
        self.request_id = request_id

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(success={self.success!r}, "
            f"message={self.message!r}, record_id={self.record_id!r})"
        )


class BaseUpdater(ABC):
    """
    Abstract base class for DNS updaters.

    An updater points one preconfigured DNS record at a new address.

    Parameters
    ----------
    config : ProviderConfig
        Provider configuration (credentials and record location).
    """

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Get the provider name.

        Returns
        -------
        str
            Provider name identifier.
        """
        ...

    @abstractmethod
    async def update(self, address: str) -> ProviderResult:
        """
        Point the configured record at `address`.

        Failures are reported through the result rather than raised.

        Parameters
        ----------
        address : str
            The IPv4 or IPv6 address to publish.

        Returns
        -------
        ProviderResult
            The result of the operation.
        """
        ...

    @staticmethod
    def record_type_for(address: str) -> RecordType:
        """
        Get the record type matching an address family.

        Parameters
        ----------
        address : str
            An IPv4 or IPv6 address.

        Returns
        -------
        RecordType
            `A` for IPv4, `AAAA` for IPv6.
        """
        if ipaddress.ip_address(address).version == 6:  # noqa: PLR2004
            return RecordType.AAAA
        return RecordType.A
