"""
Data models for GnuDIP Gateway.

This module defines the core data structures used throughout the application:
the challenge handed to clients, the raw and validated update requests,
the update result, and enumerations for providers, record types and
GnuDIP request codes.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ProviderName(StrEnum):
    """
    Supported DNS providers.

    Attributes
    ----------
    VULTR : str
        Vultr DNS.
    CLOUDFLARE : str
        CloudFlare DNS service.
    ALIYUN : str
        Alibaba Cloud DNS (alidns) service.
    TENCENT : str
        Tencent Cloud DNSPod service (China mainland only).
    """

    VULTR = "vultr"
    CLOUDFLARE = "cloudflare"
    ALIYUN = "aliyun"
    TENCENT = "tencent"


class RecordType(StrEnum):
    """
    DNS record types an address can be published as.

    Attributes
    ----------
    A : str
        IPv4 address record.
    AAAA : str
        IPv6 address record.
    """

    A = "A"
    AAAA = "AAAA"


class ReqCode(IntEnum):
    """
    GnuDIP request codes (`reqc`).

    Attributes
    ----------
    REGISTER_ADDRESS : int
        Register the address passed with the request.
    GO_OFFLINE : int
        Go offline (publish the unreachable address).
    REGISTER_PEER : int
        Register the address the server sees the client at, and echo it back.
    """

    REGISTER_ADDRESS = 0
    GO_OFFLINE = 1
    REGISTER_PEER = 2


# Address published when a client goes offline
OFFLINE_ADDRESS = "0.0.0.0"  # noqa: S104


class Challenge(BaseModel):
    """
    A signed login challenge.

    Attributes
    ----------
    salt : str
        URL-safe base64 encoded random salt.
    time : int
        Issue time in Unix seconds.
    sign : str
        Signature over `salt` followed by the decimal `time`.
    """

    model_config = ConfigDict(frozen=True)

    salt: str
    time: int
    sign: str

    def as_fields(self) -> dict[str, str]:
        """Return the challenge as response meta fields."""
        return {"salt": self.salt, "time": str(self.time), "sign": self.sign}


class UpdateParams(BaseModel):
    """
    Raw update request as received in the query string.

    Every field is optional here; presence and format are checked by the
    verifier, in protocol order.
    """

    model_config = ConfigDict(frozen=True)

    salt: str = ""
    time: str = ""
    sign: str = ""
    user: str = ""
    password: str = Field(default="", alias="pass")
    domn: str = ""
    reqc: str = ""
    addr: str = ""


class ValidatedRequest(BaseModel):
    """
    An authenticated update request.

    Only `RequestVerifier.verify` constructs these.

    Attributes
    ----------
    salt : str
        The challenge salt the request was authenticated with.
    time : int
        The challenge issue time.
    user : str
        The authenticated username.
    domain : str
        The domain named by the client (`domn`).
    req_code : int
        The GnuDIP request code.
    addr : str | None
        The address to register; None when going offline.
    """

    model_config = ConfigDict(frozen=True)

    salt: str
    time: int
    user: str
    domain: str
    req_code: int
    addr: str | None = None


class UpdateResult(BaseModel):
    """
    Result of a dispatched update.

    Attributes
    ----------
    retc : str
        GnuDIP return code ("0" success, "2" offline).
    addr : str | None
        The registered address, echoed for self-reported updates.
    """

    model_config = ConfigDict(frozen=True)

    retc: str
    addr: str | None = None

    def as_fields(self) -> dict[str, str]:
        """Return the result as response meta fields."""
        return {k: v for k, v in self.model_dump().items() if v is not None}
