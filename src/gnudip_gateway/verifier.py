"""
Update request verification.

Checks run in GnuDIP protocol order and stop at the first failure:

1. salt, time and sign are present
2. time is an integer
3. the challenge is inside the freshness window
4. the signature matches the salt and time
5. user and salted password match the configured credential
6. domn is present
7. reqc is an integer
8. the address to register is known
"""

from __future__ import annotations

import hashlib
import hmac
import ipaddress
import logging
import re
import time
from typing import TYPE_CHECKING

from gnudip_gateway.challenge import signed_message
from gnudip_gateway.errors import (
    CredentialMismatchError,
    ExpiredError,
    MalformedAddressError,
    MalformedReqCodeError,
    MalformedTimeError,
    MissingFieldError,
    PeerAddressUnavailableError,
    SignatureMismatchError,
)
from gnudip_gateway.models import ReqCode, ValidatedRequest

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Final

    from gnudip_gateway.models import UpdateParams
    from gnudip_gateway.signer import Signer


# Default freshness window in seconds
DEFAULT_FRESHNESS_WINDOW: Final[int] = 10

# Default tolerance for challenge times ahead of the local clock
DEFAULT_MAX_CLOCK_SKEW: Final[int] = 5

_INTEGER_PATTERN: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")


logger = logging.getLogger(__name__)


def _md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()  # noqa: S324


def derive_password(password: str, salt: str) -> str:
    """
    Derive the per-challenge GnuDIP password.

    The client sends `md5(md5(password) + "." + salt)`, both digests in
    lowercase hex.

    Parameters
    ----------
    password : str
        The shared secret.
    salt : str
        The challenge salt.

    Returns
    -------
    str
        The salted password digest.
    """
    return salted_digest(_md5_hex(password), salt)


def salted_digest(password_digest: str, salt: str) -> str:
    """Salt an already hashed password: `md5(password_digest + "." + salt)`."""
    return _md5_hex(f"{password_digest}.{salt}")


def _parse_int(value: str) -> int | None:
    if not _INTEGER_PATTERN.fullmatch(value):
        return None
    try:
        return int(value)
    except ValueError:
        # Beyond the interpreter's integer string conversion limit
        return None


def _is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


class RequestVerifier:
    """
    Authenticate GnuDIP update requests.

    Parameters
    ----------
    signer : Signer
        The signer that issued the challenges.
    username : str
        The configured username.
    password : str
        The configured shared secret.
    freshness_window : int, optional
        Seconds a challenge stays valid after issue.
    max_clock_skew : int, optional
        Seconds a challenge time may lie in the future.
    clock : Callable[[], float], optional
        Source of the current Unix time.
    """

    def __init__(
        self,
        signer: Signer,
        *,
        username: str,
        password: str,
        freshness_window: int = DEFAULT_FRESHNESS_WINDOW,
        max_clock_skew: int = DEFAULT_MAX_CLOCK_SKEW,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._signer = signer
        self._username = username
        # Only the unsalted digest is kept; it is all the derivation needs.
        self._password_digest = _md5_hex(password)
        self._freshness_window = freshness_window
        self._max_clock_skew = max_clock_skew
        self._clock = clock

    def verify(
        self,
        params: UpdateParams,
        peer_address: str | None = None,
    ) -> ValidatedRequest:
        """
        Verify an update request.

        Parameters
        ----------
        params : UpdateParams
            The raw query parameters.
        peer_address : str | None, optional
            The address the request arrived from, used for `reqc=2`.

        Returns
        -------
        ValidatedRequest
            The authenticated request.

        Raises
        ------
        GatewayError
            The first check that failed.
        """
        for field in ("salt", "time", "sign"):
            if not getattr(params, field):
                raise MissingFieldError(field)

        issued_at = _parse_int(params.time)
        if issued_at is None:
            raise MalformedTimeError

        self._check_freshness(issued_at)

        if not self._signer.verify(signed_message(params.salt, params.time), params.sign):
            raise SignatureMismatchError

        self._check_credential(params.user, params.password, params.salt)

        if not params.domn:
            raise MissingFieldError("domn")

        req_code = _parse_int(params.reqc)
        if req_code is None:
            raise MalformedReqCodeError

        addr = self._resolve_address(req_code, params.addr, peer_address)

        return ValidatedRequest(
            salt=params.salt,
            time=issued_at,
            user=params.user,
            domain=params.domn,
            req_code=req_code,
            addr=addr,
        )

    def _check_freshness(self, issued_at: int) -> None:
        now = self._clock()
        if issued_at + self._freshness_window < now:
            logger.debug("[verify] challenge expired: issued=%d now=%.0f", issued_at, now)
            raise ExpiredError
        if issued_at - self._max_clock_skew > now:
            logger.debug("[verify] challenge from the future: issued=%d now=%.0f", issued_at, now)
            raise ExpiredError

    def _check_credential(self, user: str, password: str, salt: str) -> None:
        expected = salted_digest(self._password_digest, salt)
        # Evaluate both comparisons so timing does not reveal which one failed.
        user_ok = hmac.compare_digest(user.encode("utf-8"), self._username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))
        if not (user_ok and pass_ok):
            raise CredentialMismatchError

    def _resolve_address(
        self,
        req_code: int,
        addr: str,
        peer_address: str | None,
    ) -> str | None:
        if req_code == ReqCode.REGISTER_ADDRESS:
            if not addr:
                raise MissingFieldError("addr")
            if not _is_ip_address(addr):
                raise MalformedAddressError(addr)
            return addr
        if req_code == ReqCode.GO_OFFLINE:
            return None
        if req_code == ReqCode.REGISTER_PEER:
            if not peer_address or not _is_ip_address(peer_address):
                logger.error("[verify] invalid peer address: %r", peer_address)
                raise PeerAddressUnavailableError
            return peer_address
        # Unknown codes are rejected by the dispatcher.
        return addr or None
