"""
Challenge issuance.

A challenge is a random salt, the current time and a signature binding the
two. Nothing is stored: the verifier re-derives validity from the triple.
"""

from __future__ import annotations

import base64
import time
from typing import TYPE_CHECKING

from gnudip_gateway.models import Challenge
from gnudip_gateway.signer import random_bytes

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Final

    from gnudip_gateway.signer import Signer


# Default salt size in bytes (12 characters once encoded)
DEFAULT_SALT_SIZE: Final[int] = 9


def signed_message(salt: str, time_str: str) -> bytes:
    """Build the byte string a challenge signature covers."""
    return (salt + time_str).encode("utf-8")


class ChallengeIssuer:
    """
    Issue signed challenges.

    Parameters
    ----------
    signer : Signer
        The process signer.
    salt_size : int, optional
        Salt size in bytes.
    clock : Callable[[], float], optional
        Source of the current Unix time.
    """

    def __init__(
        self,
        signer: Signer,
        *,
        salt_size: int = DEFAULT_SALT_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._signer = signer
        self._salt_size = salt_size
        self._clock = clock

    def issue(self) -> Challenge:
        """
        Issue a new challenge.

        Returns
        -------
        Challenge
            The salt, issue time and signature.

        Raises
        ------
        EntropySourceError
            If the random source is unavailable.
        """
        salt = base64.urlsafe_b64encode(random_bytes(self._salt_size)).decode("ascii")
        issued_at = int(self._clock())
        sign = self._signer.sign(signed_message(salt, str(issued_at)))
        return Challenge(salt=salt, time=issued_at, sign=sign)
