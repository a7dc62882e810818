"""
Keyed signatures for GnuDIP challenges.

A `Signer` owns the process-lifetime signing key. Challenges are signed and
verified with the same instance, so a restart invalidates every outstanding
challenge.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import TYPE_CHECKING

from gnudip_gateway.errors import EntropySourceError

if TYPE_CHECKING:
    from typing import Final


# Length of the printable signature (base32 characters)
SIGNATURE_LENGTH: Final[int] = 20

# Default signing key size in bytes
DEFAULT_KEY_SIZE: Final[int] = 10


def random_bytes(size: int) -> bytes:
    """
    Read `size` bytes from the operating system random source.

    Parameters
    ----------
    size : int
        Number of bytes to read.

    Returns
    -------
    bytes
        Random bytes.

    Raises
    ------
    EntropySourceError
        If the random source is unavailable.
    """
    try:
        return secrets.token_bytes(size)
    except OSError as e:
        raise EntropySourceError from e


class Signer:
    """
    HMAC-SHA256 signer with a fixed key.

    The digest is base32-encoded and truncated to `SIGNATURE_LENGTH`
    characters so it can travel in URLs and HTML attributes unchanged.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        """
        Initialize a Signer.

        Parameters
        ----------
        key : bytes
            The secret signing key.
        """
        if not key:
            msg = "Signing key must not be empty"
            raise ValueError(msg)
        self._key = bytes(key)

    @classmethod
    def generate(cls, key_size: int = DEFAULT_KEY_SIZE) -> Signer:
        """
        Create a signer with a freshly generated random key.

        Parameters
        ----------
        key_size : int, optional
            Key size in bytes.

        Returns
        -------
        Signer
            A new signer.

        Raises
        ------
        EntropySourceError
            If the random source is unavailable.
        """
        return cls(random_bytes(key_size))

    def sign(self, message: bytes) -> str:
        """
        Compute the printable signature of a message.

        Parameters
        ----------
        message : bytes
            The message to sign.

        Returns
        -------
        str
            A `SIGNATURE_LENGTH` character base32 signature.
        """
        digest = hmac.new(self._key, message, hashlib.sha256).digest()
        return base64.b32encode(digest).decode("ascii")[:SIGNATURE_LENGTH]

    def verify(self, message: bytes, signature: str) -> bool:
        """
        Check a signature in constant time.

        Parameters
        ----------
        message : bytes
            The signed message.
        signature : str
            The signature presented by the client.

        Returns
        -------
        bool
            True if the signature matches.
        """
        return hmac.compare_digest(
            self.sign(message).encode("ascii"),
            signature.encode("utf-8"),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key=<redacted>)"
