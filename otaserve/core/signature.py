"""Code signing of wire documents into an ``expo-signature`` header value."""

from __future__ import annotations

import asyncio
import logging

from otaserve.bridge.crypto_bridge import load_private_key, sign_with_key
from otaserve.bridge.structured_fields import serialize_dictionary
from otaserve.core.errors import SigningKeyMissing

logger = logging.getLogger(__name__)

SIGNATURE_KEY_ID = "main"


class SignatureProvider:
    """Signs the exact string that will be transmitted.

    Parameters
    ----------
    private_key_pem:
        PEM RSA private key, or ``None`` when the server was started
        without one. Parsed here, so a bad key fails at startup.

    Raises
    ------
    SigningKeyError
        If *private_key_pem* is given but is not a usable RSA private key.
    """

    def __init__(self, private_key_pem: str | None) -> None:
        self._key = load_private_key(private_key_pem) if private_key_pem else None

    @property
    def is_configured(self) -> bool:
        return self._key is not None

    async def sign(self, body: str) -> str:
        """Return ``sig="<base64>", keyid="main"`` for *body*.

        Raises
        ------
        SigningKeyMissing
            If no private key is configured.
        """
        if self._key is None:
            raise SigningKeyMissing(
                "Code signing requested but no key supplied when starting server."
            )
        signature = await asyncio.to_thread(sign_with_key, body.encode("utf-8"), self._key)
        logger.debug("Signed %d-character document", len(body))
        return serialize_dictionary({"sig": signature, "keyid": SIGNATURE_KEY_ID})
