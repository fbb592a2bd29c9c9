"""Crypto bridge — RSA-SHA256 code signing via ``cryptography``.

Bridge boundary
---------------
Clients verify manifests and directives with RSA PKCS#1 v1.5 over SHA-256
against a certificate they embed. The server holds the matching private
key as a PEM file; where it lives is deployment configuration
(``ServerConfig.private_key_path``), read once when the HTTP app is
created.

Signatures are base64 (standard alphabet, padded) of the raw RSA output.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

logger = logging.getLogger(__name__)

DEFAULT_KEY_SIZE = 2048


class SigningKeyError(ValueError):
    """The configured code signing key is not a usable RSA private key."""


def read_private_key_pem(path: Path | None) -> str | None:
    """Return the PEM text at *path*, or ``None`` when no path is configured."""
    if path is None:
        return None
    pem = Path(path).resolve().read_text(encoding="utf-8")
    logger.debug("Loaded code signing key from %s", path)
    return pem


def load_private_key(private_key_pem: str) -> rsa.RSAPrivateKey:
    """Parse an unencrypted PEM RSA private key.

    Raises
    ------
    SigningKeyError
        If the PEM is malformed, encrypted, or holds a non-RSA key.
    """
    try:
        key = serialization.load_pem_private_key(
            private_key_pem.encode("utf-8"), password=None
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SigningKeyError(f"Code signing key could not be loaded: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise SigningKeyError("Code signing key must be an RSA private key")
    return key


def generate_keypair(key_size: int = DEFAULT_KEY_SIZE) -> tuple[str, str]:
    """Generate an RSA key pair.

    Returns
    -------
    tuple[str, str]
        ``(private_key_pem, public_key_pem)`` — PKCS#8 and SubjectPublicKeyInfo.
    """
    key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_pem, public_pem


def sign_data(data: bytes, private_key_pem: str) -> str:
    """Sign *data* with RSA-SHA256 and return the base64 signature.

    Parameters
    ----------
    data:
        The exact bytes that will be transmitted (UTF-8 of the wire JSON).
    private_key_pem:
        PEM-encoded, unencrypted RSA private key.
    """
    return sign_with_key(data, load_private_key(private_key_pem))


def sign_with_key(data: bytes, key: rsa.RSAPrivateKey) -> str:
    signature = key.sign(data, padding.PKCS1v15(), hashes.SHA256())
    return base64.b64encode(signature).decode("ascii")


def verify_data(data: bytes, signature: str, public_key_pem: str) -> bool:
    """Check a base64 RSA-SHA256 *signature* over *data*.

    Returns ``False`` for an empty, malformed or non-matching signature;
    never raises for bad input.
    """
    if not signature:
        return False
    try:
        key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
        if not isinstance(key, rsa.RSAPublicKey):
            return False
        key.verify(
            base64.b64decode(signature, validate=True),
            data,
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True
    except (InvalidSignature, ValueError, binascii.Error):
        return False

