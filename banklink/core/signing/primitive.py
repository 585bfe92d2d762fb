"""
RSA-SHA1 Signatures

Sign/verify over raw byte strings (RSA PKCS#1 v1.5 with SHA-1, the only
scheme the bank speaks) and the base64 wire form of the IB_CRC field.
"""

import base64
import binascii

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

import logging

logger = logging.getLogger(__name__)


# Line width of the classic "encode64" base64 format
CLASSIC_LINE_WIDTH = 60


class SignatureFormatError(ValueError):
    """IB_CRC is not valid base64."""


def sign(private_key: RSAPrivateKey, message: bytes) -> bytes:
    """
    Sign a message with RSA PKCS#1 v1.5 / SHA-1.

    Deterministic: the same key and message always give the same signature.
    """
    return private_key.sign(message, padding.PKCS1v15(), hashes.SHA1())


def verify(public_key: RSAPublicKey, signature: bytes, message: bytes) -> bool:
    """
    Check an RSA-SHA1 signature.

    Returns:
        True if the signature is valid, False otherwise (including malformed input)
    """
    try:
        public_key.verify(signature, message, padding.PKCS1v15(), hashes.SHA1())
    except InvalidSignature:
        return False
    except (ValueError, TypeError) as e:
        logger.debug(f"Signature verification error: {e}")
        return False
    return True


def encode_signature(signature: bytes, line_width: int = CLASSIC_LINE_WIDTH) -> str:
    """
    Base64-encode a raw signature for the wire.

    Args:
        signature: Raw signature bytes
        line_width: Wrap into lines of this many characters, each ending in
            a newline. 0 disables wrapping.

    Example:
        >>> encode_signature(b"abc", line_width=0)
        'YWJj'
    """
    encoded = base64.b64encode(signature).decode("ascii")
    if line_width <= 0:
        return encoded
    return "".join(
        encoded[i:i + line_width] + "\n" for i in range(0, len(encoded), line_width)
    )


def decode_signature(value: str) -> bytes:
    """
    Decode a base64 IB_CRC value, ignoring line breaks and other whitespace.

    Raises:
        SignatureFormatError: If the value is not valid base64
    """
    compact = "".join(value.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SignatureFormatError(f"Invalid base64 signature: {e}") from e
