"""
Outbound Authentication Request

Builds the signed IB_* parameter set that the user's browser POSTs to the
bank. Only IB_SND_ID and IB_SERVICE are covered by the signature:

    IB_CRC = base64(RSA-SHA1(prepend_length(SND_ID) + prepend_length("0005")))
"""

import logging
from typing import Callable

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from banklink.core.config import BanklinkConfig
from banklink.core.errors import PrivateKeyLoadError
from banklink.core.flow.models import (
    AUTH_SERVICE_ID,
    CRC,
    LANG,
    SERVICE,
    SND_ID,
    OutboundRequest,
)
from banklink.core.signing.encoding import encode_fields, signature_bytes
from banklink.core.signing.keys import load_private_key
from banklink.core.signing.primitive import encode_signature, sign

logger = logging.getLogger(__name__)


def request_signature_input(snd_id: str, service: str = AUTH_SERVICE_ID) -> str:
    """
    Signature input of the outbound request.

    Example:
        >>> request_signature_input("MY_SND_ID")
        '009MY_SND_ID0040005'
    """
    return encode_fields([snd_id, service])


def build_request(config: BanklinkConfig, private_key: RSAPrivateKey) -> OutboundRequest:
    """
    Assemble and sign the outbound parameter set.

    Args:
        config: Strategy configuration
        private_key: Our RSA signing key

    Returns:
        OutboundRequest with ordered fields and the bank's action URL

    Raises:
        EncodingError: If the sender id is 1000+ characters long
    """
    message = signature_bytes([config.snd_id, AUTH_SERVICE_ID], charset=config.charset)
    crc = encode_signature(sign(private_key, message), line_width=config.signature_line_width)

    fields = {
        SND_ID: config.snd_id,
        SERVICE: AUTH_SERVICE_ID,
        LANG: config.lang,
        CRC: crc,
    }
    return OutboundRequest(fields=fields, action_url=config.site)


def begin_request(
    config: BanklinkConfig,
    key_loader: Callable[[str], RSAPrivateKey] = load_private_key,
) -> OutboundRequest:
    """
    Load the signing key and build the outbound request.

    Raises:
        PrivateKeyLoadError: If the key cannot be loaded (signing is not attempted)
        EncodingError: If a signed field is too long
    """
    try:
        private_key = key_loader(config.private_key_file or "")
    except Exception as e:
        logger.error(f"Failed to load private key from '{config.private_key_file}': {e}")
        raise PrivateKeyLoadError(f"Failed to load private key: {e}", cause=e) from e

    request = build_request(config, private_key)
    logger.debug(f"Built authentication request for sender {config.snd_id}")
    return request
