"""
Banklink Signature Module

RSA-SHA1 signing over length-prefixed field concatenations, as used by the
SEB banklink authentication handshake in both directions.
"""

from banklink.core.signing.encoding import (
    prepend_length,
    encode_fields,
    signature_bytes,
)
from banklink.core.signing.keys import (
    generate_keypair,
    load_private_key,
    load_certificate_public_key,
)
from banklink.core.signing.primitive import (
    sign,
    verify,
    encode_signature,
    decode_signature,
    SignatureFormatError,
)

__all__ = [
    # Encoding
    "prepend_length",
    "encode_fields",
    "signature_bytes",
    # Keys
    "generate_keypair",
    "load_private_key",
    "load_certificate_public_key",
    # Signatures
    "sign",
    "verify",
    "encode_signature",
    "decode_signature",
    "SignatureFormatError",
]
