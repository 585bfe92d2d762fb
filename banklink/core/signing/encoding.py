"""
Length-Prefixed Field Encoding

Canonical signature input used in both directions of the banklink handshake.

Format:
    {len(field1):03d}{field1}{len(field2):03d}{field2}...

Where:
    - len(field): number of characters in the field, zero-padded to 3 digits
    - no separators between entries

Field order is part of the protocol: reordering changes the bytes and
therefore the signature. Lengths are counted in characters, the signed bytes
are the charset encoding of the whole concatenation.
"""

from typing import Optional, Sequence

from banklink.core.errors import EncodingError


# 3 decimal digits
MAX_FIELD_LENGTH = 999


def prepend_length(field: Optional[str]) -> str:
    """
    Prefix a field with its zero-padded 3-digit length.

    Args:
        field: Field value

    Returns:
        Encoded field, e.g. "009MY_SND_ID"

    Raises:
        EncodingError: If the field is missing or 1000+ characters long

    Example:
        >>> prepend_length("0005")
        '0040005'
    """
    if field is None:
        raise EncodingError("Cannot encode a missing field")
    if not isinstance(field, str):
        raise EncodingError(f"Field must be a string, got {type(field).__name__}")
    if len(field) > MAX_FIELD_LENGTH:
        raise EncodingError(
            f"Field too long for length prefix: {len(field)} characters (max {MAX_FIELD_LENGTH})"
        )
    return f"{len(field):03d}{field}"


def encode_fields(fields: Sequence[Optional[str]]) -> str:
    """Concatenate prepend_length() of each field, in the given order."""
    return "".join(prepend_length(f) for f in fields)


def signature_bytes(fields: Sequence[Optional[str]], charset: str = "utf-8") -> bytes:
    """
    Build the byte string that gets signed or verified.

    Args:
        fields: Field values in protocol order
        charset: Encoding applied to the concatenated string

    Raises:
        EncodingError: If any field cannot be encoded in the charset or prefix
    """
    encoded = encode_fields(fields)
    try:
        return encoded.encode(charset)
    except UnicodeEncodeError as e:
        raise EncodingError(f"Signature input not representable in {charset}: {e}", cause=e) from e
