"""
Callback Verification

Verifies the bank's signed authentication callback and extracts the user's
identity from it.

Performs the following checks in order, stopping at the first failure:
1. Load the bank certificate's public key
2. IB_SERVICE is "0001"
3. IB_VERSION is "001"
4. IB_CRC is a valid RSA-SHA1 signature over the length-prefixed
   IB_SND_ID, IB_SERVICE, IB_REC_ID, IB_USER, IB_DATE, IB_TIME,
   IB_USER_INFO, IB_VERSION (exactly this order)
5. IB_USER_INFO carries "ID=<6 digits>-<5 digits>" and "NAME=<full name>"

Signature verification never runs on a payload with the wrong service or
version, and nothing runs when the certificate cannot be loaded.
"""

import logging
import re
from typing import Callable, Mapping, Optional

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from banklink.core.config import BanklinkConfig
from banklink.core.errors import EncodingError, FailureKind, IdentityParseError
from banklink.core.flow.models import (
    CRC,
    PHASE_COMPLETE,
    RESPONSE_SERVICE_ID,
    RESPONSE_SIGNED_FIELDS,
    RESPONSE_VERSION,
    SERVICE,
    USER_INFO,
    VERSION,
    AuthResult,
    Identity,
    ValidationState,
)
from banklink.core.signing import primitive
from banklink.core.signing.encoding import signature_bytes
from banklink.core.signing.keys import load_certificate_public_key
from banklink.core.signing.primitive import SignatureFormatError

logger = logging.getLogger(__name__)


UID_PATTERN = re.compile(r"ID=(\d{6}-\d{5})")
NAME_PATTERN = re.compile(r"NAME=(.+)")


def parse_identity(user_info: Optional[str]) -> Identity:
    """
    Extract the identity from IB_USER_INFO.

    Example:
        >>> parse_identity("ID=123456-12345;NAME=Example User")
        Identity(uid='123456-12345', full_name='Example User')

    Raises:
        IdentityParseError: If the ID or NAME marker is missing
    """
    if not user_info:
        raise IdentityParseError("IB_USER_INFO is empty")

    uid_match = UID_PATTERN.search(user_info)
    if uid_match is None:
        raise IdentityParseError("IB_USER_INFO has no ID=NNNNNN-NNNNN marker")

    name_match = NAME_PATTERN.search(user_info)
    if name_match is None:
        raise IdentityParseError("IB_USER_INFO has no NAME= marker")

    return Identity(uid=uid_match.group(1), full_name=name_match.group(1))


def response_signature_input(params: Mapping[str, str], charset: str = "utf-8") -> bytes:
    """
    Byte string the bank signed, rebuilt from our own copy of the fields.

    Raises:
        EncodingError: If a field is missing or too long
    """
    return signature_bytes([params.get(name) for name in RESPONSE_SIGNED_FIELDS], charset=charset)


def validate_response(
    params: Mapping[str, str],
    config: BanklinkConfig,
    key_loader: Callable[[str], RSAPublicKey] = load_certificate_public_key,
) -> AuthResult:
    """
    Validate a callback payload.

    Args:
        params: Callback parameters (form or query)
        config: Strategy configuration
        key_loader: Loads the bank's public key from config.public_key_file

    Returns:
        AuthResult with the identity on success, or the failure kind and the
        validation state reached before the failing step
    """
    state = ValidationState.START

    def fail(kind: FailureKind, message: str, cause: Optional[BaseException] = None) -> AuthResult:
        logger.warning(f"Callback rejected after {state.value}: {kind.value} - {message}")
        return AuthResult.fail(PHASE_COMPLETE, kind, message, cause, state)

    # 1. Load public key
    try:
        public_key = key_loader(config.public_key_file or "")
    except Exception as e:
        logger.error(f"Failed to load bank certificate from '{config.public_key_file}': {e}")
        return fail(FailureKind.PUBLIC_KEY_LOAD, f"Failed to load public key: {e}", e)
    state = ValidationState.KEY_LOADED

    # 2. Service
    service = params.get(SERVICE)
    if service != RESPONSE_SERVICE_ID:
        return fail(FailureKind.UNSUPPORTED_SERVICE, f"Unsupported IB_SERVICE: {service!r}")
    state = ValidationState.SERVICE_CHECKED

    # 3. Version
    version = params.get(VERSION)
    if version != RESPONSE_VERSION:
        return fail(FailureKind.UNSUPPORTED_VERSION, f"Unsupported IB_VERSION: {version!r}")
    state = ValidationState.VERSION_CHECKED

    # 4. Signature
    missing = [name for name in RESPONSE_SIGNED_FIELDS + (CRC,) if params.get(name) is None]
    if missing:
        return fail(FailureKind.INVALID_SIGNATURE, f"Missing signed fields: {', '.join(missing)}")

    try:
        message = response_signature_input(params, charset=config.charset)
    except EncodingError as e:
        return fail(FailureKind.ENCODING, e.message, e)

    try:
        raw_signature = primitive.decode_signature(params[CRC])
    except SignatureFormatError as e:
        return fail(FailureKind.INVALID_SIGNATURE, str(e), e)

    if not primitive.verify(public_key, raw_signature, message):
        return fail(FailureKind.INVALID_SIGNATURE, "Signature verification failed")
    state = ValidationState.SIGNATURE_VERIFIED

    # 5. Identity
    try:
        identity = parse_identity(params.get(USER_INFO))
    except IdentityParseError as e:
        return fail(FailureKind.IDENTITY_PARSE, e.message, e)

    logger.info("Verified banklink callback")
    logger.debug(f"Verified banklink callback for uid {identity.uid}")
    return AuthResult.ok(identity)
