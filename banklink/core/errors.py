"""
Banklink Error Taxonomy

Every failure of the handshake is classified by a FailureKind whose value is
the stable machine-readable code handed to the caller (it ends up in the
/auth/failure?message=... redirect). Causes are kept for diagnostics only.
"""

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Enumeration of possible handshake failures."""
    PRIVATE_KEY_LOAD = "private_key_load_err"
    PUBLIC_KEY_LOAD = "public_key_load_err"
    UNSUPPORTED_SERVICE = "unsupported_response_service_err"
    UNSUPPORTED_VERSION = "unsupported_response_version_err"
    INVALID_SIGNATURE = "invalid_response_signature_err"
    IDENTITY_PARSE = "identity_parse_err"
    ENCODING = "encoding_err"
    UNKNOWN_BEGIN = "unknown_request_err"
    UNKNOWN_COMPLETE = "unknown_callback_err"


class BanklinkError(Exception):
    """
    Base class for classified handshake failures.

    Attributes:
        kind: FailureKind of this error
        cause: Underlying exception, if any
    """
    kind: FailureKind = FailureKind.UNKNOWN_COMPLETE

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value
        self.cause = cause


class EncodingError(BanklinkError, ValueError):
    """A field cannot be represented with a 3-digit length prefix."""
    kind = FailureKind.ENCODING


class PrivateKeyLoadError(BanklinkError):
    kind = FailureKind.PRIVATE_KEY_LOAD


class PublicKeyLoadError(BanklinkError):
    kind = FailureKind.PUBLIC_KEY_LOAD


class UnsupportedServiceError(BanklinkError):
    kind = FailureKind.UNSUPPORTED_SERVICE


class UnsupportedVersionError(BanklinkError):
    kind = FailureKind.UNSUPPORTED_VERSION


class InvalidSignatureError(BanklinkError):
    kind = FailureKind.INVALID_SIGNATURE


class IdentityParseError(BanklinkError):
    """USER_INFO does not carry the expected ID=/NAME= markers."""
    kind = FailureKind.IDENTITY_PARSE
