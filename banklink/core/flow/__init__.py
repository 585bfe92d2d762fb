"""
Banklink Handshake Flow

Outbound request signing, callback verification and the strategy that
dispatches between them.
"""

from banklink.core.flow.models import (
    AUTH_SERVICE_ID,
    RESPONSE_SIGNED_FIELDS,
    AuthResult,
    Identity,
    OutboundRequest,
    ValidationState,
)
from banklink.core.flow.request import build_request, begin_request, request_signature_input
from banklink.core.flow.response import parse_identity, validate_response
from banklink.core.flow.controller import SebStrategy

__all__ = [
    "AUTH_SERVICE_ID",
    "RESPONSE_SIGNED_FIELDS",
    "AuthResult",
    "Identity",
    "OutboundRequest",
    "ValidationState",
    "build_request",
    "begin_request",
    "request_signature_input",
    "parse_identity",
    "validate_response",
    "SebStrategy",
]
