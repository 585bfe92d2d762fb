"""
Handshake Data Model

Wire field names, protocol constants and the value objects passed between
the flow components and their callers. All of them live for one request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from banklink.core.errors import BanklinkError, FailureKind


# Service code of the outbound authentication request
AUTH_SERVICE_ID = "0005"

# Only supported callback service/version
RESPONSE_SERVICE_ID = "0001"
RESPONSE_VERSION = "001"

SND_ID = "IB_SND_ID"
SERVICE = "IB_SERVICE"
LANG = "IB_LANG"
CRC = "IB_CRC"
REC_ID = "IB_REC_ID"
USER = "IB_USER"
DATE = "IB_DATE"
TIME = "IB_TIME"
USER_INFO = "IB_USER_INFO"
VERSION = "IB_VERSION"

# Signed callback fields, in signature order
RESPONSE_SIGNED_FIELDS = (SND_ID, SERVICE, REC_ID, USER, DATE, TIME, USER_INFO, VERSION)

PHASE_BEGIN = "begin"
PHASE_COMPLETE = "complete"


class ValidationState(Enum):
    """Progress of callback validation. Steps only ever move forward; a failed
    result keeps the last state reached before the failing step."""
    START = "start"
    KEY_LOADED = "key_loaded"
    SERVICE_CHECKED = "service_checked"
    VERSION_CHECKED = "version_checked"
    SIGNATURE_VERIFIED = "signature_verified"
    IDENTITY_EXTRACTED = "identity_extracted"


@dataclass(frozen=True)
class Identity:
    """Verified bank customer."""
    uid: str
    full_name: str


@dataclass(frozen=True)
class OutboundRequest:
    """
    Signed parameter set to POST to the bank.

    Attributes:
        fields: IB_SND_ID, IB_SERVICE, IB_LANG, IB_CRC in this order
        action_url: Bank authentication page
    """
    fields: Dict[str, str]
    action_url: str


@dataclass
class AuthResult:
    """
    Outcome of one begin/complete call.

    Attributes:
        success: Whether the phase succeeded
        phase: "begin" or "complete"
        identity: Verified identity (complete phase only)
        request: Signed outbound request (begin phase only)
        kind: FailureKind if the phase failed
        message: Human-readable failure description
        cause: Underlying exception, for diagnostics only
        state: Last validation state reached (complete phase only)
    """
    success: bool
    phase: str
    identity: Optional[Identity] = None
    request: Optional[OutboundRequest] = None
    kind: Optional[FailureKind] = None
    message: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, repr=False)
    state: Optional[ValidationState] = None

    @classmethod
    def begun(cls, request: OutboundRequest) -> "AuthResult":
        """Create a successful begin result."""
        return cls(success=True, phase=PHASE_BEGIN, request=request)

    @classmethod
    def ok(cls, identity: Identity) -> "AuthResult":
        """Create a successful complete result."""
        return cls(
            success=True,
            phase=PHASE_COMPLETE,
            identity=identity,
            state=ValidationState.IDENTITY_EXTRACTED,
        )

    @classmethod
    def fail(
        cls,
        phase: str,
        kind: FailureKind,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
        state: Optional[ValidationState] = None,
    ) -> "AuthResult":
        """Create a failed result."""
        return cls(
            success=False,
            phase=phase,
            kind=kind,
            message=message or kind.value,
            cause=cause,
            state=state,
        )

    @classmethod
    def from_error(cls, phase: str, error: BanklinkError, state: Optional[ValidationState] = None) -> "AuthResult":
        return cls.fail(phase, error.kind, error.message, error.cause, state)

    @property
    def code(self) -> Optional[str]:
        """Stable failure code, e.g. "invalid_response_signature_err"."""
        return self.kind.value if self.kind else None

    def to_auth_hash(self, provider: str = "seb") -> Dict[str, Any]:
        """Identity in the shape handed to the identity consumer."""
        if not self.success or self.identity is None:
            raise ValueError("No verified identity in a failed or begin-phase result")
        return {
            "provider": provider,
            "uid": self.identity.uid,
            "info": {"full_name": self.identity.full_name},
        }
