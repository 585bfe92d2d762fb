"""
SEB Banklink Strategy

Entry point for the two phases of the handshake:

- begin(): sign the outbound request that sends the user to the bank
- complete(params): verify the bank's callback and return the identity

Both phases always return an AuthResult; no exception escapes. Failures
already classified by the flow components keep their kind, anything else is
reported as unknown_request_err (begin) or unknown_callback_err (complete).
"""

import logging
from typing import Callable, Mapping, Optional

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from banklink.core.config import BanklinkConfig
from banklink.core.errors import BanklinkError, FailureKind
from banklink.core.flow.models import PHASE_BEGIN, PHASE_COMPLETE, AuthResult
from banklink.core.flow.request import begin_request
from banklink.core.flow.response import validate_response
from banklink.core.signing.keys import load_certificate_public_key, load_private_key

logger = logging.getLogger(__name__)


class SebStrategy:
    """
    Request/callback handling for one configured merchant.

    The configuration is immutable and shared read-only between calls; key
    material is loaded fresh on every call, so concurrent calls are independent.
    """

    name = "seb"

    def __init__(
        self,
        config: BanklinkConfig,
        private_key_loader: Optional[Callable[[str], RSAPrivateKey]] = None,
        public_key_loader: Optional[Callable[[str], RSAPublicKey]] = None,
    ):
        self.config = config
        self._private_key_loader = private_key_loader or load_private_key
        self._public_key_loader = public_key_loader or load_certificate_public_key

    def callback_path(self, path_prefix: str = "/auth") -> str:
        return f"{path_prefix.rstrip('/')}/{self.name}/callback"

    def callback_url(self, full_host: str, script_name: str = "", path_prefix: str = "/auth") -> str:
        """Absolute URL the bank returns the user to."""
        return full_host.rstrip("/") + script_name + self.callback_path(path_prefix)

    def begin(self) -> AuthResult:
        """Run the request phase."""
        try:
            request = begin_request(self.config, key_loader=self._private_key_loader)
        except BanklinkError as e:
            logger.warning(f"Begin phase failed: {e.kind.value} - {e.message}")
            return AuthResult.from_error(PHASE_BEGIN, e)
        except Exception as e:
            logger.exception(f"Unexpected error in begin phase: {e}")
            return AuthResult.fail(PHASE_BEGIN, FailureKind.UNKNOWN_BEGIN, str(e), e)

        logger.info(f"Begin phase succeeded for sender {self.config.snd_id}")
        return AuthResult.begun(request)

    def complete(self, params: Mapping[str, str]) -> AuthResult:
        """Run the callback phase."""
        try:
            return validate_response(params, self.config, key_loader=self._public_key_loader)
        except BanklinkError as e:
            logger.warning(f"Complete phase failed: {e.kind.value} - {e.message}")
            return AuthResult.from_error(PHASE_COMPLETE, e)
        except Exception as e:
            logger.exception(f"Unexpected error in complete phase: {e}")
            return AuthResult.fail(PHASE_COMPLETE, FailureKind.UNKNOWN_COMPLETE, str(e), e)
