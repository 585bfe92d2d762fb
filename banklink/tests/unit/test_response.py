"""
Unit tests for callback verification.

Covers the ordered checks (key, service, version, signature, identity) and
that a failed check stops all later ones.
"""
import logging
from dataclasses import replace
from unittest.mock import Mock, patch

import pytest

from banklink.core.errors import FailureKind, IdentityParseError
from banklink.core.flow.models import RESPONSE_SIGNED_FIELDS, Identity, ValidationState
from banklink.core.flow.response import parse_identity, response_signature_input, validate_response
from banklink.core.signing.encoding import signature_bytes


class TestParseIdentity:
    """Test parse_identity()."""

    def test_example_user(self):
        identity = parse_identity("ID=123456-12345;NAME=Example User")
        assert identity == Identity(uid="123456-12345", full_name="Example User")

    def test_name_before_id(self):
        identity = parse_identity("NAME=Jānis Bērziņš;ID=010101-10000")
        assert identity.uid == "010101-10000"
        # NAME runs to the end of the line
        assert identity.full_name == "Jānis Bērziņš;ID=010101-10000"

    @pytest.mark.parametrize("user_info", [
        "NAME=Example User",
        "ID=12345-12345;NAME=Example User",
        "ID=123456_12345;NAME=Example User",
        "",
        None,
    ])
    def test_missing_or_malformed_uid(self, user_info):
        with pytest.raises(IdentityParseError):
            parse_identity(user_info)

    def test_missing_name(self):
        with pytest.raises(IdentityParseError):
            parse_identity("ID=123456-12345")


class TestValidateResponse:
    """Test validate_response()."""

    def test_valid_callback(self, valid_callback, config):
        result = validate_response(valid_callback, config)

        assert result.success is True
        assert result.identity == Identity(uid="123456-12345", full_name="Example User")
        assert result.state == ValidationState.IDENTITY_EXTRACTED
        assert result.kind is None

    def test_uid_not_logged_at_info(self, valid_callback, config, caplog):
        with caplog.at_level(logging.INFO, logger="banklink.core.flow.response"):
            assert validate_response(valid_callback, config).success is True

        assert any("Verified banklink callback" in r.getMessage() for r in caplog.records)
        assert all("123456-12345" not in r.getMessage() for r in caplog.records)

    def test_uid_logged_at_debug(self, valid_callback, config, caplog):
        with caplog.at_level(logging.DEBUG, logger="banklink.core.flow.response"):
            validate_response(valid_callback, config)

        debug = [r for r in caplog.records if r.levelno == logging.DEBUG]
        assert any("123456-12345" in r.getMessage() for r in debug)

    @pytest.mark.parametrize("change, state", [
        ({"IB_SERVICE": "0009"}, ValidationState.KEY_LOADED),
        ({"IB_VERSION": "008"}, ValidationState.SERVICE_CHECKED),
        ({"IB_CRC": "invalid signature"}, ValidationState.VERSION_CHECKED),
    ])
    def test_failed_result_keeps_last_state(self, valid_callback, config, change, state):
        result = validate_response({**valid_callback, **change}, config)

        assert result.success is False
        assert result.state == state

    def test_unwrapped_crc_accepted(self, valid_callback, config):
        valid_callback["IB_CRC"] = valid_callback["IB_CRC"].replace("\n", "")
        assert validate_response(valid_callback, config).success is True

    def test_unsigned_fields_ignored(self, valid_callback, config):
        valid_callback["IB_LANG"] = "ENG"
        valid_callback["IB_EXTRA"] = "anything"
        assert validate_response(valid_callback, config).success is True

    def test_missing_certificate(self, valid_callback, config):
        result = validate_response(valid_callback, replace(config, public_key_file="missing-public-key-file.pem"))

        assert result.success is False
        assert result.kind == FailureKind.PUBLIC_KEY_LOAD
        assert result.code == "public_key_load_err"
        assert result.state == ValidationState.START
        assert isinstance(result.cause, FileNotFoundError)

    def test_missing_certificate_never_verifies(self, valid_callback, config):
        with patch("banklink.core.flow.response.primitive.verify") as mock_verify:
            result = validate_response(valid_callback, replace(config, public_key_file=None))

        assert result.kind == FailureKind.PUBLIC_KEY_LOAD
        mock_verify.assert_not_called()

    def test_unsupported_service(self, callback_fields, sign_callback, config):
        """Wrong service fails even though the signature covers it correctly."""
        params = sign_callback({**callback_fields, "IB_SERVICE": "0009"})
        result = validate_response(params, config)

        assert result.kind == FailureKind.UNSUPPORTED_SERVICE
        assert result.code == "unsupported_response_service_err"
        assert result.state == ValidationState.KEY_LOADED

    def test_unsupported_service_never_verifies(self, valid_callback, config):
        valid_callback["IB_SERVICE"] = "0009"
        with patch("banklink.core.flow.response.primitive.verify") as mock_verify:
            result = validate_response(valid_callback, config)

        assert result.kind == FailureKind.UNSUPPORTED_SERVICE
        mock_verify.assert_not_called()

    def test_missing_service(self, valid_callback, config):
        del valid_callback["IB_SERVICE"]
        assert validate_response(valid_callback, config).kind == FailureKind.UNSUPPORTED_SERVICE

    def test_unsupported_version(self, valid_callback, config):
        valid_callback["IB_VERSION"] = "008"
        result = validate_response(valid_callback, config)

        assert result.kind == FailureKind.UNSUPPORTED_VERSION
        assert result.code == "unsupported_response_version_err"
        assert result.state == ValidationState.SERVICE_CHECKED

    def test_service_checked_before_version(self, valid_callback, config):
        valid_callback["IB_SERVICE"] = "0009"
        valid_callback["IB_VERSION"] = "008"
        assert validate_response(valid_callback, config).kind == FailureKind.UNSUPPORTED_SERVICE

    def test_missing_version(self, valid_callback, config):
        del valid_callback["IB_VERSION"]
        assert validate_response(valid_callback, config).kind == FailureKind.UNSUPPORTED_VERSION

    def test_invalid_signature_text(self, valid_callback, config):
        valid_callback["IB_CRC"] = "invalid signature"
        result = validate_response(valid_callback, config)

        assert result.kind == FailureKind.INVALID_SIGNATURE
        assert result.code == "invalid_response_signature_err"
        assert result.state == ValidationState.VERSION_CHECKED

    def test_non_base64_signature(self, valid_callback, config):
        valid_callback["IB_CRC"] = "%%%"
        assert validate_response(valid_callback, config).kind == FailureKind.INVALID_SIGNATURE

    @pytest.mark.parametrize("field", ["IB_SND_ID", "IB_REC_ID", "IB_USER", "IB_DATE", "IB_TIME", "IB_USER_INFO", "IB_CRC"])
    def test_missing_signed_field(self, valid_callback, config, field):
        del valid_callback[field]
        assert validate_response(valid_callback, config).kind == FailureKind.INVALID_SIGNATURE

    def test_tampered_field(self, valid_callback, config):
        valid_callback["IB_USER_INFO"] = "ID=999999-99999;NAME=Someone Else"
        assert validate_response(valid_callback, config).kind == FailureKind.INVALID_SIGNATURE

    def test_signed_by_other_key(self, callback_fields, merchant_keypair, config):
        from banklink.core.signing.primitive import encode_signature, sign

        private_key, _ = merchant_keypair
        message = signature_bytes([callback_fields[name] for name in RESPONSE_SIGNED_FIELDS])
        params = {**callback_fields, "IB_CRC": encode_signature(sign(private_key, message))}

        assert validate_response(params, config).kind == FailureKind.INVALID_SIGNATURE

    def test_field_order_matters(self, callback_fields, bank_keypair, config):
        """A signature over a permuted field order must not verify."""
        from banklink.core.signing.primitive import encode_signature, sign

        private_key, _ = bank_keypair
        permuted = list(reversed(RESPONSE_SIGNED_FIELDS))
        message = signature_bytes([callback_fields[name] for name in permuted])
        params = {**callback_fields, "IB_CRC": encode_signature(sign(private_key, message))}

        assert message != response_signature_input(callback_fields)
        assert validate_response(params, config).kind == FailureKind.INVALID_SIGNATURE

    def test_overlong_field(self, callback_fields, config):
        params = {**callback_fields, "IB_USER_INFO": "ID=123456-12345;NAME=" + "x" * 1000, "IB_CRC": "AAAA"}
        result = validate_response(params, config)

        assert result.kind == FailureKind.ENCODING
        assert result.state == ValidationState.VERSION_CHECKED

    def test_identity_parse_failure_after_valid_signature(self, callback_fields, sign_callback, config):
        params = sign_callback({**callback_fields, "IB_USER_INFO": "NAME=Example User"})
        result = validate_response(params, config)

        assert result.kind == FailureKind.IDENTITY_PARSE
        assert result.code == "identity_parse_err"
        assert result.state == ValidationState.SIGNATURE_VERIFIED

    def test_non_ascii_name(self, callback_fields, sign_callback, config):
        params = sign_callback({**callback_fields, "IB_USER_INFO": "ID=123456-12345;NAME=Jānis Bērziņš"})
        result = validate_response(params, config)

        assert result.success is True
        assert result.identity.full_name == "Jānis Bērziņš"

    def test_charset_must_match_signer(self, callback_fields, sign_callback, config):
        fields = {**callback_fields, "IB_USER_INFO": "ID=123456-12345;NAME=Jānis Bērziņš"}
        params = sign_callback(fields, charset="iso-8859-13")

        assert validate_response(params, config).kind == FailureKind.INVALID_SIGNATURE
        assert validate_response(params, replace(config, charset="iso-8859-13")).success is True

    def test_key_loader_receives_configured_path(self, valid_callback, config, bank_keypair):
        _, public_key = bank_keypair
        loader = Mock(return_value=public_key)

        result = validate_response(valid_callback, config, key_loader=loader)

        assert result.success is True
        loader.assert_called_once_with(config.public_key_file)
