"""
Test fixtures for the banklink handshake.

Keys are generated once per session: a merchant keypair (we sign requests)
and a bank keypair with a self-signed certificate (the bank signs callbacks).
"""
import pytest

from banklink.core.config import BanklinkConfig, Settings
from banklink.core.flow.models import CRC, RESPONSE_SIGNED_FIELDS
from banklink.core.signing.encoding import signature_bytes
from banklink.core.signing.keys import (
    create_self_signed_certificate,
    generate_keypair,
    save_certificate,
    save_private_key,
)
from banklink.core.signing.primitive import encode_signature, sign


@pytest.fixture(scope="session")
def merchant_keypair():
    """Our own signing keypair."""
    return generate_keypair()


@pytest.fixture(scope="session")
def bank_keypair():
    """The bank's keypair (private half used only to forge test callbacks)."""
    return generate_keypair()


@pytest.fixture(scope="session")
def key_dir(tmp_path_factory):
    return tmp_path_factory.mktemp("keys")


@pytest.fixture(scope="session")
def merchant_key_file(merchant_keypair, key_dir):
    private_key, _ = merchant_keypair
    return str(save_private_key(private_key, key_dir / "request.private.pem"))


@pytest.fixture(scope="session")
def bank_certificate_file(bank_keypair, key_dir):
    private_key, _ = bank_keypair
    certificate = create_self_signed_certificate(private_key, common_name="SEBUB")
    return str(save_certificate(certificate, key_dir / "response.public.pem"))


@pytest.fixture
def config(merchant_key_file, bank_certificate_file):
    """Strategy configuration pointing at the generated key files."""
    return BanklinkConfig(
        snd_id="MY_SND_ID",
        rec_id="MY_REC_ID",
        private_key_file=merchant_key_file,
        public_key_file=bank_certificate_file,
    )


@pytest.fixture
def settings(merchant_key_file, bank_certificate_file):
    return Settings(
        private_key_file=merchant_key_file,
        public_key_file=bank_certificate_file,
        snd_id="MY_SND_ID",
        rec_id="MY_REC_ID",
    )


@pytest.fixture
def sign_callback(bank_keypair):
    """Return a function that adds a valid bank IB_CRC to callback params."""
    private_key, _ = bank_keypair

    def _sign(params, charset="utf-8"):
        message = signature_bytes([params[name] for name in RESPONSE_SIGNED_FIELDS], charset=charset)
        signed = dict(params)
        signed[CRC] = encode_signature(sign(private_key, message))
        return signed

    return _sign


@pytest.fixture
def callback_fields():
    """Unsigned callback fields as the bank sends them."""
    return {
        "IB_SND_ID": "SEBUB",
        "IB_SERVICE": "0001",
        "IB_REC_ID": "LVTC",
        "IB_USER": "123456-12345",
        "IB_DATE": "26.02.2014",
        "IB_TIME": "13:53:31",
        "IB_USER_INFO": "ID=123456-12345;NAME=Example User",
        "IB_VERSION": "001",
        "IB_LANG": "LAT",
    }


@pytest.fixture
def valid_callback(callback_fields, sign_callback):
    """Callback params with a valid signature."""
    return sign_callback(callback_fields)
