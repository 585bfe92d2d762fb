"""
RSA Key Management

Loading of the merchant signing key and the bank certificate, plus key
generation and serialization helpers for development and tests.
Uses the cryptography library for all cryptographic operations.
"""

import datetime
import os
from pathlib import Path
from typing import Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.x509.oid import NameOID


PathLike = Union[str, Path]

PEM_MARKER = b"-----BEGIN"


def generate_keypair(key_size: int = 2048) -> Tuple[RSAPrivateKey, RSAPublicKey]:
    """
    Generate a new RSA keypair.

    Returns:
        Tuple of (private_key, public_key)
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    return private_key, private_key.public_key()


def private_key_to_pem(private_key: RSAPrivateKey) -> bytes:
    """
    Serialize a private key to unencrypted PKCS#8 PEM.

    WARNING: Private key bytes are sensitive! Handle with care.
    """
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def create_self_signed_certificate(
    private_key: RSAPrivateKey,
    common_name: str = "banklink-test",
    days: int = 365,
) -> x509.Certificate:
    """
    Create a self-signed certificate wrapping the key's public half.

    The bank distributes its verification key as a certificate, so tests and
    local setups need one too.
    """
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=days))
        .sign(private_key, hashes.SHA256())
    )


def certificate_to_pem(certificate: x509.Certificate) -> bytes:
    return certificate.public_bytes(serialization.Encoding.PEM)


def save_private_key(private_key: RSAPrivateKey, path: PathLike) -> Path:
    """Write a private key as PEM, readable by the owner only."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(private_key_to_pem(private_key))
    os.chmod(path, 0o600)  # Owner read/write only
    return path


def save_certificate(certificate: x509.Certificate, path: PathLike) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(certificate_to_pem(certificate))
    return path


def load_private_key(path: PathLike) -> RSAPrivateKey:
    """
    Load an RSA private key from a PEM or DER file.

    Args:
        path: Path to private key file

    Returns:
        RSA private key object

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If key is invalid or not RSA
    """
    path = Path(path)
    data = path.read_bytes()

    try:
        if PEM_MARKER in data:
            private_key = serialization.load_pem_private_key(data, password=None)
        else:
            private_key = serialization.load_der_private_key(data, password=None)
    except Exception as e:
        raise ValueError(f"Failed to load private key from {path}: {e}") from e

    if not isinstance(private_key, RSAPrivateKey):
        raise ValueError(f"Not an RSA key: {type(private_key).__name__}")
    return private_key


def load_certificate_public_key(path: PathLike) -> RSAPublicKey:
    """
    Load the RSA public key from an X.509 certificate file (PEM or DER).

    Args:
        path: Path to certificate file

    Returns:
        RSA public key object

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If certificate is invalid or its key is not RSA
    """
    path = Path(path)
    data = path.read_bytes()

    try:
        if PEM_MARKER in data:
            certificate = x509.load_pem_x509_certificate(data)
        else:
            certificate = x509.load_der_x509_certificate(data)
    except Exception as e:
        raise ValueError(f"Failed to load certificate from {path}: {e}") from e

    public_key = certificate.public_key()
    if not isinstance(public_key, RSAPublicKey):
        raise ValueError(f"Certificate key is not RSA: {type(public_key).__name__}")
    return public_key
