"""Shared certificate fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import AuthorityInformationAccessOID, NameOID


def make_certificate(
    subject_cn: str,
    public_key,
    issuer_cn: str,
    issuer_key,
    extensions=(),
    ca: bool = False,
) -> x509.Certificate:
    """Build a certificate signed by issuer_key."""
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)]))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    )
    for extension in extensions:
        builder = builder.add_extension(extension, critical=False)
    return builder.sign(issuer_key, hashes.SHA256())


def aia(*descriptions) -> x509.AuthorityInformationAccess:
    return x509.AuthorityInformationAccess(
        [x509.AccessDescription(method, location) for method, location in descriptions]
    )


@pytest.fixture(scope="session")
def ca_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ca_cert(ca_key):
    return make_certificate("Test CA", ca_key.public_key(), "Test CA", ca_key, ca=True)


@pytest.fixture(scope="session")
def leaf_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def leaf_cert(leaf_key, ca_key):
    """End-entity certificate advertising two OCSP responders and a CA issuers URL."""
    return make_certificate(
        "signer.example.com",
        leaf_key.public_key(),
        "Test CA",
        ca_key,
        extensions=[
            aia(
                (
                    AuthorityInformationAccessOID.CA_ISSUERS,
                    x509.UniformResourceIdentifier("http://ca.example.com/ca.crt"),
                ),
                (
                    AuthorityInformationAccessOID.OCSP,
                    x509.UniformResourceIdentifier("http://ocsp1.example.com"),
                ),
                (
                    AuthorityInformationAccessOID.OCSP,
                    x509.UniformResourceIdentifier("http://ocsp2.example.com"),
                ),
            )
        ],
    )


@pytest.fixture(scope="session")
def plain_cert(leaf_key, ca_key):
    """End-entity certificate without an AIA extension."""
    return make_certificate("plain.example.com", leaf_key.public_key(), "Test CA", ca_key)


@pytest.fixture(scope="session")
def requestor_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def requestor_cert(requestor_key, ca_key):
    return make_certificate("OCSP Requestor", requestor_key.public_key(), "Test CA", ca_key)
