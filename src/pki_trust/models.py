"""Data models for OCSP and timestamp protocol exchanges."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from pki_trust.digest import DigestMethod

SigningKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]


class CertificateStatus(str, Enum):
    """Revocation status reported by an OCSP responder."""

    GOOD = "GOOD"
    REVOKED = "REVOKED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class CertificateIdentifier:
    """OCSP CertID: the certificate being asked about, seen from its issuer."""

    issuer_name_hash: bytes
    issuer_key_hash: bytes
    serial_number: int
    hash_algorithm: hashes.HashAlgorithm


@dataclass(frozen=True)
class RequestSigner:
    """Key material used to sign an OCSP request."""

    private_key: SigningKey
    certificate: x509.Certificate
    chain: tuple[x509.Certificate, ...] = ()


@dataclass(frozen=True)
class OcspRequestContext:
    """
    A built OCSP request together with the state needed to validate its response.

    Returned by OcspClient.build_request and handed back to
    OcspClient.process_response; one context per request, never reused.
    """

    cert_id: CertificateIdentifier
    nonce: bytes
    request_der: bytes
    signed: bool = False


@dataclass
class OcspCheckResult:
    """Outcome of a full OCSP round trip."""

    status: CertificateStatus
    url: str
    response_der: bytes
    produced_at: Optional[datetime] = None


@dataclass(frozen=True)
class TimestampRequestContext:
    """A built timestamp request; local to a single get_timestamp call."""

    hashed_message: bytes
    digest_method: DigestMethod
    nonce: int
    cert_req: bool
    request_der: bytes = field(repr=False)
