"""OCSP revocation checks and RFC 3161 timestamp tokens for document signing."""

from pki_trust.authority import find_ca_issuers_urls, find_ocsp_responder_url, resolve_ocsp_server
from pki_trust.config import OcspServer, TimestampParameters
from pki_trust.digest import SHA1, SHA256, SHA384, SHA512, DigestMethod
from pki_trust.models import (
    CertificateIdentifier,
    CertificateStatus,
    OcspCheckResult,
    OcspRequestContext,
    RequestSigner,
    TimestampRequestContext,
)
from pki_trust.ocsp import OcspClient
from pki_trust.timestamp import TimestampClient

__version__ = "0.1.0"

__all__ = [
    "CertificateIdentifier",
    "CertificateStatus",
    "DigestMethod",
    "OcspCheckResult",
    "OcspClient",
    "OcspRequestContext",
    "OcspServer",
    "RequestSigner",
    "SHA1",
    "SHA256",
    "SHA384",
    "SHA512",
    "TimestampClient",
    "TimestampParameters",
    "TimestampRequestContext",
    "find_ca_issuers_urls",
    "find_ocsp_responder_url",
    "resolve_ocsp_server",
]
