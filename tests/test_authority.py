"""Tests for AIA responder discovery."""

import pytest
from unittest.mock import Mock, PropertyMock
from cryptography import x509
from cryptography.x509.oid import AuthorityInformationAccessOID

from pki_trust.authority import find_ca_issuers_urls, find_ocsp_responder_url, resolve_ocsp_server
from pki_trust.config import OcspServer
from pki_trust.exceptions import InvalidArgumentError

from conftest import aia, make_certificate


def test_find_ocsp_responder_url_first_match(leaf_cert):
    """The first OCSP access location wins when several are present."""
    assert find_ocsp_responder_url(leaf_cert) == "http://ocsp1.example.com"


def test_find_ocsp_responder_url_no_aia(plain_cert):
    assert find_ocsp_responder_url(plain_cert) is None


def test_find_ocsp_responder_url_only_ca_issuers(leaf_key, ca_key):
    cert = make_certificate(
        "issuers-only.example.com",
        leaf_key.public_key(),
        "Test CA",
        ca_key,
        extensions=[
            aia(
                (
                    AuthorityInformationAccessOID.CA_ISSUERS,
                    x509.UniformResourceIdentifier("http://ca.example.com/ca.crt"),
                )
            )
        ],
    )

    assert find_ocsp_responder_url(cert) is None


def test_find_ocsp_responder_url_non_uri_location(leaf_key, ca_key):
    """A first OCSP location that is not a URI cannot be used."""
    cert = make_certificate(
        "dirname.example.com",
        leaf_key.public_key(),
        "Test CA",
        ca_key,
        extensions=[
            aia(
                (AuthorityInformationAccessOID.OCSP, x509.DNSName("ocsp.example.com")),
                (
                    AuthorityInformationAccessOID.OCSP,
                    x509.UniformResourceIdentifier("http://ocsp.example.com"),
                ),
            )
        ],
    )

    assert find_ocsp_responder_url(cert) is None


def test_find_ocsp_responder_url_parse_failure_is_not_found():
    """Malformed extensions are treated as 'not found'."""
    cert = Mock()
    type(cert).extensions = PropertyMock(side_effect=ValueError("error parsing asn1 value"))

    assert find_ocsp_responder_url(cert) is None


def test_find_ocsp_responder_url_requires_certificate():
    with pytest.raises(InvalidArgumentError):
        find_ocsp_responder_url(None)


def test_find_ca_issuers_urls(leaf_cert, plain_cert):
    assert find_ca_issuers_urls(leaf_cert) == ["http://ca.example.com/ca.crt"]
    assert find_ca_issuers_urls(plain_cert) == []


def test_resolve_ocsp_server_prefers_certificate_url(leaf_cert):
    configured = OcspServer(url="http://configured.example.com")

    server = resolve_ocsp_server(leaf_cert, [configured])

    assert server.url == "http://ocsp1.example.com"


def test_resolve_ocsp_server_falls_back_to_configured(plain_cert):
    first = OcspServer(url="http://first.example.com")
    second = OcspServer(url="http://second.example.com")

    assert resolve_ocsp_server(plain_cert, [first, second]) is first


def test_resolve_ocsp_server_certificate_url_disabled(leaf_cert):
    configured = OcspServer(url="http://configured.example.com")

    server = resolve_ocsp_server(leaf_cert, [configured], use_certificate_url=False)

    assert server is configured


def test_resolve_ocsp_server_no_candidate(plain_cert):
    assert resolve_ocsp_server(plain_cert, []) is None
