"""Authority Information Access (AIA) lookups.

Locating a responder is fail-soft: certificates without AIA are common, so a
missing or unparsable extension yields None (or an empty list) instead of an
error. Only a missing certificate argument raises.
"""

import logging
from typing import Iterable, List, Optional

from cryptography import x509
from cryptography.x509.oid import AuthorityInformationAccessOID, ExtensionOID

from pki_trust.config import OcspServer
from pki_trust.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def _access_descriptions(certificate: x509.Certificate) -> Optional[list]:
    """Return the AIA access descriptions, or None if absent or unparsable."""
    try:
        aia_ext = certificate.extensions.get_extension_for_oid(
            ExtensionOID.AUTHORITY_INFORMATION_ACCESS
        )
    except x509.ExtensionNotFound:
        return None
    except (ValueError, AttributeError, TypeError) as e:
        logger.debug(f"Cannot read AIA extension: {e}")
        return None
    return list(aia_ext.value)


def find_ocsp_responder_url(certificate: x509.Certificate) -> Optional[str]:
    """
    Find the OCSP responder URL advertised by a certificate.

    The first id-ad-ocsp access location wins; later ones are ignored.

    Args:
        certificate: Certificate whose AIA extension is inspected

    Returns:
        Responder URL, or None if there is no usable OCSP location
    """
    if certificate is None:
        raise InvalidArgumentError("certificate is required")

    descriptions = _access_descriptions(certificate)
    if descriptions is None:
        return None

    for access_desc in descriptions:
        if access_desc.access_method != AuthorityInformationAccessOID.OCSP:
            continue
        location = access_desc.access_location
        if not isinstance(location, x509.UniformResourceIdentifier):
            logger.debug(f"First OCSP access location is not a URI: {location!r}")
            return None
        return location.value

    return None


def find_ca_issuers_urls(certificate: x509.Certificate) -> List[str]:
    """
    List the CA Issuers URLs advertised by a certificate.

    Args:
        certificate: Certificate whose AIA extension is inspected

    Returns:
        URLs in extension order (empty if none)
    """
    if certificate is None:
        raise InvalidArgumentError("certificate is required")

    descriptions = _access_descriptions(certificate) or []
    return [
        access_desc.access_location.value
        for access_desc in descriptions
        if access_desc.access_method == AuthorityInformationAccessOID.CA_ISSUERS
        and isinstance(access_desc.access_location, x509.UniformResourceIdentifier)
    ]


def resolve_ocsp_server(
    certificate: x509.Certificate,
    servers: Iterable[OcspServer] = (),
    use_certificate_url: bool = True,
) -> Optional[OcspServer]:
    """
    Pick the OCSP server to query for a certificate.

    The certificate's own AIA responder comes first when enabled, then the
    configured servers in order; the first candidate is returned.

    Args:
        certificate: End-entity certificate
        servers: Configured responders
        use_certificate_url: Whether to consult the certificate's AIA extension

    Returns:
        Selected OcspServer, or None when there is no candidate
    """
    if use_certificate_url:
        url = find_ocsp_responder_url(certificate)
        if url:
            logger.debug(f"Using OCSP responder from certificate: {url}")
            return OcspServer(url=url)

    for server in servers:
        logger.debug(f"Using configured OCSP responder: {server.url}")
        return server

    return None
