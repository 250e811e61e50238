"""OCSP client: request building, transport and response interpretation.

Each request is described by an OcspRequestContext returned from
build_request. The context carries the nonce the response must echo, so one
client instance can serve any number of overlapping checks.
"""

import logging
from datetime import datetime
from typing import Optional, Union

import httpx
from asn1crypto import core as asn1_core
from asn1crypto import ocsp as asn1_ocsp
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.x509 import ocsp

from pki_trust.authority import find_ocsp_responder_url
from pki_trust.config import DEFAULT_TIMEOUT, OcspServer
from pki_trust.exceptions import (
    InvalidArgumentError,
    InvalidOperationError,
    NonceMismatchError,
    OCSPResponseStatusError,
    ProtocolError,
)
from pki_trust.http_client import create_http_client, post_der
from pki_trust.models import (
    CertificateIdentifier,
    CertificateStatus,
    OcspCheckResult,
    OcspRequestContext,
    RequestSigner,
    SigningKey,
)
from pki_trust.nonce import DEFAULT_NONCE_LENGTH, generate_nonce

logger = logging.getLogger(__name__)

OCSP_REQUEST_CONTENT_TYPE = "application/ocsp-request"
OCSP_RESPONSE_CONTENT_TYPE = "application/ocsp-response"


def _to_asn1_general_name(name: x509.GeneralName) -> asn1_x509.GeneralName:
    """Convert a cryptography GeneralName into its asn1crypto counterpart."""
    if isinstance(name, x509.DirectoryName):
        return asn1_x509.GeneralName(
            name="directory_name", value=asn1_x509.Name.load(name.value.public_bytes())
        )
    if isinstance(name, x509.DNSName):
        return asn1_x509.GeneralName(name="dns_name", value=name.value)
    if isinstance(name, x509.UniformResourceIdentifier):
        return asn1_x509.GeneralName(name="uniform_resource_identifier", value=name.value)
    if isinstance(name, x509.RFC822Name):
        return asn1_x509.GeneralName(name="rfc822_name", value=name.value)
    raise InvalidArgumentError(f"Unsupported requestor name type: {type(name).__name__}")


def _sign(private_key: SigningKey, data: bytes) -> tuple[bytes, dict]:
    """Sign data with SHA-256, returning the signature and its algorithm identifier."""
    if isinstance(private_key, rsa.RSAPrivateKey):
        signature = private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
        return signature, {"algorithm": "sha256_rsa", "parameters": asn1_core.Null()}
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        signature = private_key.sign(data, ec.ECDSA(hashes.SHA256()))
        return signature, {"algorithm": "sha256_ecdsa"}
    raise InvalidArgumentError(f"Unsupported signer key type: {type(private_key).__name__}")


def _decorate_request(
    request_der: bytes,
    requestor_name: Optional[x509.GeneralName],
    signer: Optional[RequestSigner],
) -> bytes:
    """
    Add a requestor name and optional signature to an unsigned OCSP request.

    A signed request must name its requestor (RFC 6960 4.1.2); when no name
    is given the signer certificate subject is used.
    """
    unsigned = asn1_ocsp.OCSPRequest.load(request_der)

    if requestor_name is None and signer is not None:
        requestor_name = x509.DirectoryName(signer.certificate.subject)

    tbs_fields = {"request_list": unsigned["tbs_request"]["request_list"]}
    extensions = unsigned["tbs_request"]["request_extensions"]
    if not isinstance(extensions, asn1_core.Void):
        tbs_fields["request_extensions"] = extensions
    if requestor_name is not None:
        tbs_fields["requestor_name"] = _to_asn1_general_name(requestor_name)
    tbs_request = asn1_ocsp.TBSRequest(tbs_fields)

    request_fields = {"tbs_request": tbs_request}
    if signer is not None:
        signature, algorithm = _sign(signer.private_key, tbs_request.dump())
        certs = [
            asn1_x509.Certificate.load(cert.public_bytes(serialization.Encoding.DER))
            for cert in (signer.certificate, *signer.chain)
        ]
        request_fields["optional_signature"] = asn1_ocsp.Signature(
            {
                "signature_algorithm": algorithm,
                "signature": signature,
                "certs": certs,
            }
        )

    return asn1_ocsp.OCSPRequest(request_fields).dump()


def _produced_at(response: ocsp.OCSPResponse) -> Optional[datetime]:
    try:
        return response.produced_at_utc
    except AttributeError:
        # Fallback for older cryptography versions
        return response.produced_at


class OcspClient:
    """
    OCSP protocol client.

    Args:
        http_client: Shared connection pool; created (and owned) when omitted
        timeout: Request timeout in seconds for an owned pool
        proxy: Proxy URL for an owned pool
        hash_algorithm: Hash used to build the CertID
        nonce_length: Nonce size in octets
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: Optional[str] = None,
        hash_algorithm: Optional[hashes.HashAlgorithm] = None,
        nonce_length: int = DEFAULT_NONCE_LENGTH,
    ):
        self._owns_client = http_client is None
        # A followed redirect would turn the POST into a bodiless GET
        self._http_client = http_client or create_http_client(
            proxy=proxy, timeout=timeout, follow_redirects=False
        )
        self._hash_algorithm = hash_algorithm or hashes.SHA1()
        self._nonce_length = nonce_length

    async def __aenter__(self) -> "OcspClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_client:
            await self._http_client.aclose()

    def build_request(
        self,
        certificate: x509.Certificate,
        issuer: x509.Certificate,
        requestor_name: Optional[x509.GeneralName] = None,
        signer: Optional[RequestSigner] = None,
    ) -> OcspRequestContext:
        """
        Build an OCSP request for one certificate.

        Args:
            certificate: End-entity certificate to check
            issuer: Certificate of the issuing CA
            requestor_name: Optional requestorName to embed
            signer: Optional key material to sign the request with

        Returns:
            OcspRequestContext holding the DER request and its nonce
        """
        if certificate is None:
            raise InvalidArgumentError("certificate is required")
        if issuer is None:
            raise InvalidArgumentError("issuer is required")

        nonce = generate_nonce(self._nonce_length)
        builder = ocsp.OCSPRequestBuilder()
        builder = builder.add_certificate(certificate, issuer, self._hash_algorithm)
        builder = builder.add_extension(x509.OCSPNonce(nonce), critical=False)
        request = builder.build()

        cert_id = CertificateIdentifier(
            issuer_name_hash=request.issuer_name_hash,
            issuer_key_hash=request.issuer_key_hash,
            serial_number=request.serial_number,
            hash_algorithm=request.hash_algorithm,
        )

        request_der = request.public_bytes(serialization.Encoding.DER)
        if requestor_name is not None or signer is not None:
            request_der = _decorate_request(request_der, requestor_name, signer)

        logger.debug(
            f"Built OCSP request for serial {cert_id.serial_number:x} "
            f"({len(request_der)} bytes, signed={signer is not None})"
        )
        return OcspRequestContext(
            cert_id=cert_id,
            nonce=nonce,
            request_der=request_der,
            signed=signer is not None,
        )

    async def send(
        self,
        url: str,
        request: Union[OcspRequestContext, bytes],
        timeout: Optional[float] = None,
    ) -> bytes:
        """
        POST an OCSP request and return the raw response.

        Args:
            url: Responder URL
            request: Built request context or DER request bytes
            timeout: Per-call timeout in seconds

        Returns:
            DER response bytes

        Raises:
            TransportError: Network fault or non-success HTTP status
        """
        if not url:
            raise InvalidArgumentError("url is required")
        if request is None:
            raise InvalidArgumentError("request is required")

        request_der = request.request_der if isinstance(request, OcspRequestContext) else request
        return await post_der(
            self._http_client,
            url,
            request_der,
            content_type=OCSP_REQUEST_CONTENT_TYPE,
            accept=OCSP_RESPONSE_CONTENT_TYPE,
            timeout=timeout,
        )

    def process_response(
        self, context: Optional[OcspRequestContext], response_der: bytes
    ) -> CertificateStatus:
        """
        Interpret an OCSP response for the request described by context.

        Args:
            context: Context returned by build_request
            response_der: Raw response body

        Returns:
            CertificateStatus (UNKNOWN for empty or ambiguous responses)

        Raises:
            InvalidOperationError: No request was built
            ProtocolError: Undecodable response or non-successful response status
            NonceMismatchError: Response does not echo the request nonce
        """
        status, _ = self._interpret(context, response_der)
        return status

    def _interpret(
        self, context: Optional[OcspRequestContext], response_der: bytes
    ) -> tuple[CertificateStatus, Optional[ocsp.OCSPResponse]]:
        if context is None:
            raise InvalidOperationError("Request must be built before processing a response.")
        if response_der is None:
            raise InvalidArgumentError("response_der is required")

        if len(response_der) == 0:
            logger.debug("Empty OCSP response body")
            return CertificateStatus.UNKNOWN, None

        try:
            response = ocsp.load_der_ocsp_response(response_der)
        except ValueError as e:
            raise ProtocolError(f"Malformed OCSP response: {e}") from e

        if response.response_status != ocsp.OCSPResponseStatus.SUCCESSFUL:
            status_name = response.response_status.name
            logger.warning(f"OCSP responder returned status {status_name}")
            raise OCSPResponseStatusError(
                f"Unexpected OCSP response status `{status_name}`.", response_status=status_name
            )

        self._check_nonce(context, response)

        try:
            single_responses = list(response.responses)
        except ValueError as e:
            raise ProtocolError(f"Malformed OCSP single responses: {e}") from e

        if len(single_responses) != 1:
            logger.debug(f"Expected one OCSP single response, got {len(single_responses)}")
            return CertificateStatus.UNKNOWN, response

        cert_status = single_responses[0].certificate_status
        if cert_status == ocsp.OCSPCertStatus.GOOD:
            return CertificateStatus.GOOD, response
        if cert_status == ocsp.OCSPCertStatus.REVOKED:
            return CertificateStatus.REVOKED, response
        return CertificateStatus.UNKNOWN, response

    @staticmethod
    def _check_nonce(context: OcspRequestContext, response: ocsp.OCSPResponse) -> None:
        try:
            echoed = response.extensions.get_extension_for_class(x509.OCSPNonce).value.nonce
        except x509.ExtensionNotFound:
            raise NonceMismatchError(
                "OCSP response does not carry a nonce", expected=context.nonce
            ) from None
        except ValueError as e:
            raise ProtocolError(f"Malformed OCSP response extensions: {e}") from e

        if echoed != context.nonce:
            raise NonceMismatchError("Bad nonce value", expected=context.nonce, actual=echoed)

    async def check_status(
        self,
        certificate: x509.Certificate,
        issuer: x509.Certificate,
        url: Optional[str] = None,
        requestor_name: Optional[x509.GeneralName] = None,
        signer: Optional[RequestSigner] = None,
        timeout: Optional[float] = None,
    ) -> OcspCheckResult:
        """
        Run a full OCSP check: locate responder, build, send and interpret.

        Args:
            certificate: End-entity certificate to check
            issuer: Certificate of the issuing CA
            url: Responder URL; taken from the certificate's AIA when omitted
            requestor_name: Optional requestorName to embed
            signer: Optional key material to sign the request with
            timeout: Per-call timeout in seconds

        Returns:
            OcspCheckResult with status and raw response
        """
        if certificate is None:
            raise InvalidArgumentError("certificate is required")

        if url is None:
            url = find_ocsp_responder_url(certificate)
            if not url:
                raise InvalidArgumentError(
                    "No OCSP responder URL given and none found in the certificate"
                )

        context = self.build_request(certificate, issuer, requestor_name, signer)
        response_der = await self.send(url, context, timeout=timeout)
        try:
            status, response = self._interpret(context, response_der)
        except ProtocolError as e:
            e.url = url
            raise

        logger.debug(f"OCSP status for serial {context.cert_id.serial_number:x} from {url}: {status.value}")
        return OcspCheckResult(
            status=status,
            url=url,
            response_der=response_der,
            produced_at=_produced_at(response) if response is not None else None,
        )

    async def check_with_server(
        self,
        certificate: x509.Certificate,
        issuer: x509.Certificate,
        server: OcspServer,
        timeout: Optional[float] = None,
    ) -> OcspCheckResult:
        """Run a full OCSP check against a configured responder."""
        if server is None:
            raise InvalidArgumentError("server is required")
        return await self.check_status(
            certificate,
            issuer,
            url=server.url,
            requestor_name=server.requestor_name,
            signer=server.signer,
            timeout=timeout,
        )
