"""RFC 3161 timestamp client.

Every get_timestamp call builds its own request context (hash, digest
algorithm, nonce) and validates the response against it, so one client can
serve concurrent calls over a shared connection pool.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from asn1crypto import cms
from asn1crypto import core as asn1_core
from asn1crypto import tsp

from pki_trust.config import DEFAULT_TIMEOUT, TimestampParameters
from pki_trust.digest import DigestMethod
from pki_trust.exceptions import (
    InvalidArgumentError,
    NonceMismatchError,
    ProtocolError,
    TimestampRejectedError,
    TimestampValidationError,
)
from pki_trust.http_client import create_http_client, post_der
from pki_trust.models import TimestampRequestContext
from pki_trust.nonce import generate_integer_nonce

logger = logging.getLogger(__name__)

TIMESTAMP_QUERY_CONTENT_TYPE = "application/timestamp-query"
TIMESTAMP_REPLY_CONTENT_TYPE = "application/timestamp-reply"

GRANTED_STATUSES = ("granted", "granted_with_mods")


class TimeStampResponse(tsp.TimeStampResp):
    """TimeStampResp with the token optional, as RFC 3161 2.4.2 declares it."""

    _fields = [
        ("status", tsp.PKIStatusInfo),
        ("time_stamp_token", cms.ContentInfo, {"optional": True}),
    ]


@dataclass
class DecodedTimestampResponse:
    """The parts of a TimeStampResp needed to validate it."""

    status: str
    status_text: Optional[str] = None
    failure_info: List[str] = field(default_factory=list)
    token_der: Optional[bytes] = None
    imprint_algorithm: Optional[str] = None
    imprint_hash: Optional[bytes] = None
    nonce: Optional[int] = None
    certificate_count: int = 0


def build_timestamp_request(
    hash_value: bytes,
    digest_method: DigestMethod,
    cert_req: bool,
    nonce: Optional[int] = None,
) -> TimestampRequestContext:
    """
    Build a DER TimeStampReq.

    Args:
        hash_value: Digest of the data to timestamp
        digest_method: Algorithm that produced hash_value
        cert_req: Ask the authority to embed its signing certificate
        nonce: Nonce to use; a fresh one is generated when omitted

    Returns:
        TimestampRequestContext
    """
    if hash_value is None:
        raise InvalidArgumentError("hash_value is required")
    if digest_method is None:
        raise InvalidArgumentError("digest_method is required")
    if len(hash_value) != digest_method.digest_size:
        raise InvalidArgumentError(
            f"{digest_method.name} hash must be {digest_method.digest_size} bytes, got {len(hash_value)}"
        )

    if nonce is None:
        nonce = generate_integer_nonce()

    request = tsp.TimeStampReq(
        {
            "version": 1,
            "message_imprint": {
                "hash_algorithm": {"algorithm": digest_method.oid},
                "hashed_message": hash_value,
            },
            "nonce": nonce,
            "cert_req": cert_req,
        }
    )
    return TimestampRequestContext(
        hashed_message=hash_value,
        digest_method=digest_method,
        nonce=nonce,
        cert_req=cert_req,
        request_der=request.dump(),
    )


def decode_timestamp_response(response_der: bytes) -> DecodedTimestampResponse:
    """
    Decode a DER TimeStampResp.

    Raises:
        ProtocolError: Body is not a TimeStampResp
    """
    if not response_der:
        raise ProtocolError("Empty timestamp response")

    try:
        response = TimeStampResponse.load(response_der, strict=True)
        status_info = response["status"]
        decoded = DecodedTimestampResponse(status=status_info["status"].native)

        status_string = status_info["status_string"].native
        if status_string:
            decoded.status_text = "; ".join(status_string)
        fail_info = status_info["fail_info"].native
        if fail_info:
            decoded.failure_info = sorted(fail_info)

        token = response["time_stamp_token"]
        if isinstance(token, asn1_core.Void):
            return decoded

        decoded.token_der = token.dump()
        if token["content_type"].native != "signed_data":
            return decoded

        signed_data = token["content"]
        certificates = signed_data["certificates"]
        if not isinstance(certificates, asn1_core.Void):
            decoded.certificate_count = len(certificates)

        tst_info = signed_data["encap_content_info"]["content"].parsed
        if not isinstance(tst_info, tsp.TSTInfo):
            return decoded

        imprint = tst_info["message_imprint"]
        decoded.imprint_algorithm = imprint["hash_algorithm"]["algorithm"].dotted
        decoded.imprint_hash = imprint["hashed_message"].native
        decoded.nonce = tst_info["nonce"].native
    except (ValueError, TypeError, KeyError) as e:
        raise ProtocolError(f"Malformed timestamp response: {e}") from e

    return decoded


def validate_timestamp_response(
    context: TimestampRequestContext, decoded: DecodedTimestampResponse
) -> bytes:
    """
    Check a decoded response against the request it answers.

    Returns:
        Token bytes as sent by the authority

    Raises:
        TimestampRejectedError: Authority refused and returned no token
        TimestampValidationError: Token missing or not matching the request
        NonceMismatchError: Token nonce differs from the request nonce
    """
    granted = decoded.status in GRANTED_STATUSES

    if decoded.token_der is None:
        if granted:
            raise TimestampValidationError("No time stamp token found and one expected.")
        logger.warning(
            f"Timestamp authority rejected request: {decoded.status} "
            f"({decoded.status_text or 'no status text'})"
        )
        raise TimestampRejectedError(
            f"Timestamp request rejected with status `{decoded.status}`.",
            status=decoded.status,
            status_text=decoded.status_text,
            failure_info=decoded.failure_info,
        )

    if not granted:
        raise TimestampValidationError(
            f"Time stamp token found in failed request (status `{decoded.status}`)."
        )

    if decoded.imprint_algorithm is None:
        raise TimestampValidationError("Time stamp token does not contain TSTInfo.")

    if decoded.imprint_algorithm != context.digest_method.oid:
        raise TimestampValidationError(
            f"Message imprint algorithm {decoded.imprint_algorithm} does not match "
            f"request algorithm {context.digest_method.oid}."
        )

    if decoded.imprint_hash != context.hashed_message:
        raise TimestampValidationError("Message imprint hash does not match the request.")

    if decoded.nonce != context.nonce:
        raise NonceMismatchError(
            "Time stamp token nonce does not match the request.",
            expected=context.nonce,
            actual=decoded.nonce,
        )

    if context.cert_req and decoded.certificate_count == 0:
        raise TimestampValidationError(
            "No certificates returned in time stamp token although requested."
        )

    return decoded.token_der


class TimestampClient:
    """
    Client for an RFC 3161 timestamp authority.

    Args:
        url: Timestamp authority endpoint
        http_client: Shared connection pool; created (and owned) when omitted
        username: Optional basic authentication user
        password: Optional basic authentication password
        timeout: Request timeout in seconds for an owned pool
        proxy: Proxy URL for an owned pool
    """

    def __init__(
        self,
        url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: Optional[str] = None,
    ):
        if not url:
            raise InvalidArgumentError("url is required")
        if (username is None) != (password is None):
            raise InvalidArgumentError("username and password must be given together")

        self.url = url
        self._auth = (username, password) if username is not None else None
        self._owns_client = http_client is None
        # A followed redirect would turn the POST into a bodiless GET
        self._http_client = http_client or create_http_client(
            proxy=proxy, timeout=timeout, follow_redirects=False
        )

    @classmethod
    def from_parameters(
        cls, parameters: TimestampParameters, http_client: Optional[httpx.AsyncClient] = None
    ) -> "TimestampClient":
        return cls(
            parameters.url,
            http_client=http_client,
            username=parameters.username,
            password=parameters.password,
            timeout=parameters.timeout,
            proxy=parameters.proxy,
        )

    async def __aenter__(self) -> "TimestampClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_client:
            await self._http_client.aclose()

    async def get_timestamp(
        self,
        hash_value: bytes,
        digest_method: DigestMethod,
        request_signer_certificates: bool = True,
        timeout: Optional[float] = None,
    ) -> bytes:
        """
        Obtain a timestamp token for a hash.

        Cancelling the awaiting task aborts the HTTP exchange; nothing is
        shared between calls, so other calls are unaffected.

        Args:
            hash_value: Digest of the data to timestamp
            digest_method: Algorithm that produced hash_value
            request_signer_certificates: Ask the authority to embed its certificate
            timeout: Per-call timeout in seconds

        Returns:
            DER-encoded TimeStampToken, byte-for-byte as returned by the authority
        """
        context = build_timestamp_request(hash_value, digest_method, request_signer_certificates)

        response_der = await post_der(
            self._http_client,
            self.url,
            context.request_der,
            content_type=TIMESTAMP_QUERY_CONTENT_TYPE,
            accept=TIMESTAMP_REPLY_CONTENT_TYPE,
            timeout=timeout,
            auth=self._auth,
        )

        try:
            decoded = decode_timestamp_response(response_der)
            token = validate_timestamp_response(context, decoded)
        except ProtocolError as e:
            e.url = self.url
            raise

        logger.debug(f"Received timestamp token from {self.url} ({len(token)} bytes)")
        return token

    async def timestamp_data(
        self,
        data: bytes,
        digest_method: DigestMethod,
        request_signer_certificates: bool = True,
        timeout: Optional[float] = None,
    ) -> bytes:
        """Hash data with digest_method and timestamp the result."""
        if digest_method is None:
            raise InvalidArgumentError("digest_method is required")
        return await self.get_timestamp(
            digest_method.compute_hash(data),
            digest_method,
            request_signer_certificates,
            timeout=timeout,
        )
