"""HTTP transport shared by the protocol clients, with proxy support."""

import logging
import os
from typing import Optional

import httpx

from pki_trust.exceptions import TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "pki-trust/0.1.0"


def create_http_client(
    proxy: Optional[str] = None,
    timeout: float = 10.0,
    follow_redirects: bool = True,
    max_redirects: int = 5,
) -> httpx.AsyncClient:
    """
    Create the pooled async HTTP client used to reach OCSP and timestamp authorities.

    Args:
        proxy: Proxy URL (e.g., http://proxy:8080) or None to use environment variables
        timeout: Request timeout in seconds
        follow_redirects: Whether to follow redirects
        max_redirects: Maximum number of redirects

    Returns:
        Configured httpx.AsyncClient
    """
    client_kwargs: dict = {
        "timeout": timeout,
        "follow_redirects": follow_redirects,
        "max_redirects": max_redirects if follow_redirects else 0,
        "headers": {"User-Agent": USER_AGENT},
    }

    if proxy:
        # Explicit proxy applies to all schemes
        client_kwargs["proxy"] = proxy
    else:
        http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")
        https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")

        if http_proxy and https_proxy and http_proxy != https_proxy:
            # Different proxies per scheme need explicit transports
            client_kwargs["mounts"] = {
                "http://": httpx.AsyncHTTPTransport(proxy=http_proxy),
                "https://": httpx.AsyncHTTPTransport(proxy=https_proxy),
            }
        elif http_proxy or https_proxy:
            client_kwargs["proxy"] = http_proxy or https_proxy

    return httpx.AsyncClient(**client_kwargs)


async def post_der(
    client: httpx.AsyncClient,
    url: str,
    content: bytes,
    content_type: str,
    accept: Optional[str] = None,
    timeout: Optional[float] = None,
    auth: Optional[tuple[str, str]] = None,
) -> bytes:
    """
    POST a DER body and return the response body.

    Args:
        client: Pooled HTTP client
        url: Authority endpoint
        content: DER-encoded request
        content_type: Request media type
        accept: Expected response media type, sent as Accept header
        timeout: Per-call timeout overriding the client default
        auth: Optional (username, password) for HTTP basic authentication

    Returns:
        Response body bytes

    Raises:
        TransportError: Network fault or non-success HTTP status
    """
    headers = {"Content-Type": content_type}
    if accept:
        headers["Accept"] = accept

    request_kwargs: dict = {"content": content, "headers": headers}
    if timeout is not None:
        request_kwargs["timeout"] = timeout
    if auth is not None:
        request_kwargs["auth"] = httpx.BasicAuth(*auth)

    logger.debug(f"POST {url} ({content_type}, {len(content)} bytes)")
    try:
        response = await client.post(url, **request_kwargs)
    except httpx.TimeoutException as e:
        raise TransportError(f"Request to {url} timed out: {e}", url=url) from e
    except httpx.HTTPError as e:
        raise TransportError(f"Request to {url} failed: {e}", url=url) from e

    if not response.is_success:
        logger.warning(f"{url} answered HTTP {response.status_code}")
        raise TransportError(
            f"{url} answered HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    logger.debug(f"{url} answered HTTP {response.status_code} ({len(response.content)} bytes)")
    return response.content
