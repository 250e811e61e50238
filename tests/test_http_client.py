"""Tests for HTTP client utilities."""

import pytest
import os
from unittest.mock import patch
import httpx

from pki_trust.exceptions import TransportError
from pki_trust.http_client import create_http_client, post_der


def test_create_http_client_default():
    """Test creating HTTP client with default settings."""
    client = create_http_client()

    assert isinstance(client, httpx.AsyncClient)
    assert client.timeout.read == 10.0
    assert client.follow_redirects is True
    assert client.headers["User-Agent"].startswith("pki-trust/")


def test_create_http_client_with_proxy():
    """Test creating HTTP client with explicit proxy."""
    with patch("pki_trust.http_client.httpx.AsyncClient") as client_cls:
        create_http_client(proxy="http://proxy.example.com:8080")

    kwargs = client_cls.call_args.kwargs
    assert kwargs["proxy"] == "http://proxy.example.com:8080"
    assert "mounts" not in kwargs


def test_create_http_client_with_timeout():
    client = create_http_client(timeout=5.0)

    assert client.timeout.connect == 5.0


def test_create_http_client_no_redirects():
    client = create_http_client(follow_redirects=False)

    assert client.follow_redirects is False
    assert client.max_redirects == 0


def test_create_http_client_with_env_proxy():
    with patch.dict(os.environ, {"HTTP_PROXY": "http://env-proxy.example.com:8080"}, clear=True):
        with patch("pki_trust.http_client.httpx.AsyncClient") as client_cls:
            create_http_client()

    kwargs = client_cls.call_args.kwargs
    assert kwargs["proxy"] == "http://env-proxy.example.com:8080"
    assert "mounts" not in kwargs


def test_create_http_client_with_both_proxies():
    """Different HTTP and HTTPS proxies are mounted per scheme."""
    with patch.dict(os.environ, {
        "HTTP_PROXY": "http://http-proxy.example.com:8080",
        "HTTPS_PROXY": "http://https-proxy.example.com:8080"
    }, clear=True):
        with patch("pki_trust.http_client.httpx.AsyncClient") as client_cls:
            create_http_client()

    kwargs = client_cls.call_args.kwargs
    assert "proxy" not in kwargs
    assert set(kwargs["mounts"]) == {"http://", "https://"}
    assert all(isinstance(t, httpx.AsyncHTTPTransport) for t in kwargs["mounts"].values())


def test_create_http_client_without_proxy():
    with patch.dict(os.environ, {}, clear=True):
        with patch("pki_trust.http_client.httpx.AsyncClient") as client_cls:
            create_http_client()

    kwargs = client_cls.call_args.kwargs
    assert "proxy" not in kwargs
    assert "mounts" not in kwargs


@pytest.mark.asyncio
async def test_post_der_sends_headers_and_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"\x30\x00")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        body = await post_der(
            client,
            "http://authority.example.com",
            b"\x30\x03\x02\x01\x01",
            content_type="application/ocsp-request",
            accept="application/ocsp-response",
        )

    assert body == b"\x30\x00"
    assert seen[0].content == b"\x30\x03\x02\x01\x01"
    assert seen[0].headers["Content-Type"] == "application/ocsp-request"
    assert seen[0].headers["Accept"] == "application/ocsp-response"
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_post_der_non_success_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(502))

    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(TransportError) as exc_info:
            await post_der(client, "http://authority.example.com", b"", "application/timestamp-query")

    assert exc_info.value.status_code == 502
    assert exc_info.value.url == "http://authority.example.com"


@pytest.mark.asyncio
async def test_post_der_connect_error():
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as exc_info:
            await post_der(client, "http://authority.example.com", b"", "application/timestamp-query")

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_post_der_basic_auth():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        await post_der(
            client,
            "http://authority.example.com",
            b"",
            "application/timestamp-query",
            auth=("user", "secret"),
        )

    assert seen[0].headers["Authorization"].startswith("Basic ")
