"""
Tests for the aiohttp transport.
"""

import asyncio
import io
from http.cookies import SimpleCookie
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
import pytest_asyncio

from mediawiki_gateway import GatewayConfig, HttpTransport, NetworkError, TimeoutError
from tests.conftest import API_URL


def mock_response(status=200, body=b"<api/>", cookies=None):
    response = AsyncMock()
    response.status = status
    response.reason = "OK"
    response.read = AsyncMock(return_value=body)
    jar = SimpleCookie()
    for name, value in (cookies or {}).items():
        jar[name] = value
    response.cookies = jar
    return response


class TestHttpTransport:
    """Test HttpTransport class."""

    @pytest_asyncio.fixture
    async def transport(self):
        transport = HttpTransport(GatewayConfig(headers={"X-Test": "1"}))
        yield transport
        await transport.close()

    async def test_session_headers_and_cookie_jar(self, transport):
        await transport._ensure_session()

        assert transport._session.headers["User-Agent"].startswith("mediawiki-gateway/")
        assert transport._session.headers["Accept-Encoding"] == "gzip"
        assert transport._session.headers["X-Test"] == "1"
        assert isinstance(transport._session.cookie_jar, aiohttp.DummyCookieJar)

    @patch("aiohttp.ClientSession.request")
    async def test_get(self, mock_request, transport):
        mock_request.return_value.__aenter__.return_value = mock_response(
            body=b"<api><query/></api>", cookies={"wiki_session": "abc"}
        )

        response = await transport.send(
            "GET", API_URL, {"action": "query"}, {"wikiUserID": "7"}
        )

        assert response.status == 200
        assert response.ok
        assert response.body == b"<api><query/></api>"
        assert response.cookies == {"wiki_session": "abc"}
        args, kwargs = mock_request.call_args
        assert args == ("GET", API_URL)
        assert kwargs["params"] == {"action": "query"}
        assert kwargs["cookies"] == {"wikiUserID": "7"}
        assert "data" not in kwargs

    @patch("aiohttp.ClientSession.request")
    async def test_post_form(self, mock_request, transport):
        mock_request.return_value.__aenter__.return_value = mock_response()

        await transport.send("POST", API_URL, {"action": "edit", "text": "Hi"})

        _, kwargs = mock_request.call_args
        assert kwargs["data"] == {"action": "edit", "text": "Hi"}
        assert "params" not in kwargs

    @patch("aiohttp.ClientSession.request")
    async def test_post_multipart(self, mock_request, transport):
        mock_request.return_value.__aenter__.return_value = mock_response()
        upload = io.BytesIO(b"GIF89a")

        await transport.send("POST", API_URL, {"action": "upload", "file": upload})

        _, kwargs = mock_request.call_args
        assert isinstance(kwargs["data"], aiohttp.FormData)

    @patch("aiohttp.ClientSession.request")
    async def test_non_success_status_is_returned(self, mock_request, transport):
        mock_request.return_value.__aenter__.return_value = mock_response(status=503)

        response = await transport.send("GET", API_URL, {})

        assert response.status == 503
        assert not response.ok

    @patch("aiohttp.ClientSession.request")
    async def test_network_error(self, mock_request, transport):
        mock_request.side_effect = aiohttp.ClientConnectionError("refused")

        with pytest.raises(NetworkError):
            await transport.send("GET", API_URL, {})

    @patch("aiohttp.ClientSession.request")
    async def test_timeout(self, mock_request, transport):
        mock_request.side_effect = asyncio.TimeoutError()

        with pytest.raises(TimeoutError):
            await transport.send("GET", API_URL, {})
