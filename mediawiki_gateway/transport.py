"""
HTTP transport for the MediaWiki gateway, built on aiohttp.
"""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp
from aiolimiter import AsyncLimiter

from mediawiki_gateway.config import GatewayConfig
from mediawiki_gateway.exceptions import NetworkError, TimeoutError


@dataclass
class TransportResponse:
    """Status, body and cookies of one HTTP exchange."""

    status: int
    body: bytes = field(repr=False)
    cookies: Dict[str, str] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def is_file(value: Any) -> bool:
    return hasattr(value, "read")


class HttpTransport:
    """
    Executes single GET or POST requests against the wiki.

    The aiohttp cookie jar is disabled: cookies are passed explicitly on
    every request and returned to the caller, who owns the cookie state.
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            config: Gateway configuration (uses defaults if None)
            session: Optional aiohttp session (creates new if None)
        """
        self.config = config or GatewayConfig()
        self._session: aiohttp.ClientSession = session  # type: ignore
        self._owned_session = session is None

        self._rate_limiter = AsyncLimiter(
            self.config.rate_limit_calls, self.config.rate_limit_period
        )

        self._headers = {
            "User-Agent": self.config.user_agent,
            "Accept-Encoding": "gzip",
            **self.config.headers,
        }

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session is initialized."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers=self._headers,
                cookie_jar=aiohttp.DummyCookieJar(),
            )

    async def close(self) -> None:
        """Close the transport and cleanup resources."""
        if self._session and self._owned_session:
            await self._session.close()
            self._session = None  # type: ignore

    async def send(
        self,
        method: str,
        url: str,
        params: Mapping[str, Any],
        cookies: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        """
        Send one request.

        GET requests carry ``params`` in the query string. POST requests carry
        them as a urlencoded form, or as multipart when a value is a file.

        Raises:
            NetworkError: On connection-level failures
            TimeoutError: On request timeout
        """
        await self._ensure_session()

        kwargs: Dict[str, Any] = {"cookies": dict(cookies or {})}
        if method == "GET":
            kwargs["params"] = dict(params)
        else:
            kwargs["data"] = self._form_data(params)

        async with self._rate_limiter:
            try:
                async with self._session.request(method, url, **kwargs) as response:
                    body = await response.read()
                    return TransportResponse(
                        status=response.status,
                        body=body,
                        cookies={
                            name: morsel.value
                            for name, morsel in response.cookies.items()
                        },
                        reason=response.reason,
                    )
            except asyncio.TimeoutError as e:
                raise TimeoutError("Request timed out") from e
            except aiohttp.ClientError as e:
                raise NetworkError(f"Network error: {str(e)}") from e

    async def fetch(self, url: str) -> TransportResponse:
        """Plain GET of an arbitrary URL (file downloads)."""
        return await self.send("GET", url, {})

    @staticmethod
    def _form_data(params: Mapping[str, Any]) -> Any:
        if not any(is_file(value) for value in params.values()):
            return dict(params)

        form = aiohttp.FormData()
        for key, value in params.items():
            if is_file(value):
                name = getattr(value, "name", None)
                filename = os.path.basename(name) if isinstance(name, str) else key
                form.add_field(key, value, filename=filename)
            else:
                form.add_field(key, value)
        return form
