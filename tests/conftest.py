from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from mediawiki_gateway import GatewayConfig, MediaWikiGateway, TransportResponse

API_URL = "https://wiki.example.org/w/api.php"


def api(inner: str = "", root: str = "api") -> bytes:
    """Wrap ``inner`` in an API document."""
    return f'<?xml version="1.0"?><{root}>{inner}</{root}>'.encode("utf-8")


@dataclass
class SentRequest:
    method: str
    url: str
    params: Dict[str, Any]
    cookies: Dict[str, str] = field(default_factory=dict)


class FakeTransport:
    """Serves queued responses in order and records every request."""

    def __init__(self) -> None:
        self.responses: List[TransportResponse] = []
        self.requests: List[SentRequest] = []
        self.closed = False

    def queue(
        self,
        body: bytes,
        status: int = 200,
        cookies: Optional[Dict[str, str]] = None,
    ) -> "FakeTransport":
        self.responses.append(
            TransportResponse(status=status, body=body, cookies=cookies or {})
        )
        return self

    async def send(self, method, url, params, cookies=None) -> TransportResponse:
        self.requests.append(SentRequest(method, url, dict(params), dict(cookies or {})))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {dict(params)}")
        return self.responses.pop(0)

    async def fetch(self, url: str) -> TransportResponse:
        return await self.send("GET", url, {})

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def config():
    return GatewayConfig(retry_delay=0)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest_asyncio.fixture
async def gateway(config, transport):
    gateway = MediaWikiGateway(API_URL, config=config, transport=transport)
    yield gateway
    await gateway.close()


@pytest.fixture
def engine(gateway):
    return gateway.engine
