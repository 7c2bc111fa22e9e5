"""
MediaWiki Gateway

An async client for the MediaWiki action API with session handling,
token negotiation, retries and continuation-following queries.
"""

from mediawiki_gateway.gateway import MediaWikiGateway
from mediawiki_gateway.config import GatewayConfig, WarningPolicy
from mediawiki_gateway.engine import ExecuteResult, RequestEngine, Session
from mediawiki_gateway.parser import ResponseParser
from mediawiki_gateway.tokens import TokenManager
from mediawiki_gateway.iteration import collect_query, iterate_query
from mediawiki_gateway.transport import HttpTransport, TransportResponse
from mediawiki_gateway.models.gateway_models import Contribution, Protection
from mediawiki_gateway.exceptions import (
    MediaWikiException,
    ProtocolError,
    NetworkError,
    TimeoutError,
    APIError,
    Unauthorized,
    ValidationError,
)
from mediawiki_gateway.version import __version__

__all__ = [
    "MediaWikiGateway",
    "GatewayConfig",
    "WarningPolicy",
    "ExecuteResult",
    "RequestEngine",
    "Session",
    "ResponseParser",
    "TokenManager",
    "collect_query",
    "iterate_query",
    "HttpTransport",
    "TransportResponse",
    "Contribution",
    "Protection",
    "MediaWikiException",
    "ProtocolError",
    "NetworkError",
    "TimeoutError",
    "APIError",
    "Unauthorized",
    "ValidationError",
    "__version__",
]
