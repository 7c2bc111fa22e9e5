"""
Request engine: one logical API call from parameters to a validated document.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, NamedTuple, Optional, Union

from lxml import etree
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from mediawiki_gateway.config import GatewayConfig
from mediawiki_gateway.exceptions import ProtocolError, Unauthorized
from mediawiki_gateway.helpers.logger_helpers import logger
from mediawiki_gateway.helpers.xpath_helpers import first
from mediawiki_gateway.parser import ResponseParser
from mediawiki_gateway.transport import HttpTransport, TransportResponse, is_file

# Actions answered with result="needtoken" first, and the parameter that
# carries the token on the second request.
NEGOTIATED_ACTIONS = {"login": "lgtoken", "createaccount": "token"}

SECRET_PARAMS = ("lgpassword", "password", "retype", "lgtoken", "token")


@dataclass
class Session:
    """Per-gateway state: endpoint, cookies and the last login."""

    api_url: str
    cookies: Dict[str, str] = field(default_factory=dict)
    username: Optional[str] = None
    password: Optional[str] = None

    def merge_cookies(self, cookies: Mapping[str, str]) -> None:
        self.cookies.update(cookies)

    def clear(self) -> None:
        self.cookies.clear()
        self.username = None
        self.password = None


class ExecuteResult(NamedTuple):
    document: etree._Element
    continuation: Union[str, bool, None]


def _is_unavailable(response: TransportResponse) -> bool:
    return response.status == 503


def _last_response(retry_state: RetryCallState) -> TransportResponse:
    return retry_state.outcome.result()  # type: ignore[union-attr]


def _masked(form_data: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: ("***" if key in SECRET_PARAMS else value)
        for key, value in form_data.items()
    }


class RequestEngine:
    """
    Orchestrates a single API call.

    Adds ``format`` and ``maxlag``, sends ``action=query`` as GET and
    everything else as POST, retries 503 responses, negotiates tokens for
    login/createaccount and extracts the continuation value.
    """

    def __init__(
        self,
        session: Session,
        transport: HttpTransport,
        config: Optional[GatewayConfig] = None,
        parser: Optional[ResponseParser] = None,
    ) -> None:
        self.session = session
        self.transport = transport
        self.config = config or GatewayConfig()
        self.parser = parser or ResponseParser(self.config.warning_policy)
        self._sleep = asyncio.sleep

    def prepare(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy ``params`` into wire form and add the protocol parameters."""
        form_data: Dict[str, Any] = {}
        for key, value in params.items():
            if value is None or value is False:
                continue
            if value is True:
                form_data[key] = "1"
            elif is_file(value):
                form_data[key] = value
            elif isinstance(value, (list, tuple)):
                form_data[key] = "|".join(str(v) for v in value)
            else:
                form_data[key] = str(value)
        form_data["format"] = "xml"
        form_data["maxlag"] = str(self.config.maxlag)
        return form_data

    async def execute(
        self, params: Mapping[str, Any], continue_xpath: Optional[str] = None
    ) -> ExecuteResult:
        """
        Make a request to the API.

        Args:
            params: API parameters; must include ``action``
            continue_xpath: XPath of the continuation value, evaluated only
                when the response has a ``query-continue`` element

        Returns:
            The API document and the continuation value (None when there are
            no more results, False after a successful login/createaccount)

        Raises:
            ProtocolError: On a non-2xx status after retries or a bad body
            APIError: On API errors
            Unauthorized: When login or account creation fails
        """
        form_data = self.prepare(params)
        action = form_data.get("action")
        reauthenticated = False

        while True:
            response = await self._send_with_retry(form_data)
            if not response.ok:
                raise ProtocolError(
                    f"Bad response: {response.status} {response.reason or ''}".strip(),
                    details={"status": response.status, "body": response.body[:500]},
                )
            doc = self.parser.parse(response.body)

            if action not in NEGOTIATED_ACTIONS:
                return ExecuteResult(doc, self._continuation(doc, continue_xpath))

            element = doc.find(action)
            result = element.get("result", "") if element is not None else ""
            if result.lower() == "success":
                return ExecuteResult(doc, False)
            if result.lower() == "needtoken" and not reauthenticated:
                logger.debug("%s needs a token, sending it back", action)
                form_data = {**form_data, NEGOTIATED_ACTIONS[action]: element.get("token", "")}
                reauthenticated = True
                continue

            if action == "login":
                raise Unauthorized(f"Login failed: {result}")
            raise Unauthorized(f"Account creation failed: {result}")

    async def _send_with_retry(self, form_data: Dict[str, Any]) -> TransportResponse:
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self.config.retry_count),
            wait=wait_fixed(self.config.retry_delay),
            retry=retry_if_result(_is_unavailable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=_last_response,
        )
        return await retrying(self._send, form_data)

    async def _send(self, form_data: Dict[str, Any]) -> TransportResponse:
        method = "GET" if form_data.get("action") == "query" else "POST"
        logger.debug("%s: %s, %s", method, _masked(form_data), list(self.session.cookies))

        for value in form_data.values():
            if is_file(value) and hasattr(value, "seek"):
                value.seek(0)

        response = await self.transport.send(
            method, self.session.api_url, form_data, self.session.cookies
        )
        self.session.merge_cookies(response.cookies)
        return response

    @staticmethod
    def _continuation(
        doc: etree._Element, continue_xpath: Optional[str]
    ) -> Optional[str]:
        if not continue_xpath or doc.find("query-continue") is None:
            return None
        value = first(doc, continue_xpath)
        if isinstance(value, etree._Element):
            return value.text
        return value
