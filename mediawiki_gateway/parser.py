"""
Parsing and validation of XML responses from api.php.
"""

from typing import Optional

from lxml import etree

from mediawiki_gateway.config import WarningPolicy
from mediawiki_gateway.exceptions import APIError, ProtocolError
from mediawiki_gateway.helpers.logger_helpers import logger

API_ROOTS = ("api", "mediawiki")


class ResponseParser:
    """
    Turns raw response bytes into a validated API document.

    Errors reported by the server always win over warnings. Warnings are
    handled according to the configured ``WarningPolicy``.
    """

    def __init__(self, warning_policy: WarningPolicy = WarningPolicy.RAISE) -> None:
        self.warning_policy = warning_policy
        self._xml_parser = etree.XMLParser(
            resolve_entities=False, no_network=True, huge_tree=True
        )

    def parse(self, raw: bytes) -> etree._Element:
        """
        Parse a response body.

        Args:
            raw: Response body as returned by the transport

        Returns:
            Root element of the document (``api`` or ``mediawiki``)

        Raises:
            ProtocolError: If the body is not XML or not API output
            APIError: If the document carries an <error> element, or a
                warning under ``WarningPolicy.RAISE``
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        try:
            doc = etree.fromstring(raw, parser=self._xml_parser)
        except etree.XMLSyntaxError as e:
            raise ProtocolError(
                "Response is not XML.  Are you sure you are pointing to api.php?",
                details={"error": str(e)},
            ) from e
        if doc is None:
            raise ProtocolError(
                "Response is not XML.  Are you sure you are pointing to api.php?"
            )

        logger.debug("RES: %s", etree.tostring(doc, encoding="unicode"))

        if doc.tag not in API_ROOTS:
            raise ProtocolError(
                f"Response does not contain Mediawiki API XML: {raw[:200]!r}"
            )

        error = doc.find("error")
        if error is not None:
            raise APIError(error.get("code", "unknown"), error.get("info", ""))

        warnings = doc.find("warnings")
        if warnings is not None:
            self.warning(f"API warning: {self.warning_text(warnings)}")

        return doc

    @staticmethod
    def warning_text(warnings: etree._Element) -> str:
        texts = ["".join(child.itertext()).strip() for child in warnings]
        return ", ".join(text for text in texts if text)

    def warning(self, msg: str) -> Optional[bool]:
        """Log or raise ``msg`` according to the warning policy.

        Returns False when the warning was only logged.
        """
        if self.warning_policy is WarningPolicy.LOG_AND_CONTINUE:
            logger.warning(msg)
            return False
        raise APIError("warning", msg)
