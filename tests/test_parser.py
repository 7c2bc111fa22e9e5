"""
Tests for response parsing and classification.
"""

from unittest.mock import patch

import pytest

from mediawiki_gateway import APIError, ProtocolError, ResponseParser, WarningPolicy
from mediawiki_gateway.helpers.logger_helpers import logger
from tests.conftest import api


class TestResponseParser:
    """Test ResponseParser class."""

    def test_parse_api_root(self):
        doc = ResponseParser().parse(api('<query><pages><page title="Foo"/></pages></query>'))

        assert doc.tag == "api"
        assert doc.find("query/pages/page").get("title") == "Foo"

    def test_parse_mediawiki_root(self):
        doc = ResponseParser().parse(api("<page><title>Foo</title></page>", root="mediawiki"))
        assert doc.tag == "mediawiki"

    def test_not_xml(self):
        with pytest.raises(ProtocolError) as exc_info:
            ResponseParser().parse(b"<html><body>Oops")
        assert "not XML" in str(exc_info.value)

    def test_unknown_root(self):
        with pytest.raises(ProtocolError) as exc_info:
            ResponseParser().parse(b"<html><body>Not the API</body></html>")
        assert "Mediawiki API XML" in str(exc_info.value)

    def test_error_element(self):
        body = api('<error code="badtitle" info="Bad title &quot;&lt;&quot;"/>')

        with pytest.raises(APIError) as exc_info:
            ResponseParser().parse(body)

        assert exc_info.value.code == "badtitle"
        assert exc_info.value.info == 'Bad title "<"'

    def test_error_wins_over_warnings(self):
        body = api(
            '<warnings><main>Unrecognized parameter</main></warnings>'
            '<error code="readapidenied" info="You need read permission"/>'
        )
        parser = ResponseParser(WarningPolicy.LOG_AND_CONTINUE)

        with pytest.raises(APIError) as exc_info:
            parser.parse(body)
        assert exc_info.value.code == "readapidenied"

    def test_warnings_raise(self):
        body = api(
            "<warnings>"
            '<main xml:space="preserve">Unrecognized parameter: foo</main>'
            '<query xml:space="preserve">Too many titles</query>'
            "</warnings><query/>"
        )

        with pytest.raises(APIError) as exc_info:
            ResponseParser(WarningPolicy.RAISE).parse(body)

        assert exc_info.value.code == "warning"
        assert (
            exc_info.value.info
            == "API warning: Unrecognized parameter: foo, Too many titles"
        )

    def test_warnings_logged(self):
        body = api("<warnings><main>Unrecognized parameter: foo</main></warnings><query/>")

        with patch.object(logger, "warning") as warn:
            doc = ResponseParser(WarningPolicy.LOG_AND_CONTINUE).parse(body)

        assert doc.find("query") is not None
        warn.assert_called_once_with("API warning: Unrecognized parameter: foo")

    def test_warning_helper_returns_false_when_logging(self):
        with patch.object(logger, "warning"):
            assert ResponseParser(WarningPolicy.LOG_AND_CONTINUE).warning("x") is False
