"""
Token retrieval for mutating API actions.
"""

from typing import Optional

from mediawiki_gateway.engine import RequestEngine
from mediawiki_gateway.exceptions import APIError, Unauthorized, ValidationError
from mediawiki_gateway.helpers.logger_helpers import logger

TOKEN_KINDS = ("edit", "delete", "move", "protect", "import", "email")


class TokenManager:
    """Fetches action tokens through the request engine, one request each."""

    def __init__(self, engine: RequestEngine) -> None:
        self.engine = engine

    async def get_token(self, kind: str, titles: str) -> str:
        """
        Fetch a token for ``kind`` on ``titles``.

        Raises:
            ValidationError: If ``kind`` is not a known token type
            Unauthorized: If the server withholds the token
        """
        if kind not in TOKEN_KINDS:
            raise ValidationError("kind", f"Unknown token type '{kind}'")

        doc, _ = await self.engine.execute(
            {"action": "query", "prop": "info", "intoken": kind, "titles": titles}
        )
        page = doc.find("query/pages/page")
        token = page.get(f"{kind}token") if page is not None else None
        if token is None:
            raise Unauthorized(
                f"User is not permitted to perform this operation: {kind}"
            )
        return token

    async def get_undelete_token(self, titles: str) -> Optional[str]:
        """Token for undeleting ``titles``, or None if there is nothing deleted."""
        doc, _ = await self.engine.execute(
            {
                "action": "query",
                "list": "deletedrevs",
                "prop": "info",
                "drprop": "token",
                "titles": titles,
            }
        )
        page = doc.find("query/deletedrevs/page")
        if page is None:
            return None
        token = page.get("token")
        if token is None:
            raise Unauthorized(
                "User is not permitted to perform this operation: undelete"
            )
        return token

    async def get_userrights_token(self, user: str) -> str:
        doc, _ = await self.engine.execute(
            {
                "action": "query",
                "list": "users",
                "ustoken": "userrights",
                "ususers": user,
            }
        )
        element = doc.find("query/users/user")
        token = element.get("userrightstoken") if element is not None else None
        if token is not None:
            return token

        if element is not None and element.get("missing") is not None:
            raise APIError(
                "invaliduser", f"User '{user}' was not found (get_userrights_token)"
            )
        logger.debug("No userrights token for '%s'", user)
        raise Unauthorized(
            f"User '{self.engine.session.username}' is not permitted to perform "
            "this operation: get_userrights_token"
        )

    async def get_options_token(self) -> str:
        doc, _ = await self.engine.execute({"action": "tokens", "type": "options"})
        tokens = doc.find("tokens")
        token = tokens.get("optionstoken") if tokens is not None else None
        if token is None:
            raise Unauthorized(
                "User is not permitted to perform this operation: options"
            )
        return token
