"""
MediaWiki gateway: session ownership and the public API operations.
"""

import logging
import os
import re
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Union

import aiohttp
from lxml import etree
from pydantic import ValidationError as PydanticValidationError

from mediawiki_gateway.config import GatewayConfig
from mediawiki_gateway.engine import ExecuteResult, RequestEngine, Session
from mediawiki_gateway.exceptions import (
    APIError,
    MediaWikiException,
    ProtocolError,
    ValidationError,
)
from mediawiki_gateway.helpers.html_helpers import clean_rendered_html
from mediawiki_gateway.helpers.logger_helpers import configure_logging, logger
from mediawiki_gateway.helpers.xpath_helpers import attributes, first, match
from mediawiki_gateway.iteration import collect_query, iterate_query
from mediawiki_gateway.models.gateway_models import Contribution, Protection
from mediawiki_gateway.parser import ResponseParser
from mediawiki_gateway.tokens import TokenManager
from mediawiki_gateway.transport import HttpTransport

Params = Optional[Dict[str, Any]]
TitleOrPageId = Union[str, int]

MOVE_OPTIONS = ("movesubpages", "movetalk", "noredirect", "reason", "watch", "unwatch")


class MediaWikiGateway:
    """
    Async gateway to a MediaWiki api.php endpoint.

    Features:
    - Cookie-based sessions with login/createaccount token negotiation
    - Retry of 503 Service Unavailable responses with tenacity
    - Rate limiting with aiolimiter
    - Continuation-following list queries
    - Typed errors for protocol, API and authorization failures

    Every operation accepts an optional ``params`` dict of extra API
    parameters merged into the request.
    """

    def __init__(
        self,
        url: str,
        config: Optional[GatewayConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        transport: Optional[HttpTransport] = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            url: Path to the wiki API (e.g. "https://en.wikipedia.org/w/api.php")
            config: Gateway configuration (uses defaults if None)
            session: Optional aiohttp session (creates new if None)
            transport: Optional transport (built from config and session if None)
        """
        self.config = config or GatewayConfig()
        configure_logging(self.config.log_level)

        self.session = Session(api_url=url)
        self.transport = transport or HttpTransport(self.config, session)
        self.parser = ResponseParser(self.config.warning_policy)
        self.engine = RequestEngine(self.session, self.transport, self.config, self.parser)
        self.tokens = TokenManager(self.engine)

    @property
    def base_url(self) -> str:
        return self.session.api_url

    @property
    def cookies(self) -> Dict[str, str]:
        return self.session.cookies

    async def __aenter__(self) -> "MediaWikiGateway":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the gateway and cleanup resources."""
        await self.transport.close()

    async def _document(self, params: Dict[str, Any]) -> etree._Element:
        doc, _ = await self.engine.execute(params)
        return doc

    def _valid_page(self, page: Optional[etree._Element]) -> bool:
        if page is None:
            return False
        if page.get("missing") is not None:
            return False
        if page.get("invalid") is not None:
            return bool(self.parser.warning(f"Invalid title '{page.get('title')}'"))
        return True

    # Engine passthroughs

    async def execute(
        self, params: Dict[str, Any], continue_xpath: Optional[str] = None
    ) -> ExecuteResult:
        """Send a raw API request through the engine."""
        return await self.engine.execute(params, continue_xpath)

    def iterate(
        self,
        list_name: str,
        res_xpath: str,
        attr: Optional[str],
        param: str,
        params: Params = None,
    ) -> AsyncIterator[Any]:
        """Lazily iterate a list query; see ``iteration.iterate_query``."""
        return iterate_query(self.engine, list_name, res_xpath, attr, param, params or {})

    # Authentication

    async def login(
        self,
        username: str,
        password: str,
        domain: str = "local",
        params: Params = None,
    ) -> None:
        """
        Log in to the wiki.

        Args:
            username: Username
            password: Password
            domain: Domain for authentication plugin logins (e.g. LDAP)

        Raises:
            Unauthorized: If login fails
        """
        await self.engine.execute(
            {
                **(params or {}),
                "action": "login",
                "lgname": username,
                "lgpassword": password,
                "lgdomain": domain,
            }
        )
        self.session.password = password
        self.session.username = username

    async def logout(self) -> None:
        await self.engine.execute({"action": "logout"})
        self.session.clear()

    async def create_account(self, params: Dict[str, Any]) -> etree._Element:
        """Create a new account; ``params`` are the createaccount API parameters."""
        doc, _ = await self.engine.execute({**params, "action": "createaccount"})
        return doc

    # Reading pages

    async def get(self, title: str, params: Params = None) -> Optional[str]:
        """
        Fetch page wikitext. Does not follow redirects.

        Returns:
            Page content, or None if the page does not exist
        """
        try:
            doc = await self._document(
                {
                    **(params or {}),
                    "action": "query",
                    "prop": "revisions",
                    "rvprop": "content",
                    "titles": title,
                }
            )
        except MediaWikiException as e:
            logger.error(f"Failed to get page '{title}': {str(e)}")
            raise

        page = doc.find("query/pages/page")
        if not self._valid_page(page):
            return None
        rev = page.find("revisions/rev")
        return (rev.text if rev is not None else None) or ""

    async def revision(self, title: str, params: Params = None) -> Optional[str]:
        """Latest revision ID of a page, or None if it does not exist."""
        doc = await self._document(
            {
                **(params or {}),
                "action": "query",
                "prop": "revisions",
                "rvprop": "ids",
                "rvlimit": 1,
                "titles": title,
            }
        )
        page = doc.find("query/pages/page")
        if not self._valid_page(page):
            return None
        rev = page.find("revisions/rev")
        return rev.get("revid") if rev is not None else None

    async def render(
        self,
        title: str,
        linkbase: Optional[str] = None,
        noeditsections: bool = False,
        noimages: bool = False,
    ) -> Optional[str]:
        """
        Render a page as HTML.

        Args:
            title: Page title
            linkbase: Prefix for internal (``/wiki/...``) links
            noeditsections: Strip edit-section links
            noimages: Strip ``img`` tags

        Returns:
            Rendered HTML, or None if the page does not exist
        """
        doc = await self._document({"action": "parse", "page": title})
        parsed = doc.find("parse")
        if parsed is None or parsed.get("revid") == "0":
            return None
        text = parsed.find("text")
        return clean_rendered_html(
            text.text if text is not None and text.text else "",
            linkbase=linkbase,
            noeditsections=noeditsections,
            noimages=noimages,
        )

    async def is_redirect(self, title: str) -> bool:
        """True if the page is a redirect; False if not or if it does not exist."""
        doc = await self._document({"action": "query", "prop": "info", "titles": title})
        page = doc.find("query/pages/page")
        return self._valid_page(page) and page.get("redirect") is not None

    # Writing pages

    async def create(
        self,
        title: str,
        content: str,
        overwrite: bool = False,
        summary: Optional[str] = None,
        token: Optional[str] = None,
        minor: Optional[bool] = None,
        notminor: bool = False,
        bot: bool = False,
        section: Optional[Union[int, str]] = None,
        params: Params = None,
    ) -> etree._Element:
        """
        Create a new page, or overwrite an existing one.

        Args:
            title: Page title
            content: Page wikitext
            overwrite: Allow overwriting an existing page
            summary: Edit summary
            token: Existing edit token to reuse instead of fetching one
            minor: True marks the edit minor, False marks it major
            notminor: Mark the edit major
            bot: Mark the edit as a bot edit (also enabled by config.bot)
            section: Section number to edit
        """
        form_data: Dict[str, Any] = {
            **(params or {}),
            "action": "edit",
            "title": title,
            "text": content,
            "summary": summary or "",
            "token": token or await self.tokens.get_token("edit", title),
        }
        if self.config.bot or bot:
            form_data["bot"] = "1"
            form_data["assert"] = "bot"
        if minor:
            form_data["minor"] = "1"
        if minor is False or notminor:
            form_data["notminor"] = "1"
        if not overwrite:
            form_data["createonly"] = ""
        if section is not None:
            form_data["section"] = str(section)
        return await self._document(form_data)

    async def edit(self, title: str, content: str, **kwargs: Any) -> etree._Element:
        """Same as ``create`` but always overwrites existing pages."""
        kwargs.setdefault("overwrite", True)
        return await self.create(title, content, **kwargs)

    async def protect(
        self,
        title: str,
        protections: Union[Dict[str, Any], Protection, Iterable[Any]],
        cascade: bool = False,
        reason: Optional[str] = None,
    ) -> etree._Element:
        """
        Protect or unprotect a page.

        Args:
            title: Page title
            protections: One protection or a list of them, each with
                ``action``, ``group`` and optional ``expiry`` (default "never")
            cascade: Protect pages included in this page
            reason: Reason for protection

        Example:
            await mw.protect("Main Page", [
                {"action": "move", "group": "sysop", "expiry": "never"},
                {"action": "edit", "group": "autoconfirmed"},
            ], reason="awesomeness")
        """
        if isinstance(protections, (dict, Protection)):
            protections = [protections]
        if isinstance(protections, (str, bytes)) or not isinstance(
            protections, Iterable
        ):
            raise ValidationError(
                "protections", f"Invalid type '{type(protections).__name__}'"
            )

        rules: List[Protection] = []
        for prt in protections:
            try:
                rules.append(prt if isinstance(prt, Protection) else Protection(**prt))
            except (PydanticValidationError, TypeError) as e:
                raise ValidationError("protections", str(e)) from e

        return await self._document(
            {
                "action": "protect",
                "title": title,
                "token": await self.tokens.get_token("protect", title),
                "protections": "|".join(rule.rule for rule in rules),
                "expiry": "|".join(rule.expiry for rule in rules),
                "cascade": "" if cascade is True else None,
                "reason": reason,
            }
        )

    async def move(self, from_title: str, to_title: str, **options: Any) -> etree._Element:
        """
        Move a page to a new title.

        Options: movesubpages, movetalk, noredirect, reason, watch, unwatch.
        ``noredirect`` needs the suppressredirect right; without it the
        server silently creates the redirect anyway.
        """
        for opt in options:
            if opt not in MOVE_OPTIONS:
                raise ValidationError(opt, f"Unknown option '{opt}'")

        return await self._document(
            {
                **options,
                "action": "move",
                "from": from_title,
                "to": to_title,
                "token": await self.tokens.get_token("move", from_title),
            }
        )

    async def delete(self, title: str, params: Params = None) -> etree._Element:
        """Delete one page."""
        return await self._document(
            {
                **(params or {}),
                "action": "delete",
                "title": title,
                "token": await self.tokens.get_token("delete", title),
            }
        )

    async def undelete(self, title: str, params: Params = None) -> int:
        """
        Undelete all revisions of one page.

        Returns:
            Number of revisions undeleted, or zero if there was nothing to undelete
        """
        token = await self.tokens.get_undelete_token(title)
        if not token:
            return 0
        doc = await self._document(
            {**(params or {}), "action": "undelete", "title": title, "token": token}
        )
        return int(doc.find("undelete").get("revisions", 0))

    # Lists

    async def list(self, key: str, params: Params = None) -> List[str]:
        """
        Page titles starting with ``key``.

        ``key`` may carry a namespace prefix ("Talk:Foo"); the main
        namespace is used otherwise.
        """
        namespace = 0
        if ":" in key:
            prefix, key = key.split(":", 1)
            namespace = (await self.namespaces_by_prefix()).get(prefix, 0)

        return await collect_query(
            self.engine,
            "allpages",
            "//p",
            "title",
            "apfrom",
            {
                **(params or {}),
                "apprefix": key,
                "apnamespace": namespace,
                "aplimit": self.config.limit,
            },
        )

    async def category_members(self, category: str, params: Params = None) -> List[str]:
        return await collect_query(
            self.engine,
            "categorymembers",
            "//cm",
            "title",
            "cmcontinue",
            {**(params or {}), "cmtitle": category, "cmlimit": self.config.limit},
        )

    async def backlinks(
        self, title: str, filter: str = "all", params: Params = None
    ) -> List[str]:
        """Titles of pages linking to ``title``; filter is all, redirects or nonredirects."""
        return await collect_query(
            self.engine,
            "backlinks",
            "//bl",
            "title",
            "blcontinue",
            {
                **(params or {}),
                "bltitle": title,
                "blfilterredir": filter,
                "bllimit": self.config.limit,
            },
        )

    async def users(self, params: Params = None) -> List[str]:
        return await collect_query(
            self.engine,
            "allusers",
            "//u",
            "name",
            "aufrom",
            {**(params or {}), "aulimit": self.config.limit},
        )

    async def contributions(
        self, user: str, count: Optional[int] = None, params: Params = None
    ) -> List[Contribution]:
        """
        Contributions of ``user``, newest first.

        Args:
            user: User name
            count: Maximum number of contributions, or None for all
        """
        result: List[Contribution] = []
        if count is not None and count <= 0:
            return result
        items = iterate_query(
            self.engine,
            "usercontribs",
            "//item",
            None,
            "uccontinue",
            {**(params or {}), "ucuser": user, "uclimit": self.config.limit},
        )
        async with aclosing(items):
            async for element in items:
                result.append(Contribution(**attributes(element)))
                # Stop before the generator asks for the next page
                if count is not None and len(result) >= count:
                    break
        return result

    async def search(
        self,
        key: str,
        namespaces: Optional[Union[str, List[str]]] = None,
        limit: Optional[int] = None,
        max_results: Optional[int] = None,
        params: Params = None,
    ) -> List[str]:
        """
        Titles of pages whose text matches ``key``.

        Args:
            key: Search key
            namespaces: Namespace name or names to search (main only if None)
            limit: Hits per request (defaults to config.limit)
            max_results: Maximum total number of titles (defaults to config.max_results)
        """
        limit = limit or self.config.limit
        max_results = max_results or self.config.max_results

        form_data: Dict[str, Any] = {
            **(params or {}),
            "action": "query",
            "list": "search",
            "srwhat": "text",
            "srsearch": key,
            "srlimit": limit,
        }

        if namespaces is not None:
            if isinstance(namespaces, str):
                namespaces = [namespaces]
            by_prefix = await self.namespaces_by_prefix()
            unknown = [ns for ns in namespaces if ns not in by_prefix]
            if unknown:
                raise ValidationError("namespaces", f"Unknown namespaces: {unknown}")
            form_data["srnamespace"] = "|".join(str(by_prefix[ns]) for ns in namespaces)

        titles: List[str] = []
        offset: Optional[str] = "0"
        try:
            while offset is not None and int(offset) < max_results:
                form_data["sroffset"] = offset
                form_data["srlimit"] = min(limit, max_results - int(offset))
                doc, offset = await self.engine.execute(
                    form_data, "//query-continue/search/@sroffset"
                )
                titles += [p.get("title") for p in match(doc, "//p")]
        except MediaWikiException as e:
            logger.error(f"Search failed for query '{key}': {str(e)}")
            raise

        return titles

    # Files

    async def upload(
        self,
        path: Optional[str] = None,
        filename: Optional[str] = None,
        comment: Optional[str] = None,
        text: Optional[str] = None,
        url: Optional[str] = None,
        sessionkey: Optional[str] = None,
        watch: bool = False,
        ignorewarnings: bool = False,
        description: Optional[str] = None,
        target: Optional[str] = None,
        summary: Optional[str] = None,
        params: Params = None,
    ) -> etree._Element:
        """
        Upload a file, or have the server fetch one from ``url``.

        Args:
            path: Local file to upload; None when uploading from a URL
            filename: Target filename (defaults to the local/URL basename)
            comment: Upload comment, also the initial page text if ``text`` is unset
            text: Initial page text for new files
            url: URL the server should fetch the file from
            sessionkey: Key of a stashed upload (same login session only)
            watch: Watch the page
            ignorewarnings: Ignore upload warnings
            description: Deprecated alias of ``text``
            target: Deprecated alias of ``filename``
            summary: Deprecated; sets ``comment`` and, if unset, ``text``
        """
        if description is not None:
            logger.once(logging.WARNING, "upload(description=...) is deprecated, use text=")
            text = description
        if target is not None:
            logger.once(logging.WARNING, "upload(target=...) is deprecated, use filename=")
            filename = target
        if summary is not None:
            logger.once(logging.WARNING, "upload(summary=...) is deprecated, use comment=")
            text = text or summary
            comment = summary

        comment = comment or "Uploaded by mediawiki-gateway"
        full_name = path or url
        if not filename and full_name:
            filename = os.path.basename(full_name)

        if not (path or url or sessionkey):
            raise ValidationError(
                "path", "One of the 'file', 'url' or 'sessionkey' options must be specified!"
            )

        form_data: Dict[str, Any] = {
            **(params or {}),
            "filename": filename,
            "comment": comment,
            "text": text,
            "url": url,
            "sessionkey": sessionkey,
            "watch": watch,
            "ignorewarnings": ignorewarnings,
            "action": "upload",
            "token": await self.tokens.get_token("edit", filename),
        }
        if path is None:
            return await self._document(form_data)
        with open(path, "rb") as file:
            return await self._document({**form_data, "file": file})

    async def images(
        self, title_or_pageid: TitleOrPageId, imlimit: int = 200, params: Params = None
    ) -> Optional[List[str]]:
        """Image titles used on a page. Follows redirects."""
        form_data = {
            **(params or {}),
            "action": "query",
            "prop": "images",
            "imlimit": imlimit,
            "redirects": True,
            **self._page_selector(title_or_pageid),
        }
        doc = await self._document(form_data)
        page = doc.find("query/pages/page")
        if not self._valid_page(page):
            return None
        if doc.find("query/redirects/r") is not None:
            return await self.images(int(page.get("pageid")), imlimit)
        return [im.get("title") for im in match(page, "images/im")]

    async def langlinks(
        self, title_or_pageid: TitleOrPageId, lllimit: int = 500, params: Params = None
    ) -> Optional[Dict[str, str]]:
        """Interlanguage links as {lang: title}. Follows redirects."""
        form_data = {
            **(params or {}),
            "action": "query",
            "prop": "langlinks",
            "lllimit": lllimit,
            "redirects": True,
            **self._page_selector(title_or_pageid),
        }
        doc = await self._document(form_data)
        page = doc.find("query/pages/page")
        if not self._valid_page(page):
            return None
        if doc.find("query/redirects/r") is not None:
            return await self.langlinks(int(page.get("pageid")), lllimit)
        return {ll.get("lang"): ll.text or "" for ll in match(page, "langlinks/ll")}

    async def langlink_for_lang(
        self, title_or_pageid: TitleOrPageId, lang: str
    ) -> Optional[str]:
        links = await self.langlinks(title_or_pageid)
        return links.get(lang) if links else None

    async def image_info(
        self,
        file_name_or_page_id: TitleOrPageId,
        iiprop: Optional[Union[str, List[str]]] = None,
        params: Params = None,
    ) -> Optional[Dict[str, str]]:
        """
        Image properties of a file. Follows redirects.

        Args:
            file_name_or_page_id: File name without the "File:" prefix, or a page id
            iiprop: Properties to request, as a list or a pipe-joined string

        Returns:
            Dict of image properties, or None if the file does not exist
        """
        if isinstance(file_name_or_page_id, int):
            selector = {"pageids": file_name_or_page_id}
        else:
            selector = {"titles": f"File:{file_name_or_page_id}"}

        doc = await self._document(
            {
                **(params or {}),
                "action": "query",
                "prop": "imageinfo",
                "iiprop": iiprop,
                "redirects": True,
                **selector,
            }
        )
        page = doc.find("query/pages/page")
        if not self._valid_page(page):
            return None
        if doc.find("query/redirects/r") is not None:
            return await self.image_info(int(page.get("pageid")), iiprop, params)
        info = page.find("imageinfo/ii")
        return attributes(info) if info is not None else None

    async def download(self, file_name: str, params: Params = None) -> Optional[bytes]:
        """Contents of ``file_name`` (no "File:" prefix), or None if it does not exist."""
        info = await self.image_info(file_name, iiprop="url", params=params)
        if not info:
            return None
        response = await self.transport.fetch(info["url"])
        if not response.ok:
            raise ProtocolError(f"Bad response: {response.status} {response.reason or ''}".strip())
        return response.body

    # Import / export

    async def import_xml(self, path: str, params: Params = None) -> etree._Element:
        """
        Import a MediaWiki XML dump.

        Returns:
            The API document; ``import/page`` elements with ``revisions="0"``
            were duplicates and not imported
        """
        # Import tokens are not page specific; any title will do
        token = await self.tokens.get_token("import", "Main Page")
        with open(path, "rb") as xml:
            return await self._document(
                {**(params or {}), "action": "import", "xml": xml, "token": token}
            )

    async def export(
        self, titles: Union[str, List[str]], params: Params = None
    ) -> etree._Element:
        """Export pages as a MediaWiki XML dump (the ``mediawiki`` root element)."""
        if isinstance(titles, str):
            titles = [titles]
        return await self._document(
            {
                **(params or {}),
                "action": "query",
                "titles": "|".join(titles),
                "export": "",
                "exportnowrap": "",
            }
        )

    # Site information

    async def siteinfo(self, params: Params = None) -> Dict[str, str]:
        doc = await self._document(
            {**(params or {}), "action": "query", "meta": "siteinfo"}
        )
        general = first(doc, "//query/general")
        return attributes(general) if isinstance(general, etree._Element) else {}

    async def version(self, params: Params = None) -> Optional[str]:
        """MediaWiki version, e.g. "1.41.0"."""
        parts = (await self.siteinfo(params)).get("generator", "").split()
        return parts[-1] if parts else None

    async def namespaces_by_prefix(self, params: Params = None) -> Dict[str, int]:
        """Known namespaces as {canonical name: id}; the main namespace is ""."""
        doc = await self._document(
            {
                **(params or {}),
                "action": "query",
                "meta": "siteinfo",
                "siprop": "namespaces",
            }
        )
        return {ns.get("canonical") or "": int(ns.get("id")) for ns in match(doc, "//ns")}

    async def extensions(self, params: Params = None) -> Dict[str, Optional[str]]:
        """Installed extensions as {name: version}."""
        doc = await self._document(
            {
                **(params or {}),
                "action": "query",
                "meta": "siteinfo",
                "siprop": "extensions",
            }
        )
        return {ext.get("name") or "": ext.get("version") for ext in match(doc, "//ext")}

    async def semantic_query(
        self, query: str, query_params: Iterable[str] = (), params: Params = None
    ) -> Union[etree._Element, Optional[str]]:
        """
        Run a Semantic MediaWiki query.

        Returns:
            The ``ask`` document on SMW 1.7+, otherwise the rendered HTML string
        """
        smw_version = (await self.extensions()).get("Semantic MediaWiki")
        if not smw_version:
            raise MediaWikiException("Semantic MediaWiki extension not installed.")

        query_params = list(query_params)
        version_match = re.match(r"\d+(\.\d+)?", smw_version)
        if version_match and float(version_match.group()) >= 1.7:
            return await self._document(
                {
                    **(params or {}),
                    "action": "ask",
                    "query": f"{query}|{'|'.join(query_params)}",
                }
            )

        doc = await self._document(
            {
                **(params or {}),
                "action": "parse",
                "prop": "text",
                "text": "{{#ask:%s|%s}}" % (query, "|".join(query_params + ["format=list"])),
            }
        )
        text = doc.find("parse/text")
        return text.text if text is not None else None

    # Users

    async def email_user(
        self, user: str, subject: str, text: str, params: Params = None
    ) -> bool:
        """
        Send e-mail to a user (name only, e.g. "Bob", not "User:Bob").

        Raises:
            APIError: 'noemail' if the user has no confirmed address
        """
        doc = await self._document(
            {
                **(params or {}),
                "action": "emailuser",
                "target": user,
                "subject": subject,
                "text": text,
                "token": await self.tokens.get_token("email", f"User:{user}"),
            }
        )
        result = doc.find("emailuser")
        return result is not None and result.get("result") == "Success"

    async def set_options(
        self,
        changes: Optional[Dict[str, Any]] = None,
        optionname: Optional[str] = None,
        optionvalue: Optional[str] = None,
        reset: bool = False,
        params: Params = None,
    ) -> etree._Element:
        """
        Set preferences of the logged-in user.

        Args:
            changes: {option: value} pairs, sent pipe-separated
            optionname: A single option to change; its value may contain pipes
            optionvalue: New value for ``optionname``
            reset: Reset all preferences to site defaults first
        """
        form_data: Dict[str, Any] = {
            **(params or {}),
            "action": "options",
            "token": await self.tokens.get_options_token(),
        }
        if changes:
            form_data["change"] = "|".join(f"{key}={value}" for key, value in changes.items())
        if optionname:
            form_data[optionname] = optionvalue
        if reset:
            form_data["reset"] = True
        return await self._document(form_data)

    async def set_groups(
        self,
        user: str,
        groups_to_add: Union[str, Iterable[str]] = (),
        groups_to_remove: Union[str, Iterable[str]] = (),
        comment: str = "",
        params: Params = None,
    ) -> etree._Element:
        """Add ``user`` to and remove them from groups."""
        token = await self.tokens.get_userrights_token(user)
        return await self._document(
            {
                **(params or {}),
                "action": "userrights",
                "user": user,
                "token": token,
                "add": _pipe_list(groups_to_add),
                "remove": _pipe_list(groups_to_remove),
                "reason": comment,
            }
        )

    async def review(
        self,
        title: str,
        flags: Dict[str, Any],
        comment: str = "Reviewed by mediawiki-gateway",
        params: Params = None,
    ) -> etree._Element:
        """
        Review the current revision of a page (FlaggedRevs extension).

        Args:
            title: Page title
            flags: Flags to set, e.g. {"accuracy": "1", "depth": "2"}
            comment: Review comment
        """
        revid = await self.revision(title)
        if not revid:
            raise APIError("missingtitle", f"Article {title} not found")

        form_data: Dict[str, Any] = {
            **(params or {}),
            "action": "review",
            "revid": revid,
            "token": await self.tokens.get_token("edit", title),
            "comment": comment,
        }
        for key, value in flags.items():
            form_data[f"flag_{key}"] = value
        return await self._document(form_data)

    async def custom_query(self, **params: Any) -> Optional[etree._Element]:
        """
        Make a custom query and return the ``query`` element.

        Example:
            res = await mw.custom_query(prop="revisions", titles="Foo",
                                        rvprop="timestamp", rvdir="newer", rvlimit=1)
            timestamp = res.find("pages/page/revisions/rev").get("timestamp")
        """
        form_data = {str(key): str(value) for key, value in params.items()}
        form_data["action"] = "query"
        doc = await self._document(form_data)
        return doc.find("query")

    @staticmethod
    def _page_selector(title_or_pageid: TitleOrPageId) -> Dict[str, Any]:
        if isinstance(title_or_pageid, int):
            return {"pageids": title_or_pageid}
        return {"titles": title_or_pageid}


def _pipe_list(groups: Union[str, Iterable[str]]) -> str:
    if isinstance(groups, str):
        return groups
    return "|".join(groups)
