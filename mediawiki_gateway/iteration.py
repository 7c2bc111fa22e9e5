"""
Continuation-driven iteration over list queries.
"""

from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

from mediawiki_gateway.engine import RequestEngine
from mediawiki_gateway.helpers.xpath_helpers import (
    continuation_xpath,
    match,
    results_xpath,
)


async def iterate_query(
    engine: RequestEngine,
    list_name: str,
    res_xpath: str,
    attr: Optional[str],
    param: str,
    params: Mapping[str, Any],
) -> AsyncIterator[Any]:
    """
    Yield every result of a list query, following ``query-continue``.

    Args:
        engine: Request engine to send the requests through
        list_name: Name of the list module (``allpages``, ``categorymembers``, ...)
        res_xpath: Path of the result elements, relative to ``query/<list>``
            unless it starts with ``/``
        attr: Attribute to yield from each element; the element itself if None
        param: Request parameter that carries the continuation value
        params: Additional query parameters

    Pages are requested strictly in order. Iteration ends when the server
    stops sending a continuation value.
    """
    req_xpath = continuation_xpath(list_name, param)
    res_xpath = results_xpath(list_name, res_xpath)
    form_data: Dict[str, Any] = {**params, "action": "query", "list": list_name}

    while True:
        doc, continuation = await engine.execute(form_data, req_xpath)

        for element in match(doc, res_xpath):
            yield element.get(attr) if attr else element

        if not continuation:
            break
        form_data[param] = continuation


async def collect_query(
    engine: RequestEngine,
    list_name: str,
    res_xpath: str,
    attr: Optional[str],
    param: str,
    params: Mapping[str, Any],
) -> List[Any]:
    return [
        item
        async for item in iterate_query(engine, list_name, res_xpath, attr, param, params)
    ]
