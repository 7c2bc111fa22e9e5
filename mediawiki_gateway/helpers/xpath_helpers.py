"""
Small typed query functions over a parsed API document.
"""

from typing import List, Optional, Union

from lxml import etree

Element = etree._Element
XPathValue = Union[Element, str]


def first(node: Element, path: str) -> Optional[XPathValue]:
    """Return the first XPath match under ``node``, or None.

    Attribute and text matches come back as plain ``str``.
    """
    found = node.xpath(path)
    if not isinstance(found, list):
        # Scalar XPath results (count(), string()) are not used as paths here
        return str(found)
    if not found:
        return None
    value = found[0]
    if isinstance(value, etree._Element):
        return value
    return str(value)


def match(node: Element, path: str) -> List[Element]:
    """Return every element matching ``path`` in document order."""
    return [item for item in node.xpath(path) if isinstance(item, etree._Element)]


def attributes(element: Element) -> dict:
    return {str(key): str(value) for key, value in element.attrib.items()}


def continuation_xpath(list_name: str, param: str) -> str:
    """Build the path of the continuation attribute for a list query.

    The server names it ``<prefix>from`` for some lists and
    ``<prefix>continue`` for others, where the prefix is the first two
    letters of the request parameter (``apfrom``, ``cmcontinue``, ...).
    """
    prefix = param[:2]
    names = " or ".join(f"name()='{prefix}{suffix}'" for suffix in ("from", "continue"))
    return f"//query-continue/{list_name}/@*[{names}]"


def results_xpath(list_name: str, res_xpath: str) -> str:
    """Scope a relative result path under ``query/<list>``."""
    if res_xpath.startswith("/"):
        return res_xpath
    return f"//query/{list_name}/{res_xpath}"
