import re
from typing import Optional

from bs4 import BeautifulSoup, Comment

WIKI_LINK = re.compile(r"^/wiki/[\w()\-.%:,]*$")
EDIT_SECTION_CLASSES = ["editsection", "mw-editsection"]


def clean_rendered_html(
    html: str,
    linkbase: Optional[str] = None,
    noeditsections: bool = False,
    noimages: bool = False,
) -> str:
    """Post-process HTML returned by action=parse."""
    soup = BeautifulSoup(html, "html.parser")

    # HTML comments (parser limit reports and the like) are always dropped
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    if linkbase:
        for link in soup.find_all("a", href=WIKI_LINK):
            link["href"] = linkbase + link["href"]

    if noeditsections:
        for span in soup.find_all("span", class_=EDIT_SECTION_CLASSES):
            span.decompose()

    if noimages:
        for img in soup.find_all("img"):
            img.decompose()

    return str(soup)
