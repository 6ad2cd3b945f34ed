"""
mhtml2html/inline/dom.py
------------------------
Thin adapter around BeautifulSoup: the mutable HTML tree the inliner rewrites.
"""

from bs4 import BeautifulSoup, Doctype

from mhtml2html.utils.config import CONFIG


def parse_dom(markup: str) -> BeautifulSoup:
    """
    Parse HTML text into a mutable document tree.
    """
    return BeautifulSoup(markup, CONFIG.HTML_PARSER)


def outer_html(soup: BeautifulSoup) -> str:
    """
    Markup of the <html> element, or of the whole tree if there is none.
    """
    root = soup.find("html")
    if root is None:
        return str(soup)
    return str(root)


def serialize_document(soup: BeautifulSoup, doctype: str = CONFIG.DOCTYPE) -> str:
    """
    Serialize a tree back to HTML text, prefixing `doctype` unless the parsed
    source already carried one.
    """
    html = str(soup)
    if not doctype or any(isinstance(node, Doctype) for node in soup.contents):
        return html
    return f"{doctype}\n{html}"
