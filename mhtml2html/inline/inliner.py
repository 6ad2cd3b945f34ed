"""
mhtml2html/inline/inliner.py
----------------------------
Rebuilds the archived page as one self-contained HTML document.

The index document is parsed with BeautifulSoup and walked breadth-first:
- <head>    gets <base target="_parent"> so links escape the hosting frame
- <link>    stylesheets become <style> elements
- <style>   url(...) references are inlined
- <img>     src becomes a data URI
- <iframe>  cid: frames are converted recursively (optional)
- style=""  attributes have their url(...) references inlined
- integrity attributes are dropped, the hashes no longer match
"""

from collections import deque
from typing import Deque, Dict, FrozenSet, Optional, Union
from urllib.parse import quote

from bs4 import BeautifulSoup, Tag

from mhtml2html.inline.css import replace_references, rewrite_stylesheet
from mhtml2html.inline.data_uri import asset_to_data_uri
from mhtml2html.inline.dom import outer_html, parse_dom
from mhtml2html.inline.urls import absolute_url
from mhtml2html.mime.errors import ResourceEmbedError, StructuralError
from mhtml2html.mime.parser import MimePart, ParsedDocument, parse
from mhtml2html.utils.config import CONFIG
from mhtml2html.utils.logging_utils import get_logger

logger = get_logger()

# characters encodeURIComponent() leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


class ResourceInliner:
    """
    Rewrites one parsed document. `frame_chain` holds the ids of the frames
    being converted above this one and stops self-referencing iframes.
    """

    def __init__(
        self,
        document: ParsedDocument,
        convert_iframes: bool = False,
        frame_chain: FrozenSet[str] = frozenset(),
    ):
        self.media: Dict[str, MimePart] = document.media
        self.frames: Dict[str, MimePart] = document.frames
        self.index = document.index
        self.convert_iframes = convert_iframes
        self.frame_chain = frame_chain
        self.soup: Optional[BeautifulSoup] = None

    # -- per-tag handlers ---------------------------------------------------

    def _head(self, node: Tag) -> Tag:
        base = self.soup.new_tag("base", target="_parent")
        node.insert(0, base)
        return node

    def _link(self, node: Tag) -> Tag:
        href = node.get("href")
        if not href:
            return node
        location = absolute_url(self.index, href)
        asset = self.media.get(location)
        if asset is None or not asset.is_css:
            return node

        style = self.soup.new_tag("style", type="text/css")
        if node.get("media"):
            style["media"] = node["media"]
        style.string = rewrite_stylesheet(self.media, location, asset)
        node.replace_with(style)
        return style

    def _style(self, node: Tag) -> Tag:
        css = "".join(str(child) for child in node.contents)
        node["type"] = "text/css"
        node.string = replace_references(self.media, self.index, css)
        return node

    def _img(self, node: Tag) -> Tag:
        src = node.get("src")
        if src:
            asset = self.media.get(absolute_url(self.index, src))
            if asset is not None and "image" in asset.mime_type:
                try:
                    node["src"] = asset_to_data_uri(asset)
                except ResourceEmbedError as e:
                    logger.warning("Could not embed image {}: {}", src, e)
        self._inline_style(node)
        return node

    def _iframe(self, node: Tag) -> Tag:
        src = node.get("src")
        if not self.convert_iframes or not src or not src.startswith("cid:"):
            return node

        frame_id = f"<{src[len('cid:'):]}>"
        frame = self.frames.get(frame_id)
        if frame is None or not frame.is_html:
            return node
        if frame_id in self.frame_chain:
            logger.warning("Skipping iframe {}: frame is already being converted", frame_id)
            return node

        nested = ParsedDocument(
            media={**self.media, frame_id: frame},
            frames=self.frames,
            index=frame_id,
        )
        inliner = ResourceInliner(
            nested,
            convert_iframes=self.convert_iframes,
            frame_chain=self.frame_chain | {frame_id},
        )
        html = outer_html(inliner.run())
        node["src"] = "data:text/html;charset=utf-8," + quote(html, safe=_URI_COMPONENT_SAFE)
        return node

    def _inline_style(self, node: Tag) -> None:
        css = node.get("style")
        if not css:
            return
        rewritten = replace_references(self.media, self.index, css)
        if rewritten:
            node["style"] = rewritten

    # -- traversal ----------------------------------------------------------

    def _visit(self, node: Tag) -> Tag:
        if "integrity" in node.attrs:
            del node["integrity"]

        handler = {
            "head": self._head,
            "link": self._link,
            "style": self._style,
            "img": self._img,
            "iframe": self._iframe,
        }.get(node.name)
        if handler is not None:
            return handler(node)

        self._inline_style(node)
        return node

    def _ensure_head(self) -> None:
        """lxml leaves out <head> for fragments and head-less pages."""
        if self.soup.head is not None:
            return
        root = self.soup.html
        if root is None:
            root = self.soup.new_tag("html")
            self.soup.append(root)
        root.insert(0, self.soup.new_tag("head"))

    def run(self) -> BeautifulSoup:
        self.soup = parse_dom(self.media[self.index].data)
        self._ensure_head()
        nodes: Deque[Tag] = deque([self.soup])

        while nodes:
            parent = nodes.popleft()
            for child in list(parent.children):
                if isinstance(child, Tag):
                    nodes.append(self._visit(child))

        return self.soup


def _validate(document: ParsedDocument) -> None:
    if not isinstance(document.frames, dict):
        raise StructuralError("MHTML error: invalid frames")
    if not isinstance(document.media, dict):
        raise StructuralError("MHTML error: invalid media")
    if not isinstance(document.index, str):
        raise StructuralError("MHTML error: invalid index")
    part = document.media.get(document.index)
    if part is None or not part.is_html:
        raise StructuralError("MHTML error: invalid index")


def convert(
    mhtml: Union[str, ParsedDocument],
    convert_iframes: bool = False,
    enc: str = CONFIG.DEFAULT_ENCODING,
) -> BeautifulSoup:
    """
    Converts an MHTML string, or an already parsed document, into a single
    HTML document tree with its resources inlined.

    Args:
        mhtml:           raw MHTML text or a ParsedDocument
        convert_iframes: also inline cid: iframes, recursively
        enc:             charset for quoted-printable payloads

    Returns:
        the rewritten BeautifulSoup tree. Serializing it does not add a
        doctype; see mhtml2html.inline.dom.serialize_document.
    """
    if isinstance(mhtml, str):
        mhtml = parse(mhtml, enc=enc)
    elif not isinstance(mhtml, ParsedDocument):
        raise TypeError("Expected argument of type str or ParsedDocument")

    _validate(mhtml)
    return ResourceInliner(mhtml, convert_iframes=convert_iframes).run()
