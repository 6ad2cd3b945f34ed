"""
mhtml2html/mime/parser.py
-------------------------
Multipart MHTML parser written as an explicit state machine:

    HEADERS -> CONTENT -> DATA -> (CONTENT | END)

- HEADERS: document headers, boundary extraction, first boundary line
- CONTENT: per-part headers, part registration in the media/frame maps
- DATA:    part body, decoded according to its transfer encoding

Every structural problem raises StructuralError; there is no partial result.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup

from mhtml2html.inline.dom import parse_dom
from mhtml2html.mime.errors import StructuralError
from mhtml2html.mime.quoted_printable import QuotedPrintableDecoder
from mhtml2html.utils.config import CONFIG
from mhtml2html.utils.logging_utils import get_logger

logger = get_logger()

_BOUNDARY = re.compile(r'boundary=(?:"([^"]*)"|([^;\s]+))', re.IGNORECASE)
_NON_WS = re.compile(r"\S")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

class TransferEncoding(str, Enum):
    QUOTED_PRINTABLE = "quoted-printable"
    BASE64 = "base64"
    RAW = "raw"

    @classmethod
    def from_header(cls, value: str) -> "TransferEncoding":
        """
        Map a Content-Transfer-Encoding value to one of the three decoders.
        7bit, 8bit, binary and unknown values are all read as RAW.
        """
        value = value.strip().lower()
        if value == cls.QUOTED_PRINTABLE.value:
            return cls.QUOTED_PRINTABLE
        if value == cls.BASE64.value:
            return cls.BASE64
        return cls.RAW


@dataclass(eq=False)
class MimePart:
    transfer_encoding: TransferEncoding
    mime_type: str
    data: str = ""
    content_id: Optional[str] = None
    content_location: Optional[str] = None
    # set once the stylesheet's url() references have been inlined
    css_rewritten: bool = field(default=False, repr=False)

    @property
    def is_html(self) -> bool:
        return self.mime_type == "text/html"

    @property
    def is_css(self) -> bool:
        return self.mime_type == "text/css"

    @property
    def is_binary(self) -> bool:
        """Raw bytes that are not text: every code point stands for one byte."""
        return self.transfer_encoding is TransferEncoding.RAW and not self.mime_type.startswith("text/")


@dataclass
class ParsedDocument:
    """
    media:   Content-Location -> part (first writer wins)
    frames:  bracketed Content-ID -> part
    index:   location of the root HTML document in `media`
    headers: document-level MIME headers, lower-cased keys
    """
    media: Dict[str, MimePart]
    frames: Dict[str, MimePart]
    index: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def index_part(self) -> Optional[MimePart]:
        return self.media.get(self.index)


class ParserState(Enum):
    HEADERS = auto()
    CONTENT = auto()
    DATA = auto()
    END = auto()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def _reinterpret_utf8(data: str) -> str:
    """
    Read every code point as a Latin-1 byte and decode the bytes as UTF-8.
    Returns `data` unchanged when that is not possible.
    """
    try:
        return data.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return data


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MHTMLParser:
    """
    Parses one MHTML string. Call run() once, or drive step() by hand.
    """

    def __init__(self, mhtml: str, html_only: bool = False, enc: str = CONFIG.DEFAULT_ENCODING):
        self.mhtml = mhtml
        self.html_only = html_only
        self.decoder = QuotedPrintableDecoder(enc)

        self.state = ParserState.HEADERS
        self.pos = 0
        self.line_no = 0
        self.boundary: Optional[str] = None

        self.document_headers: Dict[str, str] = {}
        self.part_headers: Dict[str, str] = {}
        self._last_key: Optional[str] = None
        self.current: Optional[MimePart] = None

        self.media: Dict[str, MimePart] = {}
        self.frames: Dict[str, MimePart] = {}
        self.index: Optional[str] = None
        self.html_document: Optional[BeautifulSoup] = None

    # -- validation ---------------------------------------------------------

    def _expect(self, condition, message: str) -> None:
        if not condition:
            raise StructuralError(f"{message}; Line {self.line_no}")

    # -- line reading -------------------------------------------------------

    def _next_line(self) -> str:
        """Next physical line, terminator included."""
        self._expect(self.pos < len(self.mhtml), "Unexpected EOF")
        end = self.mhtml.find("\n", self.pos)
        end = len(self.mhtml) if end == -1 else end + 1
        line = self.mhtml[self.pos:end]
        self.pos = end
        self.line_no += 1
        return line

    def _next_qp_line(self) -> str:
        """
        Next logical quoted-printable line: physical lines ending in a soft
        break are joined before decoding so split multi-byte sequences survive.
        """
        chunks: List[str] = []
        while True:
            line = self._next_line().rstrip("\r\n")
            stripped = line.rstrip(" \t")
            if not stripped.endswith("="):
                chunks.append(line)
                return self.decoder.decode("".join(chunks) + "\n")

            chunks.append(stripped[:-1])
            # a soft break right before the boundary ends the body
            if self._boundary_follows():
                return self.decoder.decode("".join(chunks))

    def _boundary_follows(self) -> bool:
        end = self.mhtml.find("\n", self.pos)
        line = self.mhtml[self.pos:] if end == -1 else self.mhtml[self.pos:end]
        return self.boundary is not None and self.boundary in line

    def _read_line(self, encoding: Optional[TransferEncoding] = None) -> str:
        if encoding is TransferEncoding.QUOTED_PRINTABLE:
            return self._next_qp_line()
        line = self._next_line()
        if encoding is TransferEncoding.BASE64:
            return line.strip()
        return line

    def _skip_whitespace(self) -> None:
        match = _NON_WS.search(self.mhtml, self.pos)
        self._expect(match is not None, "Unexpected EOF")
        self.line_no += self.mhtml.count("\n", self.pos, match.start())
        self.pos = match.start()

    def _at_eof(self) -> bool:
        return _NON_WS.search(self.mhtml, self.pos) is None

    # -- headers ------------------------------------------------------------

    def _begin_headers(self) -> None:
        self.part_headers = {}
        self._last_key = None

    def _split_header(self, line: str, headers: Dict[str, str]) -> None:
        """
        Store `key: value` split on the first colon. Folded lines (leading
        whitespace, or no colon at all) extend the previous header.
        """
        key, sep, value = line.partition(":")
        if sep and not line[:1].isspace():
            self._last_key = key.strip().lower()
            headers[self._last_key] = value.strip()
            return
        self._expect(self._last_key is not None, "Missing MHTML headers")
        headers[self._last_key] += line.strip()

    # -- states -------------------------------------------------------------

    def _step_headers(self) -> None:
        line = self._read_line()
        if line.strip():
            self._split_header(line, self.document_headers)
            return

        content_type = self.document_headers.get("content-type")
        self._expect(content_type is not None, "Missing document content type")
        match = _BOUNDARY.search(content_type)
        self._expect(match is not None and (match.group(1) or match.group(2)),
                     "Missing boundary from document headers")
        self.boundary = (match.group(1) or match.group(2)).replace('"', "")
        logger.debug("MHTML boundary: {}", self.boundary)

        self._skip_whitespace()
        line = self._read_line()
        self._expect(self.boundary in line, "Expected boundary")

        self._begin_headers()
        self.state = ParserState.CONTENT

    def _step_content(self) -> None:
        line = self._read_line()
        if line.strip():
            self._split_header(line, self.part_headers)
            return

        encoding = self.part_headers.get("content-transfer-encoding")
        content_type = self.part_headers.get("content-type")
        content_id = self.part_headers.get("content-id")
        location = self.part_headers.get("content-location")

        self._expect(content_id is not None or location is not None,
                     "ID or location header not provided")
        self._expect(encoding is not None, "Content-Transfer-Encoding not provided")
        self._expect(content_type is not None, "Content-Type not provided")

        part = MimePart(
            transfer_encoding=TransferEncoding.from_header(encoding),
            mime_type=_media_type(content_type),
            content_id=content_id,
            content_location=location,
        )

        # The first HTML document is the page itself
        if self.index is None and part.is_html and location is not None \
                and location not in self.media:
            self.index = location

        if content_id is not None:
            self.frames[content_id] = part
        if location is not None and location not in self.media:
            self.media[location] = part

        logger.debug(
            "MHTML part | type={} encoding={} id={} location={}",
            part.mime_type, part.transfer_encoding.value, content_id, location,
        )

        self.current = part
        self._skip_whitespace()
        self.state = ParserState.DATA

    def _step_data(self) -> None:
        part = self.current
        chunks: List[str] = []

        line = self._read_line(part.transfer_encoding)
        while self.boundary not in line:
            chunks.append(line)
            line = self._read_line(part.transfer_encoding)

        data = part.data + "".join(chunks)
        part.data = data if part.is_binary else _reinterpret_utf8(data)
        self.current = None

        if self.html_only and self.index is not None:
            self.html_document = parse_dom(self.media[self.index].data)
            self.state = ParserState.END
            return

        if self._at_eof():
            self.state = ParserState.END
        else:
            self._begin_headers()
            self.state = ParserState.CONTENT

    # -- driver -------------------------------------------------------------

    def step(self) -> ParserState:
        """Run one transition and return the new state."""
        if self.state is ParserState.HEADERS:
            self._step_headers()
        elif self.state is ParserState.CONTENT:
            self._step_content()
        elif self.state is ParserState.DATA:
            self._step_data()
        return self.state

    def run(self) -> Union[ParsedDocument, BeautifulSoup]:
        while self.state is not ParserState.END:
            self.step()

        if self.html_document is not None:
            return self.html_document

        self._expect(self.index is not None, "Index not found")
        return ParsedDocument(
            media=self.media,
            frames=self.frames,
            index=self.index,
            headers=dict(self.document_headers),
        )


def parse(
    mhtml: str,
    html_only: bool = False,
    enc: str = CONFIG.DEFAULT_ENCODING,
) -> Union[ParsedDocument, BeautifulSoup]:
    """
    Parses an MHTML string.

    Returns:
        the index document tree if html_only is set, a ParsedDocument otherwise.

    Raises:
        StructuralError on malformed input.
    """
    return MHTMLParser(mhtml, html_only=html_only, enc=enc).run()
