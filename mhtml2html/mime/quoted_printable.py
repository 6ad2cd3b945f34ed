"""
mhtml2html/mime/quoted_printable.py
-----------------------------------
Quoted-printable decoding (RFC 2045 section 6.7) with a pluggable charset.

Escape runs like "=E4=BD=A0" are decoded as one byte sequence, so multi-byte
characters (UTF-8, GBK) split over adjacent escapes come out whole.
"""

import codecs
import re

from mhtml2html.utils.config import CONFIG

# Rule 3: trailing whitespace on a line was added in transport
_TRAILING_WS = re.compile(r"[\t ]+(?=\r?$)", re.MULTILINE)
_SOFT_BREAK = re.compile(r"=(?:\r\n?|\n|$)", re.MULTILINE)
_ESCAPE_RUN = re.compile(r"(?:=[0-9A-Fa-f]{2})+")


class QuotedPrintableDecoder:
    """
    Decodes quoted-printable text into a str using an explicit codec.

    Unknown codec names raise LookupError at construction time.
    """

    def __init__(self, encoding: str = CONFIG.DEFAULT_ENCODING):
        self.encoding = codecs.lookup(encoding).name

    def decode_run(self, run: str) -> str:
        raw = bytes.fromhex(run.replace("=", ""))
        return raw.decode(self.encoding, errors="replace")

    def decode(self, text: str) -> str:
        text = _TRAILING_WS.sub("", text)
        text = _SOFT_BREAK.sub("", text)
        return _ESCAPE_RUN.sub(lambda m: self.decode_run(m.group(0)), text)

    def __repr__(self) -> str:
        return f"QuotedPrintableDecoder({self.encoding!r})"


def decode_quoted_printable(text: str, enc: str = CONFIG.DEFAULT_ENCODING) -> str:
    """
    Shortcut for QuotedPrintableDecoder(enc).decode(text).

    >>> decode_quoted_printable("caf=C3=A9")
    'café'
    """
    return QuotedPrintableDecoder(enc).decode(text)
