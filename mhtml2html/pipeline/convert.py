"""
mhtml2html/pipeline/convert.py
------------------------------
End-to-end MHTML -> single HTML document pipeline.

Steps:
- Decode the uploaded bytes to text
- Parse the multipart archive (or only its index page in html_only mode)
- Inline stylesheets, images and, optionally, iframes
- Serialize the tree with a doctype

Return structure (main keys):
    html, index, media_count, frame_count, html_only
"""

from typing import Any, Dict, Union

from mhtml2html.inline.dom import serialize_document
from mhtml2html.inline.inliner import convert
from mhtml2html.mime.parser import ParsedDocument, parse
from mhtml2html.utils.config import CONFIG, ConvertOptions
from mhtml2html.utils.logging_utils import get_logger

logger = get_logger()


def decode_mhtml_bytes(raw: bytes) -> str:
    """
    Latin-1 maps every byte to one code point, so binary parts survive.
    The parser reinterprets text parts as UTF-8 afterwards.
    """
    return raw.decode("latin-1")


def convert_mhtml(
    raw: Union[bytes, str],
    options: ConvertOptions = ConvertOptions(),
) -> Dict[str, Any]:
    """
    Master function used by the API.

    Raises:
        StructuralError when the archive is malformed.
        LookupError when options.enc is not a known codec.
    """
    # 1) Bytes -> text
    text = decode_mhtml_bytes(raw) if isinstance(raw, bytes) else raw

    # 2) Parse
    parsed = parse(text, html_only=options.html_only, enc=options.enc)

    if not isinstance(parsed, ParsedDocument):
        # html_only: the parser already returned the index page
        return {
            "html": serialize_document(parsed, CONFIG.DOCTYPE),
            "index": None,
            "media_count": 0,
            "frame_count": 0,
            "html_only": True,
        }

    # 3) Inline resources
    soup = convert(parsed, convert_iframes=options.convert_iframes, enc=options.enc)

    logger.debug(
        "Converted {} | media={} frames={}",
        parsed.index, len(parsed.media), len(parsed.frames),
    )

    # 4) Serialize
    return {
        "html": serialize_document(soup, CONFIG.DOCTYPE),
        "index": parsed.index,
        "media_count": len(parsed.media),
        "frame_count": len(parsed.frames),
        "html_only": False,
    }
