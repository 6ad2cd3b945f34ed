"""
mhtml2html/inline/data_uri.py
-----------------------------
Encoding of archived parts as data: URIs.
"""

import base64
from urllib.parse import quote

from mhtml2html.mime.errors import ResourceEmbedError
from mhtml2html.mime.parser import MimePart, TransferEncoding

# characters JavaScript's escape() leaves alone
_ESCAPE_SAFE = "@*_+-./"


def _binary_bytes(asset: MimePart) -> bytes:
    # archives decoded as Latin-1 hold one code point per byte
    try:
        return asset.data.encode("latin-1")
    except UnicodeEncodeError:
        return asset.data.encode("utf-8")


def base64_payload(asset: MimePart) -> str:
    """
    Base64 text for the asset: stored data for base64 parts, the original
    bytes for binary parts, otherwise the UTF-8 bytes of the decoded data.
    """
    if asset.transfer_encoding is TransferEncoding.BASE64:
        return asset.data
    try:
        raw = _binary_bytes(asset) if asset.is_binary else asset.data.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ResourceEmbedError(
            f"cannot encode {asset.content_location or asset.content_id}: {e.reason}"
        ) from e
    return base64.b64encode(raw).decode("ascii")


def asset_to_data_uri(asset: MimePart) -> str:
    if asset.transfer_encoding is TransferEncoding.QUOTED_PRINTABLE:
        # the parser already decoded the body, it only needs escaping here
        try:
            payload = quote(asset.data, safe=_ESCAPE_SAFE)
        except UnicodeEncodeError as e:
            raise ResourceEmbedError(
                f"cannot escape {asset.content_location or asset.content_id}: {e.reason}"
            ) from e
        return f"data:{asset.mime_type};utf8,{payload}"
    return f"data:{asset.mime_type};base64,{base64_payload(asset)}"
