"""
mhtml2html/inline/css.py
------------------------
Inlines url(...) references of stylesheets and style attributes as data URIs.
"""

from typing import Dict

from mhtml2html.inline.data_uri import base64_payload
from mhtml2html.inline.urls import absolute_url
from mhtml2html.mime.errors import ResourceEmbedError
from mhtml2html.mime.parser import MimePart
from mhtml2html.utils.logging_utils import get_logger

logger = get_logger()

CSS_URL_RULE = "url("


def rewrite_stylesheet(media: Dict[str, MimePart], location: str, part: MimePart) -> str:
    """
    Rewrite a stored stylesheet in place, once. References inside it resolve
    against its own location. The part is flagged before recursing so that
    stylesheets referencing each other terminate.
    """
    if not part.css_rewritten:
        part.css_rewritten = True
        part.data = replace_references(media, location, part.data)
    return part.data


def replace_references(media: Dict[str, MimePart], base: str, text: str) -> str:
    """
    Replace every url(...) in `text` that points into `media` with a quoted
    base64 data URI.

    Args:
        media: Content-Location -> part map of the archive
        base:  location `text` was loaded from
        text:  CSS source or a style attribute value

    Returns:
        the rewritten text. References that are unknown or fail to encode are
        left as they were.
    """
    i = text.find(CSS_URL_RULE)
    while i >= 0:
        i += len(CSS_URL_RULE)
        end = text.find(")", i)
        if end < 0:
            break
        reference = text[i:end]

        path = absolute_url(base, reference.replace('"', "").replace("'", "").strip())
        asset = media.get(path)
        if asset is not None:
            if asset.is_css:
                rewrite_stylesheet(media, path, asset)
            try:
                embedded = f"'data:{asset.mime_type};base64,{base64_payload(asset)}'"
            except ResourceEmbedError as e:
                logger.warning("Could not embed {}: {}", path, e)
            else:
                text = text[:i] + embedded + text[end:]
                end = i + len(embedded)

        i = text.find(CSS_URL_RULE, end)
    return text
