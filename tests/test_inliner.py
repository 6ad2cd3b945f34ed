from urllib.parse import unquote

import pytest

from conftest import BASE_URL, PNG_B64, build_mhtml, frame_part, html_part
from mhtml2html.inline.inliner import convert
from mhtml2html.mime.errors import StructuralError
from mhtml2html.mime.parser import MimePart, ParsedDocument, TransferEncoding, parse

IFRAME_PREFIX = "data:text/html;charset=utf-8,"


def _document(html, **extra):
    """ParsedDocument with index.html, img.png and any extra location=part."""
    media = {
        "index.html": MimePart(TransferEncoding.RAW, "text/html", html, content_location="index.html"),
        "img.png": MimePart(TransferEncoding.BASE64, "image/png", PNG_B64, content_location="img.png"),
    }
    media.update(extra)
    return ParsedDocument(media=media, frames={}, index="index.html")


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

def test_stylesheet_and_image_are_inlined(sample_mhtml):
    soup = convert(sample_mhtml)

    assert soup.find("link") is None
    style = soup.find("style")
    assert style["type"] == "text/css"
    assert style["media"] == "screen"
    assert "background: url('data:image/png;base64," in style.string

    img = soup.find("img")
    assert img["src"].startswith("data:image/png;base64,")
    assert img["alt"] == "pixel"


def test_head_gets_parent_base_target(sample_mhtml):
    head = convert(sample_mhtml).find("head")
    first = head.find(True)
    assert first.name == "base"
    assert first["target"] == "_parent"


def test_iframes_are_kept_by_default(sample_mhtml):
    assert convert(sample_mhtml).find("iframe")["src"] == "cid:frame1"


def test_iframe_is_converted(sample_mhtml):
    soup = convert(sample_mhtml, convert_iframes=True)
    src = soup.find("iframe")["src"]

    assert src.startswith(IFRAME_PREFIX)
    html = unquote(src[len(IFRAME_PREFIX):])
    assert html.startswith("<html>")
    assert "<p>inner frame</p>" in html
    assert '<base target="_parent"/>' in html


def test_nested_iframes_are_converted_recursively():
    outer = frame_part('<html><body><iframe src=3D"cid:frame2"></iframe></body></html>', "<frame1>")
    inner = frame_part("<html><body><p>deepest</p></body></html>", "<frame2>")
    mhtml = build_mhtml([html_part('<iframe src=3D"cid:frame1"></iframe>'), outer, inner])

    src = convert(mhtml, convert_iframes=True).find("iframe")["src"]
    outer_html = unquote(src[len(IFRAME_PREFIX):])
    assert 'src="data:text/html;charset=utf-8,' in outer_html
    assert "deepest" in unquote(outer_html)
    assert '<base target="_parent"/>' in outer_html


def test_headless_frame_gets_parent_base_target():
    mhtml = build_mhtml([html_part('<iframe src=3D"cid:frame1"></iframe>'), frame_part("<p>x</p>", "<frame1>")])

    src = convert(mhtml, convert_iframes=True).find("iframe")["src"]
    html = unquote(src[len(IFRAME_PREFIX):])
    assert html.startswith('<html><head><base target="_parent"/></head><body><p>x</p>')


def test_headless_page_gets_parent_base_target():
    soup = convert(_document("<html><body><p>x</p></body></html>"))
    assert soup.html.find(True).name == "head"
    assert soup.head.find("base")["target"] == "_parent"


def test_self_referencing_iframe_stops(warnings):
    loop = frame_part('<html><body><iframe src=3D"cid:frame1"></iframe></body></html>', "<frame1>")
    mhtml = build_mhtml([html_part('<iframe src=3D"cid:frame1"></iframe>'), loop])

    src = convert(mhtml, convert_iframes=True).find("iframe")["src"]
    assert 'iframe src="cid:frame1"' in unquote(src[len(IFRAME_PREFIX):])
    assert any("<frame1>" in message for message in warnings)


def test_iframe_to_non_html_frame_is_kept():
    image = ({"Content-Type": "image/png", "Content-ID": "<pic>",
              "Content-Transfer-Encoding": "base64"}, PNG_B64)
    mhtml = build_mhtml([html_part('<iframe src=3D"cid:pic"></iframe>'), image])
    assert convert(mhtml, convert_iframes=True).find("iframe")["src"] == "cid:pic"


def test_accepts_parsed_document(sample_mhtml):
    soup = convert(parse(sample_mhtml))
    assert soup.find("img")["src"].startswith("data:image/png;base64,")


# ---------------------------------------------------------------------------
# Per-tag handling
# ---------------------------------------------------------------------------

def test_integrity_attributes_are_removed():
    soup = convert(_document(
        '<html><head><script src="x.js" integrity="sha256-a"></script></head>'
        '<body><a href="#" integrity="sha256-b">x</a></body></html>'
    ))
    assert soup.find(attrs={"integrity": True}) is None


def test_style_element_references_are_inlined():
    soup = convert(_document("<style>p { background: url(img.png) }</style><p>x</p>"))
    assert soup.find("style").string == f"p {{ background: url('data:image/png;base64,{PNG_B64}') }}"


def test_style_attributes_are_inlined():
    soup = convert(_document(
        '<div style="background:url(img.png)"><img src="img.png" style="border-image:url(img.png)"></div>'
    ))
    assert soup.find("div")["style"].startswith("background:url('data:image/png;base64,")
    assert soup.find("img")["style"].startswith("border-image:url('data:image/png;base64,")


def test_link_to_non_css_is_kept():
    soup = convert(_document('<html><head><link rel="icon" href="img.png"></head></html>'))
    assert soup.find("link")["href"] == "img.png"


def test_img_with_unknown_source_is_kept():
    soup = convert(_document('<img src="missing.png">'))
    assert soup.find("img")["src"] == "missing.png"


def test_quoted_printable_image_becomes_utf8_data_uri():
    svg = MimePart(TransferEncoding.QUOTED_PRINTABLE, "image/svg+xml", "<svg/>", content_location="a.svg")
    soup = convert(_document('<img src="a.svg">', **{"a.svg": svg}))
    assert soup.find("img")["src"] == "data:image/svg+xml;utf8,%3Csvg/%3E"


def test_image_embed_failure_keeps_source(warnings):
    broken = MimePart(TransferEncoding.RAW, "image/gif", "\ud800", content_location="bad.gif")
    soup = convert(_document('<img src="bad.gif">', **{"bad.gif": broken}))
    assert soup.find("img")["src"] == "bad.gif"
    assert any("bad.gif" in message for message in warnings)


def test_absolute_link_href_is_looked_up_directly():
    css = MimePart(TransferEncoding.RAW, "text/css", "p{}", content_location=BASE_URL + "s.css")
    soup = convert(_document(f'<link rel="stylesheet" href="{BASE_URL}s.css">', **{BASE_URL + "s.css": css}))
    assert soup.find("style").string == "p{}"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_rejects_other_argument_types():
    with pytest.raises(TypeError):
        convert(42)


def test_rejects_index_that_is_not_html():
    doc = _document("<p>x</p>")
    doc.index = "img.png"
    with pytest.raises(StructuralError, match="invalid index"):
        convert(doc)


def test_rejects_missing_index():
    doc = _document("<p>x</p>")
    doc.index = "nowhere.html"
    with pytest.raises(StructuralError, match="invalid index"):
        convert(doc)
